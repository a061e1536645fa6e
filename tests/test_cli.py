"""Command-line front end tests."""

import io

from rsc import cli


def test_ports(monkeypatch, capsys) -> None:
    monkeypatch.setattr(cli, "list_serial_ports", lambda: ["/dev/ttyUSB0", "/dev/ttyACM0"])
    assert cli.main(["ports"]) == 0
    out = capsys.readouterr().out
    assert "/dev/ttyUSB0" in out
    assert "/dev/ttyACM0" in out


def test_ports_none(monkeypatch, capsys) -> None:
    monkeypatch.setattr(cli, "list_serial_ports", lambda: [])
    assert cli.main(["ports"]) == 0
    assert "no serial ports found" in capsys.readouterr().out


def test_connect_invalid_locator(monkeypatch, capsys) -> None:
    """Bad locators are reported without starting anything."""
    monkeypatch.setattr("sys.stdin", io.StringIO("never sent\n"))
    assert cli.main(["connect", "gopher://example.com:70"]) == 2
    assert "Invalid locator" in capsys.readouterr().out


def test_connect_session_lifecycle(echo_server, monkeypatch, capsys) -> None:
    """The session is started, then closed when stdin ends."""
    monkeypatch.setattr("sys.stdin", io.StringIO(""))
    locator = f"tcp://127.0.0.1:{echo_server.port}"
    assert cli.main(["connect", locator, "--initial", "0.05", "--maximum", "0.2"]) == 0

    out = capsys.readouterr().out
    assert "CONNECTING" in out
    assert "Client closed" in out
    print("✓ CLI connect test passed")
