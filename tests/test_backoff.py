"""Tests for the reconnect backoff policy."""

import pytest
from pydantic import ValidationError

from rsc import BackoffPolicy, SessionConfig


def test_default_schedule() -> None:
    """Default delays double from 1s and stop growing at 30s."""
    policy = BackoffPolicy()

    assert policy.delays(9) == [1, 2, 4, 8, 16, 30, 30, 30, 30]
    assert policy.delay(1000) == 30
    print("✓ Default backoff schedule test passed")


def test_schedule_is_non_decreasing() -> None:
    """Delays never shrink while failures continue."""
    policy = BackoffPolicy(initial=0.25, factor=3.0, maximum=10.0)
    delays = policy.delays(20)

    assert delays == sorted(delays)
    assert delays[0] == 0.25
    assert delays[-1] == 10.0


def test_constant_policy() -> None:
    """A factor of 1 retries at a fixed pace."""
    policy = BackoffPolicy(initial=2.0, factor=1.0, maximum=2.0)
    assert policy.delays(5) == [2.0] * 5
    assert policy.delay(10**9) == 2.0


def test_invalid_policies() -> None:
    """Nonsensical parameters are rejected at construction."""
    with pytest.raises(ValidationError):
        BackoffPolicy(initial=0)
    with pytest.raises(ValidationError):
        BackoffPolicy(factor=0.5)
    with pytest.raises(ValidationError):
        BackoffPolicy(initial=10.0, maximum=5.0)

    with pytest.raises(ValueError):
        BackoffPolicy().delay(-1)
    print("✓ Invalid backoff policy test passed")


def test_session_config_defaults() -> None:
    """SessionConfig carries the default policy and no read size override."""
    config = SessionConfig()
    assert config.backoff == BackoffPolicy()
    assert config.read_size is None

    with pytest.raises(ValidationError):
        SessionConfig(read_size=0)


if __name__ == "__main__":
    test_default_schedule()
    test_schedule_is_non_decreasing()
    test_constant_policy()
    test_invalid_policies()
    test_session_config_defaults()
    print("All backoff tests passed!")
