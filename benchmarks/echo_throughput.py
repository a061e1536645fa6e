#!/usr/bin/env python3
# Copyright 2025 Maida.AI
# SPDX-License-Identifier: Apache-2.0
"""Echo benchmark: raw blocking socket vs RSC Session round trips.

Both transports talk to the same loopback echo server; every run sends one
random payload and waits until all of it has come back.

Usage:
  $ python benchmarks/echo_throughput.py --runs 200 --size 4096
"""
from __future__ import annotations

import argparse
import hashlib
import socket
import threading
import time
from statistics import quantiles

import numpy as np
from rich import box
from rich.console import Console
from rich.table import Table
from tqdm import tqdm

from rsc import Session, Status, StreamServer


# ---------------------------------------------------------------------------
# Utilities
# ---------------------------------------------------------------------------
def generate_payload(size: int) -> tuple[bytes, str]:
    payload = np.random.randint(0, 256, size=size, dtype=np.uint8).tobytes()
    checksum = hashlib.sha256(payload).hexdigest()
    return payload, checksum


def validate_response(original_payload: bytes, response_payload: bytes, original_checksum: str, run_number: int) -> bool:
    if len(response_payload) != len(original_payload):
        print(f"❌ Run {run_number}: Length mismatch! Expected {len(original_payload)}, got {len(response_payload)}")
        return False
    if hashlib.sha256(response_payload).hexdigest() != original_checksum:
        print(f"❌ Run {run_number}: Checksum mismatch!")
        return False
    return True


# ---------------------------------------------------------------------------
# Benchmark helpers
# ---------------------------------------------------------------------------
def bench_raw(port: int, payload: bytes, checksum: str, runs: int) -> dict:
    latencies = []
    validation_errors = 0

    with socket.create_connection(("127.0.0.1", port), timeout=10.0) as sock:
        for run_num in tqdm(range(runs), desc="Raw socket"):
            start = time.perf_counter()
            sock.sendall(payload)
            buf = bytearray()
            while len(buf) < len(payload):
                chunk = sock.recv(len(payload) - len(buf))
                if not chunk:
                    break
                buf.extend(chunk)
            latencies.append(time.perf_counter() - start)
            if not validate_response(payload, bytes(buf), checksum, run_num):
                validation_errors += 1

    return {"latencies": latencies, "validation_errors": validation_errors, "total_runs": runs}


def bench_session(port: int, payload: bytes, checksum: str, runs: int) -> dict:
    latencies = []
    validation_errors = 0

    received = bytearray()
    arrived = threading.Condition()
    connected = threading.Event()

    def on_message(data: bytes) -> None:
        with arrived:
            received.extend(data)
            arrived.notify()

    def on_status(status: Status, reason: str) -> None:
        if status == Status.CONNECTED:
            connected.set()

    session = Session.tcp("127.0.0.1", port)
    session.set_message_callback(on_message)
    session.set_status_callback(on_status)
    session.start()
    if not connected.wait(10.0):
        raise RuntimeError("Session did not connect")

    try:
        for run_num in tqdm(range(runs), desc="RSC Session"):
            start = time.perf_counter()
            session.send(payload)
            with arrived:
                ok = arrived.wait_for(lambda: len(received) >= len(payload), timeout=10.0)
                response = bytes(received[: len(payload)])
                del received[: len(payload)]
            latencies.append(time.perf_counter() - start)
            if not ok or not validate_response(payload, response, checksum, run_num):
                validation_errors += 1
    finally:
        session.close()

    return {"latencies": latencies, "validation_errors": validation_errors, "total_runs": runs}


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------
def summarise(latencies: list[float], size_bytes: int, validation_errors: int, total_runs: int) -> dict[str, float]:
    if len(latencies) < 2:
        return {"p50": float("nan"), "p95": float("nan"), "p99": float("nan"), "thr": 0.0, "success_rate": 0.0}
    lat_us = [t * 1e6 for t in latencies]
    cuts = quantiles(lat_us, n=100)
    p50, p95, p99 = cuts[49], cuts[94], cuts[98]
    throughput = (size_bytes * len(latencies)) / sum(latencies) / (2**20)  # MiB/s
    success_rate = (total_runs - validation_errors) / total_runs * 100
    return {"p50": p50, "p95": p95, "p99": p99, "thr": throughput, "success_rate": success_rate}


def print_table(results: dict[str, dict[str, float]]):
    console = Console()
    table = Table(title="Echo Round-Trip Benchmark", box=box.SIMPLE_HEAVY)
    table.add_column("Transport")
    table.add_column("p50 (us, ↓)")
    table.add_column("p95 (us, ↓)")
    table.add_column("p99 (us, ↓)")
    table.add_column("Throughput (MiB/s, ↑)")
    table.add_column("Success Rate (%)")
    for k, v in results.items():
        success_color = "green" if v["success_rate"] == 100.0 else "red"
        table.add_row(
            k,
            f"{v['p50']:.2f}",
            f"{v['p95']:.2f}",
            f"{v['p99']:.2f}",
            f"{v['thr']:.1f}",
            f"[{success_color}]{v['success_rate']:.1f}%[/{success_color}]",
        )
    console.print(table)


def main():
    parser = argparse.ArgumentParser(description="Echo benchmark: raw socket vs RSC Session")
    parser.add_argument("--runs", type=int, default=200, help="Number of round trips")
    parser.add_argument("--size", type=int, default=4096, help="Payload size in bytes")
    args = parser.parse_args()

    payload, checksum = generate_payload(args.size)
    server = StreamServer("127.0.0.1", 0).start()
    print(f"Benchmarking {args.runs} runs with {args.size} byte payloads on port {server.port}")

    try:
        raw = bench_raw(server.port, payload, checksum, args.runs)
        sess = bench_session(server.port, payload, checksum, args.runs)
    finally:
        server.stop()

    print_table(
        {
            "Raw socket": summarise(raw["latencies"], args.size, raw["validation_errors"], raw["total_runs"]),
            "RSC Session": summarise(sess["latencies"], args.size, sess["validation_errors"], sess["total_runs"]),
        }
    )


if __name__ == "__main__":
    main()
