#!/usr/bin/env python3
"""
coopyield Benchmark Validation Suite

Runs the blocking and coop benchmarks and validates the performance criteria:
coop mode keeps heartbeat latency low while losing little throughput.
"""

import subprocess
import json
import sys
import os
import re
import tempfile

BENCH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "bench", "benchmark.py")

MAX_P99_US = 60_000          # a little over one deferred-tier window
MIN_RELATIVE_THROUGHPUT = 0.5

def run_command(cmd, timeout=None):
    """Run a command and return its output."""
    print(f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(
            cmd,
            check=True,
            capture_output=True,
            text=True,
            timeout=timeout
        )
        return result.stdout
    except subprocess.CalledProcessError as e:
        print(f"Error executing command: {e}")
        print(f"Stdout: {e.stdout}")
        print(f"Stderr: {e.stderr}")
        raise

def parse_benchmark_output(output):
    """Parse the summary printed by bench/benchmark.py."""
    metrics = {}

    p50_match = re.search(r"Latency P50:\s+([\d.]+)\s+us", output)
    p99_match = re.search(r"Latency P99:\s+([\d.]+)\s+us", output)
    throughput_match = re.search(r"Throughput:\s+([\d.]+)\s+units/s", output)
    yields_match = re.search(r"Yields:\s+(\d+)", output)

    if p50_match: metrics['p50_us'] = float(p50_match.group(1))
    if p99_match: metrics['p99_us'] = float(p99_match.group(1))
    if throughput_match: metrics['throughput'] = float(throughput_match.group(1))
    if yields_match: metrics['yields'] = int(yields_match.group(1))

    return metrics

def run_mode(mode, duration=5, workers=2):
    """Run one benchmark mode and return its parsed metrics."""
    with tempfile.TemporaryDirectory() as tmp:
        out = os.path.join(tmp, f"{mode}.json")
        cmd = [sys.executable, BENCH, "--mode", mode, "--duration", str(duration),
               "--workers", str(workers), "--output", out]
        metrics = parse_benchmark_output(run_command(cmd, timeout=duration * 10 + 30))
        with open(out) as f:
            metrics['samples'] = len(json.load(f)['latencies_us'])
    return metrics

def validate_benchmarks():
    """Main validation routine. Returns True if every criterion holds."""
    ok = True

    print("\n=== Baseline Run (blocking) ===")
    baseline = run_mode("blocking")
    print(f"Baseline throughput: {baseline.get('throughput')} units/s")
    print(f"Baseline p99: {baseline.get('p99_us')} us")

    print("\n=== Cooperative Run (coop) ===")
    coop = run_mode("coop")
    print(f"Coop throughput: {coop.get('throughput')} units/s")
    print(f"Coop p99: {coop.get('p99_us')} us")
    print(f"Checkpoint yields: {coop.get('yields', 0)}")

    if coop.get('p99_us', float('inf')) > MAX_P99_US:
        print(f"FAIL: coop p99 latency > {MAX_P99_US} us")
        ok = False

    if coop.get('yields', 0) == 0:
        print("FAIL: no yields recorded in coop mode")
        ok = False

    if baseline.get('throughput'):
        relative = coop.get('throughput', 0) / baseline['throughput']
        print(f"Relative throughput: {relative:.2f}")
        if relative < MIN_RELATIVE_THROUGHPUT:
            print(f"FAIL: coop throughput below {MIN_RELATIVE_THROUGHPUT:.0%} of blocking")
            ok = False

    return ok

if __name__ == "__main__":
    try:
        sys.exit(0 if validate_benchmarks() else 1)
    except KeyboardInterrupt:
        print("\nAborted.")
        sys.exit(130)
