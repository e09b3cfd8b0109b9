#!/usr/bin/env python3
"""
TrieStore Performance Benchmarks
================================

Measures the throughput of the main store operations and renders the results
as a rich table.

Usage:
    python scripts/benchmark_store.py                 # Run all benchmarks
    python scripts/benchmark_store.py --n 50000       # Operations per benchmark
    python scripts/benchmark_store.py --depth 8       # Depth of benchmark paths
"""

import argparse
import sys
import time
from dataclasses import dataclass
from typing import Callable, List

# Add the project root to the Python path
sys.path.insert(0, ".")

from rich.console import Console
from rich.table import Table

from triestore import TrieStore


@dataclass
class BenchmarkResult:
    """Result of a single benchmark."""

    name: str
    operations: int
    seconds: float

    @property
    def ops_per_second(self) -> float:
        return self.operations / self.seconds if self.seconds > 0 else float("inf")


def _timed(name: str, operations: int, fn: Callable[[], None]) -> BenchmarkResult:
    start = time.perf_counter()
    fn()
    return BenchmarkResult(name, operations, time.perf_counter() - start)


def _deep_path(depth: int, leaf: int) -> List[str]:
    return [f"n{level}" for level in range(depth - 1)] + [f"leaf{leaf % 100}"]


def bench_set_without_observers(n: int, depth: int) -> BenchmarkResult:
    store = TrieStore()

    def run():
        for i in range(n):
            store.set(_deep_path(depth, i), i)

    return _timed("Set (no observers)", n, run)


def bench_set_with_observers(n: int, depth: int) -> BenchmarkResult:
    store = TrieStore()
    path = _deep_path(depth, 0)
    for level in range(len(path) + 1):
        store.observe(path[:level]).subscribe(lambda value: None)

    def run():
        for i in range(n):
            store.set(path, i)

    return _timed("Set (observer per level)", n, run)


def bench_set_with_old_values(n: int, depth: int) -> BenchmarkResult:
    store = TrieStore()
    path = _deep_path(depth, 0)
    for level in range(len(path) + 1):
        store.observe_changes(path[:level]).subscribe(lambda change: None)

    def run():
        for i in range(n):
            store.set(path, i)

    return _timed("Set (detailed observers)", n, run)


def bench_batch(n: int, depth: int) -> BenchmarkResult:
    store = TrieStore()
    store.observe([]).subscribe(lambda value: None)

    def run():
        with store.batch():
            for i in range(n):
                store.set(_deep_path(depth, i), i)

    return _timed("Batched set", n, run)


def bench_get(n: int, depth: int) -> BenchmarkResult:
    store = TrieStore()
    path = _deep_path(depth, 0)
    store.set(path, 1)

    def run():
        for _ in range(n):
            store.get(path)

    return _timed("Get", n, run)


def bench_subscribe_unsubscribe(n: int, depth: int) -> BenchmarkResult:
    store = TrieStore()
    path = _deep_path(depth, 0)

    def run():
        for _ in range(n):
            store.observe(path).subscribe(lambda value: None).dispose()

    return _timed("Subscribe + dispose", n, run)


BENCHMARKS = [
    bench_get,
    bench_set_without_observers,
    bench_set_with_observers,
    bench_set_with_old_values,
    bench_batch,
    bench_subscribe_unsubscribe,
]


def main() -> None:
    parser = argparse.ArgumentParser(description="TrieStore performance benchmarks")
    parser.add_argument("--n", type=int, default=20000, help="operations per benchmark")
    parser.add_argument("--depth", type=int, default=5, help="depth of benchmark paths")
    args = parser.parse_args()

    console = Console()
    results = []
    for benchmark in BENCHMARKS:
        console.print(f"[yellow]Running {benchmark.__name__}...[/yellow]")
        results.append(benchmark(args.n, args.depth))

    table = Table(title=f"TrieStore Benchmarks (n={args.n}, depth={args.depth})")
    table.add_column("Benchmark", style="cyan", no_wrap=True)
    table.add_column("Operations", style="magenta", justify="right")
    table.add_column("Time (ms)", style="yellow", justify="right")
    table.add_column("Ops/sec", style="green", justify="right")
    for result in results:
        table.add_row(
            result.name,
            f"{result.operations:,}",
            f"{result.seconds * 1000:.1f}",
            f"{result.ops_per_second:,.0f}",
        )
    console.print()
    console.print(table)


if __name__ == "__main__":
    main()
