"""
Benchmark: structshare merge vs. the usual ways of taking a new version.

Compared strategies for "the config was reloaded, give me the new tree":
    1. replace   — just use the revision (no sharing at all)
    2. deepcopy  — copy.deepcopy(revision) (no sharing, fully private)
    3. merge     — structshare.merge(source, revision)

The point is NOT "merge is fastest" — replace is free.  The point is:
    merge keeps every unchanged subtree BY REFERENCE, so consumers can
    skip work with a single `is` check.
"""

import copy
import os
import sys
import time

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from structshare import merge, is_container
from structshare.nodes import get_child, node_keys


# ═══════════════════════════════════════════════════════════════════
#  TEST DATA
# ═══════════════════════════════════════════════════════════════════

CONFIG_A = {
    "server": {
        "host": "0.0.0.0",
        "port": 443,
        "tls": True,
        "workers": 4,
    },
    "database": {
        "host": "db.internal",
        "port": 5432,
        "name": "production",
        "pool_size": 10,
        "ssl": True,
    },
    "logging": {
        "level": "WARN",
        "format": "json",
        "outputs": ["stdout", "file"],
    },
    "cache": {
        "backend": "redis",
        "ttl": 300,
        "max_size": 10000,
    },
}

CONFIG_B = {
    "server": {
        "host": "0.0.0.0",
        "port": 8080,        # Changed
        "tls": True,
        "workers": 4,
    },
    "database": {
        "host": "db.internal",
        "port": 5432,
        "name": "production",
        "pool_size": 10,
        "ssl": True,
    },
    "logging": {
        "level": "WARN",
        "format": "json",
        "outputs": ["stdout", "file"],
    },
    "cache": {
        "backend": "redis",
        "ttl": 300,
        "max_size": 10000,
    },
}


def wide_tree(n, depth):
    """n sections, each a chain of `depth` nested dicts."""
    tree = {}
    for i in range(n):
        node = {"leaf": i}
        for d in range(depth):
            node = {"level": d, "child": node, "tags": [d, d + 1]}
        tree[f"section_{i}"] = node
    return tree


def touch_one_leaf(tree):
    """Deep copy of `tree` with a single leaf changed in the first section."""
    revised = copy.deepcopy(tree)
    node = revised["section_0"]
    while "child" in node:
        node = node["child"]
    node["leaf"] = "changed"
    return revised


# ═══════════════════════════════════════════════════════════════════
#  MEASUREMENT
# ═══════════════════════════════════════════════════════════════════

def count_containers(value, seen=None):
    """Distinct container objects reachable from value."""
    if seen is None:
        seen = set()
    if not is_container(value) or id(value) in seen:
        return seen
    seen.add(id(value))
    for key in node_keys(value):
        count_containers(get_child(value, key), seen)
    return seen


def sharing_ratio(result, source):
    """Fraction of result's containers that are source's containers."""
    result_ids = count_containers(result)
    if not result_ids:
        return 1.0
    return len(result_ids & count_containers(source)) / len(result_ids)


def timed(fn, repeat=20):
    best = float("inf")
    out = None
    for _ in range(repeat):
        t0 = time.perf_counter()
        out = fn()
        best = min(best, time.perf_counter() - t0)
    return out, best


# ═══════════════════════════════════════════════════════════════════
#  BENCHMARKS
# ═══════════════════════════════════════════════════════════════════

def benchmark_config_reload():
    """A realistic config reload with one changed value."""
    print("=" * 70)
    print("  §1  CONFIG RELOAD")
    print("=" * 70)
    print()

    strategies = [
        ("replace", lambda: CONFIG_B),
        ("deepcopy", lambda: copy.deepcopy(CONFIG_B)),
        ("merge", lambda: merge(CONFIG_A, CONFIG_B)),
    ]
    for name, fn in strategies:
        result, dt = timed(fn)
        changed = [k for k in CONFIG_A if result[k] is not CONFIG_A[k]]
        print(f"  {name:<9} {dt*1e6:>9.1f}µs  shared={sharing_ratio(result, CONFIG_A):>5.0%}  "
              f"sections to reprocess: {changed}")
    print()


def benchmark_sharing():
    """Sharing ratio after a single deep change, by tree width."""
    print("=" * 70)
    print("  §2  SHARING AFTER ONE DEEP CHANGE")
    print("=" * 70)
    print()

    for n in [10, 50, 100, 500]:
        source = wide_tree(n, depth=5)
        revision = touch_one_leaf(source)
        result, dt = timed(lambda: merge(source, revision), repeat=5)
        print(f"  sections={n:>4}: shared={sharing_ratio(result, source):>7.2%}  "
              f"time={dt*1000:>8.2f}ms")
    print()


def benchmark_scaling():
    """Merge cost vs deepcopy cost as trees grow."""
    print("=" * 70)
    print("  §3  SCALING (merge vs deepcopy)")
    print("=" * 70)
    print()

    for n in [10, 50, 100, 500]:
        source = wide_tree(n, depth=5)
        revision = touch_one_leaf(source)
        _, merge_dt = timed(lambda: merge(source, revision), repeat=5)
        _, copy_dt = timed(lambda: copy.deepcopy(revision), repeat=5)
        print(f"  sections={n:>4}: merge={merge_dt*1000:>8.2f}ms  "
              f"deepcopy={copy_dt*1000:>8.2f}ms")
    print()


def benchmark_cycles():
    """Cyclic sources terminate."""
    print("=" * 70)
    print("  §4  CYCLIC SOURCES")
    print("=" * 70)
    print()

    for depth in [1, 10, 100]:
        source = {"id": 0}
        node = source
        for i in range(depth):
            node["next"] = {"id": i + 1}
            node = node["next"]
        node["next"] = source
        revision = copy.deepcopy(source)
        revision["id"] = -1
        _, dt = timed(lambda: merge(source, revision), repeat=5)
        print(f"  ring length {depth + 1:>4}: terminated in {dt*1000:.3f}ms")
    print()


def main():
    print()
    print("╔══════════════════════════════════════════════════════════════════════╗")
    print("║          STRUCTURAL-SHARING MERGE — BENCHMARK SUITE                  ║")
    print("║          structshare v0.1.0                                          ║")
    print("╚══════════════════════════════════════════════════════════════════════╝")
    print()

    benchmark_config_reload()
    benchmark_sharing()
    benchmark_scaling()
    benchmark_cycles()


if __name__ == "__main__":
    main()
