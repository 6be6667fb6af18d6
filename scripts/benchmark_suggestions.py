"""
Micro-benchmark for the SKU suggestion engine.

Tests:
1. analyze_product() hot path (called once per catalog row per run)
2. get_suggestions_for_sku() for a single source against a synthetic catalog
3. generate_all_suggestions() end-to-end (pairs grow quadratically)

Usage:
    python scripts/benchmark_suggestions.py [catalog_size]
"""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))
import time
import numpy as np
from sku_matcher import (
    SkuRecord, analyze_product, get_suggestions_for_sku,
    generate_all_suggestions, summarize_by_confidence,
)


def generate_synthetic_catalog(n_rows: int = 500, seed: int = 7) -> list:
    """Generate a synthetic ball-case catalog for benchmarking."""
    rng = np.random.default_rng(seed)
    prefixes = ['GBC', 'TBC', 'CBC', 'BBC', 'GBDS', '']
    lines = ['VANTAGE', 'ICON', 'PRESTIGE', 'HERITAGE', 'PTB', 'GBB02']
    materials = ['', '-MAH', '-AHW', '-AFZ', '-OAK']
    backgrounds = [('HIO', 'Hole In One'), ('EAGLE', 'Eagle'), ('CHAMP', 'Champion'),
                   ('BIRDIE', 'Birdie'), ('GC', 'Golf Course')]
    suffixes = ['', 'P', '-BALL']

    records = []
    for i in range(n_rows):
        prefix = rng.choice(prefixes)
        line = rng.choice(lines)
        material = rng.choice(materials)
        bg_code, bg_name = backgrounds[rng.integers(len(backgrounds))]
        suffix = rng.choice(suffixes)

        parts = [p for p in (prefix, line) if p]
        sku = f"{'-'.join(parts)}{material}-{bg_code}{suffix}"
        title = f"{line.title()} Golf Ball Case {bg_name} Display"
        records.append(SkuRecord(sku=sku, product_name=title, order_count=int(rng.integers(0, 200))))

    return records


def benchmark_function(func, *args, **kwargs):
    """Benchmark a function and return (result, elapsed_ms)."""
    start = time.perf_counter()
    result = func(*args, **kwargs)
    end = time.perf_counter()
    return result, (end - start) * 1000


def benchmark_analyze_product(n_iterations: int = 10000):
    """Benchmark analyze_product() on hot path."""
    test_cases = [
        ("PTB-GBC-HIO", "Premium Turf Base Golf Ball Case Hole In One"),
        ("VANTAGE-GBC-HIO", "Vantage Golf Ball Case Hole In One Display"),
        ("GBB02-EAGLE", "High Gloss Black Golf Ball Display Eagle"),
        ("HERITAGE-MAH-CHAMP", "Heritage Mahogany Golf Ball Case Champion"),
        ("NECKLACE-GOLD-01", "14k Gold Paperclip Chain Necklace"),
    ]

    print("\n" + "="*70)
    print("BENCHMARK: analyze_product() - Hot Path")
    print("="*70)

    for sku, title in test_cases:
        start = time.perf_counter()
        for _ in range(n_iterations):
            _ = analyze_product(sku, title)
        elapsed_ms = (time.perf_counter() - start) * 1000
        per_call_us = elapsed_ms * 1000 / n_iterations

        print(f"\nInput: {sku}")
        print(f"  Total: {elapsed_ms:.2f}ms ({n_iterations} calls)")
        print(f"  Per call: {per_call_us:.2f}μs")


def benchmark_single_source(catalog: list):
    """Benchmark get_suggestions_for_sku() for one source."""
    print("\n" + "="*70)
    print(f"BENCHMARK: get_suggestions_for_sku() - {len(catalog)} SKU catalog")
    print("="*70)

    source = catalog[0]
    suggestions, elapsed = benchmark_function(get_suggestions_for_sku, source, catalog)
    print(f"\nSource: {source.sku}")
    print(f"  Time: {elapsed:.2f}ms")
    for s in suggestions:
        print(f"  [{s.confidence:6}] {s.score:.2f} -> {s.target_sku}  ({s.reason})")


def benchmark_generate_all(catalog: list):
    """Benchmark generate_all_suggestions() end-to-end."""
    print("\n" + "="*70)
    print(f"BENCHMARK: generate_all_suggestions() - {len(catalog)} SKU catalog")
    print("="*70)

    suggestions, elapsed = benchmark_function(generate_all_suggestions, catalog)
    pairs = len(catalog) * (len(catalog) - 1)

    print(f"\n  Time: {elapsed:.2f}ms")
    print(f"  Candidate pairs: {pairs}")
    print(f"  Throughput: {pairs / (elapsed / 1000):.0f} pairs/sec")
    print(f"  Suggestions: {len(suggestions)}")
    for tier, count in summarize_by_confidence(suggestions).items():
        print(f"    {tier}: {count}")


def main():
    """Run all benchmarks."""
    size = int(sys.argv[1]) if len(sys.argv) > 1 else 500

    print("="*70)
    print("SKU SUGGESTION ENGINE BENCHMARK")
    print("="*70)

    catalog = generate_synthetic_catalog(size)

    benchmark_analyze_product(10000)
    benchmark_single_source(catalog)
    benchmark_generate_all(catalog)

    print("\n" + "="*70)
    print("BENCHMARK COMPLETE")
    print("="*70)


if __name__ == '__main__':
    main()
