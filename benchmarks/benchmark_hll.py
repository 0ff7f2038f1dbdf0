#!/usr/bin/env python3
import csv
import os
import sys
import time
from datetime import datetime
import numpy as np  # type: ignore
import matplotlib  # type: ignore
matplotlib.use("Agg")
import matplotlib.pyplot as plt  # type: ignore
from basichll.lib.hyperloglog import HyperLogLog, merge_all

# Create results directory if it doesn't exist
RESULTS_DIR = os.path.join(os.path.dirname(__file__), 'results')

# Constants
ERROR_VALUES = [0.09192, 0.0325, 0.01625, 0.0040625]
NUM_ITEMS = [100, 1000, 10000, 100000, 1000000]
NUM_WORKERS = 4

def generate_data(size, prefix="item"):
    """Distinct string items."""
    return [f"{prefix}_{i}" for i in range(size)]

def benchmark_accuracy(error_values=ERROR_VALUES, num_items=NUM_ITEMS):
    """Relative error and insertion throughput per error target and stream size."""
    results = []

    for error in error_values:
        for num in num_items:
            items = generate_data(num)
            sketch = HyperLogLog(error)

            start_time = time.time()
            sketch.add_batch(items)
            add_time = time.time() - start_time

            start_time = time.time()
            estimate = sketch.count()
            count_time = time.time() - start_time

            results.append({
                'error': error,
                'num_registers': sketch.num_registers,
                'num_items': num,
                'estimate': estimate,
                'relative_error': abs(estimate - num) / num,
                'items_per_second': num / add_time if add_time > 0 else float('inf'),
                'count_seconds': count_time
            })
            print(f"error={error} m={sketch.num_registers} n={num}: "
                  f"estimate={estimate:.1f} ({results[-1]['relative_error']:.4f})")

    return results

def benchmark_merge(error=0.0040625, num_items=100000, num_workers=NUM_WORKERS):
    """Split a stream across per-worker estimators and merge them at the end."""
    items = generate_data(num_items)
    shards = [items[i::num_workers] for i in range(num_workers)]

    start_time = time.time()
    parts = []
    for shard in shards:
        sketch = HyperLogLog(error)
        sketch.add_batch(shard)
        parts.append(sketch)
    merged = merge_all(parts)
    elapsed = time.time() - start_time

    single = HyperLogLog(error)
    single.add_batch(items)

    print(f"merge of {num_workers} shards: estimate={merged.count():.1f} "
          f"identical_to_single={merged == single} ({elapsed:.2f}s)")
    return merged == single

def write_results(results, filename):
    """Write results to CSV"""
    with open(filename, 'w', newline='') as f:
        if results:
            writer = csv.DictWriter(f, fieldnames=results[0].keys())
            writer.writeheader()
            writer.writerows(results)
    print(f"Results written to {filename}")

def plot_results(results, filename):
    """Plot relative error against stream size, one line per error target."""
    plt.figure(figsize=(10, 6))
    for error in sorted({r['error'] for r in results}):
        rows = [r for r in results if r['error'] == error]
        xs = np.array([r['num_items'] for r in rows])
        ys = np.array([r['relative_error'] for r in rows])
        plt.plot(xs, ys, 'o-', label=f"error={error} (m={rows[0]['num_registers']})")
        plt.axhline(error, linestyle=':', linewidth=1)
    plt.xscale('log')
    plt.xlabel('Distinct items')
    plt.ylabel('Relative error')
    plt.title('HyperLogLog relative error by stream size')
    plt.legend()
    plt.grid(True, alpha=0.3)
    plt.tight_layout()
    plt.savefig(filename)
    plt.close()
    print(f"Plot written to {filename}")

def main():
    os.makedirs(RESULTS_DIR, exist_ok=True)
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')

    results = benchmark_accuracy()
    write_results(results, os.path.join(RESULTS_DIR, f'hll_accuracy_{timestamp}.csv'))
    plot_results(results, os.path.join(RESULTS_DIR, f'hll_accuracy_{timestamp}.png'))

    if not benchmark_merge():
        print("Merged estimator differs from single-stream estimator", file=sys.stderr)
        sys.exit(1)

if __name__ == "__main__":
    main()
