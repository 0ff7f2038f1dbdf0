#!/usr/bin/env python
from __future__ import annotations
import sys
import os
from multiprocessing import Pool, cpu_count
import argparse
from typing import Optional, List, Tuple
from basichll.lib.hyperloglog import (HyperLogLog, InvalidConfiguration,
                                      REGISTER_BUDGET_128_ERROR, merge_all)
from basichll.lib.exact import ExactCounter
from basichll.lib.utils import read_lines

# 65536 registers
DEFAULT_ERROR = 0.0040625

def sketch_file(filepath: str, error: float, exact: bool = False,
                chunk_size: int = 1000, debug: bool = False
                ) -> Tuple[str, HyperLogLog, Optional[ExactCounter]]:
    """Build an estimator (and optionally an exact counter) for one file.

    Runs in a worker process when several files are sketched in parallel;
    the caller merges the per-file estimators.
    """
    sketch = HyperLogLog(error, debug=debug)
    counter = ExactCounter() if exact else None
    num_lines = 0
    for chunk in read_lines(filepath, chunk_size=chunk_size):
        sketch.add_batch(chunk)
        if counter is not None:
            counter.add_batch(chunk)
        num_lines += len(chunk)
    if debug:
        print(f"DEBUG: {filepath}: {num_lines} lines")
    return filepath, sketch, counter

def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    arg_parser = argparse.ArgumentParser(
        description="""Estimate the number of distinct lines in one or more files.

        Each file is sketched into its own HyperLogLog estimator and the
        estimators are merged, so the reported count covers the union of
        all inputs. Files ending in .gz are decompressed; "-" reads stdin.
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    arg_parser.add_argument('files', nargs='*', default=['-'],
                       help='Files with one element per line (default: stdin)')

    size_group = arg_parser.add_mutually_exclusive_group()
    size_group.add_argument("--error", "-e", type=float, default=DEFAULT_ERROR,
                       help=f"Target relative standard error, in (0, 1) (default: {DEFAULT_ERROR})")
    size_group.add_argument("--preset128", action="store_true",
                       help=f"Use the 128-register preset (error {REGISTER_BUDGET_128_ERROR})")

    arg_parser.add_argument("--exact", action="store_true",
                       help="Also count exactly and report the relative error")
    arg_parser.add_argument("--per-file", action="store_true", dest="per_file",
                       help="Print the estimate for each file as well as the total")
    arg_parser.add_argument("--threads", type=int, default=1,
                       help="Number of worker processes, one file per process")
    arg_parser.add_argument("--chunk_size", type=int, default=1000,
                       help="Lines read per batch")
    arg_parser.add_argument("--debug", action="store_true", help="Enable debug mode")

    return arg_parser.parse_args(argv)

def main(argv: Optional[List[str]] = None):
    """Main entry point for basichll."""
    args = parse_args(argv)
    error = REGISTER_BUDGET_128_ERROR if args.preset128 else args.error

    # Fail on a bad error rate before starting any workers
    try:
        config = HyperLogLog(error)
    except InvalidConfiguration as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    for filepath in args.files:
        if filepath != "-" and not os.path.exists(filepath):
            print(f"Error: File {filepath} does not exist", file=sys.stderr)
            sys.exit(2)

    if args.debug:
        print(f"Sketching {len(args.files)} file(s) with {config}")

    jobs = [(filepath, error, args.exact, args.chunk_size, args.debug) for filepath in args.files]
    num_threads = min(args.threads, cpu_count(), len(jobs))
    if num_threads > 1 and "-" not in args.files:
        with Pool(num_threads) as pool:
            results = pool.starmap(sketch_file, jobs)
    else:
        results = [sketch_file(*job) for job in jobs]

    if args.per_file:
        for filepath, sketch, counter in results:
            print(f"{filepath}\t{sketch.count():.2f}")

    total = merge_all(sketch for _, sketch, _ in results)
    estimate = total.count()
    print(f"estimate\t{estimate:.2f}")

    if args.exact:
        exact = ExactCounter()
        for _, _, counter in results:
            exact = exact.merge(counter)
        actual = exact.count()
        relative_error = abs(estimate - actual) / actual if actual > 0 else 0.0
        print(f"exact\t{actual:.0f}")
        print(f"relative_error\t{relative_error:.6f}")

    return estimate

if __name__ == "__main__":
    main()
