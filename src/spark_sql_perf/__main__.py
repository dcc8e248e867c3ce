"""CLI entry point: python -m spark_sql_perf --queries DIR [--iterations N]"""

import argparse
import glob
import os
import sys
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pyspark.sql import SparkSession

from .benchmark import EXECUTION_MODES, SqlBenchmark
from .storage import write_runs


def parse_tags(values: List[str]) -> Dict[str, str]:
    tags: Dict[str, str] = {}
    for value in values:
        key, sep, tag = value.partition("=")
        if not sep or not key:
            raise ValueError(f"invalid tag {value!r}, expected key=value")
        tags[key] = tag
    return tags


def load_queries(directory: str) -> Dict[str, str]:
    """Read ``*.sql`` files from *directory*, keyed by file stem, in name order."""
    queries: Dict[str, str] = {}
    for path in sorted(glob.glob(os.path.join(directory, "*.sql"))):
        name = os.path.splitext(os.path.basename(path))[0]
        with open(path) as fh:
            queries[name] = fh.read().strip().rstrip(";")
    return queries


def create_session() -> SparkSession:
    return SparkSession.builder.appName("SqlPerfBenchmark").getOrCreate()


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Spark SQL Performance Benchmark")
    parser.add_argument("--queries", "-q", required=True, help="Directory of *.sql query files")
    parser.add_argument("--iterations", "-n", type=int, default=1, help="Iterations (default: 1)")
    parser.add_argument("--mode", choices=EXECUTION_MODES, default="collect", help="Execution mode (default: collect)")
    parser.add_argument("--tag", action="append", default=[], help="Experiment tag key=value (repeatable)")
    parser.add_argument("--plan", action="store_true", help="Record the query plan of each query")
    parser.add_argument("--output-dir", default="results", help="Output directory for JSON lines")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output on failure")
    args = parser.parse_args(argv)

    try:
        tags = parse_tags(args.tag)
    except ValueError as e:
        print(e, file=sys.stderr)
        return 2

    if args.iterations < 1:
        print(f"--iterations must be at least 1, got {args.iterations}", file=sys.stderr)
        return 2

    queries = load_queries(args.queries)
    if not queries:
        print(f"No *.sql files found in {args.queries}", file=sys.stderr)
        return 2

    spark = None
    try:
        spark = create_session()
        benchmark = SqlBenchmark(
            spark,
            queries,
            iterations=args.iterations,
            mode=args.mode,
            tags=tags,
            include_plan=args.plan,
        )
        runs = benchmark.run()

        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        filepath = os.path.join(args.output_dir, f"sql_perf_{benchmark.run_id}_{timestamp}.jsonl")
        write_runs(filepath, runs)

        print(f"\nResults saved to: {filepath}")
        return 0

    except Exception as e:
        print(f"\nBenchmark failed: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1

    finally:
        if spark is not None:
            spark.stop()


if __name__ == "__main__":
    sys.exit(main())
