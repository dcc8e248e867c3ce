"""SQL benchmark driver: run named queries and record the results.

Each query is timed in two phases:
1. analysis:  ``spark.sql(text)``, which parses and analyzes eagerly
2. execution: the action selected by the execution mode

Execution modes:
- collect: collect all rows, result = number of rows
- count:   ``df.count()``, result = number of rows
- hash:    sum of ``hash(*columns)`` over all rows, result = checksum
"""

import contextlib
import io
import re
import time
import uuid
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from pyspark.sql import DataFrame, SparkSession
from pyspark.sql import functions as F

from .ml_params import MLParams
from .results import (
    BenchmarkConfiguration,
    BenchmarkResult,
    ExperimentRun,
    Failure,
    MLResult,
)

EXECUTION_MODES = ("collect", "count", "hash")


def ml_benchmark_result(
    name: str,
    params: MLParams,
    ml_result: MLResult,
    mode: str = "mllib",
) -> BenchmarkResult:
    """Build the result of an ML benchmark.

    ``parameters`` come from ``params.to_map()`` and ``executionTime`` is the
    training time, so ML results line up with SQL results.
    """
    return BenchmarkResult(
        name=name,
        mode=mode,
        parameters=params.to_map(),
        executionTime=ml_result.trainingTime,
        mlResult=ml_result,
    )


class SqlBenchmark:
    """Run a set of SQL queries for a number of iterations."""

    def __init__(
        self,
        spark: SparkSession,
        queries: Mapping[str, str],
        iterations: int = 1,
        mode: str = "collect",
        tags: Optional[Dict[str, str]] = None,
        build_info: Optional[Dict[str, str]] = None,
        include_plan: bool = False,
    ):
        if mode not in EXECUTION_MODES:
            raise ValueError(f"unknown execution mode {mode!r}, expected one of {EXECUTION_MODES}")
        if iterations < 1:
            raise ValueError("iterations must be at least 1")
        self.spark = spark
        self.queries = dict(queries)
        self.iterations = iterations
        self.mode = mode
        self.tags = dict(tags or {})
        self.build_info = dict(build_info or {})
        self.include_plan = include_plan
        self.run_id = str(uuid.uuid4())[:8]

    # ------------------------------------------------------------------
    # Execution modes
    # ------------------------------------------------------------------

    @staticmethod
    def _collect(df: DataFrame) -> int:
        return len(df.collect())

    @staticmethod
    def _count(df: DataFrame) -> int:
        return df.count()

    @staticmethod
    def _hash(df: DataFrame) -> int:
        checksum = df.select(
            F.coalesce(F.sum(F.hash(*df.columns).cast("long")), F.lit(0)).alias("checksum")
        ).collect()[0]
        return int(checksum.checksum)

    def _action(self) -> Callable[[DataFrame], int]:
        return {"collect": self._collect, "count": self._count, "hash": self._hash}[self.mode]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _timed(fn: Callable, *args) -> Tuple[object, float]:
        """Call *fn* and return its value with the elapsed time in milliseconds."""
        start = time.perf_counter()
        value = fn(*args)
        return value, (time.perf_counter() - start) * 1000.0

    def _catalog_tables(self) -> List[str]:
        return [t.name for t in self.spark.catalog.listTables()]

    @staticmethod
    def _referenced_tables(query: str, tables: List[str]) -> List[str]:
        """Catalog tables whose name appears as a word in *query*, in catalog order."""
        return [
            t for t in tables
            if re.search(rf"(?<![\w.]){re.escape(t)}(?!\w)", query, re.IGNORECASE)
        ]

    @staticmethod
    def _explain_string(df: DataFrame) -> str:
        buf = io.StringIO()
        with contextlib.redirect_stdout(buf):
            df.explain(extended=True)
        return buf.getvalue()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run_query(self, name: str, query: str, tables: Optional[List[str]] = None) -> BenchmarkResult:
        """Run one query. Errors are recorded as a Failure, not raised."""
        if tables is None:
            tables = self._catalog_tables()
        base = BenchmarkResult(
            name=name,
            mode=self.mode,
            tables=self._referenced_tables(query, tables),
        )
        try:
            df, analysis_ms = self._timed(self.spark.sql, query)
            plan = self._explain_string(df) if self.include_plan else None
            result, execution_ms = self._timed(self._action(), df)
        except Exception as exc:
            return base.copy(failure=Failure.from_exception(exc))
        return base.copy(
            analysisTime=analysis_ms,
            executionTime=execution_ms,
            result=result,
            queryExecution=plan,
        )

    def run_iteration(self, iteration: int, timestamp: int) -> ExperimentRun:
        """Run every query once and return the iteration's record."""
        print(f"\n{'─' * 70}")
        print(f"ITERATION {iteration}  |  {len(self.queries)} queries  |  mode: {self.mode}")
        print(f"{'─' * 70}")
        print(f"{'Query':<30} {'Analysis (ms)':>14} {'Exec (ms)':>12} {'Result':>11}")
        print(f"{'─' * 70}")

        configuration = BenchmarkConfiguration.from_spark(self.spark, self.build_info)
        tables = self._catalog_tables()
        results: List[BenchmarkResult] = []
        for name, query in self.queries.items():
            result = self.run_query(name, query, tables)
            results.append(result)
            if result.failure is not None:
                print(f"{name:<30} {'(error)':>14}  {result.failure.className}")
            else:
                print(
                    f"{name:<30} {result.analysisTime:>14.1f} "
                    f"{result.executionTime:>12.1f} {result.result:>11}"
                )

        return ExperimentRun(
            timestamp=timestamp,
            iteration=iteration,
            tags={**self.tags, "runId": self.run_id},
            configuration=configuration,
            results=results,
        )

    def run(self) -> List[ExperimentRun]:
        """Run all iterations. All of them share the experiment's start timestamp."""
        timestamp = int(time.time() * 1000)

        print(f"\n{'=' * 70}")
        print("SPARK SQL PERFORMANCE BENCHMARK")
        print(f"{'=' * 70}")
        print(f"Run ID: {self.run_id}")
        print(f"Spark: {self.spark.version}")
        print(f"Queries: {len(self.queries)}, Iterations: {self.iterations}")

        runs = [self.run_iteration(i, timestamp) for i in range(self.iterations)]

        failed = sum(len(run.failures) for run in runs)
        print(f"\n{'=' * 70}")
        print(f"Benchmark complete. {len(runs) * len(self.queries)} results recorded, {failed} failed.")
        print(f"{'=' * 70}")
        return runs
