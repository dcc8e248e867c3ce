"""Result records for Spark SQL and MLlib performance benchmarks."""

__version__ = "1.0.0"

from .benchmark import SqlBenchmark, ml_benchmark_result
from .errors import InvalidResultError, ResultError, ResultFormatError
from .ml_params import MLParams
from .results import (
    BenchmarkConfiguration,
    BenchmarkResult,
    BreakdownResult,
    ExperimentRun,
    Failure,
    MLResult,
    validate_breakdown,
)
from .storage import read_runs, write_runs

__all__ = [
    "BenchmarkConfiguration",
    "BenchmarkResult",
    "BreakdownResult",
    "ExperimentRun",
    "Failure",
    "InvalidResultError",
    "MLParams",
    "MLResult",
    "ResultError",
    "ResultFormatError",
    "SqlBenchmark",
    "ml_benchmark_result",
    "read_runs",
    "validate_breakdown",
    "write_runs",
]
