"""Pytest fixtures for the result record and benchmark driver tests."""

import os
import sys

import pytest
from pyspark.sql import SparkSession

from spark_sql_perf import (
    BenchmarkConfiguration,
    BenchmarkResult,
    BreakdownResult,
    ExperimentRun,
    Failure,
    MLResult,
)

TINY_ROWS = 1_000


@pytest.fixture(scope="session", autouse=True)
def _set_pyspark_python():
    """Ensure Spark workers use the same Python as the driver."""
    orig = os.environ.get("PYSPARK_PYTHON")
    os.environ["PYSPARK_PYTHON"] = sys.executable
    yield
    if orig is None:
        os.environ.pop("PYSPARK_PYTHON", None)
    else:
        os.environ["PYSPARK_PYTHON"] = orig


@pytest.fixture(scope="session")
def spark():
    """Local SparkSession with two cores, so defaultParallelism is 2."""
    session = (
        SparkSession.builder.appName("sql-perf-tests")
        .master("local[2]")
        .config("spark.sql.shuffle.partitions", "2")
        .config("spark.default.parallelism", "2")
        .config("spark.ui.enabled", "false")
        .getOrCreate()
    )
    session.sparkContext.setLogLevel("ERROR")
    yield session
    session.stop()


@pytest.fixture(scope="session")
def bench_ids(spark):
    """Temporary view ``bench_ids`` with ids 0..TINY_ROWS-1 for the driver tests."""
    df = spark.range(0, TINY_ROWS)
    df.createOrReplaceTempView("bench_ids")
    yield df
    spark.catalog.dropTempView("bench_ids")


def _plan_node(index, children, time_ms, delta):
    return BreakdownResult(
        nodeName="Project",
        nodeNameWithArgs=f"Project [id#{index}]",
        index=index,
        children=list(children),
        executionTime=time_ms,
        delta=delta,
    )


@pytest.fixture
def experiment_run():
    """One iteration with a successful, a failed and an ML result."""
    config = BenchmarkConfiguration(
        sqlConf={"spark.sql.shuffle.partitions": "200"},
        sparkConf={"spark.app.name": "bench"},
        defaultParallelism=8,
        buildInfo={"gitHash": "abc123"},
        sparkVersion="3.5.1",
    )
    ok = BenchmarkResult(
        name="q1",
        mode="collect",
        parameters={"scale": "10"},
        joinTypes=["BroadcastHashJoin"],
        tables=["store_sales", "item"],
        analysisTime=12.5,
        executionTime=830.25,
        result=42,
        breakDown=[_plan_node(0, [1], 10.0, 4.0), _plan_node(1, [], 6.0, 6.0)],
        queryExecution="== Physical Plan ==",
    )
    failed = BenchmarkResult(
        name="q2",
        mode="collect",
        failure=Failure("AnalysisException", "Table not found"),
    )
    ml = BenchmarkResult(
        name="logistic-regression",
        mode="mllib",
        executionTime=100.0,
        mlResult=MLResult(trainingTime=100.0, trainingMetric=0.9),
    )
    return ExperimentRun(
        timestamp=1700000000000,
        iteration=0,
        tags={"variant": "baseline"},
        configuration=config,
        results=[ok, failed, ml],
    )
