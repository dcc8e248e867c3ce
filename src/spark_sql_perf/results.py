"""Result and configuration records of benchmark runs.

Field names keep the camelCase spelling used in stored results files, since
reporting tools key off them. Absent values are ``None``.

Records are deeply immutable: list fields are stored as tuples and map fields
as read-only mappings, so copies can share containers with the original.
Map fields do not take part in hashing.
"""

from dataclasses import dataclass, field, fields, is_dataclass, replace
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import pyspark
from pyspark.sql import SparkSession

from .errors import InvalidResultError

TIMING_FIELDS = (
    "parsingTime",
    "analysisTime",
    "optimizationTime",
    "planningTime",
    "executionTime",
)


def _frozen_map() -> Mapping[str, str]:
    return MappingProxyType({})


def _plain(value: Any) -> Any:
    if is_dataclass(value):
        return {f.name: _plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Mapping):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


class _Record:
    """Shared behaviour of the frozen result records."""

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Mapping):
                object.__setattr__(self, f.name, MappingProxyType(dict(value)))
            elif isinstance(value, list):
                object.__setattr__(self, f.name, tuple(value))

    def copy(self, **overrides: Any):
        """Return a new record with *overrides* substituted; ``self`` is left as is."""
        return replace(self, **overrides)

    def to_dict(self) -> Dict[str, Any]:
        """Nested plain dicts and lists, ready for ``json.dumps``."""
        return _plain(self)


@dataclass(frozen=True)
class Failure(_Record):
    """Exception captured while running a query."""

    className: str
    message: str

    @classmethod
    def from_exception(cls, exc: BaseException) -> "Failure":
        return cls(className=type(exc).__name__, message=str(exc))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Failure":
        return cls(className=data["className"], message=data["message"])


@dataclass(frozen=True)
class MLResult(_Record):
    """Result information specific to MLlib benchmarks.

    ``trainingTime`` is also stored as the owning result's ``executionTime``
    so ML and SQL results can be compared on the same column.
    """

    trainingTime: Optional[float] = None
    trainingMetric: Optional[float] = None   # e.g. accuracy on the training set
    testTime: Optional[float] = None         # prediction time on the test (or training) set
    testMetric: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MLResult":
        return cls(
            trainingTime=data.get("trainingTime"),
            trainingMetric=data.get("trainingMetric"),
            testTime=data.get("testTime"),
            testMetric=data.get("testMetric"),
        )


@dataclass(frozen=True)
class BreakdownResult(_Record):
    """Execution time of one subtree of a query's physical plan.

    ``index`` is the position of the subtree's top operator in the original
    plan (0 is the plan root); ``children`` holds the indices of its child
    subtrees within the same breakdown list. ``delta`` is the time spent in
    the top operator alone.
    """

    nodeName: str
    nodeNameWithArgs: str
    index: int
    children: Tuple[int, ...]
    executionTime: float
    delta: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BreakdownResult":
        return cls(
            nodeName=data["nodeName"],
            nodeNameWithArgs=data["nodeNameWithArgs"],
            index=data["index"],
            children=list(data.get("children") or []),
            executionTime=data["executionTime"],
            delta=data["delta"],
        )


def validate_breakdown(breakdown: Sequence[BreakdownResult]) -> None:
    """Check that the children indices of *breakdown* form a tree rooted at 0.

    Raises :class:`InvalidResultError` on negative or duplicate indices,
    dangling child references, a missing root or a cycle.
    """
    if not breakdown:
        return

    nodes: Dict[int, BreakdownResult] = {}
    for node in breakdown:
        if node.index < 0:
            raise InvalidResultError(f"negative breakdown index {node.index}")
        if node.index in nodes:
            raise InvalidResultError(f"duplicate breakdown index {node.index}")
        nodes[node.index] = node

    if 0 not in nodes:
        raise InvalidResultError("breakdown has no root node (index 0)")

    for node in breakdown:
        for child in node.children:
            if child not in nodes:
                raise InvalidResultError(
                    f"breakdown node {node.index} references missing child {child}"
                )

    # 0 = unvisited, 1 = on the current path, 2 = done
    state: Dict[int, int] = dict.fromkeys(nodes, 0)
    for start in nodes:
        if state[start]:
            continue
        stack = [(start, iter(nodes[start].children))]
        state[start] = 1
        while stack:
            index, pending = stack[-1]
            child = next(pending, None)
            if child is None:
                state[index] = 2
                stack.pop()
            elif state[child] == 1:
                raise InvalidResultError(f"breakdown has a cycle through node {child}")
            elif state[child] == 0:
                state[child] = 1
                stack.append((child, iter(nodes[child].children)))


@dataclass(frozen=True)
class BenchmarkResult(_Record):
    """The result of one query (or ML benchmark) in one iteration.

    ``result`` is not necessarily the query result; depending on the
    execution mode it is the number of rows produced or a checksum over them.
    Timings are in milliseconds.
    """

    name: str
    mode: str
    parameters: Mapping[str, str] = field(default_factory=_frozen_map, hash=False)
    joinTypes: Tuple[str, ...] = ()
    tables: Tuple[str, ...] = ()
    parsingTime: Optional[float] = None
    analysisTime: Optional[float] = None
    optimizationTime: Optional[float] = None
    planningTime: Optional[float] = None
    executionTime: Optional[float] = None
    result: Optional[int] = None
    breakDown: Tuple[BreakdownResult, ...] = ()
    queryExecution: Optional[str] = None
    failure: Optional[Failure] = None
    mlResult: Optional[MLResult] = None

    @property
    def failed(self) -> bool:
        return self.failure is not None

    def validate(self) -> None:
        """Raise :class:`InvalidResultError` if the record is not self-consistent.

        A failed result must not carry timings or a result value, and the
        breakdown must form a tree.
        """
        if self.failure is not None:
            populated = [name for name in TIMING_FIELDS if getattr(self, name) is not None]
            if self.result is not None:
                populated.append("result")
            if populated:
                raise InvalidResultError(
                    f"result {self.name!r} has a failure and also sets {', '.join(populated)}"
                )
        validate_breakdown(self.breakDown)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BenchmarkResult":
        failure = data.get("failure")
        ml_result = data.get("mlResult")
        return cls(
            name=data["name"],
            mode=data["mode"],
            parameters=dict(data.get("parameters") or {}),
            joinTypes=list(data.get("joinTypes") or []),
            tables=list(data.get("tables") or []),
            parsingTime=data.get("parsingTime"),
            analysisTime=data.get("analysisTime"),
            optimizationTime=data.get("optimizationTime"),
            planningTime=data.get("planningTime"),
            executionTime=data.get("executionTime"),
            result=data.get("result"),
            breakDown=[BreakdownResult.from_dict(b) for b in data.get("breakDown") or []],
            queryExecution=data.get("queryExecution"),
            failure=Failure.from_dict(failure) if failure is not None else None,
            mlResult=MLResult.from_dict(ml_result) if ml_result is not None else None,
        )


@dataclass(frozen=True)
class BenchmarkConfiguration(_Record):
    """Environment of one iteration of an experiment.

    ``defaultParallelism`` is usually the number of cores of the cluster.
    """

    sqlConf: Mapping[str, str] = field(hash=False)
    sparkConf: Mapping[str, str] = field(hash=False)
    defaultParallelism: int
    buildInfo: Mapping[str, str] = field(default_factory=_frozen_map, hash=False)
    sparkVersion: str = pyspark.__version__

    @classmethod
    def from_spark(
        cls,
        spark: SparkSession,
        build_info: Optional[Dict[str, str]] = None,
    ) -> "BenchmarkConfiguration":
        """Snapshot the configuration of a running session."""
        sql_conf = {row.key: row.value for row in spark.sql("SET").collect()}
        sc = spark.sparkContext
        return cls(
            sparkVersion=spark.version,
            sqlConf=sql_conf,
            sparkConf=dict(sc.getConf().getAll()),
            defaultParallelism=sc.defaultParallelism,
            buildInfo=dict(build_info or {}),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BenchmarkConfiguration":
        return cls(
            sparkVersion=data.get("sparkVersion", pyspark.__version__),
            sqlConf=dict(data.get("sqlConf") or {}),
            sparkConf=dict(data.get("sparkConf") or {}),
            defaultParallelism=data["defaultParallelism"],
            buildInfo=dict(data.get("buildInfo") or {}),
        )


@dataclass(frozen=True)
class ExperimentRun(_Record):
    """The results of all queries for a single iteration of an experiment.

    ``timestamp`` (epoch milliseconds) marks the start of the whole
    experiment and is shared by all of its iterations. Variations between
    iterations are recorded in ``tags``.
    """

    timestamp: int
    iteration: int
    tags: Mapping[str, str] = field(hash=False)
    configuration: BenchmarkConfiguration
    results: Tuple[BenchmarkResult, ...]

    @property
    def failures(self) -> List[BenchmarkResult]:
        return [r for r in self.results if r.failed]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExperimentRun":
        return cls(
            timestamp=data["timestamp"],
            iteration=data["iteration"],
            tags=dict(data.get("tags") or {}),
            configuration=BenchmarkConfiguration.from_dict(data["configuration"]),
            results=[BenchmarkResult.from_dict(r) for r in data.get("results") or []],
        )
