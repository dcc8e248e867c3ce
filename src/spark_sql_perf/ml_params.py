"""Parameters of ML benchmarks."""

from dataclasses import dataclass, fields, replace
from typing import Any, ClassVar, Dict, Optional, Tuple


@dataclass(frozen=True)
class MLParams:
    """Parameters for ML tests. ``None`` means the parameter is not set.

    KEEP SPECIALIZED PARAMETERS SORTED BY NAME.
    It simplifies lookup when checking if a parameter is here already.
    """

    # Common to all algorithms
    randomSeed: Optional[int] = 42
    numExamples: Optional[int] = None
    numTestExamples: Optional[int] = None
    numPartitions: Optional[int] = None
    # Specialized
    bucketizerNumBuckets: Optional[int] = None
    depth: Optional[int] = None
    docLength: Optional[int] = None
    elasticNetParam: Optional[float] = None
    family: Optional[str] = None
    k: Optional[int] = None
    link: Optional[str] = None
    maxIter: Optional[int] = None
    numClasses: Optional[int] = None
    numFeatures: Optional[int] = None
    numItems: Optional[int] = None
    numUsers: Optional[int] = None
    optimizer: Optional[str] = None
    regParam: Optional[float] = None
    rank: Optional[int] = None
    smoothing: Optional[float] = None
    tol: Optional[float] = None
    vocabSize: Optional[int] = None

    empty: ClassVar["MLParams"]

    # Double-valued params; ints given for them are stored as floats so
    # that 1 renders as "1.0".
    FLOAT_PARAMS: ClassVar[Tuple[str, ...]] = ("elasticNetParam", "regParam", "smoothing", "tol")

    def __post_init__(self):
        for name in self.FLOAT_PARAMS:
            value = getattr(self, name)
            if isinstance(value, int) and not isinstance(value, bool):
                object.__setattr__(self, name, float(value))

    def to_map(self) -> Dict[str, str]:
        """Map param names to the string form of their values.

        Only params that are set (not ``None``) are included.
        """
        out: Dict[str, str] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None:
                out[f.name] = str(value)
        return out

    def copy(self, **overrides: Any) -> "MLParams":
        return replace(self, **overrides)


MLParams.empty = MLParams()
