"""JSON-lines results files: one ExperimentRun per line."""

import json
import os
from typing import Iterable, List

from .errors import ResultFormatError
from .results import ExperimentRun


def write_runs(path: str, runs: Iterable[ExperimentRun], append: bool = True) -> int:
    """Write *runs* to *path*, appending by default. Returns the number written."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    count = 0
    with open(path, "a" if append else "w") as fh:
        for run in runs:
            fh.write(json.dumps(run.to_dict(), sort_keys=True))
            fh.write("\n")
            count += 1
    return count


def read_runs(path: str) -> List[ExperimentRun]:
    """Read every run stored in *path*. Blank lines are skipped."""
    runs: List[ExperimentRun] = []
    with open(path) as fh:
        for lineno, line in enumerate(fh, start=1):
            if not line.strip():
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError as exc:
                raise ResultFormatError(path, lineno, f"invalid JSON: {exc.msg}") from exc
            if not isinstance(data, dict):
                raise ResultFormatError(path, lineno, "expected a JSON object")
            try:
                runs.append(ExperimentRun.from_dict(data))
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                raise ResultFormatError(path, lineno, f"missing or malformed field: {exc}") from exc
    return runs
