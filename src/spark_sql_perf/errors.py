"""Exceptions raised by the result records and the results file reader."""


class ResultError(Exception):
    """Base class for result record errors."""


class InvalidResultError(ResultError):
    """A record holds a combination of values its consumers cannot interpret."""


class ResultFormatError(ResultError):
    """A stored results file could not be parsed back into records."""

    def __init__(self, path: str, line: int, reason: str):
        super().__init__(f"{path}:{line}: {reason}")
        self.path = path
        self.line = line
        self.reason = reason
