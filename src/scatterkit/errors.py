# scatterkit/errors.py
"""Error taxonomy for the scatter/gather pipeline.

Errors are scoped to the smallest unit that can contain them:

- ``MalformedInputError``    one Unit could not be split
- ``PieceProcessingError``   one Piece's transform failed
- ``InconsistentGroupError`` siblings disagree about their group
- ``DuplicatePieceError``    the same (key, index) arrived twice
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "ScatterGatherError",
    "MalformedInputError",
    "PieceProcessingError",
    "InconsistentGroupError",
    "DuplicatePieceError",
]


class ScatterGatherError(Exception):
    """Base class for all per-unit / per-group pipeline errors."""


class MalformedInputError(ScatterGatherError):
    """A Unit's payload cannot be partitioned into records."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"{key}: {reason}")

    def __reduce__(self):
        return (type(self), (self.key, self.reason))


class PieceProcessingError(ScatterGatherError):
    """The transform raised (or returned garbage) for one Piece."""

    def __init__(self, key: str, index: int, cause: Optional[BaseException] = None):
        self.key = key
        self.index = index
        self.cause = cause
        detail = f"{type(cause).__name__}: {cause}" if cause is not None else "unknown"
        super().__init__(f"{key}[{index}]: {detail}")
        self.__cause__ = cause

    def __reduce__(self):
        return (type(self), (self.key, self.index, self.cause))


class InconsistentGroupError(ScatterGatherError):
    """A piece disagrees with its group's expected sibling count."""

    def __init__(self, key: str, expected: int, got: int, index: Optional[int] = None):
        self.key = key
        self.expected = expected
        self.got = got
        self.index = index
        if index is None:
            msg = f"{key}: expected {expected} siblings, piece reports {got}"
        else:
            msg = f"{key}: piece index {index} outside group of {expected} (reports {got})"
        super().__init__(msg)

    def __reduce__(self):
        return (type(self), (self.key, self.expected, self.got, self.index))


class DuplicatePieceError(ScatterGatherError):
    """The same (key, index) was delivered twice."""

    def __init__(self, key: str, index: int):
        self.key = key
        self.index = index
        super().__init__(f"{key}[{index}]: duplicate piece")

    def __reduce__(self):
        return (type(self), (self.key, self.index))
