# scatterkit/types.py
"""Shared types for scatter/gather processing."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union

__all__ = [
    "FailurePolicy",
    "Unit",
    "Piece",
    "ProcessedPiece",
    "MergedUnit",
    "GroupFailure",
    "Result",
]


class FailurePolicy(str, Enum):
    """What happens to a group when one of its pieces fails."""

    ABORT_GROUP = "abort-group"
    SKIP_PARTIAL = "skip-partial"


@dataclass(frozen=True)
class Unit:
    """One original item of work (e.g. one sample's FASTQ file)."""

    key: str
    """Grouping key shared by every piece cut from this unit"""

    payload: bytes
    """Full input data"""

    def __repr__(self) -> str:
        return f"Unit(key={self.key!r}, payload=<{len(self.payload)} bytes>)"


@dataclass(frozen=True)
class Piece:
    """One record-aligned fragment of a Unit's payload."""

    key: str
    """Key of the parent unit"""

    index: int
    """0-based position among siblings"""

    sibling_count: int
    """Actual number of pieces cut from the parent unit"""

    data: bytes
    """Fragment payload"""

    def __repr__(self) -> str:
        return (
            f"Piece(key={self.key!r}, index={self.index}, "
            f"sibling_count={self.sibling_count}, data=<{len(self.data)} bytes>)"
        )


@dataclass(frozen=True)
class ProcessedPiece:
    """A worker's output for one Piece; identity fields copied from the source."""

    key: str
    index: int
    sibling_count: int
    data: bytes

    @classmethod
    def from_piece(cls, piece: Piece, data: bytes) -> "ProcessedPiece":
        return cls(piece.key, piece.index, piece.sibling_count, data)

    def __repr__(self) -> str:
        return (
            f"ProcessedPiece(key={self.key!r}, index={self.index}, "
            f"sibling_count={self.sibling_count}, data=<{len(self.data)} bytes>)"
        )


@dataclass(frozen=True)
class MergedUnit:
    """Final output for one key: processed data concatenated by index."""

    key: str
    payload: bytes
    piece_count: int
    missing: Tuple[int, ...] = ()
    """Indices whose transform failed (skip-partial policy only)"""

    @property
    def partial(self) -> bool:
        return bool(self.missing)

    @property
    def ok(self) -> bool:
        return True

    def __repr__(self) -> str:
        extra = f", missing={self.missing}" if self.missing else ""
        return (
            f"MergedUnit(key={self.key!r}, payload=<{len(self.payload)} bytes>, "
            f"piece_count={self.piece_count}{extra})"
        )


@dataclass(frozen=True)
class GroupFailure:
    """Per-key failure reported on the output stream instead of a MergedUnit."""

    key: str
    error: Exception

    @property
    def ok(self) -> bool:
        return False


Result = Union[MergedUnit, GroupFailure]
