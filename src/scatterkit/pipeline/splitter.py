# scatterkit/pipeline/splitter.py
"""Scatter: cut one Unit into record-aligned Pieces."""

from __future__ import annotations

import logging
from typing import List

from scatterkit.io.records import scan_records
from scatterkit.types import Piece, Unit

logger = logging.getLogger(__name__)

__all__ = ["split", "plan_boundaries"]


def plan_boundaries(record_ends: List[int], n_pieces: int) -> List[int]:
    """
    Pick piece end offsets from record end offsets.

    Records are dealt out so piece sizes (in records) differ by at most one;
    never more pieces than records.
    """
    n_records = len(record_ends)
    k = min(n_pieces, n_records)
    if k == 0:
        return []

    base, extra = divmod(n_records, k)
    bounds: List[int] = []
    consumed = 0
    for i in range(k):
        consumed += base + (1 if i < extra else 0)
        bounds.append(record_ends[consumed - 1])
    return bounds


def split(unit: Unit, n_pieces: int, *, record_format: str = "fastq") -> List[Piece]:
    """
    Partition unit.payload into up to n_pieces contiguous pieces.

    - Concatenating piece data in index order gives back the payload exactly.
    - sibling_count is the number actually produced (fewer records than
      n_pieces means fewer pieces).
    - An empty payload produces no pieces.

    Raises
    ------
    ValueError
        If n_pieces < 1.
    MalformedInputError
        If the payload cannot be parsed into records.
    """
    if n_pieces < 1:
        raise ValueError(f"n_pieces must be >= 1, got {n_pieces}")

    payload = unit.payload
    if not payload:
        logger.debug("%s: empty payload, no pieces", unit.key)
        return []

    record_ends = scan_records(payload, record_format, key=unit.key)
    bounds = plan_boundaries(record_ends, n_pieces)

    count = len(bounds)
    pieces: List[Piece] = []
    start = 0
    for index, end in enumerate(bounds):
        pieces.append(Piece(unit.key, index, count, payload[start:end]))
        start = end

    logger.debug(
        "%s: %d records -> %d pieces (requested %d)",
        unit.key, len(record_ends), count, n_pieces,
    )
    return pieces
