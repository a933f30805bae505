# scatterkit/io/records.py
from __future__ import annotations

import logging
from typing import Callable, Dict, List

from scatterkit.errors import MalformedInputError

logger = logging.getLogger(__name__)

__all__ = ["RECORD_FORMATS", "scan_records", "scan_fastq", "scan_lines"]

_NL = b"\n"
_EOL = b"\r\n"


def _next_line(payload: bytes, pos: int) -> int:
    """Return the offset just past the line starting at pos (newline included)."""
    nl = payload.find(_NL, pos)
    return len(payload) if nl == -1 else nl + 1


def scan_lines(payload: bytes, *, key: str = "") -> List[int]:
    """
    Record end offsets for newline-delimited text.

    A final line without a trailing newline still counts as a record.
    """
    ends: List[int] = []
    pos, n = 0, len(payload)
    while pos < n:
        pos = _next_line(payload, pos)
        ends.append(pos)
    return ends


def scan_fastq(payload: bytes, *, key: str = "") -> List[int]:
    """
    Record end offsets for FASTQ ("@id / SEQ / +[id] / QUAL" per record).

    - LF and CRLF line endings are accepted.
    - Whitespace after the last record is attached to that record so that
      record boundaries still tile the whole payload.
    - Raises MalformedInputError on truncated records, bad markers, or a
      sequence/quality length mismatch.
    """
    ends: List[int] = []
    pos, n = 0, len(payload)
    rec = 0
    # Everything from tail on is trailing whitespace.
    tail = len(payload.rstrip())
    if n and not tail:
        raise MalformedInputError(key, "payload holds only whitespace")

    while pos < tail:
        lines = []
        for _ in range(4):
            if pos >= n:
                raise MalformedInputError(
                    key, f"record {rec} truncated after {len(lines)} of 4 lines"
                )
            end = _next_line(payload, pos)
            lines.append(payload[pos:end].rstrip(_EOL))
            pos = end

        header, seq, sep, qual = lines
        if not header.startswith(b"@"):
            raise MalformedInputError(key, f"record {rec} header does not start with '@'")
        if not sep.startswith(b"+"):
            raise MalformedInputError(key, f"record {rec} separator does not start with '+'")
        if len(seq) != len(qual):
            raise MalformedInputError(
                key,
                f"record {rec} sequence/quality length mismatch "
                f"({len(seq)} != {len(qual)})",
            )
        ends.append(pos)
        rec += 1

    if ends and ends[-1] < n:
        ends[-1] = n
    return ends


RECORD_FORMATS: Dict[str, Callable[..., List[int]]] = {
    "fastq": scan_fastq,
    "lines": scan_lines,
}


def scan_records(payload: bytes, record_format: str, *, key: str = "") -> List[int]:
    """Return the end offset of every record in payload for record_format."""
    try:
        scanner = RECORD_FORMATS[record_format]
    except KeyError:
        raise ValueError(
            f"record_format must be one of {sorted(RECORD_FORMATS)}, got {record_format!r}"
        ) from None
    ends = scanner(payload, key=key)
    logger.debug("%s: %d %s records", key, len(ends), record_format)
    return ends
