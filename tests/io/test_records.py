# tests/io/test_records.py
from __future__ import annotations

import time

import pytest

from scatterkit.errors import MalformedInputError
from scatterkit.io.records import scan_fastq, scan_lines, scan_records


def _fq(n: int, eol: bytes = b"\n") -> bytes:
    out = []
    for i in range(n):
        out.append(b"@read%d%s" % (i, eol))
        out.append(b"ACGT%s" % eol)
        out.append(b"+%s" % eol)
        out.append(b"IIII%s" % eol)
    return b"".join(out)


def test_fastq_record_ends_tile_payload():
    payload = _fq(3)
    ends = scan_fastq(payload)
    assert len(ends) == 3
    assert ends[-1] == len(payload)
    # each record is 4 lines of equal size here
    assert ends == [len(payload) // 3 * (i + 1) for i in range(3)]


def test_fastq_accepts_crlf_and_missing_final_newline():
    payload = _fq(2, eol=b"\r\n")
    assert scan_fastq(payload)[-1] == len(payload)

    trimmed = _fq(2)[:-1]
    assert scan_fastq(trimmed) == [len(_fq(1)), len(trimmed)]


def test_fastq_trailing_blank_lines_attach_to_last_record():
    payload = _fq(2) + b"\n\n"
    ends = scan_fastq(payload)
    assert len(ends) == 2
    assert ends[-1] == len(payload)


def test_fastq_scan_is_linear_in_payload_size():
    payload = _fq(200_000) + b"\n \n"  # ~4.5 MB
    t0 = time.perf_counter()
    ends = scan_fastq(payload)
    elapsed = time.perf_counter() - t0

    assert len(ends) == 200_000
    assert ends[-1] == len(payload)
    # A rescan of the remaining payload per record takes minutes at this size.
    assert elapsed < 5.0


@pytest.mark.parametrize(
    "payload, fragment",
    [
        (_fq(2)[:-10], "truncated"),
        (b"read0\nACGT\n+\nIIII\n", "header"),
        (b"@read0\nACGT\n-\nIIII\n", "separator"),
        (b"@read0\nACGT\n+\nIII\n", "length mismatch"),
        (b"  \n\n", "whitespace"),
    ],
)
def test_fastq_malformed_raises(payload, fragment):
    with pytest.raises(MalformedInputError) as ei:
        scan_fastq(payload, key="S1")
    assert ei.value.key == "S1"
    assert fragment in str(ei.value)


def test_lines_counts_unterminated_last_line():
    assert scan_lines(b"a\nb\nc") == [2, 4, 5]
    assert scan_lines(b"a\n\nb\n") == [2, 3, 5]
    assert scan_lines(b"") == []


def test_scan_records_dispatches_and_rejects_unknown_format():
    assert scan_records(b"x\ny\n", "lines") == [2, 4]
    assert len(scan_records(_fq(4), "fastq")) == 4
    with pytest.raises(ValueError):
        scan_records(b"x", "bam")
