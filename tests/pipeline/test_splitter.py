# tests/pipeline/test_splitter.py
from __future__ import annotations

import pytest

from scatterkit.errors import MalformedInputError
from scatterkit.pipeline.splitter import plan_boundaries, split
from scatterkit.types import Unit


def _fq(n: int) -> bytes:
    return b"".join(
        b"@read%d\n%s\n+\n%s\n" % (i, b"ACGT" * (i % 3 + 1), b"I" * (4 * (i % 3 + 1)))
        for i in range(n)
    )


@pytest.mark.parametrize("n_records", [1, 2, 7, 10])
@pytest.mark.parametrize("n_pieces", [1, 2, 3, 4, 16])
def test_pieces_reassemble_payload_exactly(n_records, n_pieces):
    unit = Unit("S1", _fq(n_records))
    pieces = split(unit, n_pieces)

    assert b"".join(p.data for p in pieces) == unit.payload
    assert [p.index for p in pieces] == list(range(len(pieces)))
    assert len(pieces) == min(n_pieces, n_records)
    assert all(p.sibling_count == len(pieces) for p in pieces)
    assert all(p.key == "S1" for p in pieces)


def test_single_piece_is_whole_unit():
    unit = Unit("S1", _fq(5))
    (piece,) = split(unit, 1)
    assert piece.data == unit.payload
    assert piece.index == 0
    assert piece.sibling_count == 1


def test_more_pieces_than_records_yields_actual_count():
    unit = Unit("S1", _fq(3))
    pieces = split(unit, 10)
    assert len(pieces) == 3
    assert {p.sibling_count for p in pieces} == {3}


def test_pieces_are_record_aligned_and_balanced():
    unit = Unit("S1", _fq(10))
    pieces = split(unit, 3)
    counts = [p.data.count(b"\n") // 4 for p in pieces]
    assert counts == [4, 3, 3]
    assert all(p.data.startswith(b"@read") for p in pieces)


def test_lines_format():
    unit = Unit("notes", b"a\nb\nc\nd\ne")
    pieces = split(unit, 2, record_format="lines")
    assert [p.data for p in pieces] == [b"a\nb\nc\n", b"d\ne"]


def test_empty_payload_yields_no_pieces():
    assert split(Unit("S0", b""), 4) == []
    assert split(Unit("S0", b""), 1) == []


def test_unit_is_not_mutated():
    payload = _fq(4)
    unit = Unit("S1", payload)
    split(unit, 2)
    assert unit.payload is payload
    assert unit == Unit("S1", _fq(4))


def test_invalid_piece_count_and_malformed_payload():
    with pytest.raises(ValueError):
        split(Unit("S1", _fq(1)), 0)
    with pytest.raises(MalformedInputError) as ei:
        split(Unit("bad", _fq(2)[:-3]), 2)
    assert ei.value.key == "bad"


def test_plan_boundaries():
    ends = [10, 20, 30, 40, 50]
    assert plan_boundaries(ends, 1) == [50]
    assert plan_boundaries(ends, 2) == [30, 50]
    assert plan_boundaries(ends, 5) == ends
    assert plan_boundaries(ends, 9) == ends
    assert plan_boundaries([], 3) == []
