# tests/test_transforms.py
from __future__ import annotations

import pickle

import pytest

from scatterkit.transforms import TRANSFORMS, get_transform, identity, revcomp, upper
from scatterkit.types import Piece


def test_identity_and_upper():
    piece = Piece("S1", 0, 1, b"@r\nacgn\n+\nIIII\n")
    assert identity(piece) == piece.data
    assert upper(piece) == b"@R\nACGN\n+\nIIII\n"


def test_revcomp_fastq_records():
    piece = Piece("S1", 0, 1, b"@r1\nAACGTN\n+\n!#%&()\n@r2\r\nacg\r\n+r2\r\nABC")
    assert revcomp(piece) == b"@r1\nNACGTT\n+\n)(&%#!\n@r2\r\ncgt\r\n+r2\r\nCBA"


def test_lookup_and_pickling():
    assert get_transform("revcomp") is revcomp
    assert set(TRANSFORMS) == {"identity", "upper", "revcomp"}
    for fn in TRANSFORMS.values():
        assert pickle.loads(pickle.dumps(fn)) is fn
    with pytest.raises(ValueError):
        get_transform("trim")
