# scatterkit/transforms.py
"""Example per-piece transforms.

Module-level functions so they pickle into process pools. Each takes a
Piece and returns the transformed bytes for that piece alone.
"""

from __future__ import annotations

from typing import Callable, Dict

from scatterkit.types import Piece

__all__ = ["identity", "upper", "revcomp", "TRANSFORMS", "get_transform"]

_COMPLEMENT = bytes.maketrans(b"ACGTUNacgtun", b"TGCAANtgcaan")


def identity(piece: Piece) -> bytes:
    return piece.data


def upper(piece: Piece) -> bytes:
    """Upper-case every byte of the piece."""
    return piece.data.upper()


def revcomp(piece: Piece) -> bytes:
    """
    Reverse-complement each FASTQ record's sequence and reverse its qualities.

    Headers and separators pass through; line endings are preserved.
    """
    lines = piece.data.splitlines(keepends=True)
    out = []
    for i, line in enumerate(lines):
        body = line.rstrip(b"\r\n")
        eol = line[len(body):]
        pos = i % 4
        if pos == 1:
            body = body.translate(_COMPLEMENT)[::-1]
        elif pos == 3:
            body = body[::-1]
        out.append(body + eol)
    return b"".join(out)


TRANSFORMS: Dict[str, Callable[[Piece], bytes]] = {
    "identity": identity,
    "upper": upper,
    "revcomp": revcomp,
}


def get_transform(name: str) -> Callable[[Piece], bytes]:
    """Look up a built-in transform by name."""
    try:
        return TRANSFORMS[name]
    except KeyError:
        raise ValueError(
            f"transform must be one of {sorted(TRANSFORMS)}, got {name!r}"
        ) from None
