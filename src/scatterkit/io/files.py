# scatterkit/io/files.py
from __future__ import annotations

import gzip
import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, Union

from scatterkit.types import MergedUnit, Unit

logger = logging.getLogger(__name__)

__all__ = ["sample_key", "read_payload", "iter_units", "output_path", "write_merged"]

PathLike = Union[str, os.PathLike]

# Extensions stripped (after any .gz) when deriving a sample identifier.
KNOWN_SUFFIXES = (".fastq", ".fq", ".txt", ".lines")


def sample_key(path: PathLike) -> str:
    """
    Derive the grouping key from a file name.

    'reads/S1_R1.fastq.gz' -> 'S1_R1'; 'notes.txt' -> 'notes'.
    Unknown extensions are kept as part of the key.
    """
    name = Path(path).name
    if name.endswith(".gz"):
        name = name[:-3]
    lower = name.lower()
    for suffix in KNOWN_SUFFIXES:
        if lower.endswith(suffix):
            return name[: -len(suffix)]
    return name


def read_payload(path: PathLike) -> bytes:
    """Read a file's bytes, transparently decompressing gzip (.gz)."""
    p = Path(path)
    if p.suffix == ".gz":
        with gzip.open(p, "rb") as gz:
            return gz.read()
    return p.read_bytes()


def iter_units(paths: Iterable[PathLike]) -> Iterator[Unit]:
    """
    Lazily yield one Unit per input file; a file is read only when requested.

    Raises ValueError if two files map to the same sample key.
    """
    seen: dict[str, Path] = {}
    for path in paths:
        p = Path(path)
        key = sample_key(p)
        if key in seen:
            raise ValueError(
                f"Duplicate sample key {key!r}: {seen[key]} and {p}"
            )
        seen[key] = p
        payload = read_payload(p)
        logger.info("Loaded %s (%s bytes) as %s", p.name, f"{len(payload):,}", key)
        yield Unit(key=key, payload=payload)


def output_path(output_dir: PathLike, key: str, *, suffix: str = ".fastq",
                compress: bool = False) -> Path:
    """Where the merged output for key is written."""
    name = f"{key}{suffix}" + (".gz" if compress else "")
    return Path(output_dir) / name


def write_merged(
    merged: MergedUnit,
    output_dir: PathLike,
    *,
    suffix: str = ".fastq",
    compress: bool = False,
) -> Path:
    """
    Write one merged unit to output_dir; returns the written path.

    The file appears atomically (temp sibling + rename); resume mode treats
    any existing output as finished.
    """
    dest = output_path(output_dir, merged.key, suffix=suffix, compress=compress)
    dest.parent.mkdir(parents=True, exist_ok=True)
    tmp = dest.with_name(dest.name + ".part")

    try:
        if compress:
            with gzip.open(tmp, "wb") as gz:
                gz.write(merged.payload)
        else:
            tmp.write_bytes(merged.payload)
        os.replace(tmp, dest)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise

    logger.info("Wrote %s (%s bytes)", dest.name, f"{len(merged.payload):,}")
    return dest
