# scatterkit/pipeline/worker.py
from __future__ import annotations

import logging
import os
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from typing import Callable, Optional, Type

try:
    import setproctitle as _setproctitle  # optional
except Exception:  # pragma: no cover
    _setproctitle = None

from scatterkit.errors import PieceProcessingError
from scatterkit.types import Piece, ProcessedPiece

logger = logging.getLogger(__name__)

__all__ = ["Transform", "apply", "make_executor", "executor_class_for"]

Transform = Callable[[Piece], bytes]


def _label_worker() -> None:
    """Label pool processes in htop; threads share the parent's title."""
    if _setproctitle is None:
        return
    try:
        _setproctitle.setproctitle("SG_WORKER")
    except Exception:  # pragma: no cover
        pass


def apply(piece: Piece, transform: Transform) -> ProcessedPiece:
    """
    Run transform on one piece and wrap the result.

    The transform sees only this piece. Any exception it raises, or a result
    that is not bytes, surfaces as PieceProcessingError(key, index, cause).
    """
    try:
        data = transform(piece)
    except Exception as exc:
        logger.error(
            "PID %s: transform failed on %s[%d]: %s",
            os.getpid(), piece.key, piece.index, exc,
        )
        raise PieceProcessingError(piece.key, piece.index, exc) from exc

    if isinstance(data, (bytearray, memoryview)):
        data = bytes(data)
    if not isinstance(data, bytes):
        exc = TypeError(f"transform returned {type(data).__name__}, expected bytes")
        raise PieceProcessingError(piece.key, piece.index, exc)

    logger.debug(
        "Processed %s[%d/%d]: %d -> %d bytes",
        piece.key, piece.index, piece.sibling_count, len(piece.data), len(data),
    )
    return ProcessedPiece.from_piece(piece, data)


def executor_class_for(use_threads: bool) -> Type[Executor]:
    return ThreadPoolExecutor if use_threads else ProcessPoolExecutor


def make_executor(workers: int, use_threads: bool = False,
                  executor_class: Optional[Type[Executor]] = None) -> Executor:
    """Build the worker pool. Threads help with I/O; processes for CPU."""
    cls = executor_class or executor_class_for(use_threads)
    if cls is ProcessPoolExecutor:
        return cls(max_workers=workers, initializer=_label_worker)
    return cls(max_workers=workers)
