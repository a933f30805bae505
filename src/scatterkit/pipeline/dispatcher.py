# scatterkit/pipeline/dispatcher.py
"""Drive units through split -> worker pool -> collector.

Results are yielded in completion order: a key's MergedUnit leaves the
moment its last piece is collected, whatever state other keys are in.
Per-key failures are yielded as GroupFailure values unless fail_fast is set.
"""

from __future__ import annotations

import logging
import queue
from collections import defaultdict
from concurrent.futures import BrokenExecutor, Executor, Future
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Set, Type

from tqdm import tqdm

from scatterkit.config import PipelineConfig
from scatterkit.errors import (
    DuplicatePieceError,
    InconsistentGroupError,
    MalformedInputError,
    PieceProcessingError,
    ScatterGatherError,
)
from scatterkit.pipeline.collector import Collector
from scatterkit.pipeline.splitter import split
from scatterkit.pipeline.worker import Transform, apply, make_executor
from scatterkit.types import FailurePolicy, GroupFailure, MergedUnit, Piece, Result, Unit

logger = logging.getLogger(__name__)

__all__ = ["RunStats", "Dispatcher", "scatter_gather"]


@dataclass
class RunStats:
    """Counters for one dispatcher run."""

    units_submitted: int = 0
    pieces_submitted: int = 0
    pieces_processed: int = 0
    pieces_failed: int = 0
    merged: int = 0
    partial: int = 0
    failed_keys: List[str] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failed_keys)


class Dispatcher:
    """Scatter/gather over a lazy supply of units."""

    def __init__(
        self,
        config: PipelineConfig,
        transform: Transform,
        *,
        collector: Optional[Collector] = None,
        executor_class: Optional[Type[Executor]] = None,
    ):
        self.config = config
        self.transform = transform
        self.collector = collector if collector is not None else Collector()
        self.executor_class = executor_class
        self.stats = RunStats()

        self._pending: Dict[Future, Piece] = {}
        self._futures_by_key: Dict[str, Set[Future]] = defaultdict(set)
        self._remaining: Dict[str, int] = {}
        self._aborted: Set[str] = set()
        self._done: queue.SimpleQueue = queue.SimpleQueue()
        self._bar: Optional[tqdm] = None

    def run(self, units: Iterable[Unit]) -> Iterator[Result]:
        """
        Process units; yield a MergedUnit or GroupFailure per key as each finishes.

        Units are pulled lazily, at most ``max_units_in_flight`` ahead of
        completion. Closing the generator early cancels queued work.

        Finished keys are remembered (one string each) for duplicate
        detection until the run ends; that set is not bounded by
        ``max_units_in_flight``.
        """
        self.stats = RunStats()
        self._done = queue.SimpleQueue()
        executor = make_executor(
            self.config.num_workers,
            self.config.use_threads,
            executor_class=self.executor_class,
        )
        self._bar = tqdm(
            total=0,
            desc="Scatter/gather",
            unit="pieces",
            colour="blue",
            disable=not self.config.progress,
        )
        logger.info(
            "Dispatcher starting: %d workers (%s), %d pieces/unit, policy=%s",
            self.config.num_workers,
            self.config.executor_name,
            self.config.n_pieces,
            self.config.failure_policy.value,
        )
        try:
            yield from self._drive(executor, iter(units))
        finally:
            executor.shutdown(wait=True, cancel_futures=True)
            self._bar.close()
            self._reset()

        logger.info(
            "Dispatcher finished: %d merged (%d partial), %d failed, %d/%d pieces ok",
            self.stats.merged,
            self.stats.partial,
            self.stats.failed,
            self.stats.pieces_processed,
            self.stats.pieces_submitted,
        )

    # Main loop
    # =========

    def _drive(self, executor: Executor, units: Iterator[Unit]) -> Iterator[Result]:
        limit = self.config.max_units_in_flight
        exhausted = False

        while True:
            while not exhausted and (limit is None or len(self._remaining) < limit):
                unit = next(units, None)
                if unit is None:
                    exhausted = True
                    break
                yield from self._admit(executor, unit)

            if not self._pending:
                if exhausted:
                    return
                continue

            # Blocks only until *some* piece finishes, never for a whole key.
            yield from self._complete(self._done.get())

    def _admit(self, executor: Executor, unit: Unit) -> Iterator[Result]:
        key = unit.key
        # A key is either still in flight or closed in the collector.
        if key in self._remaining or self.collector.is_closed(key):
            raise ValueError(f"Duplicate unit key {key!r} in one run")
        self.stats.units_submitted += 1

        try:
            pieces = split(unit, self.config.n_pieces, record_format=self.config.record_format)
        except MalformedInputError as exc:
            yield from self._fail(key, exc)
            return

        if not pieces:
            yield self._emit(self.collector.empty(key))
            return

        for piece in pieces:
            fut = executor.submit(apply, piece, self.transform)
            self._pending[fut] = piece
            self._futures_by_key[key].add(fut)
            fut.add_done_callback(self._done.put)
        self._remaining[key] = len(pieces)
        self.stats.pieces_submitted += len(pieces)
        self._bar.total += len(pieces)
        self._bar.refresh()
        logger.debug("Submitted %s as %d pieces", key, len(pieces))

    def _complete(self, fut: Future) -> Iterator[Result]:
        piece = self._pending.pop(fut)
        key = piece.key
        self._futures_by_key[key].discard(fut)
        self._remaining[key] -= 1
        if self._remaining[key] == 0:
            del self._remaining[key]
            del self._futures_by_key[key]

        if key in self._aborted:
            if key not in self._remaining:
                self._aborted.discard(key)
            if not fut.cancelled():
                self._bar.update(1)
            return
        self._bar.update(1)

        try:
            processed = fut.result()
        except BrokenExecutor:
            raise
        except PieceProcessingError as exc:
            yield from self._piece_failed(piece, exc)
            return
        except Exception as exc:
            # e.g. the transform could not be pickled for a process pool
            yield from self._piece_failed(piece, PieceProcessingError(key, piece.index, exc))
            return

        self.stats.pieces_processed += 1
        try:
            merged = self.collector.accept(processed)
        except DuplicatePieceError:
            return
        except InconsistentGroupError as exc:
            yield from self._fail(key, exc)
            return

        if merged is not None:
            yield self._emit(merged)

    # Outcomes
    # ========

    def _piece_failed(self, piece: Piece, exc: PieceProcessingError) -> Iterator[Result]:
        self.stats.pieces_failed += 1
        if self.config.failure_policy is FailurePolicy.SKIP_PARTIAL and not self.config.fail_fast:
            logger.warning("Skipping failed piece %s[%d]: %s", piece.key, piece.index, exc.cause)
            try:
                merged = self.collector.record_failure(piece.key, piece.index, piece.sibling_count)
            except InconsistentGroupError as err:
                yield from self._fail(piece.key, err)
                return
            if merged is not None:
                yield self._emit(merged)
            return
        yield from self._fail(piece.key, exc)

    def _fail(self, key: str, exc: ScatterGatherError) -> Iterator[Result]:
        """Abort one key: drop its group, cancel queued siblings, report it."""
        self.collector.discard(key)
        if key in self._remaining:
            self._aborted.add(key)
            if self.config.cancel_on_abort:
                cancelled = sum(f.cancel() for f in list(self._futures_by_key.get(key, ())))
                if cancelled:
                    logger.info("Cancelled %d queued pieces of %s", cancelled, key)

        self.stats.failed_keys.append(key)
        logger.error("Group %s failed: %s", key, exc)
        if self.config.fail_fast:
            raise exc
        yield GroupFailure(key=key, error=exc)

    def _emit(self, merged: MergedUnit) -> MergedUnit:
        self.stats.merged += 1
        if merged.partial:
            self.stats.partial += 1
        logger.info(
            "Merged %s: %d pieces, %s bytes%s",
            merged.key,
            merged.piece_count,
            f"{len(merged.payload):,}",
            f" (missing {list(merged.missing)})" if merged.partial else "",
        )
        return merged

    def _reset(self) -> None:
        self._pending.clear()
        self._futures_by_key.clear()
        self._remaining.clear()
        self._aborted.clear()
        self.collector.clear_closed()


def scatter_gather(
    units: Iterable[Unit],
    transform: Transform,
    config: Optional[PipelineConfig] = None,
    **overrides,
) -> Iterator[Result]:
    """
    One-call entry point: ``scatter_gather(units, fn, n_pieces=8, use_threads=True)``.

    Keyword overrides build a PipelineConfig when none is given.
    """
    if config is None:
        config = PipelineConfig(**overrides)
    elif overrides:
        raise TypeError("Pass either config or keyword overrides, not both")
    return Dispatcher(config, transform).run(units)
