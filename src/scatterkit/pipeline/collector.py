# scatterkit/pipeline/collector.py
"""Gather: reassemble processed pieces into one MergedUnit per key.

Each key gets its own group, created on the first arrival with the expected
count that piece reports. A group seals on the arrival that completes it and
is dropped from the table immediately, so a small group never waits on a
large one. The key stays closed afterwards: a late arrival for a sealed or
discarded key is rejected as a duplicate rather than opening a second group.
Closed keys are held until ``clear_closed()``; the dispatcher calls it at the
end of every run.

Locking: the table lock only guards insert/remove in the group table; group
contents are guarded by the group's own lock. Lock order is always group
lock -> table lock.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional, Set

from scatterkit.errors import DuplicatePieceError, InconsistentGroupError
from scatterkit.types import MergedUnit, ProcessedPiece

logger = logging.getLogger(__name__)

__all__ = ["Collector"]


class _Group:
    """Accumulating state for one key."""

    __slots__ = ("key", "expected_count", "received", "missing", "lock",
                 "sealed", "discarded")

    def __init__(self, key: str, expected_count: int):
        self.key = key
        self.expected_count = expected_count
        self.received: Dict[int, bytes] = {}
        self.missing: Set[int] = set()
        self.lock = threading.Lock()
        self.sealed = False
        self.discarded = False

    @property
    def arrived_count(self) -> int:
        return len(self.received) + len(self.missing)

    def merge(self) -> MergedUnit:
        payload = b"".join(self.received[i] for i in sorted(self.received))
        return MergedUnit(
            key=self.key,
            payload=payload,
            piece_count=self.expected_count,
            missing=tuple(sorted(self.missing)),
        )


class Collector:
    """Table of in-progress groups keyed by grouping key."""

    def __init__(self) -> None:
        self._groups: Dict[str, _Group] = {}
        self._closed: Set[str] = set()  # sealed or discarded keys
        self._table_lock = threading.Lock()

    # Arrivals
    # ========

    def accept(self, piece: ProcessedPiece) -> Optional[MergedUnit]:
        """
        Add one processed piece; return the MergedUnit if it completes its group.

        Raises
        ------
        InconsistentGroupError
            sibling_count disagrees with the group (or index is out of range).
            The group is left untouched.
        DuplicatePieceError
            (key, index) already arrived, or the key's group was already
            sealed or discarded. Not counted twice.
        """
        return self._arrive(piece.key, piece.index, piece.sibling_count, piece.data)

    def record_failure(self, key: str, index: int, sibling_count: int) -> Optional[MergedUnit]:
        """
        Count a failed piece as arrived without data (skip-partial policy).

        The index shows up in the MergedUnit's ``missing``.
        """
        return self._arrive(key, index, sibling_count, None)

    def _arrive(self, key: str, index: int, sibling_count: int,
                data: Optional[bytes]) -> Optional[MergedUnit]:
        if sibling_count < 1 or not 0 <= index < sibling_count:
            raise InconsistentGroupError(key, sibling_count, sibling_count, index=index)

        while True:
            group = self._group_for(key, sibling_count)
            if group is None:
                logger.warning("Rejected piece %s[%d] for closed group", key, index)
                raise DuplicatePieceError(key, index)
            with group.lock:
                if group.discarded or group.sealed:
                    # Closed between lookup and lock; the next lookup rejects it.
                    continue
                if sibling_count != group.expected_count:
                    raise InconsistentGroupError(key, group.expected_count, sibling_count)
                if index in group.received or index in group.missing:
                    logger.warning("Rejected duplicate piece %s[%d]", key, index)
                    raise DuplicatePieceError(key, index)

                if data is None:
                    group.missing.add(index)
                else:
                    group.received[index] = data

                if group.arrived_count < group.expected_count:
                    return None

                group.sealed = True
                merged = group.merge()
                self._remove(group)

            logger.debug(
                "Sealed %s: %d pieces, %d bytes%s",
                key, merged.piece_count, len(merged.payload),
                f", {len(merged.missing)} missing" if merged.missing else "",
            )
            return merged

    def _group_for(self, key: str, sibling_count: int) -> Optional[_Group]:
        with self._table_lock:
            if key in self._closed:
                return None
            group = self._groups.get(key)
            if group is None:
                group = _Group(key, sibling_count)
                self._groups[key] = group
                logger.debug("Opened group %s expecting %d pieces", key, sibling_count)
            return group

    def _remove(self, group: _Group) -> None:
        with self._table_lock:
            self._closed.add(group.key)
            if self._groups.get(group.key) is group:
                del self._groups[group.key]

    # Group control
    # =============

    def discard(self, key: str) -> bool:
        """
        Drop a key's accumulated state (abort-group). True if a group existed.

        The key is closed either way, so stragglers cannot revive it.
        """
        with self._table_lock:
            self._closed.add(key)
            group = self._groups.pop(key, None)
        if group is None:
            return False
        with group.lock:
            group.discarded = True
            dropped = group.arrived_count
            group.received.clear()
            group.missing.clear()
        logger.info("Discarded group %s (%d pieces dropped)", key, dropped)
        return True

    def empty(self, key: str) -> MergedUnit:
        """Result for a unit that split into zero pieces: sealed on creation."""
        with self._table_lock:
            self._closed.add(key)
        return MergedUnit(key=key, payload=b"", piece_count=0)

    def clear_closed(self) -> None:
        """Forget sealed and discarded keys so they can be collected again."""
        with self._table_lock:
            self._closed.clear()

    # Introspection
    # =============

    def pending_keys(self) -> List[str]:
        with self._table_lock:
            return list(self._groups)

    def expected_count(self, key: str) -> Optional[int]:
        with self._table_lock:
            group = self._groups.get(key)
        return None if group is None else group.expected_count

    def arrived_count(self, key: str) -> int:
        with self._table_lock:
            group = self._groups.get(key)
        if group is None:
            return 0
        with group.lock:
            return group.arrived_count

    def in_flight(self) -> int:
        """Number of processed pieces currently buffered across open groups."""
        with self._table_lock:
            groups = list(self._groups.values())
        total = 0
        for group in groups:
            with group.lock:
                total += len(group.received)
        return total

    def __len__(self) -> int:
        with self._table_lock:
            return len(self._groups)

    def is_closed(self, key: str) -> bool:
        with self._table_lock:
            return key in self._closed

    def __contains__(self, key: object) -> bool:
        with self._table_lock:
            return key in self._groups
