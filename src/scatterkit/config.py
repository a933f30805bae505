# scatterkit/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Union

from scatterkit.io.records import RECORD_FORMATS
from scatterkit.types import FailurePolicy

__all__ = ["PipelineConfig", "default_workers"]


def default_workers() -> int:
    """Threads help with I/O; processes for CPU. Cap either way for stability."""
    cpu = os.cpu_count() or 4
    return min(32, cpu * 2)


# Pipeline orchestration options
@dataclass(frozen=True)
class PipelineConfig:
    """Scatter/gather configuration.

    Failure policies:
        - "abort-group": first failed piece discards its group and the key is
          reported as a GroupFailure (default)
        - "skip-partial": failed pieces are left out; the key still yields a
          MergedUnit with ``missing`` set
    """
    # Scatter
    n_pieces: int = 4
    record_format: str = "fastq"

    # Parallelism
    workers: Optional[int] = None  # If None, defaults to min(32, cpu * 2)
    use_threads: bool = False
    # Bounds buffered payloads; the keys of finished units are still kept
    # until the run ends.
    max_units_in_flight: Optional[int] = None  # None: read units as fast as they split

    # Failure handling
    failure_policy: Union[FailurePolicy, str] = FailurePolicy.ABORT_GROUP
    cancel_on_abort: bool = True  # Cancel queued siblings of an aborted key
    fail_fast: bool = False  # Raise on first key failure instead of reporting it

    # Progress reporting
    progress: bool = False

    def __post_init__(self) -> None:
        if self.n_pieces < 1:
            raise ValueError(f"n_pieces must be >= 1, got {self.n_pieces}")
        if self.record_format not in RECORD_FORMATS:
            raise ValueError(
                f"record_format must be one of {sorted(RECORD_FORMATS)}, "
                f"got {self.record_format!r}"
            )
        if self.workers is not None and self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if self.max_units_in_flight is not None and self.max_units_in_flight < 1:
            raise ValueError(
                f"max_units_in_flight must be >= 1, got {self.max_units_in_flight}"
            )
        try:
            policy = FailurePolicy(self.failure_policy)
        except ValueError:
            raise ValueError(
                "failure_policy must be 'abort-group' or 'skip-partial', "
                f"got {self.failure_policy!r}"
            ) from None
        object.__setattr__(self, "failure_policy", policy)

    @property
    def num_workers(self) -> int:
        return self.workers if self.workers is not None else default_workers()

    @property
    def executor_name(self) -> str:
        return "threads" if self.use_threads else "processes"
