# scatterkit/pipeline/report.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

from scatterkit.config import PipelineConfig
from scatterkit.pipeline.dispatcher import RunStats

logger = logging.getLogger(__name__)

__all__ = [
    "format_run_summary",
    "print_run_summary",
    "log_run_summary",
    "format_completion",
    "print_completion",
]


def _abbrev(s: str, width: int = 96) -> str:
    """Return s truncated with an ellipsis if it exceeds width."""
    return s if len(s) <= width else (s[: max(0, width - 1)] + "…")


def format_run_summary(
    *,
    output_dir: str,
    inputs_available: Sequence[str],
    inputs_to_use: Sequence[str],
    config: PipelineConfig,
    transform_name: str,
    start_time: datetime,
    overwrite: bool = True,
    inputs_to_skip: int = 0,
    color: bool = True,
) -> str:
    """
    Build a formatted, human-readable summary of the planned run.
    """
    heading = f"Start Time: {start_time:%Y-%m-%d %H:%M:%S}"
    if color:
        heading = f"\033[31m{heading}\033[0m"

    first = inputs_to_use[0] if inputs_to_use else "None"
    last = inputs_to_use[-1] if inputs_to_use else "None"
    cap = config.max_units_in_flight
    lines = [
        heading,
        ("\033[4mScatter/Gather Configuration\033[0m" if color
         else "Scatter/Gather Configuration"),
        f"Output directory:           {_abbrev(str(output_dir))}",
        f"Total inputs available:     {len(inputs_available)}",
        f"Inputs to process:          {len(inputs_to_use)}",
        f"First input:                {_abbrev(str(first))}",
        f"Last input:                 {_abbrev(str(last))}",
        f"Record format:              {config.record_format}",
        f"Pieces per unit (target):   {config.n_pieces}",
        f"Transform:                  {transform_name}",
        f"Failure policy:             {config.failure_policy.value}"
        + (" (fail fast)" if config.fail_fast else ""),
        f"Overwrite mode:             {overwrite}",
    ]

    if inputs_to_skip > 0:
        lines.append(f"Inputs to skip (done):      {inputs_to_skip}")

    if cap is not None:
        lines.append(f"Units in flight (max):      {cap:,}")

    lines.append(
        f"Worker processes/threads:   {config.num_workers} ({config.executor_name})"
    )
    return "\n".join(lines) + "\n"


def print_run_summary(**kwargs) -> None:
    """Print the run summary to stdout (CLI usage)."""
    print(format_run_summary(**kwargs), end="")


def log_run_summary(*, color: bool = False, **kwargs) -> None:
    """Log the run summary at INFO level (pipelines using logging)."""
    summary = format_run_summary(color=color, **kwargs)
    for line in summary.rstrip("\n").splitlines():
        logger.info(line)


def format_completion(
    stats: RunStats,
    start_time: datetime,
    end_time: datetime,
    *,
    color: bool = True,
) -> str:
    """Completion banner: per-key outcome counts, throughput, runtime."""
    def paint(code: str, text: str) -> str:
        return f"\033[{code}m{text}\033[0m" if color else text

    total_runtime = end_time - start_time
    ok = stats.merged
    time_per_unit = (total_runtime / ok) if ok else total_runtime
    uph = (3600 / time_per_unit.total_seconds()) if ok and time_per_unit.total_seconds() else 0.0

    lines = [
        paint("32", "\nProcessing completed!"),
        f"Merged units: {ok}",
    ]
    if stats.partial:
        lines.append(paint("33", f"Partial units: {stats.partial}"))
    if stats.failed:
        lines.append(paint("31", f"Failed units: {stats.failed}"))
        lines.append(paint("31", f"Failed keys: {', '.join(stats.failed_keys)}"))
    lines += [
        f"Pieces processed: {stats.pieces_processed:,} of {stats.pieces_submitted:,}",
        paint("31", f"\nEnd Time: {end_time}"),
        paint("31", f"Total Runtime: {total_runtime}"),
        paint("34", f"\nTime per unit: {time_per_unit}"),
        paint("34", f"Units per hour: {uph:.1f}"),
    ]
    return "\n".join(lines) + "\n"


def print_completion(stats: RunStats, start_time: datetime, end_time: datetime,
                     *, color: bool = True) -> None:
    print(format_completion(stats, start_time, end_time, color=color), end="")
