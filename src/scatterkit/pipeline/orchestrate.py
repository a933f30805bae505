# scatterkit/pipeline/orchestrate.py
from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Union

try:
    import setproctitle as _setproctitle  # optional nicety
except Exception:  # pragma: no cover
    _setproctitle = None

from scatterkit.config import PipelineConfig
from scatterkit.io.files import iter_units, output_path, sample_key, write_merged
from scatterkit.pipeline.dispatcher import Dispatcher, RunStats
from scatterkit.pipeline.report import print_completion, print_run_summary
from scatterkit.pipeline.worker import Transform
from scatterkit.types import GroupFailure

logger = logging.getLogger(__name__)

__all__ = ["scatter_gather_files", "DEFAULT_SUFFIXES"]

DEFAULT_SUFFIXES = {"fastq": ".fastq", "lines": ".txt"}


def scatter_gather_files(
    input_paths: Iterable[Union[str, os.PathLike]],
    output_dir: Union[str, os.PathLike],
    transform: Transform,
    *,
    config: Optional[PipelineConfig] = None,
    overwrite: bool = True,
    compress: bool = False,
    output_suffix: Optional[str] = None,
) -> RunStats:
    """
    Split every input file, transform the pieces in parallel, write one merged
    output per sample.

    Process
    -------
    1. Map input files to sample keys (duplicates are an error)
    2. In resume mode (overwrite=False) drop samples whose output exists
    3. Print a run summary
    4. Dispatch; write each merged unit as soon as its group seals
    5. Print completion stats; return RunStats
    """
    # Cosmetic: label main process in htop if available
    if _setproctitle is not None:  # pragma: no cover
        try:
            _setproctitle.setproctitle("SG_MAIN")
        except Exception:
            pass

    start_time = datetime.now()
    config = config or PipelineConfig()
    suffix = output_suffix or DEFAULT_SUFFIXES.get(config.record_format, ".out")
    out_dir = Path(output_dir)

    # 1) Discover inputs
    paths_available = [Path(p) for p in input_paths]
    if not paths_available:
        raise RuntimeError("No input files given")
    missing = [p for p in paths_available if not p.is_file()]
    if missing:
        raise FileNotFoundError(f"Input file(s) not found: {', '.join(map(str, missing))}")

    keys: dict[str, Path] = {}
    for p in paths_available:
        key = sample_key(p)
        if key in keys:
            raise ValueError(f"Duplicate sample key {key!r}: {keys[key]} and {p}")
        keys[key] = p

    # 2) Resume mode: skip samples that already have output
    paths_to_use = paths_available
    to_skip = 0
    if not overwrite:
        paths_to_use = [
            p for p in paths_available
            if not output_path(out_dir, sample_key(p), suffix=suffix, compress=compress).exists()
        ]
        to_skip = len(paths_available) - len(paths_to_use)
        if to_skip:
            logger.info("Resume mode: skipping %s finished samples", to_skip)
        if not paths_to_use:
            print("🎉 All samples already have output!")
            return RunStats()

    out_dir.mkdir(parents=True, exist_ok=True)

    # 3) Summary
    print_run_summary(
        output_dir=str(out_dir),
        inputs_available=[str(p) for p in paths_available],
        inputs_to_use=[str(p) for p in paths_to_use],
        config=config,
        transform_name=getattr(transform, "__name__", repr(transform)),
        start_time=start_time,
        overwrite=overwrite,
        inputs_to_skip=to_skip,
    )

    # 4) Scatter/gather; outputs land as each key completes
    dispatcher = Dispatcher(config, transform)
    for result in dispatcher.run(iter_units(paths_to_use)):
        if isinstance(result, GroupFailure):
            logger.error("Sample %s failed: %s", result.key, result.error)
            continue
        write_merged(result, out_dir, suffix=suffix, compress=compress)

    # 5) Report
    print_completion(dispatcher.stats, start_time, datetime.now())
    return dispatcher.stats
