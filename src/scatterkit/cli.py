#!/usr/bin/env python3
"""
scatterkit command line.

Split each input file into record-aligned pieces, run a transform over the
pieces on a worker pool, and write one reassembled output per sample as soon
as that sample's pieces are all back.

Examples:
  scatterkit reads/*.fastq.gz -o out/
  scatterkit reads/*.fastq.gz -o out/ --transform revcomp --pieces 16 --workers 8
  scatterkit notes/*.txt -o out/ --format lines --transform upper --threads
  scatterkit reads/*.fastq -o out/ --policy skip-partial --resume --gzip
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from scatterkit.config import PipelineConfig
from scatterkit.errors import ScatterGatherError
from scatterkit.io.records import RECORD_FORMATS
from scatterkit.pipeline.logger import log_run_banner, setup_logger
from scatterkit.pipeline.orchestrate import scatter_gather_files
from scatterkit.transforms import TRANSFORMS, get_transform
from scatterkit.types import FailurePolicy

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="scatterkit",
        description="Scatter/gather a per-record transform over FASTQ or text files.",
    )
    p.add_argument("inputs", nargs="+", type=Path, help="Input files (.gz is decompressed)")
    p.add_argument("-o", "--output-dir", type=Path, required=True, help="Directory for merged outputs")
    p.add_argument("--transform", choices=sorted(TRANSFORMS), default="identity",
                   help="Per-piece transform (default: identity)")
    p.add_argument("--pieces", type=int, default=4, help="Target pieces per input (default: 4)")
    p.add_argument("--workers", type=int, default=None, help="Pool size (default: min(32, 2*cpu))")
    p.add_argument("--threads", action="store_true", help="Use threads instead of processes")
    p.add_argument("--policy", choices=[fp.value for fp in FailurePolicy],
                   default=FailurePolicy.ABORT_GROUP.value,
                   help="What a failed piece does to its sample (default: abort-group)")
    p.add_argument("--format", dest="record_format", choices=sorted(RECORD_FORMATS),
                   default="fastq", help="Record format (default: fastq)")
    p.add_argument("--max-in-flight", type=int, default=None,
                   help="Max samples held in memory at once (default: unlimited)")
    p.add_argument("--gzip", action="store_true", help="Gzip the outputs")
    p.add_argument("--resume", action="store_true", help="Skip samples whose output exists")
    p.add_argument("--fail-fast", action="store_true", help="Stop at the first failed sample")
    p.add_argument("--progress", action="store_true", help="Show a progress bar")
    p.add_argument("--log-dir", type=Path, default=None, help="Write a log file here")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    level = logging.DEBUG if args.verbose else logging.INFO

    if args.log_dir is not None:
        setup_logger(args.log_dir, level=level, filename_prefix="scatterkit", force=True)
        log_run_banner(f"scatterkit ({args.transform})", output_dir=args.output_dir)
    else:
        logging.basicConfig(level=logging.WARNING if not args.verbose else level,
                            format="%(levelname)s %(name)s: %(message)s")

    try:
        config = PipelineConfig(
            n_pieces=args.pieces,
            record_format=args.record_format,
            workers=args.workers,
            use_threads=args.threads,
            max_units_in_flight=args.max_in_flight,
            failure_policy=args.policy,
            fail_fast=args.fail_fast,
            progress=args.progress,
        )
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2
    logger.debug("Config: %s", config)

    try:
        stats = scatter_gather_files(
            args.inputs,
            args.output_dir,
            get_transform(args.transform),
            config=config,
            overwrite=not args.resume,
            compress=args.gzip,
        )
    except (FileNotFoundError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2
    except ScatterGatherError as exc:
        print(f"FAILED: {exc}", file=sys.stderr)
        return 1

    return 1 if stats.failed else 0


if __name__ == "__main__":
    sys.exit(main())
