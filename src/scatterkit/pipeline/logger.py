# scatterkit/pipeline/logger.py
from __future__ import annotations

import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

__all__ = ["setup_logger", "log_run_banner"]

LOG_FORMAT = "%(asctime)s %(levelname)s %(processName)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level {level!r}")
    return resolved


def setup_logger(
    log_dir: Union[str, Path],
    *,
    level: Union[int, str] = logging.INFO,
    filename_prefix: str = "scatter_gather",
    console: bool = False,
    rotate: bool = False,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 3,
    force: bool = False,
) -> Path:
    """
    Send root logging to a timestamped file under log_dir.

    A path with a suffix (a file) logs into its parent directory instead.
    Worker threads and pool processes share the file; records carry the
    process name. Returns the log file path.
    """
    level = _resolve_level(level)
    target = Path(log_dir).expanduser()
    if target.suffix and not target.is_dir():
        target = target.parent
    target.mkdir(parents=True, exist_ok=True)

    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_path = target / f"{filename_prefix}_{stamp}.log"

    root = logging.getLogger()
    if force:
        for h in list(root.handlers):
            root.removeHandler(h)
    root.setLevel(level)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [
        RotatingFileHandler(log_path, maxBytes=max_bytes,
                            backupCount=backup_count, encoding="utf-8")
        if rotate
        else logging.FileHandler(log_path, mode="w", encoding="utf-8")
    ]
    if console:
        handlers.append(logging.StreamHandler())

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    root.info("Logging to: %s", str(log_path))
    return log_path


def log_run_banner(workflow: str, *, output_dir: Optional[Union[str, Path]] = None) -> None:
    """Mark the start of a run in the log so runs sharing a file stay readable."""
    log = logging.getLogger("scatterkit")
    log.info("=" * 80)
    log.info("Workflow: %s", workflow)
    log.info("Started: %s", datetime.now().strftime(DATE_FORMAT))
    if output_dir is not None:
        log.info("Output: %s", output_dir)
    log.info("=" * 80)
