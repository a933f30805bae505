"""Scatter/gather pipeline: split, worker pool, collector, dispatcher."""

from .splitter import split
from .worker import apply, make_executor
from .collector import Collector
from .dispatcher import Dispatcher, RunStats, scatter_gather
from .orchestrate import scatter_gather_files

__all__ = [
    "split",
    "apply",
    "make_executor",
    "Collector",
    "Dispatcher",
    "RunStats",
    "scatter_gather",
    "scatter_gather_files",
]
