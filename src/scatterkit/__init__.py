"""Fan-out / fan-in execution for embarrassingly parallel batch processing."""

from .config import PipelineConfig
from .errors import (
    DuplicatePieceError,
    InconsistentGroupError,
    MalformedInputError,
    PieceProcessingError,
    ScatterGatherError,
)
from .types import FailurePolicy, GroupFailure, MergedUnit, Piece, ProcessedPiece, Unit
from .pipeline import (
    Collector,
    Dispatcher,
    RunStats,
    apply,
    scatter_gather,
    scatter_gather_files,
    split,
)

__all__ = [
    # Pipeline API
    "scatter_gather",
    "scatter_gather_files",
    "Dispatcher",
    "RunStats",

    # Components
    "split",
    "apply",
    "Collector",

    # Data model
    "Unit",
    "Piece",
    "ProcessedPiece",
    "MergedUnit",
    "GroupFailure",
    "FailurePolicy",

    # Configuration
    "PipelineConfig",

    # Errors
    "ScatterGatherError",
    "MalformedInputError",
    "PieceProcessingError",
    "InconsistentGroupError",
    "DuplicatePieceError",
]
