"""Record scanning and file helpers."""

from .records import RECORD_FORMATS, scan_records
from .files import iter_units, read_payload, sample_key, write_merged

__all__ = [
    "RECORD_FORMATS",
    "scan_records",
    "iter_units",
    "read_payload",
    "sample_key",
    "write_merged",
]
