"""
Analysis module: capture date extraction and tree scanning.
"""

from .metadata import MetadataReader, parse_exif_timestamp, read_capture_time
from .scanner import TreeScanner

__all__ = [
    "MetadataReader",
    "TreeScanner",
    "parse_exif_timestamp",
    "read_capture_time",
]
