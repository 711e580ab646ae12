"""
Shared utilities for picsort.
"""

from .media_utils import (
    # File type detection
    SUPPORTED_EXTENSIONS,
    is_supported_file,
    # Runtime
    available_parallelism,
    # Formatting
    format_bytes,
    format_duration,
    # Logging
    setup_logging,
)

__all__ = [
    # Constants
    "SUPPORTED_EXTENSIONS",
    # Functions
    "is_supported_file",
    "available_parallelism",
    "format_bytes",
    "format_duration",
    "setup_logging",
]
