"""
Media file utilities for picsort.

File type detection, formatting helpers and logging setup shared by the
scanner, the relocation pool and the CLI.
"""

import logging
import os
from pathlib import Path
from typing import Set

logger = logging.getLogger(__name__)

# Formats whose capture date is read from embedded EXIF
SUPPORTED_EXTENSIONS: Set[str] = {
    ".jpg",
    ".jpeg",
    ".png",
    ".arw",
    ".tif",
    ".tiff",
    ".heic",
    ".heif",
    ".webp",
    ".dng",
}


def is_supported_file(file_path: Path) -> bool:
    """
    Check if a file may carry a capture date, based on extension.

    Args:
        file_path: Path to check

    Returns:
        True if the extension is on the allow-list (case-insensitive)
    """
    return file_path.suffix.lower() in SUPPORTED_EXTENSIONS


def available_parallelism() -> int:
    """Number of CPUs this process may run on."""
    try:
        return len(os.sched_getaffinity(0)) or 1
    except AttributeError:
        return os.cpu_count() or 1


def format_bytes(size_bytes: int) -> str:
    """
    Format bytes in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted string (e.g., "2.50 GB")
    """
    if size_bytes == 0:
        return "0 B"

    units = ["B", "KB", "MB", "GB", "TB", "PB"]
    unit_index = 0
    size = float(size_bytes)

    while size >= 1024.0 and unit_index < len(units) - 1:
        size /= 1024.0
        unit_index += 1

    return f"{size:.2f} {units[unit_index]}"


def format_duration(seconds: float) -> str:
    """Format a duration as ``1h 02m 03s``, ``2m 03s`` or ``1.23s``."""
    if seconds < 60:
        return f"{seconds:.2f}s"
    minutes, secs = divmod(int(round(seconds)), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes:02d}m {secs:02d}s"
    return f"{minutes}m {secs:02d}s"


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """
    Configure logging for the application.

    Args:
        verbose: If True, set picsort loggers to DEBUG (libraries stay at INFO)
        quiet: If True, set logging level to WARNING
    """
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    # Pillow's plugin loaders log every chunk at DEBUG, so the root stays at INFO
    logging.basicConfig(
        level=max(level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("picsort").setLevel(level)
