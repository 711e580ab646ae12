"""
Capture date extraction from media files.

Reads the "date taken" tag from embedded EXIF metadata, falling back to the
generic "last modified" tag. Files outside the extension allow-list are
never opened. Decode failures return None; they never abort a run.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Set

import arrow
import exiftool
from PIL import Image

from ..core.errors import ConfigurationError
from ..core.types import MetadataBackend
from ..shared.media_utils import SUPPORTED_EXTENSIONS

logger = logging.getLogger(__name__)

# Register HEIC support for Pillow
try:
    from pillow_heif import register_heif_opener

    register_heif_opener()
    logger.debug("HEIC support registered")
except ImportError:
    logger.debug("pillow-heif not installed, HEIC files need the exiftool backend")

# Date formats for parsing EXIF data
EXIF_DATE_FORMATS = [
    "YYYY:MM:DD HH:mm:ssZZ",
    "YYYY:MM:DD HH:mm:ss",
    "YYYY-MM-DD HH:mm:ss",
    "YYYY:MM:DD",
    "YYYY-MM-DD",
]

# EXIF tag ids
TAG_DATETIME = 0x0132  # "last modified"
TAG_EXIF_IFD = 0x8769
TAG_DATETIME_ORIGINAL = 0x9003  # "date taken"

# ExifTool tag names, in priority order
EXIFTOOL_DATE_TAGS = ["DateTimeOriginal", "ModifyDate"]


def parse_exif_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an EXIF timestamp string.

    The wall-clock fields are kept exactly as written; an explicit UTC offset
    is preserved but never converted to local time.

    Args:
        value: Raw tag value (str or bytes)

    Returns:
        Naive datetime, or None if the value is empty or unparseable
    """
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    if not isinstance(value, str):
        return None

    value = value.strip().rstrip("\x00").strip()
    # Cameras without a clock write all zeros
    if not value or value.startswith("0000"):
        return None

    try:
        return arrow.get(value, EXIF_DATE_FORMATS, normalize_whitespace=True).naive
    except (arrow.ParserError, ValueError, TypeError):
        logger.debug(f"Could not parse EXIF timestamp: {value!r}")
        return None


class MetadataReader:
    """
    Read capture timestamps from media files.

    Use as a context manager: the exiftool backend keeps one exiftool process
    open for the lifetime of the reader.
    """

    def __init__(
        self,
        backend: MetadataBackend = MetadataBackend.PILLOW,
        extensions: Optional[Iterable[str]] = None,
    ) -> None:
        """
        Initialize the metadata reader.

        Args:
            backend: Library used to decode metadata
            extensions: Allow-list of extensions (defaults to SUPPORTED_EXTENSIONS)
        """
        self.backend = MetadataBackend(backend)
        self.extensions: Set[str] = {
            e.lower() for e in (extensions or SUPPORTED_EXTENSIONS)
        }
        self.exif_tool: Optional[exiftool.ExifToolHelper] = None

    def __enter__(self) -> "MetadataReader":
        """Context manager entry."""
        if self.backend == MetadataBackend.EXIFTOOL:
            try:
                self.exif_tool = exiftool.ExifToolHelper()
                self.exif_tool.__enter__()
            except OSError as e:
                raise ConfigurationError(f"Cannot start exiftool: {e}") from e
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        if self.exif_tool:
            self.exif_tool.__exit__(*args)
            self.exif_tool = None

    def is_supported(self, file_path: Path) -> bool:
        """Check the extension allow-list (case-insensitive)."""
        return file_path.suffix.lower() in self.extensions

    def read_capture_time(self, file_path: Path) -> Optional[datetime]:
        """
        Get the capture timestamp of a file.

        Args:
            file_path: Path to the media file

        Returns:
            Capture timestamp, or None if the type is unsupported or no
            date tag could be read
        """
        if not self.is_supported(file_path):
            logger.debug(
                f"{file_path.suffix.upper() or '<none>'} file not supported: {file_path}"
            )
            return None

        try:
            if self.backend == MetadataBackend.EXIFTOOL:
                tags = self._read_with_exiftool(file_path)
            else:
                tags = self._read_with_pillow(file_path)
        except PermissionError as e:
            logger.warning(f"Cannot read {file_path}: {e}")
            return None
        except Exception as e:
            logger.debug(f"Error reading metadata from {file_path}: {e}")
            return None

        for name in ("original", "modified"):
            timestamp = parse_exif_timestamp(tags.get(name))
            if timestamp is not None:
                logger.debug(f"Capture time for {file_path} from {name} tag: {timestamp}")
                return timestamp

        logger.debug(f"No usable date tag in {file_path}")
        return None

    def _read_with_pillow(self, file_path: Path) -> Dict[str, Any]:
        """Read date tags using Pillow."""
        with Image.open(file_path) as img:
            exif = img.getexif()
            if not exif:
                return {}
            exif_ifd = exif.get_ifd(TAG_EXIF_IFD)
            # Some writers put DateTimeOriginal in IFD0
            return {
                "original": exif_ifd.get(TAG_DATETIME_ORIGINAL)
                or exif.get(TAG_DATETIME_ORIGINAL),
                "modified": exif.get(TAG_DATETIME),
            }

    def _read_with_exiftool(self, file_path: Path) -> Dict[str, Any]:
        """Read date tags using ExifTool."""
        if not self.exif_tool:
            logger.warning("ExifTool not initialized, use as context manager")
            return {}

        metadata_list = self.exif_tool.get_tags([str(file_path)], EXIFTOOL_DATE_TAGS)
        if not metadata_list:
            return {}

        # ExifTool returns keys with group prefixes like "EXIF:DateTimeOriginal"
        found: Dict[str, Any] = {}
        for key, value in metadata_list[0].items():
            found.setdefault(key.split(":")[-1], value)

        return {
            "original": found.get("DateTimeOriginal"),
            "modified": found.get("ModifyDate"),
        }


def read_capture_time(
    file_path: Path, backend: MetadataBackend = MetadataBackend.PILLOW
) -> Optional[datetime]:
    """
    Convenience function to read one file's capture timestamp.

    Args:
        file_path: Path to the media file
        backend: Library used to decode metadata

    Returns:
        Capture timestamp or None
    """
    with MetadataReader(backend) as reader:
        return reader.read_capture_time(Path(file_path))
