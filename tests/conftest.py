"""
Pytest configuration and fixtures for picsort tests.
"""

import tempfile
from pathlib import Path
from typing import Callable, Generator, Optional

import pytest
from PIL import Image

from picsort.core.config import RunConfig

# EXIF tag ids written by the fixtures
TAG_DATETIME = 0x0132
TAG_DATETIME_ORIGINAL = 0x9003

PhotoFactory = Callable[..., Path]


def write_photo(
    path: Path,
    date_taken: Optional[str] = None,
    modified: Optional[str] = None,
    color: str = "red",
) -> Path:
    """
    Write a small JPEG with optional EXIF date tags.

    Args:
        path: Where to write the image (parents are created)
        date_taken: DateTimeOriginal value, e.g. "2024:03:05 10:00:00"
        modified: DateTime value
        color: Fill color

    Returns:
        The image path
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    img = Image.new("RGB", (16, 16), color=color)
    exif = Image.Exif()
    if date_taken is not None:
        exif[TAG_DATETIME_ORIGINAL] = date_taken
    if modified is not None:
        exif[TAG_DATETIME] = modified
    img.save(path, "JPEG", exif=exif)
    return path


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_photo(temp_dir: Path) -> PhotoFactory:
    """Factory writing EXIF-dated JPEGs relative to temp_dir."""

    def _make_photo(relative: str, date_taken: Optional[str] = None, **kwargs) -> Path:
        return write_photo(temp_dir / relative, date_taken=date_taken, **kwargs)

    return _make_photo


@pytest.fixture
def photo_tree(temp_dir: Path, make_photo: PhotoFactory) -> Path:
    """
    Create a small tree of photos.

    Layout::

        a.jpg               2024-03-05
        b.txt               (not media)
        trip/c.jpg          2024-03-05
        trip/d.jpeg         2023-12-31 (DateTime only)
        trip/nodate.jpg     (no EXIF date)
        .hidden/e.jpg       2024-01-01
        @eaDir/f.jpg        2024-01-01
    """
    make_photo("a.jpg", "2024:03:05 10:00:00")
    (temp_dir / "b.txt").write_text("not a photo")
    make_photo("trip/c.jpg", "2024:03:05 18:30:00", color="green")
    make_photo("trip/d.jpeg", modified="2023:12:31 23:59:59", color="blue")
    make_photo("trip/nodate.jpg")
    make_photo(".hidden/e.jpg", "2024:01:01 00:00:00")
    make_photo("@eaDir/f.jpg", "2024:01:01 00:00:00")
    return temp_dir


@pytest.fixture
def run_config(temp_dir: Path) -> Callable[..., RunConfig]:
    """Factory building a validated RunConfig rooted at temp_dir."""

    def _run_config(**options) -> RunConfig:
        options.setdefault("root_path", temp_dir)
        return RunConfig.validated(**options)

    return _run_config
