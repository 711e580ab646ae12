"""
Single-file copy and move.

Copies stream through a bounded buffer and leave the source untouched.
Moves rename within a volume and fall back to copy-then-delete across
volumes. A failed transfer never leaves a partial destination behind.
"""

import errno
import logging
import os
import shutil
import uuid
from pathlib import Path

from ..core.errors import DestinationExistsError

logger = logging.getLogger(__name__)

COPY_BUFFER_SIZE = 1024 * 1024  # 1 MiB


def _remove_partial(path: Path) -> None:
    """Delete an incomplete destination file, if any."""
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error(f"Could not remove partial file {path}: {e}")


def _partial_path(destination: Path) -> Path:
    """Hidden temp file next to destination, skipped by the scanner."""
    return destination.with_name(f".{destination.name}.{uuid.uuid4().hex}.part")


def same_volume(source: Path, destination_dir: Path) -> bool:
    """
    Check whether a rename from source into destination_dir can be atomic.

    Args:
        source: Existing source file
        destination_dir: Existing destination directory

    Returns:
        True if both live on the same device
    """
    return os.stat(source).st_dev == os.stat(destination_dir).st_dev


def copy_file(source: Path, destination: Path, overwrite: bool = False) -> int:
    """
    Copy a file, creating the destination directory if needed.

    Args:
        source: File to copy (opened read-only)
        destination: Target file path
        overwrite: Replace an existing destination

    Returns:
        Number of bytes copied

    Raises:
        DestinationExistsError: If destination exists and overwrite is False
        OSError: If reading or writing fails
    """
    source = Path(source)
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)

    # Overwrites go through a hidden temp file and an atomic replace, so
    # concurrent writers to one destination never interleave
    target = _partial_path(destination) if overwrite else destination

    with open(source, "rb") as src:
        try:
            # "x" makes the existence check and the create one atomic step
            dst = open(target, "xb")
        except FileExistsError as e:
            raise DestinationExistsError(f"Destination exists: {destination}") from e

        try:
            with dst:
                shutil.copyfileobj(src, dst, COPY_BUFFER_SIZE)
                copied = dst.tell()
            try:
                shutil.copystat(source, target)
            except OSError as e:
                logger.debug(f"Could not copy file metadata to {destination}: {e}")
            if overwrite:
                os.replace(target, destination)
        except BaseException:
            _remove_partial(target)
            raise

    return copied


def move_file(source: Path, destination: Path, overwrite: bool = False) -> int:
    """
    Move a file, creating the destination directory if needed.

    Uses an atomic rename when source and destination share a volume, and
    copy-then-delete otherwise.

    Args:
        source: File to move
        destination: Target file path
        overwrite: Replace an existing destination

    Returns:
        Size of the moved file in bytes

    Raises:
        DestinationExistsError: If destination exists and overwrite is False
        OSError: If the move fails; the source is left in place
    """
    source = Path(source)
    destination = Path(destination)
    size = source.stat().st_size
    destination.parent.mkdir(parents=True, exist_ok=True)

    if not overwrite and os.path.lexists(destination):
        raise DestinationExistsError(f"Destination exists: {destination}")

    if same_volume(source, destination.parent):
        try:
            os.replace(source, destination)
            return size
        except OSError as e:
            # Bind mounts and some network filesystems share st_dev
            if e.errno != errno.EXDEV:
                raise

    logger.debug(f"Cross-volume move, copying {source} -> {destination}")

    # An existing destination is only replaced once the source is gone
    target = _partial_path(destination) if overwrite else destination
    copied = copy_file(source, target)
    try:
        source.unlink()
    except OSError:
        # Keep exactly one copy: undo the copy, leave the source in place
        _remove_partial(target)
        raise

    if overwrite:
        try:
            os.replace(target, destination)
        except OSError as e:
            # The source is already deleted, so the temp file is the only copy
            logger.error(f"Moved {source} to {target} but could not rename it: {e}")
            raise
    return copied
