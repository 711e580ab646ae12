"""
Directory scanner that classifies media files by capture date.

Walks the tree depth-first in name order and yields a FileRecord for every
file whose capture date could be read. The output folder and hidden or
reserved entries are never entered, so files relocated by an earlier run
are not classified again.
"""

import logging
import os
from pathlib import Path
from typing import Iterator, List, Optional

from ..core.date_classifier import classify
from ..core.types import FileRecord, Granularity
from .metadata import MetadataReader

logger = logging.getLogger(__name__)


class TreeScanner:
    """Lazy, depth-first scanner producing classified file records."""

    def __init__(
        self,
        root_path: Path,
        reader: MetadataReader,
        output_folder_name: str = "generated",
        granularity: Granularity = Granularity.DAY,
        hidden_prefix: str = ".",
        reserved_prefix: str = "@",
    ):
        """
        Initialize the scanner.

        Args:
            root_path: Root of the tree; destinations are computed under it
            reader: Metadata reader used to get capture timestamps
            output_folder_name: Directory name that is never entered
            granularity: Date folder granularity
            hidden_prefix: Entries starting with this are skipped
            reserved_prefix: Entries starting with this are skipped
        """
        self.root_path = Path(root_path)
        self.reader = reader
        self.output_folder_name = output_folder_name
        self.granularity = Granularity(granularity)
        self.skip_prefixes = tuple(p for p in (hidden_prefix, reserved_prefix) if p)
        self.output_root = self.root_path / output_folder_name

        # Track scanning statistics
        self.files_seen = 0
        self.files_classified = 0
        self.directories_skipped = 0

    def is_excluded(self, name: str) -> bool:
        """Check whether a directory entry must not be visited."""
        return name == self.output_folder_name or name.startswith(self.skip_prefixes)

    def destination_for(self, source_path: Path, date_key: str) -> Path:
        """Get the relocation target for a file: root/output/date_key/basename."""
        return self.output_root / date_key / source_path.name

    def scan(self, path: Optional[Path] = None) -> Iterator[FileRecord]:
        """
        Scan a directory tree.

        Args:
            path: Directory to start from (defaults to the root path)

        Yields:
            FileRecord for each file with a readable capture timestamp
        """
        start = Path(path) if path is not None else self.root_path

        if self._inside_output(start):
            logger.warning(f"Not scanning {start}: inside output folder {self.output_root}")
            return

        # One iterator per open directory keeps traversal depth-first
        # without recursion
        stack: List[Iterator[os.DirEntry]] = []
        entries = self._list_directory(start)
        if entries is not None:
            stack.append(iter(entries))

        while stack:
            entry = next(stack[-1], None)
            if entry is None:
                stack.pop()
                continue

            if self.is_excluded(entry.name):
                logger.debug(f"Skipping excluded entry: {entry.path}")
                continue

            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = not is_dir and entry.is_file(follow_symlinks=False)
            except OSError as e:
                logger.warning(f"Failed to get file info for {entry.path}: {e}")
                continue

            if is_dir:
                children = self._list_directory(Path(entry.path))
                if children is not None:
                    stack.append(iter(children))
            elif is_file:
                record = self._classify_file(Path(entry.path))
                if record is not None:
                    yield record

    def _list_directory(self, directory: Path) -> Optional[List[os.DirEntry]]:
        """List a directory in name order, or None if it cannot be read."""
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            logger.error(f"Cannot read directory {directory}, skipping subtree: {e}")
            self.directories_skipped += 1
            return None

        logger.debug(f"{directory} has {len(entries)} entries")
        return entries

    def _classify_file(self, file_path: Path) -> Optional[FileRecord]:
        """Build a record for a file, or None if it has no capture date."""
        self.files_seen += 1

        timestamp = self.reader.read_capture_time(file_path)
        if timestamp is None:
            return None

        date_key = classify(timestamp, self.granularity)
        self.files_classified += 1
        return FileRecord(
            source_path=file_path,
            destination_path=self.destination_for(file_path, date_key),
            date_key=date_key,
        )

    def _inside_output(self, path: Path) -> bool:
        """Check whether a path is the output folder or below it."""
        try:
            path.resolve().relative_to(self.output_root.resolve())
            return True
        except ValueError:
            return False
