"""
Folder provisioning.

Creates the output root and every date folder before any file is relocated
into it. Ensuring a folder is idempotent.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Union

from ..core.errors import ProvisioningError
from ..core.types import ProvisionResult, ProvisionStatus

logger = logging.getLogger(__name__)


class FolderProvisioner:
    """Create output folders, counting the ones that did not exist yet."""

    def __init__(self) -> None:
        self.folders_created = 0

    def ensure(self, *parts: Union[str, Path]) -> ProvisionResult:
        """
        Ensure a folder exists.

        Args:
            *parts: Path components joined into the folder path

        Returns:
            Result with status created, existed or error. Never raises.
        """
        path = Path(*parts)

        try:
            path.mkdir(parents=True)
        except FileExistsError:
            if path.is_dir():
                return ProvisionResult(path=path, status=ProvisionStatus.EXISTED)
            error = f"Path exists and is not a directory: {path}"
            logger.error(error)
            return ProvisionResult(path=path, status=ProvisionStatus.ERROR, error=error)
        except OSError as e:
            logger.error(f"Error creating folder {path}: {e}")
            return ProvisionResult(path=path, status=ProvisionStatus.ERROR, error=str(e))

        self.folders_created += 1
        logger.debug(f"Created folder {path}")
        return ProvisionResult(path=path, status=ProvisionStatus.CREATED)

    def provision(self, output_root: Path, date_keys: Iterable[str]) -> List[ProvisionResult]:
        """
        Create the output root, then one folder per date key.

        Args:
            output_root: Folder holding the date folders
            date_keys: Date folder names to create

        Returns:
            Results for the date folders, in sorted key order

        Raises:
            ProvisioningError: If the output root cannot be created
        """
        root_result = self.ensure(output_root)
        if root_result.status == ProvisionStatus.ERROR:
            raise ProvisioningError(
                f"Cannot create output folder {output_root}: {root_result.error}"
            )

        results = [self.ensure(output_root, key) for key in sorted(date_keys)]

        failed = [r for r in results if r.status == ProvisionStatus.ERROR]
        if failed:
            logger.warning(f"{len(failed)} of {len(results)} date folders could not be created")

        return results
