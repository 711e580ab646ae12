"""
Type definitions for the sorting pipeline.
"""

from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Granularity(str, Enum):
    """Precision at which files are bucketed into folders."""

    DAY = "day"  # 20240305
    MONTH = "month"  # 202403


class TransferMode(str, Enum):
    """What happens to the source file."""

    COPY = "copy"
    MOVE = "move"


class ConcurrencyMode(str, Enum):
    """How the relocation phase is scheduled."""

    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"


class ScanStrategy(str, Enum):
    """How much of the tree is held in memory before relocating."""

    EAGER = "eager"
    STREAMING = "streaming"


class ConflictPolicy(str, Enum):
    """What to do when the destination file already exists."""

    ERROR = "error"
    SKIP = "skip"
    OVERWRITE = "overwrite"


class MetadataBackend(str, Enum):
    """Library used to read embedded capture dates."""

    PILLOW = "pillow"
    EXIFTOOL = "exiftool"


class Verbosity(int, Enum):
    """Amount of output requested by the user."""

    OFF = 0
    PROGRESS = 1
    SUMMARY = 2


class PipelineState(str, Enum):
    """Phase of the pipeline coordinator."""

    IDLE = "idle"
    SCANNING = "scanning"
    PROVISIONING = "provisioning"
    RELOCATING = "relocating"


class OutcomeStatus(str, Enum):
    """Result of relocating a single record."""

    RELOCATED = "relocated"
    SKIPPED = "skipped"
    FAILED = "failed"
    PLANNED = "planned"  # dry run


class ProvisionStatus(str, Enum):
    """Result of ensuring a folder exists."""

    CREATED = "created"
    EXISTED = "existed"
    ERROR = "error"


class FileRecord(BaseModel):
    """A classified file waiting to be relocated."""

    model_config = ConfigDict(frozen=True)

    source_path: Path
    destination_path: Path
    date_key: str


class RelocationOutcome(BaseModel):
    """What happened to one record in the relocation phase."""

    model_config = ConfigDict(frozen=True)

    record: FileRecord
    status: OutcomeStatus
    bytes_transferred: int = 0
    error: Optional[str] = None


class ProvisionResult(BaseModel):
    """What happened when a folder was ensured."""

    model_config = ConfigDict(frozen=True)

    path: Path
    status: ProvisionStatus
    error: Optional[str] = None


class RunSummary(BaseModel):
    """Counts reported at the end of a run. Always reflects actual outcomes."""

    files_scanned: int = 0
    files_classified: int = 0
    files_relocated: int = 0
    files_skipped: int = 0
    files_failed: int = 0
    files_planned: int = 0
    bytes_transferred: int = 0
    folders_created: int = 0
    directories_skipped: int = 0
    batches: int = 0
    peak_buffered_records: int = 0
    elapsed_seconds: float = 0.0
    dry_run: bool = False
    errors: List[str] = Field(default_factory=list)
