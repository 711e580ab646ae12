"""Core types, configuration and date classification."""

from .config import RunConfig, Settings
from .date_classifier import classify
from .errors import (
    ConfigurationError,
    DestinationExistsError,
    PicsortError,
    PipelineStateError,
    ProvisioningError,
)
from .types import (
    ConcurrencyMode,
    ConflictPolicy,
    FileRecord,
    Granularity,
    MetadataBackend,
    OutcomeStatus,
    PipelineState,
    ProvisionResult,
    ProvisionStatus,
    RelocationOutcome,
    RunSummary,
    ScanStrategy,
    TransferMode,
    Verbosity,
)

__all__ = [
    "RunConfig",
    "Settings",
    "classify",
    "ConfigurationError",
    "DestinationExistsError",
    "PicsortError",
    "PipelineStateError",
    "ProvisioningError",
    "ConcurrencyMode",
    "ConflictPolicy",
    "FileRecord",
    "Granularity",
    "MetadataBackend",
    "OutcomeStatus",
    "PipelineState",
    "ProvisionResult",
    "ProvisionStatus",
    "RelocationOutcome",
    "RunSummary",
    "ScanStrategy",
    "TransferMode",
    "Verbosity",
]
