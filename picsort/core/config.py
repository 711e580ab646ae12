"""
Run configuration.

``RunConfig`` is the immutable set of options for one run and is validated
once, before any file is touched. ``Settings`` supplies defaults from
``PICSORT_*`` environment variables (or a ``.env`` file) for the CLI.
"""

from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError
from .types import (
    ConcurrencyMode,
    ConflictPolicy,
    Granularity,
    MetadataBackend,
    ScanStrategy,
    TransferMode,
    Verbosity,
)

DEFAULT_OUTPUT_FOLDER = "generated"
DEFAULT_BATCH_SIZE = 100

# Folder-format and copy-mode spellings accepted from older command lines
GRANULARITY_ALIASES = {"ymd": "day", "ym": "month"}
CONCURRENCY_ALIASES = {"seq": "sequential", "con": "parallel"}


def _describe_errors(error: ValidationError) -> str:
    """Join pydantic errors as ``field: message; ...``."""
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
        for err in error.errors()
    )


def _normalise_alias(value: Any, aliases: dict) -> Any:
    if isinstance(value, str):
        lowered = value.strip().lower()
        return aliases.get(lowered, lowered)
    return value


class RunConfig(BaseModel):
    """Options for a single run. Frozen once built."""

    model_config = ConfigDict(frozen=True)

    root_path: Path = Field(description="Directory to scan; output lands beneath it")
    output_folder_name: str = Field(default=DEFAULT_OUTPUT_FOLDER)
    granularity: Granularity = Granularity.DAY
    transfer_mode: TransferMode = TransferMode.MOVE
    concurrency_mode: ConcurrencyMode = ConcurrencyMode.SEQUENTIAL
    worker_count: Optional[int] = Field(default=None, ge=1)
    scan_strategy: ScanStrategy = ScanStrategy.EAGER
    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, ge=1)
    max_inflight: Optional[int] = Field(
        default=None, ge=1, description="Cap on concurrently open transfers"
    )
    conflict_policy: ConflictPolicy = ConflictPolicy.ERROR
    metadata_backend: MetadataBackend = MetadataBackend.PILLOW
    hidden_prefix: str = "."
    reserved_prefix: str = "@"
    verbosity: Verbosity = Verbosity.OFF
    dry_run: bool = False

    @field_validator("root_path", mode="before")
    @classmethod
    def _root_path_set(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("root path must be set")
        return value

    @field_validator("root_path")
    @classmethod
    def _root_path_exists(cls, value: Path) -> Path:
        value = value.expanduser()
        if not value.exists():
            raise ValueError(f"root path does not exist: {value}")
        if not value.is_dir():
            raise ValueError(f"root path is not a directory: {value}")
        return value

    @field_validator("output_folder_name")
    @classmethod
    def _plain_folder_name(cls, value: str) -> str:
        value = value.strip()
        if not value or value in (".", "..") or "/" in value or "\\" in value:
            raise ValueError(f"invalid output folder name: {value!r}")
        return value

    @field_validator("granularity", mode="before")
    @classmethod
    def _granularity_alias(cls, value: Any) -> Any:
        return _normalise_alias(value, GRANULARITY_ALIASES)

    @field_validator("concurrency_mode", mode="before")
    @classmethod
    def _concurrency_alias(cls, value: Any) -> Any:
        return _normalise_alias(value, CONCURRENCY_ALIASES)

    @classmethod
    def validated(cls, **options: Any) -> "RunConfig":
        """
        Build a config, turning validation failures into ``ConfigurationError``.

        Args:
            **options: Field values; ``None`` values fall back to defaults

        Returns:
            Validated, frozen config

        Raises:
            ConfigurationError: If any option is missing or invalid
        """
        root_path = options.pop("root_path", None)
        values = {k: v for k, v in options.items() if v is not None}
        try:
            return cls(root_path=root_path, **values)
        except ValidationError as e:
            raise ConfigurationError(_describe_errors(e)) from e

    @property
    def output_root(self) -> Path:
        """Folder that receives the date folders."""
        return self.root_path / self.output_folder_name


class Settings(BaseSettings):
    """Defaults loaded from environment variables (``PICSORT_*``)."""

    output_folder_name: str = DEFAULT_OUTPUT_FOLDER
    granularity: str = Granularity.DAY.value
    transfer_mode: str = TransferMode.MOVE.value
    concurrency_mode: str = ConcurrencyMode.SEQUENTIAL.value
    worker_count: Optional[int] = None
    scan_strategy: str = ScanStrategy.EAGER.value
    batch_size: int = DEFAULT_BATCH_SIZE
    max_inflight: Optional[int] = None
    conflict_policy: str = ConflictPolicy.ERROR.value
    metadata_backend: str = MetadataBackend.PILLOW.value
    hidden_prefix: str = "."
    reserved_prefix: str = "@"

    model_config = SettingsConfigDict(
        env_prefix="PICSORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def load(cls) -> "Settings":
        """
        Read settings from the environment.

        Raises:
            ConfigurationError: If a ``PICSORT_*`` value is invalid
        """
        try:
            return cls()
        except ValidationError as e:
            raise ConfigurationError(
                f"invalid PICSORT_* setting: {_describe_errors(e)}"
            ) from e
