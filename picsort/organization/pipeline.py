"""
Pipeline coordinator.

Drives one run through scan → provision → relocate and resets afterwards.
All per-run state lives in a RunContext owned by the coordinator for the
duration of the run, so a coordinator can be reused for any number of runs.
"""

import gc
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from ..analysis.metadata import MetadataReader
from ..analysis.scanner import TreeScanner
from ..core.config import RunConfig
from ..core.errors import PipelineStateError
from ..core.types import (
    FileRecord,
    OutcomeStatus,
    PipelineState,
    RelocationOutcome,
    RunSummary,
    ScanStrategy,
)
from ..shared.media_utils import format_duration
from .provisioner import FolderProvisioner
from .worker_pool import OutcomeCallback, RelocationWorkerPool

logger = logging.getLogger(__name__)

# Error messages kept in the summary; counts are always complete
MAX_REPORTED_ERRORS = 100

ALLOWED_TRANSITIONS: Dict[PipelineState, Set[PipelineState]] = {
    PipelineState.IDLE: {PipelineState.SCANNING},
    PipelineState.SCANNING: {PipelineState.PROVISIONING, PipelineState.IDLE},
    PipelineState.PROVISIONING: {PipelineState.RELOCATING, PipelineState.IDLE},
    # Streaming runs go back to scanning after each batch
    PipelineState.RELOCATING: {PipelineState.SCANNING, PipelineState.IDLE},
}


@dataclass
class RunContext:
    """State accumulated during one run."""

    config: RunConfig
    folder_set: Set[str] = field(default_factory=set)
    records: List[FileRecord] = field(default_factory=list)
    summary: RunSummary = field(default_factory=RunSummary)

    def buffer(self, record: FileRecord) -> None:
        """Hold a classified record until its batch is relocated."""
        self.records.append(record)
        self.folder_set.add(record.date_key)
        if len(self.records) > self.summary.peak_buffered_records:
            self.summary.peak_buffered_records = len(self.records)

    def take_batch(self) -> List[FileRecord]:
        """Hand over the buffered records, leaving the buffer empty."""
        batch, self.records = self.records, []
        return batch

    def record_outcomes(self, outcomes: List[RelocationOutcome]) -> None:
        """Add relocation outcomes to the summary counts."""
        summary = self.summary
        for outcome in outcomes:
            if outcome.status == OutcomeStatus.RELOCATED:
                summary.files_relocated += 1
                summary.bytes_transferred += outcome.bytes_transferred
            elif outcome.status == OutcomeStatus.SKIPPED:
                summary.files_skipped += 1
            elif outcome.status == OutcomeStatus.PLANNED:
                summary.files_planned += 1
            else:
                summary.files_failed += 1
                if len(summary.errors) < MAX_REPORTED_ERRORS:
                    summary.errors.append(f"{outcome.record.source_path}: {outcome.error}")

    def clear(self) -> None:
        """Drop all accumulated state."""
        self.folder_set = set()
        self.records = []
        self.summary = RunSummary()


class PipelineCoordinator:
    """Run the scan → provision → relocate pipeline for a configuration."""

    def __init__(self, config: RunConfig, on_outcome: Optional[OutcomeCallback] = None):
        """
        Initialize the coordinator.

        Args:
            config: Validated run configuration
            on_outcome: Called after each record is relocated (may run on
                worker threads)
        """
        self.config = config
        self.on_outcome = on_outcome
        self.state = PipelineState.IDLE
        self.context: Optional[RunContext] = None

    def _transition(self, new_state: PipelineState) -> None:
        if new_state not in ALLOWED_TRANSITIONS[self.state]:
            raise PipelineStateError(
                f"Invalid transition {self.state.value} → {new_state.value}"
            )
        logger.debug(f"Pipeline {self.state.value} → {new_state.value}")
        self.state = new_state

    def run(self) -> RunSummary:
        """
        Execute one run.

        Returns:
            Summary of what actually happened

        Raises:
            PipelineStateError: If a run is already in progress
            ProvisioningError: If the output root cannot be created
        """
        if self.state != PipelineState.IDLE:
            raise PipelineStateError(f"Run already in progress ({self.state.value})")

        config = self.config
        start = time.monotonic()
        context = RunContext(config=config)
        context.summary.dry_run = config.dry_run
        self.context = context

        logger.info(
            f"Starting {'DRY RUN ' if config.dry_run else ''}"
            f"{config.transfer_mode.value} of {config.root_path} → {config.output_root} "
            f"({config.scan_strategy.value}, {config.concurrency_mode.value})"
        )

        provisioner = FolderProvisioner()
        pool = RelocationWorkerPool(
            transfer_mode=config.transfer_mode,
            concurrency_mode=config.concurrency_mode,
            worker_count=config.worker_count,
            max_inflight=config.max_inflight,
            conflict_policy=config.conflict_policy,
            dry_run=config.dry_run,
            on_outcome=self.on_outcome,
        )

        try:
            with MetadataReader(config.metadata_backend) as reader:
                scanner = TreeScanner(
                    root_path=config.root_path,
                    reader=reader,
                    output_folder_name=config.output_folder_name,
                    granularity=config.granularity,
                    hidden_prefix=config.hidden_prefix,
                    reserved_prefix=config.reserved_prefix,
                )
                try:
                    if config.scan_strategy == ScanStrategy.STREAMING:
                        self._run_streaming(context, scanner, provisioner, pool)
                    else:
                        self._run_eager(context, scanner, provisioner, pool)
                finally:
                    summary = context.summary
                    summary.files_scanned = scanner.files_seen
                    summary.files_classified = scanner.files_classified
                    summary.directories_skipped = scanner.directories_skipped
                    summary.folders_created = provisioner.folders_created
                    summary.elapsed_seconds = time.monotonic() - start

            logger.info(
                f"Run complete: {summary.files_scanned} scanned, "
                f"{summary.files_classified} classified, "
                f"{summary.files_relocated} relocated, {summary.files_skipped} skipped, "
                f"{summary.files_failed} failed, {summary.folders_created} folders created"
            )
            logger.debug(f"process took {format_duration(summary.elapsed_seconds)}")
            return summary

        finally:
            context.clear()
            self.context = None
            self.state = PipelineState.IDLE

    def _run_eager(
        self,
        context: RunContext,
        scanner: TreeScanner,
        provisioner: FolderProvisioner,
        pool: RelocationWorkerPool,
    ) -> None:
        """Scan the whole tree, then provision and relocate everything."""
        self._transition(PipelineState.SCANNING)
        for record in scanner.scan():
            context.buffer(record)

        logger.info(f"Generated folders: {len(context.folder_set)}")
        logger.info(f"All processed file entries: {len(context.records)}")
        self._process_batch(context, provisioner, pool)

    def _run_streaming(
        self,
        context: RunContext,
        scanner: TreeScanner,
        provisioner: FolderProvisioner,
        pool: RelocationWorkerPool,
    ) -> None:
        """Scan and relocate in fixed-size batches to bound memory."""
        batch_size = self.config.batch_size

        self._transition(PipelineState.SCANNING)
        for record in scanner.scan():
            context.buffer(record)
            if len(context.records) >= batch_size:
                self._process_batch(context, provisioner, pool)
                gc.collect()
                self._transition(PipelineState.SCANNING)

        self._process_batch(context, provisioner, pool)

    def _process_batch(
        self,
        context: RunContext,
        provisioner: FolderProvisioner,
        pool: RelocationWorkerPool,
    ) -> None:
        """Provision the known folders, then relocate the buffered records."""
        if not context.records:
            return

        context.summary.batches += 1
        logger.info(
            f"Processing batch {context.summary.batches} of {len(context.records)} files"
        )

        self._transition(PipelineState.PROVISIONING)
        if not self.config.dry_run:
            provisioner.provision(self.config.output_root, context.folder_set)

        self._transition(PipelineState.RELOCATING)
        batch = context.take_batch()
        context.folder_set = set()
        outcomes = pool.relocate(batch)
        context.record_outcomes(outcomes)


def run_pipeline(config: RunConfig, on_outcome: Optional[OutcomeCallback] = None) -> RunSummary:
    """
    Convenience function to run the pipeline once.

    Args:
        config: Validated run configuration
        on_outcome: Optional per-record callback

    Returns:
        Run summary
    """
    return PipelineCoordinator(config, on_outcome=on_outcome).run()
