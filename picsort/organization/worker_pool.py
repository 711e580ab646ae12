"""
Relocation worker pool.

Relocates classified records by copy or move, either one at a time on the
calling thread or with a bounded pool of worker threads draining a queue.
A failing record is logged and reported; it never stops its siblings.
"""

import logging
import os
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Set

from ..core.errors import DestinationExistsError
from ..core.types import (
    ConcurrencyMode,
    ConflictPolicy,
    FileRecord,
    OutcomeStatus,
    RelocationOutcome,
    TransferMode,
)
from ..shared.media_utils import available_parallelism
from .transfer import copy_file, move_file

logger = logging.getLogger(__name__)

# Upper bound on workers; more threads only contend for the same disk
MAX_WORKERS = 32

# Default cap on concurrently open transfers, as a multiple of workers
INFLIGHT_PER_WORKER = 2

_SENTINEL = None

OutcomeCallback = Callable[[RelocationOutcome], None]


def resolve_worker_count(requested: Optional[int], record_count: int) -> int:
    """
    Get the number of workers for a batch.

    Args:
        requested: Requested workers (None for host parallelism)
        record_count: Records waiting to be relocated

    Returns:
        Worker count, at least 1, capped at MAX_WORKERS and record_count
    """
    workers = requested or available_parallelism()
    return max(1, min(workers, MAX_WORKERS, record_count))


class RelocationWorkerPool:
    """Copy or move records into their date folders."""

    def __init__(
        self,
        transfer_mode: TransferMode = TransferMode.MOVE,
        concurrency_mode: ConcurrencyMode = ConcurrencyMode.SEQUENTIAL,
        worker_count: Optional[int] = None,
        max_inflight: Optional[int] = None,
        conflict_policy: ConflictPolicy = ConflictPolicy.ERROR,
        dry_run: bool = False,
        on_outcome: Optional[OutcomeCallback] = None,
    ):
        """
        Initialize the pool.

        Args:
            transfer_mode: Copy (keep source) or move
            concurrency_mode: Sequential or parallel
            worker_count: Workers in parallel mode (None for host parallelism)
            max_inflight: Cap on concurrently open transfers
                (None for INFLIGHT_PER_WORKER x workers)
            conflict_policy: What to do when a destination exists
            dry_run: Report planned relocations without touching files
            on_outcome: Called after each record, possibly from worker threads
        """
        self.transfer_mode = TransferMode(transfer_mode)
        self.concurrency_mode = ConcurrencyMode(concurrency_mode)
        self.worker_count = worker_count
        self.max_inflight = max_inflight
        self.conflict_policy = ConflictPolicy(conflict_policy)
        self.dry_run = dry_run
        self.on_outcome = on_outcome

        self._lock = threading.Lock()
        self._claimed: Set[Path] = set()
        self._inflight: Optional[threading.BoundedSemaphore] = None
        self.last_worker_count = 0

    def relocate(self, records: Sequence[FileRecord]) -> List[RelocationOutcome]:
        """
        Relocate a batch of records.

        Args:
            records: Records to relocate

        Returns:
            One outcome per record. Scan order in sequential mode;
            completion order in parallel mode.
        """
        if not records:
            return []

        self._claimed = set()
        if self.concurrency_mode == ConcurrencyMode.PARALLEL:
            workers = resolve_worker_count(self.worker_count, len(records))
        else:
            workers = 1
        self.last_worker_count = workers
        self._inflight = threading.BoundedSemaphore(
            self.max_inflight or workers * INFLIGHT_PER_WORKER
        )

        try:
            if workers == 1:
                return [self._relocate_one(record) for record in records]
            return self._relocate_parallel(records, workers)
        finally:
            self._claimed = set()

    def _relocate_parallel(
        self, records: Sequence[FileRecord], workers: int
    ) -> List[RelocationOutcome]:
        """Drain records through a bounded queue with a pool of workers."""
        logger.info(f"Using {workers} workers for {len(records)} files")

        outcomes: List[RelocationOutcome] = []
        work: "queue.Queue[Optional[FileRecord]]" = queue.Queue(maxsize=workers * 2)

        def drain() -> None:
            while True:
                record = work.get()
                try:
                    if record is _SENTINEL:
                        return
                    outcome = self._relocate_one(record)
                    with self._lock:
                        outcomes.append(outcome)
                finally:
                    work.task_done()

        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="relocate"
        ) as executor:
            futures = [executor.submit(drain) for _ in range(workers)]

            # put() blocks while the queue is full
            for record in records:
                work.put(record)
            for _ in range(workers):
                work.put(_SENTINEL)

        for future in futures:
            future.result()

        return outcomes

    def _claim(self, destination: Path) -> bool:
        """Reserve a destination for this batch. False if already taken."""
        with self._lock:
            if destination in self._claimed:
                return False
            self._claimed.add(destination)
            return True

    def _relocate_one(self, record: FileRecord) -> RelocationOutcome:
        """Relocate one record, turning any error into a failed outcome."""
        source = record.source_path
        destination = record.destination_path
        verb = self.transfer_mode.value

        overwrite = self.conflict_policy == ConflictPolicy.OVERWRITE

        try:
            if not overwrite and not self._claim(destination):
                raise DestinationExistsError(
                    f"Another file in this run targets {destination}"
                )

            if self.dry_run:
                if not overwrite and os.path.lexists(destination):
                    raise DestinationExistsError(f"Destination exists: {destination}")
                logger.info(f"[DRY RUN] Would {verb} {source} → {destination}")
                return self._report(record, OutcomeStatus.PLANNED)

            with self._inflight:
                if self.transfer_mode == TransferMode.COPY:
                    size = copy_file(source, destination, overwrite=overwrite)
                else:
                    size = move_file(source, destination, overwrite=overwrite)

            logger.debug(f"{verb} {source} → {destination}")
            return self._report(
                record, OutcomeStatus.RELOCATED, bytes_transferred=size
            )

        except DestinationExistsError as e:
            if self.conflict_policy == ConflictPolicy.SKIP:
                logger.info(f"Skipping {source}: {e}")
                return self._report(record, OutcomeStatus.SKIPPED, error=str(e))
            logger.error(f"Error {verb} file {source}: {e}")
            return self._report(record, OutcomeStatus.FAILED, error=str(e))

        except Exception as e:
            logger.error(f"Error {verb} file {source}: {e}")
            return self._report(record, OutcomeStatus.FAILED, error=str(e))

    def _report(
        self,
        record: FileRecord,
        status: OutcomeStatus,
        bytes_transferred: int = 0,
        error: Optional[str] = None,
    ) -> RelocationOutcome:
        outcome = RelocationOutcome(
            record=record,
            status=status,
            bytes_transferred=bytes_transferred,
            error=error,
        )
        if self.on_outcome:
            try:
                self.on_outcome(outcome)
            except Exception as e:
                logger.warning(f"Outcome callback failed for {record.source_path}: {e}")
        return outcome


def relocate(
    records: Sequence[FileRecord],
    transfer_mode: TransferMode = TransferMode.MOVE,
    concurrency_mode: ConcurrencyMode = ConcurrencyMode.SEQUENTIAL,
    worker_count: Optional[int] = None,
    **options,
) -> List[RelocationOutcome]:
    """
    Convenience function to relocate records with a one-off pool.

    Args:
        records: Records to relocate
        transfer_mode: Copy or move
        concurrency_mode: Sequential or parallel
        worker_count: Workers in parallel mode
        **options: Further RelocationWorkerPool options

    Returns:
        Per-record outcomes
    """
    pool = RelocationWorkerPool(
        transfer_mode=transfer_mode,
        concurrency_mode=concurrency_mode,
        worker_count=worker_count,
        **options,
    )
    return pool.relocate(records)
