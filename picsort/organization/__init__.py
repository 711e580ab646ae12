"""
Organization module for relocating files into date folders.

This module provisions the output folders, moves or copies classified files
with a bounded worker pool, and coordinates whole runs.
"""

from .pipeline import PipelineCoordinator, RunContext, run_pipeline
from .provisioner import FolderProvisioner
from .transfer import copy_file, move_file
from .worker_pool import RelocationWorkerPool, relocate, resolve_worker_count

__all__ = [
    "PipelineCoordinator",
    "RunContext",
    "run_pipeline",
    "FolderProvisioner",
    "copy_file",
    "move_file",
    "RelocationWorkerPool",
    "relocate",
    "resolve_worker_count",
]
