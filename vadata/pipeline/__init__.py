"""Batch processing: orchestration over a folder and the filesystem around it."""
from .orchestrator import BatchOrchestrator, BatchReport, FileOutcome
from .storage import ResultStore, quarantine, read_name_list, requeue_failed, save_snapshot

__all__ = [
    "BatchOrchestrator",
    "BatchReport",
    "FileOutcome",
    "ResultStore",
    "quarantine",
    "read_name_list",
    "requeue_failed",
    "save_snapshot",
]
