"""Core sync functionality."""

from .client import GitHubClient, RawContentClient
from .deadline import Deadline
from .operations import add_files, init_config
from .patcher import GitPatchApplier, PatchApplier
from .pipeline import EntryResult, EntryState, SyncOptions, SyncPipeline, run_sync
from .writer import write_atomic

__all__ = [
    "Deadline",
    "EntryResult",
    "EntryState",
    "GitHubClient",
    "GitPatchApplier",
    "PatchApplier",
    "RawContentClient",
    "SyncOptions",
    "SyncPipeline",
    "add_files",
    "init_config",
    "run_sync",
    "write_atomic",
]
