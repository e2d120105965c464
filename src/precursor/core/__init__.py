"""Core configuration reconciliation logic for precursor.

- merge: Deep-merge engine and line-append text policy
- detector: Stack detection and workspace root resolution
- state_store: Hash-based state cache
- backup_manager: Run-level snapshots, pruning and rollback
- writer: Atomic writes, structured merge-and-write, text append
- slash_commands: Custom command definitions for the commands rule
- templates / workflows: Desired artifact content
- secrets: Best-effort secret scanning
- scaffold: The setup orchestrator
"""

from .backup_manager import (
    BackupError,
    NoBackupFoundError,
    create_snapshot,
    list_snapshots,
    prune_file_backups,
    prune_snapshots,
    restore_latest,
)
from .detector import classify_stacks, detect_stacks, resolve_workspace_root
from .merge import ArrayStrategy, deep_merge, merge_text
from .scaffold import Phase, ScaffoldOrchestrator, run_setup
from .secrets import calculate_entropy, scan_secrets, scan_text
from .slash_commands import load_commands
from .state_store import StateStore, compute_file_hash, compute_hash
from .writer import (
    WriteError,
    append_and_write,
    create_if_missing,
    merge_and_write,
    write_atomic,
)

__all__ = [
    "ArrayStrategy",
    "BackupError",
    "NoBackupFoundError",
    "Phase",
    "ScaffoldOrchestrator",
    "StateStore",
    "WriteError",
    "append_and_write",
    "calculate_entropy",
    "classify_stacks",
    "compute_file_hash",
    "compute_hash",
    "create_if_missing",
    "create_snapshot",
    "deep_merge",
    "detect_stacks",
    "list_snapshots",
    "load_commands",
    "merge_and_write",
    "merge_text",
    "prune_file_backups",
    "prune_snapshots",
    "resolve_workspace_root",
    "restore_latest",
    "run_setup",
    "scan_secrets",
    "scan_text",
    "write_atomic",
]
