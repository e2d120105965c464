"""Backup snapshots and rollback for managed artifacts.

Before any mutating run, every managed artifact present on disk is copied
verbatim into .precursor/backups/<timestamp>/<relative path>. Snapshots
are never modified after creation; the oldest are pruned beyond
``backup.maxBackups`` and rollback restores the newest one wholesale.

Snapshot directory names are UTC timestamps with microseconds
(``2026-10-16T08-30-00-123456Z``); anything else under the backup root
(such as per-file backups in ``files/``) is not a snapshot. Per-file
backups get the same ``maxBackups`` retention, applied after each run's
writes.
"""

import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path

from ..config import PrecursorConfig
from ..constants import BACKUP_DIR, MANAGED_ARTIFACTS
from ..models import RestoreResult

logger = logging.getLogger(__name__)

SNAPSHOT_FORMAT = "%Y-%m-%dT%H-%M-%S-%fZ"


class BackupError(Exception):
    """Snapshot root could not be created."""


class NoBackupFoundError(Exception):
    """Rollback requested but no snapshot exists."""


def get_backup_root(workspace_root: Path) -> Path:
    """Get the backup root of a workspace."""
    return workspace_root / BACKUP_DIR


def _is_snapshot(path: Path) -> bool:
    if not path.is_dir():
        return False
    try:
        datetime.strptime(path.name, SNAPSHOT_FORMAT)
    except ValueError:
        return False
    return True


def list_snapshots(backup_root: Path) -> list[Path]:
    """List snapshot directories, newest first.

    Ordered by modification time, ties broken by name.
    """
    if not backup_root.is_dir():
        return []
    snapshots = [d for d in backup_root.iterdir() if _is_snapshot(d)]
    return sorted(snapshots, key=lambda d: (d.stat().st_mtime_ns, d.name), reverse=True)


def _copy_path(src: Path, dest: Path) -> None:
    if src.is_dir():
        shutil.copytree(src, dest, dirs_exist_ok=True)
    else:
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dest)


def create_snapshot(workspace_root: Path, config: PrecursorConfig) -> str:
    """Snapshot every managed artifact currently present.

    Individual copy failures are logged and skipped.

    Args:
        workspace_root: Resolved workspace root
        config: Run configuration

    Returns:
        Snapshot id (directory name), or "" if backups are disabled

    Raises:
        BackupError: If the snapshot directory cannot be created
    """
    if not config.backup.enabled:
        logger.debug("Backups disabled; skipping snapshot")
        return ""

    backup_root = get_backup_root(workspace_root)
    snapshot_id = datetime.now(timezone.utc).strftime(SNAPSHOT_FORMAT)
    snapshot_dir = backup_root / snapshot_id
    try:
        snapshot_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise BackupError(f"Cannot create snapshot directory {snapshot_dir}: {e}") from e

    for rel in MANAGED_ARTIFACTS:
        src = workspace_root / rel
        if not src.exists():
            continue
        try:
            _copy_path(src, snapshot_dir / rel)
        except OSError as e:
            logger.warning("Failed to back up %s: %s", rel, e)

    prune_snapshots(backup_root, config.backup.max_backups)
    logger.info("Created backup snapshot %s", snapshot_id)
    return snapshot_id


def prune_snapshots(backup_root: Path, max_backups: int) -> list[str]:
    """Remove snapshots beyond ``max_backups``, oldest first.

    Args:
        backup_root: Backup root directory
        max_backups: Number of newest snapshots to keep

    Returns:
        Ids of deleted snapshots
    """
    snapshots = list_snapshots(backup_root)
    deleted = []
    for old_dir in reversed(snapshots[max_backups:]):
        try:
            shutil.rmtree(old_dir)
        except OSError as e:
            logger.warning("Failed to prune backup %s: %s", old_dir.name, e)
            continue
        deleted.append(old_dir.name)
    return deleted


def prune_file_backups(backup_root: Path, max_backups: int) -> list[str]:
    """Apply ``max_backups`` retention to the writer's per-file backups.

    Entry names start with a sortable timestamp, so the oldest sort first.

    Args:
        backup_root: Backup root directory
        max_backups: Number of newest per-file backups to keep

    Returns:
        Names of deleted entries
    """
    files_root = backup_root / "files"
    if not files_root.is_dir():
        return []
    entries = sorted(d for d in files_root.iterdir() if d.is_dir())
    deleted = []
    for old_dir in entries[: max(len(entries) - max_backups, 0)]:
        try:
            shutil.rmtree(old_dir)
        except OSError as e:
            logger.warning("Failed to prune file backup %s: %s", old_dir.name, e)
            continue
        deleted.append(old_dir.name)
    if deleted:
        logger.debug("Pruned %d per-file backup(s)", len(deleted))
    return deleted


def restore_latest(workspace_root: Path) -> RestoreResult:
    """Restore managed artifacts from the newest snapshot.

    Directories are replaced wholesale; files are overwritten. Artifacts
    absent from the snapshot are left untouched.

    Args:
        workspace_root: Resolved workspace root

    Returns:
        RestoreResult naming the snapshot and restored paths

    Raises:
        NoBackupFoundError: If no snapshot exists
    """
    snapshots = list_snapshots(get_backup_root(workspace_root))
    if not snapshots:
        raise NoBackupFoundError("No backups found")

    latest = snapshots[0]
    restored = []
    for rel in MANAGED_ARTIFACTS:
        src = latest / rel
        if not src.exists():
            continue
        dest = workspace_root / rel
        if src.is_dir():
            if dest.is_dir():
                shutil.rmtree(dest)
            elif dest.exists():
                dest.unlink()
            shutil.copytree(src, dest)
        else:
            if dest.is_dir():
                shutil.rmtree(dest)
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(src, dest)
        restored.append(rel)

    logger.info("Restored %d artifact(s) from %s", len(restored), latest.name)
    return RestoreResult(
        success=True,
        message=f"Restored from backup: {latest.name}",
        snapshot_id=latest.name,
        restored=restored,
    )
