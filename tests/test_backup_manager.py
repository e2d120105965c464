"""Tests for backup snapshots, pruning and rollback."""

import os
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from precursor.config import PrecursorConfig
from precursor.core.backup_manager import (
    SNAPSHOT_FORMAT,
    BackupError,
    NoBackupFoundError,
    create_snapshot,
    get_backup_root,
    list_snapshots,
    prune_file_backups,
    prune_snapshots,
    restore_latest,
)


def make_snapshot_dir(backup_root: Path, age_seconds: int) -> Path:
    """Create an empty snapshot directory with a controlled mtime."""
    when = datetime(2020, 1, 1) + timedelta(seconds=1000 - age_seconds)
    path = backup_root / when.strftime(SNAPSHOT_FORMAT)
    path.mkdir(parents=True)
    stamp = when.timestamp()
    os.utime(path, (stamp, stamp))
    return path


class TestCreateSnapshot:
    """Tests for create_snapshot function."""

    @pytest.mark.unit
    def test_copies_present_artifacts(self, tmp_path: Path) -> None:
        """Files and directories are copied verbatim."""
        (tmp_path / ".vscode").mkdir()
        (tmp_path / ".vscode" / "settings.json").write_text('{"a": 1}')
        (tmp_path / ".cursor" / "rules").mkdir(parents=True)
        (tmp_path / ".cursor" / "rules" / "python.mdc").write_text("rule")
        (tmp_path / ".gitignore").write_text("x\n")

        snapshot_id = create_snapshot(tmp_path, PrecursorConfig())

        snapshot = get_backup_root(tmp_path) / snapshot_id
        assert (snapshot / ".vscode" / "settings.json").read_text() == '{"a": 1}'
        assert (snapshot / ".cursor" / "rules" / "python.mdc").read_text() == "rule"
        assert (snapshot / ".gitignore").read_text() == "x\n"
        assert not (snapshot / ".cursorignore").exists()

    @pytest.mark.unit
    def test_id_is_parsable_timestamp(self, tmp_path: Path) -> None:
        """Snapshot ids parse with the snapshot format."""
        snapshot_id = create_snapshot(tmp_path, PrecursorConfig())
        datetime.strptime(snapshot_id, SNAPSHOT_FORMAT)

    @pytest.mark.unit
    def test_disabled_is_noop(self, tmp_path: Path) -> None:
        """Disabled backups return an empty id and write nothing."""
        config = PrecursorConfig.model_validate({"backup": {"enabled": False}})
        assert create_snapshot(tmp_path, config) == ""
        assert not get_backup_root(tmp_path).exists()

    @pytest.mark.unit
    def test_root_creation_failure_raises(self, tmp_path: Path) -> None:
        """A backup root that cannot be created is fatal."""
        (tmp_path / ".precursor").write_text("not a directory")
        with pytest.raises(BackupError):
            create_snapshot(tmp_path, PrecursorConfig())

    @pytest.mark.unit
    def test_prunes_after_snapshot(self, tmp_path: Path) -> None:
        """Old snapshots beyond maxBackups are removed."""
        backup_root = get_backup_root(tmp_path)
        for age in (30, 20, 10):
            make_snapshot_dir(backup_root, age)
        config = PrecursorConfig.model_validate({"backup": {"maxBackups": 2}})

        snapshot_id = create_snapshot(tmp_path, config)

        names = [p.name for p in list_snapshots(backup_root)]
        assert len(names) == 2
        assert snapshot_id in names


class TestListAndPrune:
    """Tests for list_snapshots and prune_snapshots."""

    @pytest.mark.unit
    def test_newest_first(self, tmp_path: Path) -> None:
        """Snapshots are ordered by modification time, newest first."""
        old = make_snapshot_dir(tmp_path, 30)
        new = make_snapshot_dir(tmp_path, 10)
        assert list_snapshots(tmp_path) == [new, old]

    @pytest.mark.unit
    def test_ignores_non_snapshot_entries(self, tmp_path: Path) -> None:
        """Per-file backups and stray files are not snapshots."""
        snapshot = make_snapshot_dir(tmp_path, 10)
        (tmp_path / "files" / "20260101T000000-000000-abc123").mkdir(parents=True)
        (tmp_path / "notes.txt").write_text("")
        assert list_snapshots(tmp_path) == [snapshot]

    @pytest.mark.unit
    def test_missing_root(self, tmp_path: Path) -> None:
        """No backup root means no snapshots."""
        assert list_snapshots(tmp_path / "missing") == []

    @pytest.mark.unit
    def test_prune_deletes_oldest_first(self, tmp_path: Path) -> None:
        """Only the newest max_backups survive."""
        oldest = make_snapshot_dir(tmp_path, 40)
        older = make_snapshot_dir(tmp_path, 30)
        newer = make_snapshot_dir(tmp_path, 20)
        newest = make_snapshot_dir(tmp_path, 10)

        deleted = prune_snapshots(tmp_path, 2)

        assert deleted == [oldest.name, older.name]
        assert list_snapshots(tmp_path) == [newest, newer]

    @pytest.mark.unit
    def test_prune_under_limit(self, tmp_path: Path) -> None:
        """Nothing is deleted below the limit."""
        make_snapshot_dir(tmp_path, 10)
        assert prune_snapshots(tmp_path, 10) == []


class TestPruneFileBackups:
    """Tests for prune_file_backups function."""

    @pytest.mark.unit
    def test_keeps_newest_entries(self, tmp_path: Path) -> None:
        """Only the newest max_backups per-file backups survive."""
        names = [
            "20260101T000000-000001-aaaaaa",
            "20260101T000000-000002-bbbbbb",
            "20260102T000000-000000-cccccc",
            "20260103T000000-000000-dddddd",
        ]
        for name in names:
            (tmp_path / "files" / name).mkdir(parents=True)
            (tmp_path / "files" / name / ".gitignore").write_text(name)

        deleted = prune_file_backups(tmp_path, 2)

        assert deleted == names[:2]
        assert sorted(p.name for p in (tmp_path / "files").iterdir()) == names[2:]

    @pytest.mark.unit
    def test_snapshots_untouched(self, tmp_path: Path) -> None:
        """Run-level snapshots are not counted or removed."""
        snapshot = make_snapshot_dir(tmp_path, 10)
        (tmp_path / "files" / "20260101T000000-000000-abc123").mkdir(parents=True)

        assert prune_file_backups(tmp_path, 1) == []
        assert list_snapshots(tmp_path) == [snapshot]

    @pytest.mark.unit
    def test_missing_files_dir(self, tmp_path: Path) -> None:
        """No per-file backups means nothing to prune."""
        assert prune_file_backups(tmp_path, 1) == []


class TestRestoreLatest:
    """Tests for restore_latest function."""

    @pytest.mark.unit
    def test_round_trip(self, tmp_path: Path) -> None:
        """Snapshot, mutate, restore yields the original content."""
        settings = tmp_path / ".vscode" / "settings.json"
        settings.parent.mkdir()
        settings.write_text('{"original": true}')
        create_snapshot(tmp_path, PrecursorConfig())

        settings.write_text('{"mutated": true}')
        result = restore_latest(tmp_path)

        assert result.success
        assert settings.read_text() == '{"original": true}'
        assert result.restored == [".vscode/settings.json"]

    @pytest.mark.unit
    def test_directories_replaced_wholesale(self, tmp_path: Path) -> None:
        """Restored directories lose files added after the snapshot."""
        rules = tmp_path / ".cursor" / "rules"
        rules.mkdir(parents=True)
        (rules / "python.mdc").write_text("v1")
        create_snapshot(tmp_path, PrecursorConfig())

        (rules / "python.mdc").write_text("v2")
        (rules / "rust.mdc").write_text("added")
        restore_latest(tmp_path)

        assert sorted(p.name for p in rules.iterdir()) == ["python.mdc"]
        assert (rules / "python.mdc").read_text() == "v1"

    @pytest.mark.unit
    def test_absent_artifacts_untouched(self, tmp_path: Path) -> None:
        """Artifacts created after the snapshot are left alone."""
        create_snapshot(tmp_path, PrecursorConfig())
        (tmp_path / ".gitignore").write_text("new\n")

        result = restore_latest(tmp_path)

        assert result.restored == []
        assert (tmp_path / ".gitignore").read_text() == "new\n"

    @pytest.mark.unit
    def test_uses_newest_snapshot(self, tmp_path: Path) -> None:
        """The most recent snapshot is restored."""
        backup_root = get_backup_root(tmp_path)
        old = make_snapshot_dir(backup_root, 30)
        (old / ".gitignore").write_text("old\n")
        new = make_snapshot_dir(backup_root, 10)
        (new / ".gitignore").write_text("new\n")
        base = datetime(2020, 1, 1).timestamp()
        os.utime(old, (base + 970, base + 970))
        os.utime(new, (base + 990, base + 990))

        result = restore_latest(tmp_path)

        assert result.snapshot_id == new.name
        assert (tmp_path / ".gitignore").read_text() == "new\n"

    @pytest.mark.unit
    def test_no_backup_found(self, tmp_path: Path) -> None:
        """Zero snapshots is a distinct condition."""
        with pytest.raises(NoBackupFoundError):
            restore_latest(tmp_path)
