"""Rollback command implementation."""

import logging
from pathlib import Path

import typer

from ..config import ConfigError
from ..core.backup_manager import NoBackupFoundError, restore_latest
from ..models import RunOptions, RunResult
from .common import config_error_result, finish, load_workspace

logger = logging.getLogger(__name__)


def rollback_workspace(options: RunOptions) -> RunResult:
    """Restore managed artifacts from the newest backup snapshot."""
    try:
        _, _, root = load_workspace(options)
    except ConfigError as e:
        return config_error_result(e)

    try:
        restored = restore_latest(root)
    except NoBackupFoundError as e:
        return RunResult(success=False, message=str(e), data={"reason": "no_backup_found"})
    except OSError as e:
        logger.error("Rollback failed: %s", e)
        return RunResult(
            success=False,
            message="Rollback failed",
            data={"reason": "restore_failed"},
            errors=[f"{e.filename or root}: {e.strerror or e}"],
        )
    return RunResult(
        success=restored.success,
        message=restored.message,
        data=restored.model_dump(mode="json", by_alias=True),
    )


def rollback(
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file (defaults to precursor.json/.jsonc/.yaml/.yml)",
    ),
) -> None:
    """Restore managed files from the most recent backup snapshot."""
    finish(rollback_workspace(RunOptions(cwd=Path.cwd(), config_path=config)))
