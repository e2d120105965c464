"""Reset command implementation."""

from pathlib import Path

import typer

from ..config import ConfigError
from ..core.state_store import StateStore
from ..models import RunOptions, RunResult
from .common import config_error_result, finish, load_workspace


def reset_workspace(options: RunOptions) -> RunResult:
    """Delete the state cache so the next setup runs in full."""
    try:
        _, _, root = load_workspace(options)
    except ConfigError as e:
        return config_error_result(e)

    store = StateStore(root)
    try:
        removed = store.reset()
    except OSError as e:
        return RunResult(success=False, message="Reset failed", errors=[f"{store.path}: {e}"])
    message = "State cache reset" if removed else "No state cache to reset"
    return RunResult(success=True, message=message, data={"removed": removed})


def reset(
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file (defaults to precursor.json/.jsonc/.yaml/.yml)",
    ),
) -> None:
    """Clear the state cache, forcing a full setup on the next run."""
    finish(reset_workspace(RunOptions(cwd=Path.cwd(), config_path=config)))
