"""Helpers shared by command implementations."""

from pathlib import Path

import typer

from ..config import PrecursorConfig, find_config_file, load_config
from ..core.detector import resolve_workspace_root
from ..models import RunOptions, RunResult
from ..output import get_output_context


def load_workspace(options: RunOptions) -> tuple[PrecursorConfig, Path | None, Path]:
    """Load configuration and resolve the workspace root for a run.

    Returns:
        Tuple of (config, config file used or None, workspace root)

    Raises:
        ConfigError: If the config file is missing, malformed or invalid
    """
    config_file = options.config_path
    if config_file is not None and not config_file.is_absolute():
        config_file = options.cwd / config_file
    if config_file is None:
        config_file = find_config_file(options.cwd)
    config = load_config(options.cwd, config_file)
    return config, config_file, resolve_workspace_root(config, options.cwd)


def config_error_result(error: Exception) -> RunResult:
    """Result for a run that could not load its configuration."""
    return RunResult(success=False, message="Invalid configuration", errors=[str(error)])


def finish(result: RunResult, strict: bool = False) -> None:
    """Render a result and exit non-zero on failure."""
    get_output_context().render(result)
    code = result.exit_code(strict)
    if code:
        raise typer.Exit(code)
