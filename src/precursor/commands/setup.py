"""Setup command implementation."""

from pathlib import Path

import typer

from ..config import ConfigError
from ..core.scaffold import ToolResolver, run_setup
from ..models import RunOptions, RunResult
from ..services.toolchain import resolve_tool
from .common import config_error_result, finish, load_workspace


def setup_workspace(options: RunOptions, resolver: ToolResolver = resolve_tool) -> RunResult:
    """Load config, resolve the workspace and run the setup sequence."""
    try:
        config, config_file, root = load_workspace(options)
    except ConfigError as e:
        return config_error_result(e)
    return run_setup(config, root, options, resolver, config_file)


def setup(
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Treat warnings and missing critical tools as failures",
    ),
    offline: bool = typer.Option(
        False,
        "--offline",
        help="Skip package-manager probes",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file (defaults to precursor.json/.jsonc/.yaml/.yml)",
    ),
) -> None:
    """Detect stacks and scaffold editor, assistant and CI configuration."""
    options = RunOptions(cwd=Path.cwd(), config_path=config, strict=strict, offline=offline)
    finish(setup_workspace(options), strict)
