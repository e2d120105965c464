"""Scan (doctor) command implementation."""

from pathlib import Path

import typer

from ..config import ConfigError
from ..core.scaffold import ToolResolver
from ..models import RunOptions, RunResult
from ..services.doctor import run_doctor
from ..services.toolchain import resolve_tool
from .common import config_error_result, finish, load_workspace


def scan_workspace(options: RunOptions, resolver: ToolResolver = resolve_tool) -> RunResult:
    """Build a read-only health report of the workspace.

    Recommendations are reported as warnings, so strict mode fails on them;
    ``strict.requireAllChecks`` also fails a scan that skipped checks.
    """
    try:
        config, config_file, root = load_workspace(options)
    except ConfigError as e:
        return config_error_result(e)

    report = run_doctor(config, root, options.offline, resolver, config_file)
    strict = options.strict or config.strict.fail_on_warnings
    warnings = list(report.recommendations)
    incomplete = config.strict.require_all_checks and bool(report.skipped)
    if incomplete:
        warnings.extend(f"Skipped: {item}" for item in report.skipped)

    failed = incomplete or (strict and bool(warnings))
    return RunResult(
        success=not failed,
        message="Scan found issues (strict mode)" if failed else "Scan completed",
        data=report.model_dump(mode="json"),
        warnings=warnings,
    )


def scan(
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Fail if the scan produces any recommendation",
    ),
    offline: bool = typer.Option(
        False,
        "--offline",
        help="Skip tool checks",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file (defaults to precursor.json/.jsonc/.yaml/.yml)",
    ),
) -> None:
    """Report stacks, tools, artifact health and drift without writing."""
    options = RunOptions(cwd=Path.cwd(), config_path=config, strict=strict, offline=offline)
    finish(scan_workspace(options), strict)
