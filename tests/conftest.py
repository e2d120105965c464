"""Shared test fixtures for precursor tests."""

import os
import subprocess
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from precursor.config import PrecursorConfig
from precursor.models import ToolResult, ToolSource
from precursor.services.toolchain import is_critical

Resolver = Callable[[str, PrecursorConfig, Path, bool], ToolResult]


@pytest.fixture
def runner() -> CliRunner:
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_git_repo(tmp_path: Path) -> Generator[Path, None, None]:
    """Create a temporary git repository.

    Changes cwd to the repo directory for the duration of the test.
    """
    subprocess.run(["git", "init"], cwd=tmp_path, check=True, capture_output=True)

    original_cwd = os.getcwd()
    os.chdir(tmp_path)
    try:
        yield tmp_path
    finally:
        os.chdir(original_cwd)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create an empty workspace directory."""
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def rust_workspace(workspace: Path) -> Path:
    """Workspace containing only a Cargo.toml."""
    (workspace / "Cargo.toml").write_text('[package]\nname = "demo"\nversion = "0.1.0"\n')
    return workspace


@pytest.fixture
def subproject_cwd(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Workspace pinned as its own root and used as cwd (no git lookup)."""
    (workspace / "precursor.json").write_text('{"workspace": {"mode": "subproject"}}\n')
    monkeypatch.chdir(workspace)
    return workspace


@pytest.fixture
def found_resolver() -> Resolver:
    """Tool resolver that finds every tool on PATH."""

    def resolve(tool_id: str, config: PrecursorConfig, root: Path, offline: bool) -> ToolResult:
        return ToolResult(
            found=True,
            version="1.0.0",
            path="PATH",
            source=ToolSource.SYSTEM,
            critical=is_critical(tool_id, config),
        )

    return resolve


@pytest.fixture
def missing_resolver() -> Resolver:
    """Tool resolver that finds nothing."""

    def resolve(tool_id: str, config: PrecursorConfig, root: Path, offline: bool) -> ToolResult:
        return ToolResult(
            found=False, critical=is_critical(tool_id, config), error="not found in PATH"
        )

    return resolve
