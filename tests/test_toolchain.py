"""Tests for read-only tool resolution."""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from precursor.config import PrecursorConfig
from precursor.models import Stack, ToolSource
from precursor.services.toolchain import (
    ToolchainError,
    extract_version,
    is_critical,
    missing_critical,
    resolve_tool,
    tool_ids_for_stacks,
)

RUN = "precursor.services.toolchain.subprocess.run"


def completed(stdout: str = "", returncode: int = 0) -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr="")


class TestExtractVersion:
    """Tests for extract_version function."""

    @pytest.mark.unit
    def test_semver(self) -> None:
        """The first x.y.z is extracted."""
        assert extract_version("ruff 0.6.9\n") == "0.6.9"
        assert extract_version("cargo 1.80.1 (376290515 2024-07-16)") == "1.80.1"

    @pytest.mark.unit
    def test_fallback_first_line(self) -> None:
        """Without a semver the first line is used."""
        assert extract_version("Version: nightly\nmore") == "Version: nightly"

    @pytest.mark.unit
    def test_empty(self) -> None:
        """Empty output gives an empty version."""
        assert extract_version("") == ""


class TestCriticality:
    """Tests for is_critical precedence."""

    @pytest.mark.unit
    def test_default_list(self) -> None:
        """Runtimes are critical by default."""
        config = PrecursorConfig()
        assert is_critical("uv", config)
        assert is_critical("cargo", config)
        assert not is_critical("ruff", config)

    @pytest.mark.unit
    def test_explicit_false_overrides_default(self) -> None:
        """Per-tool config can demote a default-critical tool."""
        config = PrecursorConfig.model_validate({"tools": {"uv": {"critical": False}}})
        assert not is_critical("uv", config)

    @pytest.mark.unit
    def test_explicit_true_promotes(self) -> None:
        """Per-tool config can promote any tool."""
        config = PrecursorConfig.model_validate({"tools": {"ruff": {"critical": True}}})
        assert is_critical("ruff", config)

    @pytest.mark.unit
    def test_unset_defers_to_default(self) -> None:
        """A tool entry without 'critical' keeps the default."""
        config = PrecursorConfig.model_validate({"tools": {"bun": {"version": "1.1.0"}}})
        assert is_critical("bun", config)


class TestToolIds:
    """Tests for tool_ids_for_stacks function."""

    @pytest.mark.unit
    def test_in_order_without_duplicates(self) -> None:
        """Ids follow stack order and are de-duplicated."""
        ids = tool_ids_for_stacks([Stack.PYTHON, Stack.RUST], PrecursorConfig())
        assert ids == ["uv", "ruff", "pyright", "cargo", "clippy", "rustfmt"]

    @pytest.mark.unit
    def test_disabled_stack_skipped(self) -> None:
        """Disabled stacks contribute no tools."""
        config = PrecursorConfig.model_validate({"rust": {"enabled": False}})
        assert tool_ids_for_stacks([Stack.RUST], config) == []


class TestResolveTool:
    """Tests for resolve_tool function."""

    @pytest.mark.unit
    def test_found_on_path(self, tmp_path: Path) -> None:
        """A successful version probe resolves from the system."""
        with patch(RUN, return_value=completed("ruff 0.6.9\n")) as mock_run:
            result = resolve_tool("ruff", PrecursorConfig(), tmp_path)
        assert result.found
        assert result.version == "0.6.9"
        assert result.source is ToolSource.SYSTEM
        assert mock_run.call_args.args[0] == ["ruff", "--version"]

    @pytest.mark.unit
    def test_clippy_probe_goes_through_cargo(self, tmp_path: Path) -> None:
        """Clippy is probed via cargo."""
        with patch(RUN, return_value=completed("clippy 0.1.80\n")) as mock_run:
            resolve_tool("clippy", PrecursorConfig(), tmp_path)
        assert mock_run.call_args.args[0] == ["cargo", "clippy", "--version"]

    @pytest.mark.unit
    def test_not_found_carries_criticality(self, tmp_path: Path) -> None:
        """Missing tools report criticality from config."""
        with patch(RUN, side_effect=FileNotFoundError()):
            result = resolve_tool("uv", PrecursorConfig(), tmp_path, offline=True)
        assert not result.found
        assert result.critical
        assert result.error == "not found in PATH"

    @pytest.mark.unit
    def test_timeout_is_not_found(self, tmp_path: Path) -> None:
        """A hanging probe is treated as not found."""
        with patch(RUN, side_effect=subprocess.TimeoutExpired(cmd="bun", timeout=5)):
            result = resolve_tool("bun", PrecursorConfig(), tmp_path, offline=True)
        assert not result.found
        assert "timed out" in (result.error or "")

    @pytest.mark.unit
    def test_failing_probe_is_not_found(self, tmp_path: Path) -> None:
        """A non-zero exit is not found."""
        with patch(RUN, return_value=completed(returncode=1)):
            result = resolve_tool("ruff", PrecursorConfig(), tmp_path, offline=True)
        assert not result.found

    @pytest.mark.unit
    def test_portable_cache_newest_version(self, tmp_path: Path) -> None:
        """The newest portable version is used when PATH has nothing."""
        for version in ("0.4.2", "0.10.0"):
            binary = tmp_path / ".precursor" / "bin" / "uv" / version / "uv"
            binary.parent.mkdir(parents=True)
            binary.write_text("")
        with (
            patch(RUN, side_effect=FileNotFoundError()),
            patch("precursor.services.toolchain.sys.platform", "linux"),
        ):
            result = resolve_tool("uv", PrecursorConfig(), tmp_path, offline=True)
        assert result.found
        assert result.source is ToolSource.PORTABLE
        assert result.version == "0.10.0"

    @pytest.mark.unit
    def test_portable_pinned_version(self, tmp_path: Path) -> None:
        """A configured version selects that portable directory."""
        for version in ("0.4.2", "0.10.0"):
            binary = tmp_path / ".precursor" / "bin" / "uv" / version / "uv"
            binary.parent.mkdir(parents=True)
            binary.write_text("")
        config = PrecursorConfig.model_validate({"tools": {"uv": {"version": "0.4.2"}}})
        with (
            patch(RUN, side_effect=FileNotFoundError()),
            patch("precursor.services.toolchain.sys.platform", "linux"),
        ):
            result = resolve_tool("uv", config, tmp_path, offline=True)
        assert result.version == "0.4.2"

    @pytest.mark.unit
    def test_install_source_portable_skips_path(self, tmp_path: Path) -> None:
        """installSource=portable never probes PATH."""
        config = PrecursorConfig.model_validate({"tools": {"uv": {"installSource": "portable"}}})
        with patch(RUN) as mock_run:
            result = resolve_tool("uv", config, tmp_path)
        mock_run.assert_not_called()
        assert not result.found

    @pytest.mark.unit
    def test_disabled_tool(self, tmp_path: Path) -> None:
        """Disabled tools are not probed and never critical."""
        config = PrecursorConfig.model_validate({"tools": {"uv": {"enabled": False}}})
        with patch(RUN) as mock_run:
            result = resolve_tool("uv", config, tmp_path)
        mock_run.assert_not_called()
        assert not result.found
        assert not result.critical


class TestMissingCritical:
    """Tests for missing_critical and ToolchainError."""

    @pytest.mark.unit
    def test_lists_only_missing_critical(self, tmp_path: Path) -> None:
        """Only critical tools that were not found are listed."""
        with patch(RUN, side_effect=FileNotFoundError()):
            results = {
                tool_id: resolve_tool(tool_id, PrecursorConfig(), tmp_path, offline=True)
                for tool_id in ("uv", "ruff")
            }
        assert missing_critical(results) == ["uv"]

    @pytest.mark.unit
    def test_error_names_tools(self) -> None:
        """The error message names every missing tool."""
        error = ToolchainError(["uv", "bun"])
        assert error.missing == ["uv", "bun"]
        assert "uv, bun" in str(error)
