"""Read-only tool resolution.

Tools are looked up on PATH first, then through the platform package
manager (skipped offline), then in the project's portable cache under
.precursor/bin/<tool>/<version>/. Nothing is ever installed.
"""

import logging
import re
import subprocess
import sys
from collections.abc import Iterable
from pathlib import Path

from ..config import PrecursorConfig
from ..constants import PACKAGE_MANAGER_TIMEOUT, PORTABLE_BIN_DIR, TOOL_CHECK_TIMEOUT
from ..models import Stack, ToolResult, ToolSource

logger = logging.getLogger(__name__)

DEFAULT_CRITICAL_TOOLS = frozenset({"uv", "bun", "cargo", "rustc", "python"})

# Tools whose version probe is not `<tool> --version`
_VERSION_COMMANDS: dict[str, list[str]] = {
    "clippy": ["cargo", "clippy", "--version"],
}

_SEMVER = re.compile(r"(\d+\.\d+\.\d+)")


class ToolchainError(Exception):
    """Critical tools are missing and the run requires them."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"Critical tool(s) not found: {', '.join(missing)}")


def extract_version(output: str) -> str:
    """Extract a semantic version from probe output, else its first line."""
    match = _SEMVER.search(output)
    if match:
        return match.group(1)
    lines = output.strip().splitlines()
    return lines[0].strip() if lines else ""


def is_critical(tool_id: str, config: PrecursorConfig) -> bool:
    """Whether a missing tool should block strict runs.

    An explicit ``tools.<id>.critical`` always overrides the default list.
    """
    tool_config = config.tool_config(tool_id)
    if tool_config is not None and tool_config.critical is not None:
        return tool_config.critical
    return tool_id in DEFAULT_CRITICAL_TOOLS


def tool_ids_for_stacks(stacks: Iterable[Stack], config: PrecursorConfig) -> list[str]:
    """Tool ids required by the given stacks, de-duplicated in order."""
    ids: list[str] = []
    for stack in stacks:
        section = config.stack_config(stack)
        if not section.enabled:
            continue
        for tool_id in section.tool_ids():
            if tool_id not in ids:
                ids.append(tool_id)
    return ids


def _binary_name(tool_id: str) -> str:
    return f"{tool_id}.exe" if sys.platform == "win32" else tool_id


def _version_key(name: str) -> tuple[tuple[int, ...], str]:
    numbers = tuple(int(part) for part in re.findall(r"\d+", name))
    return numbers, name


def _check_system_path(tool_id: str) -> ToolResult:
    cmd = _VERSION_COMMANDS.get(tool_id, [tool_id, "--version"])
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=TOOL_CHECK_TIMEOUT)
    except FileNotFoundError:
        return ToolResult(found=False, error="not found in PATH")
    except subprocess.TimeoutExpired:
        return ToolResult(found=False, error=f"version probe timed out after {TOOL_CHECK_TIMEOUT}s")
    except OSError as e:
        return ToolResult(found=False, error=str(e))

    if result.returncode != 0:
        return ToolResult(found=False, error=result.stderr.strip()[:200] or "probe failed")
    return ToolResult(
        found=True,
        version=extract_version(result.stdout or result.stderr),
        path="PATH",
        source=ToolSource.SYSTEM,
    )


def _check_package_manager(tool_id: str) -> ToolResult:
    if sys.platform != "win32":
        return ToolResult(found=False)
    try:
        result = subprocess.run(
            ["winget", "list", "--id", tool_id],
            capture_output=True,
            text=True,
            timeout=PACKAGE_MANAGER_TIMEOUT,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("winget probe for %s failed: %s", tool_id, e)
        return ToolResult(found=False)
    if result.returncode == 0 and tool_id in result.stdout:
        return ToolResult(found=True, path="winget", source=ToolSource.PACKAGE_MANAGER)
    return ToolResult(found=False)


def _check_portable(tool_id: str, workspace_root: Path, version: str | None) -> ToolResult:
    tool_dir = workspace_root / PORTABLE_BIN_DIR / tool_id
    if not tool_dir.is_dir():
        return ToolResult(found=False)
    try:
        versions = [d.name for d in tool_dir.iterdir() if d.is_dir()]
    except OSError as e:
        logger.debug("Cannot list portable cache %s: %s", tool_dir, e)
        return ToolResult(found=False)

    if version is not None:
        versions = [v for v in versions if v == version]
    for candidate in sorted(versions, key=_version_key, reverse=True):
        binary = tool_dir / candidate / _binary_name(tool_id)
        if binary.is_file():
            return ToolResult(
                found=True, version=candidate, path=str(binary), source=ToolSource.PORTABLE
            )
    return ToolResult(found=False)


def resolve_tool(
    tool_id: str,
    config: PrecursorConfig,
    workspace_root: Path,
    offline: bool = False,
) -> ToolResult:
    """Resolve an external tool without installing anything.

    Args:
        tool_id: Tool identifier (also its executable name)
        config: Run configuration
        workspace_root: Resolved workspace root (portable cache location)
        offline: Skip package-manager probes

    Returns:
        ToolResult with ``critical`` set from configuration
    """
    critical = is_critical(tool_id, config)
    tool_config = config.tool_config(tool_id)
    if tool_config is not None and not tool_config.enabled:
        return ToolResult(found=False, critical=False, error="disabled in config")

    source = tool_config.install_source if tool_config is not None else "auto"
    pinned = tool_config.version if tool_config is not None else None

    result = ToolResult(found=False)
    if source in ("auto", "system"):
        result = _check_system_path(tool_id)
    if not result.found and not offline and source in ("auto", "package-manager"):
        managed = _check_package_manager(tool_id)
        if managed.found:
            result = managed
    if not result.found and source in ("auto", "portable"):
        portable = _check_portable(tool_id, workspace_root, pinned)
        if portable.found:
            result = portable

    logger.debug("Resolved %s: found=%s source=%s", tool_id, result.found, result.source)
    return result.model_copy(update={"critical": critical})


def missing_critical(results: dict[str, ToolResult]) -> list[str]:
    """Ids of critical tools that were not found."""
    return [tool_id for tool_id, result in results.items() if result.critical and not result.found]
