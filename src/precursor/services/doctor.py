"""Read-only workspace health report (``precursor scan``)."""

import logging
from pathlib import Path

from ..config import PrecursorConfig
from ..constants import TRACKED_INPUTS
from ..core.detector import detect_stacks
from ..core.scaffold import ToolResolver
from ..core.slash_commands import command_files
from ..core.state_store import StateStore
from ..core.writer import StructuredFileError, load_structured
from ..models import ArtifactDiagnostic, DoctorReport, Stack, ToolDiagnostic, sort_stacks
from .toolchain import resolve_tool, tool_ids_for_stacks

logger = logging.getLogger(__name__)


def expected_structured_artifacts(stacks: list[Stack], config: PrecursorConfig) -> list[str]:
    """Structured artifacts a setup run would produce for these stacks."""
    paths = [".vscode/settings.json", ".vscode/extensions.json"]
    if config.mcp.enabled:
        paths.append(".cursor/mcp.json")
    if config.ci.enabled:
        paths.extend(
            f".github/workflows/{stack.value}.yml"
            for stack in stacks
            if config.ci.workflow(stack).enabled
        )
        paths.append(".github/workflows/precursor.yml")
    return paths


def check_artifact(workspace_root: Path, rel: str) -> ArtifactDiagnostic:
    """Check that a structured artifact exists and parses."""
    try:
        data = load_structured(workspace_root / rel)
    except StructuredFileError as e:
        return ArtifactDiagnostic(file=rel, exists=True, valid=False, issues=[str(e)])
    except OSError as e:
        return ArtifactDiagnostic(file=rel, exists=True, valid=False, issues=[f"unreadable: {e}"])
    if data is None:
        return ArtifactDiagnostic(file=rel, exists=False, valid=False, issues=["missing"])
    return ArtifactDiagnostic(file=rel, exists=True, valid=True)


def run_doctor(
    config: PrecursorConfig,
    workspace_root: Path,
    offline: bool = False,
    resolver: ToolResolver = resolve_tool,
    config_file: Path | None = None,
) -> DoctorReport:
    """Build a health report without touching the workspace.

    Args:
        config: Loaded configuration
        workspace_root: Resolved workspace root
        offline: Skip tool probes
        resolver: Tool resolver
        config_file: Config file the run was loaded from, if any

    Returns:
        DoctorReport with stacks, tools, artifacts, drift and recommendations
    """
    stacks = sort_stacks(detect_stacks(workspace_root, config))
    report = DoctorReport(workspace_root=str(workspace_root), stacks=stacks)

    for tool_id in tool_ids_for_stacks(stacks, config):
        if offline:
            report.skipped.append(f"Tool check: {tool_id} (offline mode)")
            continue
        result = resolver(tool_id, config, workspace_root, offline)
        report.tools[tool_id] = ToolDiagnostic(
            found=result.found,
            version=result.version,
            path=result.path,
            critical=result.critical,
            error=result.error,
        )
        if not result.found and result.critical:
            report.recommendations.append(f"Install critical tool: {tool_id}")

    for rel in expected_structured_artifacts(stacks, config):
        diagnostic = check_artifact(workspace_root, rel)
        report.artifacts.append(diagnostic)
        if not diagnostic.valid:
            report.recommendations.append(f"Run setup to regenerate {rel}")

    store = StateStore(workspace_root)
    state = store.load()
    if state is None:
        report.recommendations.append("Run setup to initialize the state cache")
    else:
        tracked: list[Path | str] = list(TRACKED_INPUTS)
        if config_file is not None:
            tracked.append(config_file)
        tracked.extend(command_files(workspace_root))
        report.drift = store.changed_paths(state, tracked)
        if sort_stacks(state.stacks) != stacks:
            report.drift.append("stacks")
        if report.drift:
            report.recommendations.append("Tracked files changed since last setup; run setup")

    logger.debug("Doctor report: %d recommendation(s)", len(report.recommendations))
    return report
