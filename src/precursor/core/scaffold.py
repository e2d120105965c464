"""Scaffold orchestrator: the idempotent setup sequence.

A run moves through detect -> backup -> per-stack scaffold -> secret scan
-> state update. Per-artifact failures are collected and do not stop the
remaining artifacts; a backup root that cannot be created, a missing
critical tool in strict mode, or secret findings abort the run before the
state file is updated.

When the previous state is valid, the detected stacks match and no tracked
file changed, backup and scaffolding are skipped entirely.
"""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from ..config import PrecursorConfig
from ..constants import COMMANDS_DIR, TRACKED_INPUTS
from ..models import RunOptions, RunResult, Stack, State, ToolResult, ToolState, sort_stacks
from ..services.toolchain import (
    ToolchainError,
    missing_critical,
    resolve_tool,
    tool_ids_for_stacks,
)
from . import templates
from .backup_manager import BackupError, create_snapshot, get_backup_root, prune_file_backups
from .detector import detect_stacks
from .merge import ArrayStrategy
from .secrets import scan_secrets
from .slash_commands import command_files, load_commands
from .state_store import StateStore
from .workflows import precursor_workflow, stack_workflow
from .writer import WriteError, append_and_write, create_if_missing, merge_and_write

logger = logging.getLogger(__name__)

ToolResolver = Callable[[str, PrecursorConfig, Path, bool], ToolResult]


class Phase(str, Enum):
    """Orchestrator states."""

    IDLE = "idle"
    DETECTING = "detecting"
    BACKING_UP = "backing-up"
    SCAFFOLDING = "scaffolding"
    SCANNING_SECRETS = "scanning-secrets"
    UPDATING_STATE = "updating-state"
    DONE = "done"
    ABORTED = "aborted"


class ScaffoldOrchestrator:
    """Runs one setup against one workspace root.

    Args:
        config: Loaded configuration (not mutated)
        workspace_root: Resolved workspace root
        options: CLI run options
        resolver: Tool resolver, ``resolve_tool`` unless overridden
        config_file: Config file the run was loaded from, if any
    """

    def __init__(
        self,
        config: PrecursorConfig,
        workspace_root: Path,
        options: RunOptions | None = None,
        resolver: ToolResolver = resolve_tool,
        config_file: Path | None = None,
    ) -> None:
        self.config = config
        self.root = workspace_root
        self.options = options or RunOptions(cwd=workspace_root)
        self.resolver = resolver
        self.config_file = config_file
        self.backup_root = get_backup_root(workspace_root)
        self.store = StateStore(workspace_root)
        self.strict = self.options.strict or config.strict.fail_on_warnings

        self.phase = Phase.IDLE
        self.stacks: list[Stack] = []
        self.tools: dict[str, ToolResult] = {}
        self.snapshot_id = ""
        self.written: list[str] = []
        self.unchanged: list[str] = []
        self.untracked: set[str] = set()
        self.errors: list[str] = []
        self.warnings: list[str] = []

    def run(self) -> RunResult:
        """Execute the setup sequence and return its structured result."""
        self.phase = Phase.DETECTING
        self.stacks = sort_stacks(detect_stacks(self.root, self.config))
        logger.info("Detected stacks: %s", ", ".join(s.value for s in self.stacks) or "none")

        try:
            self._resolve_tools()
        except ToolchainError as e:
            return self._abort(str(e), [f"{tool_id}: not found" for tool_id in e.missing])

        previous = self.store.load()
        fast_path = self._is_up_to_date(previous)
        if fast_path:
            logger.info("No tracked changes since last setup; skipping scaffolding")
        else:
            self.phase = Phase.BACKING_UP
            try:
                self.snapshot_id = create_snapshot(self.root, self.config)
            except BackupError as e:
                return self._abort("Backup failed; no files were changed", [str(e)])

            self.phase = Phase.SCAFFOLDING
            for stack in self.stacks:
                self._scaffold_stack(stack)
            self._scaffold_shared()
            prune_file_backups(self.backup_root, self.config.backup.max_backups)

        self.phase = Phase.SCANNING_SECRETS
        findings: list[str] = []
        if self.config.secrets.enabled:
            scan = scan_secrets(self.root, self.config.secrets)
            findings = [f"Secret found: {f.path}:{f.line} ({f.pattern})" for f in scan.found]
            logger.debug("Scanned %d file(s) for secrets", scan.scanned)
        if findings and self.config.secrets.fail_on_findings:
            return self._abort("Secrets detected in codebase", findings)
        self.warnings.extend(findings)

        escalated = self.strict and bool(self.warnings)
        if not fast_path and not self.errors and not escalated:
            self.phase = Phase.UPDATING_STATE
            try:
                self.store.save(self._build_state())
            except WriteError as e:
                self.errors.append(f"{self.store.path}: failed to save state: {e}")

        self.phase = Phase.DONE
        if self.errors:
            message = f"Setup finished with {len(self.errors)} error(s)"
        elif escalated:
            message = "Setup produced warnings (strict mode)"
        elif fast_path:
            message = "Already up to date"
        else:
            message = "Setup completed successfully"
        return RunResult(
            success=not self.errors and not escalated,
            message=message,
            data=self._data(cached=fast_path),
            errors=self.errors,
            warnings=self.warnings,
        )

    def _abort(self, message: str, errors: list[str]) -> RunResult:
        self.phase = Phase.ABORTED
        self.errors.extend(errors)
        logger.error(message)
        return RunResult(
            success=False,
            message=message,
            data=self._data(cached=False),
            errors=self.errors,
            warnings=self.warnings,
        )

    def _data(self, cached: bool) -> dict[str, Any]:
        return {
            "workspaceRoot": str(self.root),
            "stacks": [s.value for s in self.stacks],
            "tools": {
                tool_id: result.model_dump(mode="json", exclude_none=True)
                for tool_id, result in self.tools.items()
            },
            "snapshotId": self.snapshot_id or None,
            "written": self.written,
            "unchanged": self.unchanged,
            "cached": cached,
            "phase": self.phase.value,
        }

    def _resolve_tools(self) -> None:
        offline = self.options.offline
        for tool_id in tool_ids_for_stacks(self.stacks, self.config):
            self.tools[tool_id] = self.resolver(tool_id, self.config, self.root, offline)

        for tool_id, result in self.tools.items():
            if not result.found:
                label = "critical tool" if result.critical else "tool"
                cause = result.error or "no source"
                self.warnings.append(f"{tool_id}: {label} not found ({cause})")

        missing = missing_critical(self.tools)
        if missing and (self.options.strict or self.config.strict.fail_on_missing_tools):
            raise ToolchainError(missing)

    def _tracked_inputs(self) -> list[Path | str]:
        inputs: list[Path | str] = list(TRACKED_INPUTS)
        if self.config_file is not None:
            inputs.append(self.config_file)
        inputs.extend(command_files(self.root))
        return inputs

    def _is_up_to_date(self, previous: State | None) -> bool:
        if previous is None or sort_stacks(previous.stacks) != self.stacks:
            return False
        changed = self.store.changed_paths(previous, self._tracked_inputs())
        if changed:
            logger.debug("Changed since last setup: %s", ", ".join(changed))
        return not changed

    @contextmanager
    def _artifact(self, label: str) -> Iterator[None]:
        """Record a failed artifact as an error and carry on."""
        try:
            yield
        except (WriteError, OSError) as e:
            logger.error("Failed to scaffold %s: %s", label, e)
            self.errors.append(f"{label}: {e}")

    def _record(self, rel: str, changed: bool, warning: str | None) -> None:
        (self.written if changed else self.unchanged).append(rel)
        if warning:
            self.warnings.append(warning)
        if changed:
            logger.info("Wrote %s", rel)

    def _merge(
        self,
        rel: str,
        fragment: dict[str, Any],
        strategy: ArrayStrategy = ArrayStrategy.APPEND_UNIQUE,
    ) -> None:
        with self._artifact(rel):
            outcome = merge_and_write(self.root / rel, fragment, self.backup_root, strategy)
            self._record(rel, outcome.changed, outcome.warning)

    def _append(self, rel: str, content: str, header: str | None = None) -> None:
        with self._artifact(rel):
            outcome = append_and_write(self.root / rel, content, self.backup_root, header)
            self._record(rel, outcome.changed, outcome.warning)

    def _create(self, rel: str, content: str) -> None:
        # Hand-edited after creation, so kept out of the change cache
        with self._artifact(rel):
            outcome = create_if_missing(self.root / rel, content)
            self._record(rel, outcome.changed, outcome.warning)
            self.untracked.add(rel)

    def _scaffold_stack(self, stack: Stack) -> None:
        self._append(f".cursor/rules/{stack.value}.mdc", templates.rule_content(stack, self.config))

        workflow_config = self.config.ci.workflow(stack)
        if self.config.ci.enabled and workflow_config.enabled:
            self._merge(
                f".github/workflows/{stack.value}.yml",
                stack_workflow(stack, self.config, workflow_config),
            )

    def _scaffold_shared(self) -> None:
        self._merge(".vscode/settings.json", templates.editor_settings(self.stacks, self.config))
        self._merge(".vscode/extensions.json", templates.extension_recommendations(self.stacks))
        if self.config.mcp.enabled:
            self._merge(".cursor/mcp.json", templates.mcp_servers(self.config))

        patterns = "\n".join(templates.ignore_patterns(self.stacks)) + "\n"
        for name in (".gitignore", ".cursorignore"):
            self._append(name, patterns, header=templates.IGNORE_HEADER)

        if self.config.verification.enabled:
            self._append(
                ".cursor/rules/verification.mdc",
                templates.verification_rule_content(self.stacks, self.config),
            )
        if self.config.knowledge.enabled:
            self._create(self.config.knowledge.file, templates.knowledge_base_content())
            self._append(
                ".cursor/rules/knowledge-base.mdc", templates.knowledge_rule_content(self.config)
            )

        with self._artifact(COMMANDS_DIR):
            (self.root / COMMANDS_DIR).mkdir(parents=True, exist_ok=True)
        commands = load_commands(self.config, self.root)
        self._append(".cursor/rules/commands.mdc", templates.commands_rule_content(commands))

        if self.config.ci.enabled:
            self._merge(".github/workflows/precursor.yml", precursor_workflow())

    def _build_state(self) -> State:
        now = datetime.now()
        artifacts = [rel for rel in (*self.written, *self.unchanged) if rel not in self.untracked]
        tracked = [*self._tracked_inputs(), *artifacts]
        return State(
            last_update=now,
            hashes=self.store.hash_paths(tracked),
            stacks=self.stacks,
            tools={
                tool_id: ToolState(
                    version=result.version,
                    path=result.path,
                    installed=result.found,
                    last_check=now,
                )
                for tool_id, result in self.tools.items()
            },
        )


def run_setup(
    config: PrecursorConfig,
    workspace_root: Path,
    options: RunOptions | None = None,
    resolver: ToolResolver = resolve_tool,
    config_file: Path | None = None,
) -> RunResult:
    """Run the setup sequence once."""
    orchestrator = ScaffoldOrchestrator(config, workspace_root, options, resolver, config_file)
    return orchestrator.run()
