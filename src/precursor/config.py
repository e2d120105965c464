"""Configuration management for precursor."""

from pathlib import Path
from typing import Any, Literal

import json5
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from .constants import CONFIG_FILENAMES, DEFAULT_KNOWLEDGE_FILE, DEFAULT_MAX_BACKUPS
from .models import Stack


class ConfigError(Exception):
    """Error loading or validating configuration."""


class _Section(BaseModel):
    """Base for config sections: camelCase on disk, unknown keys kept."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        frozen=True,
    )


class ToolConfig(_Section):
    """Per-tool overrides (``tools.<id>``)."""

    enabled: bool = True
    version: str | None = None
    install_source: Literal["system", "package-manager", "portable", "auto"] = "auto"
    critical: bool | None = None  # None defers to the default-critical list


class StackSection(_Section):
    """Fields shared by all stack sections."""

    enabled: bool = True
    runtime: str | None = None
    linter: str | None = None
    formatter: str | None = None
    typechecker: str | None = None

    def tool_ids(self) -> list[str]:
        """Tool ids this stack depends on, in order, without duplicates."""
        ids: list[str] = []
        for tool in (self.runtime, self.linter, self.formatter, self.typechecker):
            if tool and tool != "none" and tool not in ids:
                ids.append(tool)
        return ids


class PythonConfig(StackSection):
    """Python stack settings."""

    runtime: str | None = "uv"  # uv, pip, poetry
    linter: str | None = "ruff"
    formatter: str | None = "ruff"
    typechecker: str | None = "pyright"  # pyright, basedpyright, none
    venv_path: str = ".venv"


class WebConfig(StackSection):
    """Web/JS/TS stack settings."""

    runtime: str | None = "bun"  # bun, node, npm, pnpm, yarn
    linter: str | None = "biome"
    formatter: str | None = "biome"
    typechecker: str | None = "tsc"


class RustConfig(StackSection):
    """Rust stack settings."""

    runtime: str | None = "cargo"
    toolchain: str = "stable"
    linter: str | None = "clippy"
    formatter: str | None = "rustfmt"
    audit: bool = False  # cargo-audit step in CI
    deny: bool = False  # cargo-deny step in CI


class CppConfig(StackSection):
    """C/C++ stack settings."""

    build_system: Literal["cmake", "meson", "make"] = "cmake"
    formatter: str | None = "clang-format"
    linter: str | None = "clang-tidy"
    compile_commands: bool = True


class DockerConfig(StackSection):
    """Docker stack settings."""

    lint: bool = False  # hadolint step in CI


class WorkspaceConfig(_Section):
    """Workspace root resolution.

    ``root`` always wins; ``subproject`` pins the invocation directory;
    ``root``/``auto`` prefer the git toplevel when one is discoverable.
    """

    mode: Literal["root", "subproject", "auto"] = "auto"
    root: str | None = None


class WorkflowConfig(_Section):
    """Per-stack CI workflow settings (``ci.workflows.<stack>``)."""

    enabled: bool = True
    os: list[str] = Field(default_factory=lambda: ["ubuntu-latest"])
    matrix: dict[str, Any] | None = None


class CiConfig(_Section):
    """CI workflow generation."""

    enabled: bool = True
    workflows: dict[str, WorkflowConfig] = Field(default_factory=dict)

    def workflow(self, stack: Stack) -> WorkflowConfig:
        """Get effective workflow config for a stack."""
        return self.workflows.get(stack.value, WorkflowConfig())


class McpConfig(_Section):
    """MCP server config scaffolding."""

    enabled: bool = True
    port: int | None = None


class VerificationConfig(_Section):
    """Verification rule scaffolding."""

    enabled: bool = True
    browser_testing: bool = False


class KnowledgeConfig(_Section):
    """Team knowledge base file.

    ``file`` is relative to the workspace root. It is created once and
    never rewritten, since the team edits it by hand.
    """

    enabled: bool = True
    file: str = DEFAULT_KNOWLEDGE_FILE


class CommandStep(_Section):
    """One step of a custom command: a shell line or a prompt for input."""

    type: Literal["shell", "interactive"] = "shell"
    command: str | None = None
    prompt: str | None = None

    def preview(self) -> str:
        if self.type == "shell":
            return self.command or ""
        return f"[{self.prompt or ''}]"


class CommandConfig(_Section):
    """Custom command definition (``commands.<name>``)."""

    description: str = ""
    steps: list[CommandStep] = Field(default_factory=list)


class SecretsConfig(_Section):
    """Secret scanning."""

    enabled: bool = True
    ignore_patterns: list[str] = Field(
        default_factory=lambda: [
            "**/node_modules/**",
            "**/.venv/**",
            "**/target/**",
            "**/dist/**",
            "**/*.lock",
            "**/*.lockb",
        ]
    )
    high_entropy_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    fail_on_findings: bool = True


class BackupConfig(_Section):
    """Run-level backup snapshots."""

    enabled: bool = True
    max_backups: int = Field(default=DEFAULT_MAX_BACKUPS, ge=1)


class StrictConfig(_Section):
    """Failure escalation."""

    fail_on_warnings: bool = False
    fail_on_missing_tools: bool = False
    require_all_checks: bool = False


class PrecursorConfig(_Section):
    """Root configuration for precursor.

    Known sections are typed; unrecognized top-level keys are kept as
    extras so they round-trip through ``model_dump(by_alias=True)``.
    """

    tools: dict[str, ToolConfig] = Field(default_factory=dict)
    python: PythonConfig = Field(default_factory=PythonConfig)
    web: WebConfig = Field(default_factory=WebConfig)
    rust: RustConfig = Field(default_factory=RustConfig)
    cpp: CppConfig = Field(default_factory=CppConfig)
    docker: DockerConfig = Field(default_factory=DockerConfig)
    workspace: WorkspaceConfig = Field(default_factory=WorkspaceConfig)
    ci: CiConfig = Field(default_factory=CiConfig)
    mcp: McpConfig = Field(default_factory=McpConfig)
    verification: VerificationConfig = Field(default_factory=VerificationConfig)
    knowledge: KnowledgeConfig = Field(default_factory=KnowledgeConfig)
    commands: dict[str, CommandConfig] = Field(default_factory=dict)
    secrets: SecretsConfig = Field(default_factory=SecretsConfig)
    backup: BackupConfig = Field(default_factory=BackupConfig)
    strict: StrictConfig = Field(default_factory=StrictConfig)

    def stack_config(self, stack: Stack) -> StackSection:
        """Get the section for a stack."""
        return getattr(self, stack.value)

    def tool_config(self, tool_id: str) -> ToolConfig | None:
        """Get explicit per-tool overrides, if configured."""
        return self.tools.get(tool_id)

    def extensions(self) -> dict[str, Any]:
        """Unrecognized top-level sections (the extension bag)."""
        extra = self.model_extra or {}
        return {k: v for k, v in extra.items() if not k.startswith("$")}


def find_config_file(search_dir: Path) -> Path | None:
    """Return the first config file present in ``search_dir``.

    Args:
        search_dir: Directory to search (the invocation directory)

    Returns:
        Path to the config file, or None if none exists
    """
    for name in CONFIG_FILENAMES:
        candidate = search_dir / name
        if candidate.is_file():
            return candidate
    return None


def parse_config_text(text: str, suffix: str) -> dict[str, Any]:
    """Parse config document text by file suffix.

    JSON variants accept comments and trailing commas.

    Raises:
        ConfigError: If the text does not parse to a mapping
    """
    try:
        if suffix in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json5.loads(text) if text.strip() else None
    except (yaml.YAMLError, ValueError) as e:
        raise ConfigError(f"Invalid syntax: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Top-level value must be a mapping, got {type(data).__name__}")
    return data


def load_config(search_dir: Path, config_path: Path | None = None) -> PrecursorConfig:
    """Load config from precursor.json/.jsonc/.yaml/.yml.

    Args:
        search_dir: Directory searched for a config file
        config_path: Explicit config file, bypassing the search

    Returns:
        Loaded configuration, or defaults if no config file exists

    Raises:
        ConfigError: If the file is unreadable, malformed or invalid
    """
    path = config_path or find_config_file(search_dir)
    if path is None:
        return PrecursorConfig()
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = parse_config_text(text, path.suffix)
        return PrecursorConfig.model_validate(data)
    except ConfigError as e:
        raise ConfigError(f"{path}: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"{path}: configuration validation failed: {e}") from e
