"""External service integrations for precursor.

This package provides interfaces to external tools:
- git: Repository root discovery
- toolchain: Read-only tool resolution (PATH, package manager, portable cache)
- doctor: Workspace health report (imported directly, it depends on core)
"""

from .git import GitError, get_repo_root, run_git
from .toolchain import (
    DEFAULT_CRITICAL_TOOLS,
    ToolchainError,
    extract_version,
    is_critical,
    missing_critical,
    resolve_tool,
    tool_ids_for_stacks,
)

__all__ = [
    "DEFAULT_CRITICAL_TOOLS",
    "GitError",
    "ToolchainError",
    "extract_version",
    "get_repo_root",
    "is_critical",
    "missing_critical",
    "resolve_tool",
    "run_git",
    "tool_ids_for_stacks",
]
