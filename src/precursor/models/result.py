"""Run options and structured run results.

Every command returns a ``RunResult`` which the CLI renders either as
human output or, with ``--json``, as a JSON document.
"""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class RunOptions(BaseModel):
    """Options threaded from the CLI into a run.

    Attributes:
        cwd: Invocation directory (config lookup, workspace fallback).
        config_path: Explicit config file, bypassing the search.
        strict: Escalate warnings and missing critical tools to failure.
        offline: Skip package-manager probes.
    """

    cwd: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None
    strict: bool = False
    offline: bool = False


class RunResult(BaseModel):
    """Structured result of a command.

    ``errors`` entries always name the path or tool id and the cause.
    ``warnings`` never block success unless strict mode is on.
    """

    success: bool
    message: str = ""
    data: dict[str, Any] | None = None
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    def exit_code(self, strict: bool = False) -> int:
        """Return the shell exit code for this result."""
        if not self.success:
            return 1
        if strict and self.warnings:
            return 1
        return 0
