"""Tool resolution result model."""

from enum import Enum

from pydantic import BaseModel, Field


class ToolSource(str, Enum):
    """Where a tool was resolved from."""

    SYSTEM = "system"
    PACKAGE_MANAGER = "package-manager"
    PORTABLE = "portable"


class ToolResult(BaseModel):
    """Outcome of resolving one external tool.

    Run failure decisions depend only on ``found`` and ``critical``.

    Attributes:
        found: True if the tool is usable.
        version: Parsed version string, if found.
        path: Resolved location, if found.
        source: Resolution source, if found.
        critical: True if a missing tool should block strict runs.
        error: Probe error detail, if any.
    """

    found: bool = Field(description="True if the tool is usable")
    version: str | None = None
    path: str | None = None
    source: ToolSource | None = None
    critical: bool = False
    error: str | None = None
