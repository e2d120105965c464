"""Doctor (scan) report models."""

from datetime import datetime

from pydantic import BaseModel, Field

from .stack import Stack


class ToolDiagnostic(BaseModel):
    """Diagnostic for one resolved tool."""

    found: bool
    version: str | None = None
    path: str | None = None
    critical: bool = False
    error: str | None = None


class ArtifactDiagnostic(BaseModel):
    """Diagnostic for one structured managed artifact."""

    file: str
    exists: bool
    valid: bool
    issues: list[str] = Field(default_factory=list)


class DoctorReport(BaseModel):
    """Read-only health report of a workspace."""

    workspace_root: str
    stacks: list[Stack] = Field(default_factory=list)
    tools: dict[str, ToolDiagnostic] = Field(default_factory=dict)
    artifacts: list[ArtifactDiagnostic] = Field(default_factory=list)
    drift: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=datetime.now)
