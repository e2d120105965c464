"""Pydantic data models for precursor.

This package defines the data structures used throughout precursor for:
- Detected technology stacks (Stack)
- The hash/stack/tool state cache (State, ToolState)
- Tool resolution results (ToolResult, ToolSource)
- Command options and results (RunOptions, RunResult)
- Secret scan findings (SecretFinding, SecretScanResult)
- Rollback and writer outcomes (RestoreResult, WriteOutcome)
- Doctor reports (DoctorReport and its diagnostics)

Example:
    >>> from precursor.models import RunResult
    >>> RunResult(success=True, message="ok").model_dump_json()
"""

from .backup import RestoreResult
from .doctor import ArtifactDiagnostic, DoctorReport, ToolDiagnostic
from .result import RunOptions, RunResult
from .secrets import SecretFinding, SecretScanResult
from .stack import Stack, sort_stacks
from .state import State, ToolState
from .tool import ToolResult, ToolSource
from .write import WriteOutcome

__all__ = [
    "ArtifactDiagnostic",
    "DoctorReport",
    "RestoreResult",
    "RunOptions",
    "RunResult",
    "SecretFinding",
    "SecretScanResult",
    "Stack",
    "State",
    "ToolDiagnostic",
    "ToolResult",
    "ToolSource",
    "ToolState",
    "WriteOutcome",
    "sort_stacks",
]
