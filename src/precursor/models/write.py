"""Writer outcome model."""

from pathlib import Path

from pydantic import BaseModel


class WriteOutcome(BaseModel):
    """Result of routing one artifact through the writer.

    Attributes:
        path: Target file.
        changed: True if the file was (re)written.
        warning: Recovered problem worth surfacing (e.g. malformed file).
    """

    path: Path
    changed: bool
    warning: str | None = None
