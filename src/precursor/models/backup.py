"""Rollback result model."""

from pydantic import BaseModel, Field


class RestoreResult(BaseModel):
    """Outcome of restoring the newest backup snapshot.

    Attributes:
        success: True if a snapshot was restored.
        message: Human-readable summary.
        snapshot_id: Name of the restored snapshot directory.
        restored: Managed artifact paths that were restored.
    """

    success: bool
    message: str
    snapshot_id: str | None = None
    restored: list[str] = Field(default_factory=list)
