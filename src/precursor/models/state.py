"""State snapshot models persisted to .precursor/state.json.

The snapshot records content digests of tracked files plus the stacks and
tool states observed by the last successful setup. It is a cache: any
snapshot whose ``version`` differs from the current schema is discarded.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ..constants import STATE_VERSION
from .stack import Stack


class ToolState(BaseModel):
    """Last observed state of an external tool (reporting only).

    Attributes:
        version: Version string reported by the tool, if found.
        path: Where the tool was found (``PATH``, portable path, ...).
        installed: Whether the tool was found at all.
        last_check: When the tool was probed.
    """

    model_config = ConfigDict(populate_by_name=True)

    version: str | None = None
    path: str | None = None
    installed: bool = False
    last_check: datetime | None = Field(default=None, alias="lastCheck")


class State(BaseModel):
    """Version-stamped cache of tracked-file hashes, stacks and tools.

    Attributes:
        version: Schema version; mismatches are treated as "no state".
        last_update: When the snapshot was written.
        hashes: Root-relative POSIX path -> SHA-256 hex digest.
        stacks: Stacks detected by the run that wrote the snapshot.
        tools: Tool id -> last observed ToolState.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    version: str = STATE_VERSION
    last_update: datetime = Field(default_factory=datetime.now, alias="lastUpdate")
    hashes: dict[str, str] = Field(default_factory=dict)
    stacks: list[Stack] = Field(default_factory=list)
    tools: dict[str, ToolState] = Field(default_factory=dict)
