"""Technology stack tags.

Stacks are derived on every run from marker files under the workspace
root; they are never a primary persisted entity.
"""

from collections.abc import Iterable
from enum import Enum


class Stack(str, Enum):
    """A detected technology ecosystem."""

    PYTHON = "python"
    WEB = "web"
    RUST = "rust"
    CPP = "cpp"
    DOCKER = "docker"


def sort_stacks(stacks: Iterable[Stack]) -> list[Stack]:
    """Return stacks in canonical (declaration) order."""
    order = list(Stack)
    return sorted(set(stacks), key=order.index)
