"""Hash-based state cache for idempotent runs.

The state file (.precursor/state.json) records SHA-256 digests of tracked
files together with the stacks and tool states of the last successful
setup. Loading is fail-open to a full rescan: a missing, unparsable or
version-mismatched file is reported as "no state", never partially trusted.
"""

import hashlib
import json
import logging
from collections.abc import Iterable
from pathlib import Path

from pydantic import ValidationError

from ..constants import STATE_FILE, STATE_VERSION
from ..models import State
from .writer import write_atomic

logger = logging.getLogger(__name__)


def compute_hash(content: bytes | str) -> str:
    """Compute SHA-256 hex digest of bytes or UTF-8 text."""
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest()


def compute_file_hash(path: Path) -> str | None:
    """Compute SHA-256 of a file.

    Args:
        path: File path

    Returns:
        Hex-encoded SHA-256 hash, or None if the file is missing or unreadable
    """
    sha = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(8192), b""):
                sha.update(chunk)
    except OSError:
        return None
    return sha.hexdigest()


class StateStore:
    """Reads and writes the state snapshot of one workspace."""

    def __init__(self, workspace_root: Path, state_file: str = STATE_FILE) -> None:
        self.root = workspace_root
        self.path = workspace_root / state_file

    def key_for(self, path: Path | str) -> str:
        """State key for a path: root-relative POSIX, or absolute outside the root."""
        resolved = self._resolve(path)
        try:
            return resolved.relative_to(self.root).as_posix()
        except ValueError:
            return resolved.as_posix()

    def _resolve(self, path: Path | str) -> Path:
        path = Path(path)
        return path if path.is_absolute() else self.root / path

    def load(self) -> State | None:
        """Load the state snapshot.

        Returns:
            The stored State, or None if missing, corrupt or of another version
        """
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError, ValueError) as e:
            logger.debug("Ignoring unreadable state file %s: %s", self.path, e)
            return None

        if not isinstance(data, dict) or data.get("version") != STATE_VERSION:
            logger.debug("Ignoring state file with unsupported version")
            return None

        try:
            return State.model_validate(data)
        except ValidationError as e:
            logger.debug("Ignoring invalid state file %s: %s", self.path, e)
            return None

    def save(self, state: State) -> None:
        """Persist the state snapshot via temp-file-then-replace."""
        write_atomic(self.path, state.model_dump_json(by_alias=True, indent=2) + "\n")

    def reset(self) -> bool:
        """Delete the state file.

        Returns:
            True if a state file was removed
        """
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        return True

    def hash_paths(self, paths: Iterable[Path | str]) -> dict[str, str]:
        """Digest every existing file in ``paths``, keyed by state key."""
        hashes: dict[str, str] = {}
        for path in paths:
            digest = compute_file_hash(self._resolve(path))
            if digest is not None:
                hashes[self.key_for(path)] = digest
        return hashes

    def has_changed(self, path: Path | str, state: State | None = None) -> bool:
        """Check whether a file differs from its stored digest.

        A deleted file counts as changed only if a digest was stored.

        Args:
            path: File path (absolute or relative to the workspace root)
            state: Snapshot to compare against (loaded from disk if omitted)
        """
        if state is None:
            state = self.load()
        stored = state.hashes.get(self.key_for(path)) if state else None
        current = compute_file_hash(self._resolve(path))
        if current is None:
            return stored is not None
        return current != stored

    def changed_paths(self, state: State | None, extra: Iterable[Path | str] = ()) -> list[str]:
        """Return tracked keys that changed since ``state`` was saved.

        Tracked keys are everything stored in the snapshot plus ``extra``
        (inputs that may have appeared since).
        """
        extra_keys = {self.key_for(path) for path in extra}
        if state is None:
            return sorted(k for k in extra_keys if compute_file_hash(self._resolve(k)) is not None)
        keys = set(state.hashes) | extra_keys
        return sorted(key for key in keys if self.has_changed(key, state))
