"""Atomic file writer for managed artifacts.

All artifact writes go through a sibling temp file followed by a replace,
so a crash never leaves a half-written file behind. Structured files are
deep-merged and text files line-appended before writing, and nothing is
written when the result equals what is already on disk.
"""

import json
import logging
import os
import secrets
import shutil
import stat
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any

import json5
import yaml

from ..models import WriteOutcome
from .merge import ArrayStrategy, deep_merge, merge_text

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


class WriteError(Exception):
    """Error writing an artifact to disk."""


class StructuredFileError(Exception):
    """Existing structured file could not be parsed."""


class _NoAliasDumper(yaml.SafeDumper):
    """Safe dumper that never emits anchors for repeated objects."""

    def ignore_aliases(self, data: Any) -> bool:
        return True


def _normalize(text: str) -> str:
    return text.replace("\r\n", "\n")


def read_text_optional(path: Path) -> str | None:
    """Read a UTF-8 text file, returning None if it does not exist."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None


def parse_structured(text: str, path: Path) -> dict[str, Any]:
    """Parse JSON/JSONC/YAML text into a mapping (empty text is ``{}``).

    Raises:
        StructuredFileError: If the text is not a valid mapping document
    """
    if not text.strip():
        return {}
    try:
        if path.suffix in YAML_SUFFIXES:
            data = yaml.safe_load(text)
        else:
            data = json5.loads(text)
    except (yaml.YAMLError, ValueError) as e:
        raise StructuredFileError(str(e)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise StructuredFileError(f"expected a mapping, got {type(data).__name__}")
    if path.suffix in YAML_SUFFIXES:
        # YAML 1.1 reads an unquoted workflow `on:` key as boolean True
        data = {("on" if key is True else key): value for key, value in data.items()}
    return data


def load_structured(path: Path) -> dict[str, Any] | None:
    """Load a structured file, returning None if it does not exist.

    Raises:
        StructuredFileError: If the file exists but cannot be parsed
    """
    try:
        text = read_text_optional(path)
    except UnicodeDecodeError as e:
        raise StructuredFileError(f"not UTF-8 text: {e}") from e
    if text is None:
        return None
    return parse_structured(text, path)


def dump_structured(data: dict[str, Any], path: Path) -> str:
    """Serialize a document in the format implied by the file suffix."""
    if path.suffix in YAML_SUFFIXES:
        return yaml.dump(
            data,
            Dumper=_NoAliasDumper,
            sort_keys=False,
            indent=2,
            width=100,
            default_flow_style=False,
            allow_unicode=True,
        )
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def backup_file(path: Path, backup_dir: Path) -> Path:
    """Copy ``path`` into a collision-safe timestamped backup directory.

    The directory name carries microseconds plus a random suffix, so
    repeated writes within the same second never overwrite each other.

    Args:
        path: File to back up
        backup_dir: Project backup root

    Returns:
        Path of the backup copy
    """
    stamp = datetime.now().strftime("%Y%m%dT%H%M%S-%f")
    dest_dir = backup_dir / "files" / f"{stamp}-{secrets.token_hex(3)}"
    dest_dir.mkdir(parents=True, exist_ok=True)
    dest = dest_dir / path.name
    shutil.copy2(path, dest)
    logger.debug("Backed up %s to %s", path, dest)
    return dest


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def _target_mode(path: Path) -> int:
    """Permission bits the written file should end up with.

    An existing target keeps its own mode; a new file gets what a plain
    ``open(path, "w")`` would give it under the process umask.
    """
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        return 0o666 & ~_current_umask()


def _fallback_replace(tmp_path: Path, path: Path) -> None:
    """Clear read-only attribute, then copy the temp file over the target."""
    if path.exists():
        os.chmod(path, stat.S_IREAD | stat.S_IWRITE)
    shutil.copyfile(tmp_path, path)


def write_atomic(path: Path, content: str, backup_dir: Path | None = None) -> None:
    """Write ``content`` to ``path`` through a sibling temp file.

    Args:
        path: Target file (parent directories are created)
        content: Text to write (``\\n`` line endings are kept as-is)
        backup_dir: If given and the target exists, back it up here first

    Raises:
        WriteError: If both the atomic replace and the fallback copy fail
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if backup_dir is not None and path.is_file():
            backup_file(path, backup_dir)
    except OSError as e:
        raise WriteError(f"{path}: {e}") from e

    tmp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            newline="\n",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_path = Path(tmp.name)
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())

        # NamedTemporaryFile creates 0600; the replace would carry that over
        os.chmod(tmp_path, _target_mode(path))
        try:
            os.replace(tmp_path, path)
        except OSError as e:
            logger.warning("Atomic replace of %s failed (%s); falling back to copy", path, e)
            try:
                _fallback_replace(tmp_path, path)
            except OSError as fallback_error:
                raise WriteError(f"{path}: {fallback_error}") from fallback_error
    except OSError as e:
        raise WriteError(f"{path}: {e}") from e
    finally:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)


def merge_and_write(
    path: Path,
    fragment: dict[str, Any],
    backup_dir: Path,
    array_strategy: ArrayStrategy = ArrayStrategy.APPEND_UNIQUE,
    backup: bool = True,
) -> WriteOutcome:
    """Deep-merge ``fragment`` into a structured file and write if changed.

    A malformed existing file is backed up and treated as empty.

    Args:
        path: Structured artifact (JSON, JSONC or YAML)
        fragment: Desired content
        backup_dir: Project backup root
        array_strategy: Array policy for the merge
        backup: Back up the existing file before replacing it

    Returns:
        WriteOutcome describing whether the file changed

    Raises:
        WriteError: If the file cannot be read or written
    """
    warning = None
    try:
        existing_text = read_text_optional(path)
    except UnicodeDecodeError:
        existing_text = path.read_bytes().decode("utf-8", errors="replace")
    except OSError as e:
        raise WriteError(f"{path}: {e}") from e

    existing: dict[str, Any] = {}
    malformed = False
    if existing_text is not None:
        try:
            existing = parse_structured(existing_text, path)
        except StructuredFileError as e:
            malformed = True
            try:
                saved = backup_file(path, backup_dir)
            except OSError as backup_error:
                raise WriteError(f"{path}: cannot back up malformed file: {backup_error}") from e
            warning = f"{path}: malformed content ({e}); backed up to {saved} and regenerated"
            logger.warning(warning)

    merged = deep_merge(existing, fragment, array_strategy)
    serialized = dump_structured(merged, path)

    if existing_text is not None and not malformed:
        if merged == existing or _normalize(existing_text) == _normalize(serialized):
            return WriteOutcome(path=path, changed=False)

    write_atomic(path, serialized, backup_dir if backup and not malformed else None)
    return WriteOutcome(path=path, changed=True, warning=warning)


def create_if_missing(path: Path, content: str) -> WriteOutcome:
    """Write ``content`` only if ``path`` does not exist yet.

    Raises:
        WriteError: If the file cannot be written
    """
    if path.exists():
        return WriteOutcome(path=path, changed=False)
    write_atomic(path, content)
    return WriteOutcome(path=path, changed=True)


def append_and_write(
    path: Path,
    content: str,
    backup_dir: Path,
    header: str | None = None,
    backup: bool = True,
) -> WriteOutcome:
    """Append the missing lines of ``content`` to a text file.

    A missing file is created with ``content`` verbatim.

    Args:
        path: Text artifact
        content: Desired text
        backup_dir: Project backup root
        header: Comment line written above appended lines
        backup: Back up the existing file before replacing it

    Returns:
        WriteOutcome describing whether the file changed

    Raises:
        WriteError: If the file cannot be read or written
    """
    try:
        existing = read_text_optional(path)
    except (OSError, UnicodeDecodeError) as e:
        raise WriteError(f"{path}: {e}") from e

    updated = merge_text(existing, content, header)
    if existing is not None and _normalize(updated) == _normalize(existing):
        return WriteOutcome(path=path, changed=False)

    write_atomic(path, updated, backup_dir if backup else None)
    return WriteOutcome(path=path, changed=True)
