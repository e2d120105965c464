"""Deep merge engine for structured documents and line-append for text.

Structured artifacts (JSON/JSONC/YAML trees) are combined key by key so
that user customizations survive: keys only present in the existing
document are never touched, and ``None`` in the desired fragment never
deletes anything. Text artifacts (ignore lists, rule prose) only ever
gain lines that are not already present.
"""

import copy
from enum import Enum
from typing import Any


class ArrayStrategy(str, Enum):
    """How a source array combines with an existing target array."""

    APPEND_UNIQUE = "append-unique"
    REPLACE = "replace"


def _contains(items: list[Any], value: Any) -> bool:
    """Equality membership that keeps ``True`` and ``1`` distinct."""
    return any(type(item) is type(value) and item == value for item in items)


def deep_merge(
    target: dict[str, Any],
    source: dict[str, Any],
    array_strategy: ArrayStrategy = ArrayStrategy.APPEND_UNIQUE,
) -> dict[str, Any]:
    """Merge ``source`` into ``target`` and return a new document.

    Neither input is mutated.

    Args:
        target: Existing document (user content)
        source: Desired fragment (generated defaults)
        array_strategy: Policy when both sides hold an array

    Returns:
        Merged document
    """
    result = copy.deepcopy(target)
    _merge_into(result, source, ArrayStrategy(array_strategy))
    return result


def _merge_into(result: dict[str, Any], source: dict[str, Any], strategy: ArrayStrategy) -> None:
    """Merge ``source`` into ``result`` in place (``result`` must be owned)."""
    for key, source_value in source.items():
        if source_value is None:
            continue

        target_value = result.get(key)

        if isinstance(source_value, list):
            if strategy is ArrayStrategy.APPEND_UNIQUE and isinstance(target_value, list):
                merged = list(target_value)
                for item in source_value:
                    if not _contains(merged, item):
                        merged.append(copy.deepcopy(item))
                result[key] = merged
            else:
                result[key] = copy.deepcopy(source_value)
        elif isinstance(source_value, dict) and isinstance(target_value, dict):
            _merge_into(target_value, source_value, strategy)
        else:
            result[key] = copy.deepcopy(source_value)


def merge_text(existing: str | None, content: str, header: str | None = None) -> str:
    """Append the lines of ``content`` missing from ``existing``.

    Lines are compared after stripping whitespace; blank lines are never
    appended. Existing text is kept byte for byte.

    Args:
        existing: Current file text, or None if the file does not exist
        content: Desired text
        header: Optional comment line written before appended lines (and
            at the top of a new file)

    Returns:
        New file text (equal to ``existing`` when nothing is missing)
    """
    if existing is None:
        return f"{header}\n{content}" if header else content

    present = {line.strip() for line in existing.splitlines()}
    missing: list[str] = []
    for line in content.splitlines():
        stripped = line.strip()
        if stripped and stripped not in present:
            missing.append(line)
            present.add(stripped)

    if not missing:
        return existing

    merged = existing
    if merged and not merged.endswith("\n"):
        merged += "\n"
    if header and header.strip() not in {line.strip() for line in existing.splitlines()}:
        merged += f"\n{header}\n"
    return merged + "\n".join(missing) + "\n"
