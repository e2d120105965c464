"""Stack detection based on marker files.

Detection only reads the filesystem. Unreadable directories are treated
as empty, so detection never aborts a run.
"""

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from ..config import PrecursorConfig
from ..models import Stack
from ..services.git import GitError, get_repo_root

logger = logging.getLogger(__name__)

# Marker files/directories directly under the workspace root.
_MARKERS: dict[Stack, frozenset[str]] = {
    Stack.PYTHON: frozenset(
        {
            "pyproject.toml",
            "uv.lock",
            "requirements.txt",
            "poetry.lock",
            "Pipfile.lock",
            "setup.py",
            "setup.cfg",
        }
    ),
    Stack.WEB: frozenset(
        {
            "package.json",
            "bun.lock",
            "bun.lockb",
            "pnpm-lock.yaml",
            "yarn.lock",
            "package-lock.json",
            "tsconfig.json",
            "vite.config.ts",
            "vite.config.js",
            "next.config.js",
            "next.config.ts",
            "svelte.config.js",
            "svelte.config.ts",
            "astro.config.js",
            "astro.config.ts",
        }
    ),
    Stack.RUST: frozenset({"Cargo.toml", "Cargo.lock"}),
    Stack.CPP: frozenset(
        {
            "CMakeLists.txt",
            "meson.build",
            "Makefile",
            ".clang-format",
            ".clang-tidy",
            "compile_commands.json",
            "vcpkg.json",
        }
    ),
    Stack.DOCKER: frozenset({"Dockerfile", "docker-compose.yml", "docker-compose.yaml"}),
}

# Stacks without a definitive manifest, recognized by source file extension.
_SOURCE_EXTENSIONS: dict[Stack, frozenset[str]] = {
    Stack.WEB: frozenset({".html", ".css"}),
    Stack.CPP: frozenset({".c", ".cc", ".cpp", ".cxx", ".h", ".hpp", ".hxx"}),
}

# Directories never descended into while looking for source files.
_SKIP_DIRS = frozenset(
    {
        "node_modules",
        "venv",
        ".venv",
        "target",
        "dist",
        "build",
        ".git",
        "__pycache__",
    }
)

MAX_WALK_DEPTH = 2


def classify_stacks(root_entries: Iterable[str], source_files: Iterable[str]) -> set[Stack]:
    """Classify stacks from a root listing and a list of nearby source files.

    Args:
        root_entries: Names of entries directly under the workspace root
        source_files: File names found by the bounded source walk

    Returns:
        Set of detected stacks
    """
    names = set(root_entries)
    suffixes = {Path(name).suffix.lower() for name in source_files}

    stacks = {stack for stack, markers in _MARKERS.items() if names & markers}
    for stack, extensions in _SOURCE_EXTENSIONS.items():
        if suffixes & extensions:
            stacks.add(stack)
    return stacks


def _list_dir(directory: Path) -> list[os.DirEntry[str]]:
    try:
        with os.scandir(directory) as it:
            return list(it)
    except OSError as e:
        logger.debug("Skipping unreadable directory %s: %s", directory, e)
        return []


def find_source_files(
    root: Path, extensions: frozenset[str], max_depth: int = MAX_WALK_DEPTH
) -> list[str]:
    """Collect file names with matching extensions up to ``max_depth`` below ``root``.

    Hidden and dependency/build directories are skipped.
    """
    found: list[str] = []

    def walk(directory: Path, depth: int) -> None:
        for entry in _list_dir(directory):
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = entry.is_file()
            except OSError:
                continue
            if is_dir:
                skipped = entry.name.startswith(".") or entry.name in _SKIP_DIRS
                if depth < max_depth and not skipped:
                    walk(Path(entry.path), depth + 1)
            elif is_file and Path(entry.name).suffix.lower() in extensions:
                found.append(entry.name)

    walk(root, 0)
    return found


def detect_stacks(workspace_root: Path, config: PrecursorConfig | None = None) -> set[Stack]:
    """Detect all stacks present under the workspace root.

    Args:
        workspace_root: Resolved workspace root
        config: Configuration; stacks whose section sets ``enabled: false``
            are left out

    Returns:
        Set of detected stacks (order-independent)
    """
    root_entries = [entry.name for entry in _list_dir(workspace_root)]
    stacks = classify_stacks(root_entries, ())

    pending = [s for s in _SOURCE_EXTENSIONS if s not in stacks]
    if pending:
        extensions = frozenset().union(*(_SOURCE_EXTENSIONS[s] for s in pending))
        stacks |= classify_stacks((), find_source_files(workspace_root, extensions))

    if config is not None:
        stacks = {s for s in stacks if config.stack_config(s).enabled}
    logger.debug("Detected stacks in %s: %s", workspace_root, sorted(s.value for s in stacks))
    return stacks


def resolve_workspace_root(config: PrecursorConfig, cwd: Path) -> Path:
    """Resolve the directory stacks are detected relative to.

    Explicit ``workspace.root`` wins; ``subproject`` mode uses ``cwd``;
    otherwise the git toplevel is preferred, falling back to ``cwd``.
    """
    if config.workspace.root:
        root = Path(config.workspace.root).expanduser()
        return root if root.is_absolute() else (cwd / root).resolve()

    if config.workspace.mode == "subproject":
        return cwd

    try:
        return get_repo_root(cwd)
    except GitError:
        return cwd
