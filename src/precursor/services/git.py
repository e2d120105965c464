"""Git operations for precursor."""

import subprocess
from pathlib import Path

from ..constants import GIT_TIMEOUT


class GitError(Exception):
    """Git command failed."""


def run_git(*args: str, cwd: Path | None = None, check: bool = True) -> str:
    """Run git command and return stdout.

    Args:
        *args: Git arguments
        cwd: Working directory
        check: Raise GitError on non-zero exit

    Returns:
        Stripped stdout

    Raises:
        GitError: If git is missing, times out, or fails with check=True
    """
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT,
        )
    except FileNotFoundError:
        raise GitError("git not found in PATH") from None
    except subprocess.TimeoutExpired as e:
        raise GitError(f"git {args[0]} timed out after {GIT_TIMEOUT} seconds") from e

    if check and result.returncode != 0:
        raise GitError(f"git {' '.join(args)} failed: {result.stderr.strip()}")
    return result.stdout.strip()


def get_repo_root(cwd: Path | None = None) -> Path:
    """Get git repository root directory.

    Raises:
        GitError: If not inside a git repository
    """
    return Path(run_git("rev-parse", "--show-toplevel", cwd=cwd))
