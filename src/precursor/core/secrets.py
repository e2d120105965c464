"""Best-effort secret scanning.

Known token shapes (AWS key ids, GitHub and Slack tokens) are always
reported. Keyword assignments (``api_key = ...``) and free-standing long
strings are reported only when their normalized Shannon entropy reaches
``secrets.highEntropyThreshold``.
"""

import logging
import math
import os
import re
from collections import Counter
from fnmatch import fnmatchcase
from pathlib import Path

from ..config import SecretsConfig
from ..constants import PRECURSOR_DIR
from ..models import SecretFinding, SecretScanResult

logger = logging.getLogger(__name__)

# Always reported: the shape alone is conclusive.
_TOKEN_RULES: dict[str, re.Pattern[str]] = {
    "aws-access-key-id": re.compile(r"\b(AKIA[0-9A-Z]{16})\b"),
    "github-token": re.compile(r"\b(gh[pousr]_[A-Za-z0-9]{36,})\b"),
    "slack-token": re.compile(r"\b(xox[baprs]-[0-9A-Za-z-]{10,})\b"),
}

# Reported only when the captured value looks random enough.
_KEYWORD_RULES: dict[str, re.Pattern[str]] = {
    "api-key": re.compile(r"(?:api[_-]?key|apikey)\s*[=:]\s*[\"']?([A-Za-z0-9_\-]{20,})", re.I),
    "generic-secret": re.compile(
        r"(?:secret|password|token)\s*[=:]\s*[\"']?([A-Za-z0-9_\-]{16,})", re.I
    ),
    "aws-secret-access-key": re.compile(
        r"aws[_-]?secret[_-]?access[_-]?key\s*[=:]\s*[\"']?([A-Za-z0-9/+=]{40})", re.I
    ),
}

_CANDIDATE = re.compile(r"[\"']([^\"'\s]{16,})[\"']|([A-Za-z0-9_\-]{20,})")

_TEXT_EXTENSIONS = frozenset(
    {
        ".ts", ".js", ".tsx", ".jsx", ".json", ".jsonc", ".yaml", ".yml", ".toml",
        ".md", ".txt", ".py", ".rs", ".c", ".cpp", ".h", ".hpp", ".sh", ".ps1",
        ".bat", ".cmd", ".ini", ".cfg",
    }
)  # fmt: skip

_SKIP_DIRS = frozenset(
    {"node_modules", ".venv", "venv", "target", "dist", "build", "__pycache__", PRECURSOR_DIR}
)

MAX_FILE_BYTES = 1024 * 1024


def calculate_entropy(value: str) -> float:
    """Shannon entropy of ``value`` normalized to 0..1 (8 bits = 1.0)."""
    if not value:
        return 0.0
    length = len(value)
    entropy = -sum((n / length) * math.log2(n / length) for n in Counter(value).values())
    return min(entropy / 8, 1.0)


def scan_text(text: str, path: str, threshold: float) -> list[SecretFinding]:
    """Scan file content for suspected secrets.

    Args:
        text: File content
        path: Path reported in findings
        threshold: Minimum normalized entropy for heuristic findings

    Returns:
        Findings, at most one per rule per line
    """
    findings: list[SecretFinding] = []
    for line_no, line in enumerate(text.splitlines(), start=1):
        flagged: set[str] = set()

        for name, pattern in _TOKEN_RULES.items():
            match = pattern.search(line)
            if match:
                value = match.group(1)
                flagged.add(value)
                findings.append(
                    SecretFinding(
                        path=path, line=line_no, pattern=name, entropy=calculate_entropy(value)
                    )
                )

        for name, pattern in _KEYWORD_RULES.items():
            match = pattern.search(line)
            if match and match.group(1) not in flagged:
                entropy = calculate_entropy(match.group(1))
                if entropy >= threshold:
                    flagged.add(match.group(1))
                    findings.append(
                        SecretFinding(path=path, line=line_no, pattern=name, entropy=entropy)
                    )

        for match in _CANDIDATE.finditer(line):
            value = match.group(1) or match.group(2)
            if value in flagged:
                continue
            entropy = calculate_entropy(value)
            if entropy >= threshold:
                flagged.add(value)
                findings.append(
                    SecretFinding(path=path, line=line_no, pattern="high-entropy", entropy=entropy)
                )
    return findings


def is_ignored(rel_path: str, patterns: list[str]) -> bool:
    """Match a root-relative POSIX path against ignore globs.

    A leading ``**/`` also matches at the root.
    """
    for pattern in patterns:
        if fnmatchcase(rel_path, pattern):
            return True
        if pattern.startswith("**/") and fnmatchcase(rel_path, pattern[3:]):
            return True
    return False


def scan_secrets(workspace_root: Path, config: SecretsConfig) -> SecretScanResult:
    """Scan text files under the workspace root for secrets.

    Unreadable directories and files are skipped.

    Args:
        workspace_root: Resolved workspace root
        config: Secrets configuration

    Returns:
        SecretScanResult with findings and counters
    """
    result = SecretScanResult()

    for dirpath, dirnames, filenames in os.walk(workspace_root):
        current = Path(dirpath)
        rel_dir = current.relative_to(workspace_root).as_posix()
        prefix = "" if rel_dir == "." else f"{rel_dir}/"

        kept = []
        for name in sorted(dirnames):
            if name.startswith(".") or name in _SKIP_DIRS:
                result.ignored += 1
            elif is_ignored(f"{prefix}{name}/", config.ignore_patterns):
                result.ignored += 1
            else:
                kept.append(name)
        dirnames[:] = kept

        for name in sorted(filenames):
            rel = f"{prefix}{name}"
            if is_ignored(rel, config.ignore_patterns):
                result.ignored += 1
                continue
            if Path(name).suffix.lower() not in _TEXT_EXTENSIONS:
                continue
            path = current / name
            try:
                if path.stat().st_size > MAX_FILE_BYTES:
                    result.ignored += 1
                    continue
                text = path.read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                logger.debug("Skipping unreadable file %s: %s", rel, e)
                continue
            result.scanned += 1
            result.found.extend(scan_text(text, rel, config.high_entropy_threshold))

    return result
