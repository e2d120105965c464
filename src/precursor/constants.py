"""Constants for precursor CLI."""

# Subprocess timeouts (seconds)
GIT_TIMEOUT = 30
TOOL_CHECK_TIMEOUT = 5  # version probes are treated as "not found" on timeout
PACKAGE_MANAGER_TIMEOUT = 10

# Project directory layout (relative to the workspace root)
PRECURSOR_DIR = ".precursor"
STATE_FILE = f"{PRECURSOR_DIR}/state.json"
BACKUP_DIR = f"{PRECURSOR_DIR}/backups"
PORTABLE_BIN_DIR = f"{PRECURSOR_DIR}/bin"
COMMANDS_DIR = f"{PRECURSOR_DIR}/commands"

DEFAULT_KNOWLEDGE_FILE = ".cursor/PRECURSOR.md"

# Bump whenever the state.json layout changes; older files are discarded
STATE_VERSION = "1.0.0"

CONFIG_FILENAMES = (
    "precursor.json",
    "precursor.jsonc",
    "precursor.yaml",
    "precursor.yml",
)

# Paths the backup manager snapshots and restores (files or directories)
MANAGED_ARTIFACTS = (
    ".vscode/settings.json",
    ".vscode/extensions.json",
    ".cursor/mcp.json",
    ".cursor/rules",
    ".github/workflows",
    ".gitignore",
    ".cursorignore",
)

# Inputs whose digests gate the setup fast path
TRACKED_INPUTS = (
    *CONFIG_FILENAMES,
    "precursor.schema.json",
    "pyproject.toml",
    "package.json",
    "Cargo.toml",
    "uv.lock",
    "bun.lock",
    "bun.lockb",
    "Cargo.lock",
)

DEFAULT_MAX_BACKUPS = 10
