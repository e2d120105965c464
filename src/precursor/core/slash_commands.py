"""Custom command definitions for the assistant's commands rule.

Commands come from the ``commands`` config section and from JSON files in
``.precursor/commands/``; each file maps command names to definitions in
the same shape as the config section. Commands are only described to the
assistant, never executed here.
"""

import logging
from pathlib import Path

from pydantic import ValidationError

from ..config import CommandConfig, PrecursorConfig
from ..constants import COMMANDS_DIR
from .writer import StructuredFileError, load_structured

logger = logging.getLogger(__name__)


def command_files(workspace_root: Path) -> list[Path]:
    """JSON command files under the workspace, sorted by name."""
    commands_dir = workspace_root / COMMANDS_DIR
    if not commands_dir.is_dir():
        return []
    return sorted(p for p in commands_dir.glob("*.json") if p.is_file())


def _usable(command: CommandConfig) -> bool:
    return bool(command.description and command.steps)


def _load_file(path: Path) -> dict[str, CommandConfig]:
    try:
        data = load_structured(path) or {}
    except (StructuredFileError, OSError) as e:
        logger.warning("Skipping command file %s: %s", path.name, e)
        return {}

    commands: dict[str, CommandConfig] = {}
    for name, definition in data.items():
        try:
            commands[name] = CommandConfig.model_validate(definition)
        except ValidationError as e:
            logger.warning("Skipping command %r in %s: %s", name, path.name, e)
    return commands


def load_commands(config: PrecursorConfig, workspace_root: Path) -> dict[str, CommandConfig]:
    """All usable commands, config first, then command files in name order.

    A command needs a description and at least one step. A name defined in
    config is not overridden by a file.

    Args:
        config: Run configuration
        workspace_root: Resolved workspace root

    Returns:
        Commands keyed by name, in definition order
    """
    commands = {name: cmd for name, cmd in config.commands.items() if _usable(cmd)}
    for path in command_files(workspace_root):
        for name, cmd in _load_file(path).items():
            if name not in commands and _usable(cmd):
                commands[name] = cmd
    return commands
