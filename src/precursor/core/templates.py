"""Desired content for editor, assistant and ignore-file artifacts.

These builders only describe what the generated content says; how it is
combined with files already on disk is the writer's concern.
"""

import sys
from typing import Any

from ..config import CommandConfig, PrecursorConfig
from ..constants import BACKUP_DIR, COMMANDS_DIR, PORTABLE_BIN_DIR, STATE_FILE
from ..models import Stack

IGNORE_HEADER = "# Precursor patterns"


def _toolchain_lines(pairs: list[tuple[str, str | None]]) -> str:
    return "\n".join(f"- {label}: {value}" for label, value in pairs if value)


def rule_content(stack: Stack, config: PrecursorConfig) -> str:
    """Rule document (.cursor/rules/<stack>.mdc) for a stack."""
    if stack is Stack.PYTHON:
        py = config.python
        checker = py.typechecker if py.typechecker and py.typechecker != "none" else None
        commands = [
            f"- Install: `{py.runtime} sync`" if py.runtime == "uv" else None,
            f"- Lint: `{py.linter} check .`" if py.linter == "ruff" else None,
            f"- Format: `{py.formatter} format .`" if py.formatter == "ruff" else None,
            f"- Type Check: `{checker} .`" if checker else None,
        ]
        return (
            "# Python Development Rules\n\n"
            "## Toolchain\n"
            + _toolchain_lines(
                [
                    ("Runtime", py.runtime),
                    ("Linter", py.linter),
                    ("Formatter", py.formatter),
                    ("Type Checker", py.typechecker),
                ]
            )
            + "\n\n## Commands\n"
            + "\n".join(c for c in commands if c)
            + "\n\n## Virtual Environment\n"
            + f"- Path: `{py.venv_path}`\n"
            + f"- Activate: `source {py.venv_path}/bin/activate` (Unix)"
            + f" or `{py.venv_path}\\Scripts\\activate` (Windows)\n"
        )

    if stack is Stack.WEB:
        web = config.web
        runner = "bunx" if web.runtime == "bun" else "npx"
        return (
            "# Web/JS/TS Development Rules\n\n"
            "## Toolchain\n"
            + _toolchain_lines(
                [
                    ("Runtime", web.runtime),
                    ("Linter", web.linter),
                    ("Formatter", web.formatter),
                    ("Type Checker", web.typechecker),
                ]
            )
            + "\n\n## Commands\n"
            + f"- Install: `{web.runtime} install`\n"
            + f"- Lint: `{runner} biome check .`\n"
            + f"- Format: `{runner} biome format --write .`\n"
            + f"- Type Check: `{runner} tsc --noEmit`\n"
            + "\n## Lockfile\n"
            + "- Prefer: `bun.lock` (text format)\n"
            + "- Legacy: `bun.lockb` (binary, accepted but not preferred)\n"
        )

    if stack is Stack.RUST:
        rust = config.rust
        return (
            "# Rust Development Rules\n\n"
            "## Toolchain\n"
            + _toolchain_lines(
                [
                    ("Toolchain", rust.toolchain),
                    ("Linter", rust.linter),
                    ("Formatter", rust.formatter),
                ]
            )
            + "\n\n## Commands\n"
            "- Format: `cargo fmt`\n"
            "- Lint: `cargo clippy -- -D warnings`\n"
            "- Test: `cargo test`\n"
            "- Build: `cargo build`\n"
        )

    if stack is Stack.CPP:
        cpp = config.cpp
        return (
            "# C/C++ Development Rules\n\n"
            "## Toolchain\n"
            + _toolchain_lines(
                [
                    ("Build System", cpp.build_system),
                    ("Formatter", cpp.formatter),
                    ("Linter", cpp.linter),
                ]
            )
            + "\n\n## Commands\n"
            "- Format: `clang-format -i **/*.{c,cc,cpp,h,hpp}`\n"
            "- Lint: `clang-tidy **/*.{c,cc,cpp}`\n"
            "- Build: `cmake -B build -DCMAKE_EXPORT_COMPILE_COMMANDS=ON && cmake --build build`\n"
        )

    return (
        "# Docker Development Rules\n\n"
        "## Best Practices\n"
        "- Use multi-stage builds\n"
        "- Pin base image versions\n"
        "- Keep a .dockerignore next to the Dockerfile\n"
        "- Run as a non-root user when possible\n\n"
        "## Commands\n"
        "- Build: `docker build -t <tag> .`\n"
        "- Run: `docker run <tag>`\n"
    )


def verification_commands(stack: Stack, config: PrecursorConfig) -> list[str]:
    """Commands that verify a change for a stack."""
    if stack is Stack.PYTHON:
        run = f"{config.python.runtime} run" if config.python.runtime == "uv" else "python -m"
        commands = [f"{run} ruff check .", f"{run} ruff format --check ."]
        if config.python.typechecker and config.python.typechecker != "none":
            commands.append(f"{run} {config.python.typechecker} .")
        commands.append(f"{run} pytest")
        return commands
    if stack is Stack.WEB:
        runner = "bunx" if config.web.runtime == "bun" else "npx"
        commands = [f"{runner} biome check ."]
        if config.web.typechecker and config.web.typechecker != "none":
            commands.append(f"{runner} tsc --noEmit")
        commands.append(f"{config.web.runtime} test")
        return commands
    if stack is Stack.RUST:
        return ["cargo fmt --check", "cargo clippy -- -D warnings", "cargo test"]
    if stack is Stack.CPP:
        return ["cmake --build build", "ctest --test-dir build"]
    return []


def verification_rule_content(stacks: list[Stack], config: PrecursorConfig) -> str:
    """Always-applied rule telling the assistant how to verify its work."""
    sections = []
    for stack in stacks:
        commands = verification_commands(stack, config)
        if commands:
            body = "\n".join(commands)
            sections.append(f"### {stack.value.upper()}\n```bash\n{body}\n```")

    if config.verification.browser_testing:
        browser = "Browser-based UI testing is enabled; verify UI changes in the browser."
    else:
        browser = "Browser testing is disabled. Enable it in precursor.json if needed."

    return (
        "---\n"
        "description: Verification loops - always verify your work\n"
        "alwaysApply: true\n"
        "---\n\n"
        "# Verification Loops\n\n"
        "Run tests, linting, formatting and type checks after every change,\n"
        "and iterate until they pass.\n\n"
        "## Stack-Specific Verification\n\n"
        + ("\n\n".join(sections) if sections else "No stack detected.")
        + f"\n\n## Browser Testing\n\n{browser}\n"
    )


def _interpreter_path(venv_path: str) -> str:
    if sys.platform == "win32":
        return f"${{workspaceFolder}}/{venv_path}/Scripts/python.exe"
    return f"${{workspaceFolder}}/{venv_path}/bin/python"


def editor_settings(stacks: list[Stack], config: PrecursorConfig) -> dict[str, Any]:
    """Fragment for .vscode/settings.json."""
    settings: dict[str, Any] = {
        "files.watcherExclude": {
            "**/.git/objects/**": True,
            "**/.git/subtree-cache/**": True,
            "**/node_modules/**": True,
            "**/.venv/**": True,
            "**/venv/**": True,
            "**/target/**": True,
            "**/dist/**": True,
            "**/build/**": True,
            "**/.precursor/**": True,
        },
        "files.exclude": {"**/.precursor/bin/**": True},
    }
    if Stack.PYTHON in stacks:
        settings["python.defaultInterpreterPath"] = _interpreter_path(config.python.venv_path)
        settings["python.analysis.typeCheckingMode"] = "basic"
    if Stack.WEB in stacks:
        settings["typescript.tsdk"] = "node_modules/typescript/lib"
        settings["typescript.enablePromptUseWorkspaceTsdk"] = True
    if Stack.RUST in stacks:
        settings["rust-analyzer.check.command"] = "clippy"
    if Stack.CPP in stacks and config.cpp.compile_commands:
        settings["C_Cpp.default.compileCommands"] = "${workspaceFolder}/compile_commands.json"
    return settings


_EXTENSIONS: dict[Stack, list[str]] = {
    Stack.PYTHON: ["ms-python.python", "ms-python.vscode-pylance", "charliermarsh.ruff"],
    Stack.WEB: ["biomejs.biome", "dbaeumer.vscode-eslint"],
    Stack.RUST: ["rust-lang.rust-analyzer"],
    Stack.CPP: ["ms-vscode.cpptools", "llvm-vs-code-extensions.vscode-clangd"],
    Stack.DOCKER: ["ms-azuretools.vscode-docker"],
}


def extension_recommendations(stacks: list[Stack]) -> dict[str, Any]:
    """Fragment for .vscode/extensions.json."""
    recommendations: list[str] = []
    for stack in stacks:
        recommendations.extend(_EXTENSIONS.get(stack, []))
    return {"recommendations": recommendations}


def mcp_servers(config: PrecursorConfig) -> dict[str, Any]:
    """Fragment for .cursor/mcp.json."""
    server: dict[str, Any] = {
        "command": "bun",
        "args": [".precursor/mcp/server.ts"],
        "env": {},
    }
    if config.mcp.port is not None:
        server["env"] = {"PRECURSOR_MCP_PORT": str(config.mcp.port)}
    return {"mcpServers": {"precursor": server}}


_STACK_IGNORES: dict[Stack, list[str]] = {
    Stack.PYTHON: [".venv/", "venv/", "__pycache__/", "*.pyc"],
    Stack.WEB: ["node_modules/", "dist/", ".next/", ".svelte-kit/"],
    Stack.RUST: ["target/"],
    Stack.CPP: ["build/", "compile_commands.json"],
}


def ignore_patterns(stacks: list[Stack]) -> list[str]:
    """Patterns for .gitignore and .cursorignore."""
    patterns = [STATE_FILE, f"{BACKUP_DIR}/", f"{PORTABLE_BIN_DIR}/"]
    for stack in stacks:
        patterns.extend(_STACK_IGNORES.get(stack, []))
    return patterns


KNOWLEDGE_ENTRIES_MARKER = "<!-- New entries go below this line -->"


def knowledge_base_content() -> str:
    """Initial team knowledge base document."""
    return (
        "# Precursor Knowledge Base\n\n"
        "Team knowledge that should outlive a single change: mistakes and\n"
        "their fixes, project conventions, tool quirks and practices.\n\n"
        "## How to Use\n\n"
        "- Read the relevant entries before making changes\n"
        "- After fixing a mistake, record the cause and the fix\n"
        "- When a convention or workaround is discovered, add it here\n\n"
        "## Categories\n\n"
        "- **Mistake**: errors that happened and how they were fixed\n"
        "- **Pattern**: project-specific conventions\n"
        "- **Quirk**: tool configuration oddities and workarounds\n"
        "- **Practice**: recommendations learned over time\n\n"
        "---\n\n"
        "## Entries\n\n"
        f"{KNOWLEDGE_ENTRIES_MARKER}\n"
    )


def knowledge_rule_content(config: PrecursorConfig) -> str:
    """Always-applied rule pointing the assistant at the knowledge base."""
    path = config.knowledge.file
    return (
        "---\n"
        f"description: Shared knowledge base - check {path} before making changes\n"
        "alwaysApply: true\n"
        "---\n\n"
        "# Knowledge Base\n\n"
        f"Before changing code, read `{path}` for known mistakes, project\n"
        "patterns, tool quirks and practices.\n\n"
        "## Usage\n\n"
        f"1. Before changes: read the relevant sections of `{path}`\n"
        f"2. After a mistake: document the issue and its fix in `{path}`\n"
        f"3. After learning something: add the pattern to `{path}`\n"
    )


def commands_rule_content(commands: dict[str, CommandConfig]) -> str:
    """Rule listing the custom commands available to the assistant."""
    header = (
        "---\n"
        "description: Custom commands - repeated workflows\n"
        "alwaysApply: false\n"
        "---\n\n"
        "# Custom Commands\n\n"
    )
    if not commands:
        return (
            header
            + "No custom commands are configured. Add them under `commands` in\n"
            + f"precursor.json or as JSON files in `{COMMANDS_DIR}/`.\n"
        )

    entries = []
    for name, command in commands.items():
        preview = " -> ".join(step.preview() for step in command.steps[:3])
        if len(command.steps) > 3:
            preview += " ..."
        entries.append(f"- **`/{name}`**: {command.description}\n  - Steps: {preview}")

    return (
        header
        + "## Available Commands\n\n"
        + "\n".join(entries)
        + "\n\n## Defining Commands\n\n"
        + f"Commands live under `commands` in precursor.json or in `{COMMANDS_DIR}/*.json`:\n\n"
        + "```json\n"
        + "{\n"
        + '  "release": {\n'
        + '    "description": "Tag and push a release",\n'
        + '    "steps": [\n'
        + '      { "type": "shell", "command": "git status" },\n'
        + '      { "type": "interactive", "prompt": "Version" }\n'
        + "    ]\n"
        + "  }\n"
        + "}\n"
        + "```\n"
    )
