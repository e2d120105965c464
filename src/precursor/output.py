"""Output formatting for precursor CLI."""

import json
from dataclasses import dataclass
from typing import Any

from rich.console import Console
from rich.markup import escape

from .models import RunResult


@dataclass
class OutputContext:
    """Context for output formatting."""

    console: Console
    json_mode: bool = False

    def print(self, message: str, style: str | None = None) -> None:
        """Print message respecting output mode."""
        if not self.json_mode:
            self.console.print(message, style=style)

    def print_json(self, data: dict[str, Any]) -> None:
        """Print JSON data."""
        if self.json_mode:
            print(json.dumps(data, indent=2, default=str))

    def render(self, result: RunResult) -> None:
        """Render a command result in the active output mode."""
        if self.json_mode:
            self.print_json(result.model_dump(mode="json", exclude_none=True))
            return

        if result.success:
            self.console.print(f"[green]✓[/green] {escape(result.message or 'Success')}")
        else:
            self.console.print(f"[red]✗ {escape(result.message or 'Failed')}[/red]")
        for error in result.errors:
            self.console.print(f"  {error}", style="red", markup=False)
        for warning in result.warnings:
            self.console.print(f"[yellow]⚠[/yellow] {escape(warning)}")


# Global output context (set by cli.py main callback)
_ctx: OutputContext | None = None


def get_output_context() -> OutputContext:
    """Get the current output context.

    Returns a default OutputContext if not yet initialized by CLI.
    """
    if _ctx is None:
        return OutputContext(Console())
    return _ctx


def set_output_context(ctx: OutputContext) -> None:
    """Set the global output context. Called by CLI main callback."""
    global _ctx
    _ctx = ctx
