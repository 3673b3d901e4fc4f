"""Output formatting for the fleetlock CLI."""

import json
from dataclasses import dataclass
from typing import Any

from rich.console import Console
from rich.table import Table


@dataclass
class OutputContext:
    """Renders command results either for humans or as JSON."""

    console: Console
    json_mode: bool = False

    def print(self, message: str, style: str | None = None) -> None:
        """Print a human-readable line; silent in JSON mode."""
        if not self.json_mode:
            self.console.print(message, style=style)

    def emit_json(self, data: dict[str, Any]) -> None:
        if self.json_mode:
            print(json.dumps(data, indent=2, default=str))

    def result(self, data: dict[str, Any], message: str = "") -> None:
        """Emit a command result in the active format."""
        if self.json_mode:
            self.emit_json(data)
        elif message:
            self.console.print(message)

    def error(self, message: str, **data: Any) -> None:
        if self.json_mode:
            self.emit_json({"error": message, **data})
        else:
            self.console.print(f"[red]Error: {message}[/red]")

    def success(self, message: str, **data: Any) -> None:
        if self.json_mode:
            self.emit_json({"success": message, **data})
        else:
            self.console.print(f"[green]{message}[/green]")

    def table(self, title: str, columns: list[str], rows: list[list[str]]) -> None:
        """Print rows as a Rich table, or as a list of objects in JSON mode."""
        if self.json_mode:
            self.emit_json({"items": [dict(zip(columns, row, strict=True)) for row in rows]})
            return
        table = Table(title=title)
        for column in columns:
            table.add_column(column)
        for row in rows:
            table.add_row(*row)
        self.console.print(table)


_ctx: OutputContext | None = None


def get_output_context() -> OutputContext:
    """Return the CLI's output context, or a plain console one if unset."""
    if _ctx is None:
        return OutputContext(Console())
    return _ctx


def set_output_context(ctx: OutputContext) -> None:
    """Set the global output context. Called by the CLI main callback."""
    global _ctx
    _ctx = ctx
