"""Informational commands: languages, version, help."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from mitchai_core.languages import LANGUAGE_PATTERNS
from mitchai_mcp.protocol import server_version

console = Console()


@click.command("languages")
def languages_cmd():
    """List the languages Mitch-AI can detect and review."""
    table = Table(title="Supported languages", show_header=True)
    table.add_column("Language", style="bold")
    table.add_column("Extensions")
    table.add_column("Marker files")
    table.add_column("Weight", justify="right")
    for language, pattern in LANGUAGE_PATTERNS.items():
        table.add_row(
            language,
            ", ".join(pattern.extensions),
            ", ".join(pattern.files) or "-",
            f"{pattern.weight:g}",
        )
    console.print(table)


@click.command("version")
def version_cmd():
    """Show version information."""
    console.print(f"Mitch-AI v{server_version()}")
    console.print("Local AI code review")


@click.command("help")
@click.argument("command", required=False)
@click.pass_context
def help_cmd(ctx, command: str | None):
    """Show help for Mitch-AI or for one COMMAND."""
    group = ctx.parent.command
    if command is None:
        click.echo(ctx.parent.get_help())
        return
    sub = group.get_command(ctx.parent, command)
    if sub is None:
        raise click.UsageError(f"No such command: {command}")
    with click.Context(sub, info_name=command, parent=ctx.parent) as sub_ctx:
        click.echo(sub.get_help(sub_ctx))
