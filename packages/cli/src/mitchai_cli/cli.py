"""CLI entry point for mitchai.

Commands:
  review    : AI review of a file or a whole project with a local model
  setup     : pick a tier, download the recommended model, start the server
  server    : start/stop/status/restart the MCP tool server
  models    : list, install, upgrade and remove models
  languages : supported languages and how they are detected
  version   : version information
  help      : help for mitchai or a single command
"""

from __future__ import annotations

import logging

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler

from mitchai_cli.commands.info import help_cmd, languages_cmd, version_cmd
from mitchai_cli.commands.models import models_cmd
from mitchai_cli.commands.review import review_cmd
from mitchai_cli.commands.server import server_cmd
from mitchai_cli.commands.setup import setup_cmd
from mitchai_mcp.protocol import server_version


def _setup_logging(verbose: bool) -> None:
    """Route library logging through rich. DEBUG with --verbose, INFO otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=verbose, rich_tracebacks=verbose)],
        force=True,
    )
    # httpx logs every request at INFO; only interesting when debugging.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


@click.group()
@click.version_option(version=server_version(), prog_name="mitchai")
@click.option(
    "--config",
    "config_path",
    default=".mitchai.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="MITCHAI_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output, including error tracebacks.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Mitch-AI: local AI code review powered by Ollama."""
    from mitchai_core.config import load_config

    _setup_logging(verbose)
    ctx.ensure_object(dict)

    try:
        config = load_config(config_path)
    except (ValueError, yaml.YAMLError) as e:
        raise click.ClickException(f"Invalid configuration: {e}")

    ctx.obj["config"] = config
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


main.add_command(review_cmd)
main.add_command(setup_cmd)
main.add_command(server_cmd)
main.add_command(models_cmd)
main.add_command(languages_cmd)
main.add_command(version_cmd)
main.add_command(help_cmd)
