"""setup command: pick a model tier for the current project and get it ready.

Checks the Ollama runtime, detects the project's languages, asks for a tier,
downloads the recommended model, optionally records the choice in
.mitchai.yml and starts the MCP server.
"""

from __future__ import annotations

from pathlib import Path

import click
import yaml
from rich.console import Console

from mitchai_cli.runtime import build_provider, require_ollama
from mitchai_core.detector import LanguageDetector
from mitchai_core.languages import DEFAULT_LANGUAGE
from mitchai_core.models import Tier
from mitchai_core.recommender import model_info, recommend

console = Console()


@click.command("setup")
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False))
@click.option("--tier", type=click.Choice([t.label for t in Tier]), default=None, help="Skip the tier prompt.")
@click.option("--yes", "-y", is_flag=True, help="Accept every default without prompting.")
@click.option("--no-server", is_flag=True, help="Do not start the MCP server afterwards.")
@click.pass_context
def setup_cmd(ctx, path: str, tier: str | None, yes: bool, no_server: bool):
    """Set up Mitch-AI for the project at PATH."""
    from mitchai_cli.commands.server import start_server

    config = ctx.obj["config"]
    config_path = ctx.obj.get("config_path", ".mitchai.yml")
    console.print("[bold cyan]Setting up Mitch-AI...[/bold cyan]")

    provider = build_provider(config)
    ctx.call_on_close(provider.close)
    require_ollama(provider)
    console.print(f"[green]Ollama reachable at {provider.base_url}[/green]")

    languages = LanguageDetector(path).detect_languages()
    if languages == [DEFAULT_LANGUAGE]:
        console.print("No specific languages detected; defaulting to Ruby.")
    else:
        console.print(f"[yellow]Detected languages: {', '.join(languages)}[/yellow]")

    if tier is None:
        if yes:
            tier = config.get("tier") or Tier.FAST.label
        else:
            console.print("\n[cyan]Choose your performance tier:[/cyan]")
            for t in Tier:
                console.print(f"  [bold]{t.label:<9}[/bold] {t.description} ({t.setup_time})")
            tier = click.prompt("Tier", type=click.Choice([t.label for t in Tier]), default=Tier.FAST.label)

    model = recommend(languages, tier=tier)
    info = model_info(model)
    console.print(f"\n[green]Selected model: {model}[/green]")
    console.print(f"  Size: {info.size}, quality: {info.quality_score}/10")
    console.print(f"  {info.description}")

    if provider.has_model(model):
        console.print(f"[green]{model} is already installed.[/green]")
    elif yes or click.confirm(f"Download {model} now?", default=True):
        console.print(f"[cyan]Downloading {model} ({info.size}), this can take a while...[/cyan]")
        try:
            provider.pull_model(model)
        except Exception as e:
            raise click.ClickException(f"Could not download {model}: {e}")
        console.print(f"[green]{model} installed.[/green]")
    else:
        console.print("[yellow]Setup incomplete. Run `mitchai setup` again when ready.[/yellow]")
        return

    if yes or click.confirm(f"Save tier and model to {config_path}?", default=True):
        _write_config(Path(config_path), {"tier": tier, "model": model})
        console.print(f"[green]Updated {config_path}[/green]")

    if not no_server:
        start_server(config, config.get("mcp_host", "127.0.0.1"), int(config["mcp_port"]))

    console.print("\n[bold green]Mitch-AI is ready![/bold green] Try:")
    console.print("  mitchai review            # review the current directory")
    console.print("  mitchai review ./file.rb  # review a single file")
    console.print("  mitchai server status     # check the MCP server")
    console.print("  mitchai languages         # supported languages")


def _write_config(path: Path, values: dict) -> None:
    """Merge ``values`` into the YAML config at ``path``, keeping other keys."""
    existing: dict = {}
    if path.exists():
        with open(path) as f:
            existing = yaml.safe_load(f) or {}
        if not isinstance(existing, dict):
            raise click.ClickException(f"{path} does not contain a mapping; not overwriting it.")
    existing.update(values)
    with open(path, "w") as f:
        yaml.safe_dump(existing, f, default_flow_style=False, sort_keys=False)
