"""models command: inspect, install, upgrade and remove local models."""

from __future__ import annotations

import logging

import click
from rich.console import Console
from rich.table import Table

from mitchai_cli.runtime import build_provider, require_ollama
from mitchai_core.detector import LanguageDetector
from mitchai_core.models import MODEL_REGISTRY, Tier
from mitchai_core.recommender import best_installed_model, model_info, models_by_tier, upgrade_suggestions

console = Console()
logger = logging.getLogger(__name__)

_TIER_STYLE = {Tier.FAST: "green", Tier.BALANCED: "yellow", Tier.PREMIUM: "magenta"}
_MAX_UPGRADES_SHOWN = 3


def _stars(quality: int) -> str:
    return "★" * quality + "☆" * (10 - quality)


def _installed(name: str, installed: list[str]) -> bool:
    return name in installed or f"{name}:latest" in installed


@click.group("models")
def models_cmd():
    """List, install, upgrade and remove review models."""


@models_cmd.command("list")
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False))
@click.pass_context
def list_cmd(ctx, path: str):
    """Show every known model by tier and whether it is installed."""
    provider = build_provider(ctx.obj["config"])
    ctx.call_on_close(provider.close)
    installed = provider.list_models()
    if not installed and not provider.is_running():
        console.print("[yellow]Ollama is not reachable; installation status is unknown.[/yellow]")

    for tier in Tier:
        style = _TIER_STYLE[tier]
        table = Table(title=f"[{style}]{tier.label.capitalize()} tier[/{style}] ({tier.description})", show_header=True)
        table.add_column("")
        table.add_column("Model", style="bold")
        table.add_column("Size", justify="right")
        table.add_column("Quality")
        table.add_column("Languages")
        for model in models_by_tier(tier):
            table.add_row(
                "[green]✓[/green]" if _installed(model.name, installed) else "[dim]↓[/dim]",
                model.name,
                model.size,
                _stars(model.quality_score),
                ", ".join(sorted(model.strengths)),
            )
        console.print(table)

    if not installed:
        return
    languages = LanguageDetector(path).detect_languages()
    current = best_installed_model(languages, installed)
    if current is None:
        return
    upgrades = upgrade_suggestions(current, languages)[:_MAX_UPGRADES_SHOWN]
    if upgrades:
        console.print(f"\n[cyan]Upgrades for {', '.join(languages)} (current best: {current}):[/cyan]")
        for upgrade in upgrades:
            console.print(
                f"  {upgrade.model.name} (+{upgrade.quality_improvement} quality, {upgrade.model.size}, "
                f"setup {upgrade.tier.setup_time})"
            )
        console.print("[dim]Run `mitchai models upgrade` to install one.[/dim]")


@models_cmd.command("tiers")
def tiers_cmd():
    """Explain the model tiers."""
    table = Table(title="Model tiers", show_header=True)
    table.add_column("Tier", style="bold")
    table.add_column("Description")
    table.add_column("Setup time")
    table.add_column("Models")
    for tier in Tier:
        style = _TIER_STYLE[tier]
        table.add_row(
            f"[{style}]{tier.label}[/{style}]",
            tier.description,
            tier.setup_time,
            ", ".join(f"{m.name} ({m.size})" for m in models_by_tier(tier)),
        )
    console.print(table)


@models_cmd.command("upgrade")
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False))
@click.option("--yes", "-y", is_flag=True, help="Install the top suggestion without asking.")
@click.pass_context
def upgrade_cmd(ctx, path: str, yes: bool):
    """Suggest and install a better model for the project at PATH."""
    provider = build_provider(ctx.obj["config"])
    ctx.call_on_close(provider.close)
    require_ollama(provider)

    languages = LanguageDetector(path).detect_languages()
    console.print(f"[yellow]Detected languages: {', '.join(languages)}[/yellow]")

    current = best_installed_model(languages, provider.list_models())
    if current is None:
        raise click.ClickException("No compatible models installed. Run `mitchai setup` first.")
    console.print(f"Current model: [bold]{current}[/bold]")

    upgrades = upgrade_suggestions(current, languages)
    if not upgrades:
        console.print("[green]You're already using the best available model for your languages.[/green]")
        return

    shown = upgrades[:_MAX_UPGRADES_SHOWN]
    console.print("\n[cyan]Available upgrades:[/cyan]")
    for i, upgrade in enumerate(shown, 1):
        console.print(f"  {i}) [bold]{upgrade.model.name}[/bold] (+{upgrade.quality_improvement} quality)")
        console.print(f"     {upgrade.model.description} ({upgrade.model.size}), setup {upgrade.tier.setup_time}")

    if yes:
        choice = 1
    else:
        choice = click.prompt(
            f"Choose upgrade [1-{len(shown)}, 0 to cancel]",
            type=click.IntRange(0, len(shown)),
            default=0,
        )
    if choice == 0:
        console.print("Upgrade cancelled.")
        return

    selected = shown[choice - 1]
    console.print(f"\n[cyan]Downloading {selected.model.name}...[/cyan]")
    try:
        provider.pull_model(selected.model.name)
    except Exception as e:
        raise click.ClickException(f"Could not download {selected.model.name}: {e}")
    console.print(
        f"[green]Upgrade complete: {selected.model.name} is {selected.quality_improvement} point(s) better.[/green]"
    )
    console.print("Set [bold]model: {name}[/bold] in .mitchai.yml to use it by default.".format(name=selected.model.name))


@models_cmd.command("install")
@click.argument("model")
@click.pass_context
def install_cmd(ctx, model: str):
    """Download MODEL into the local Ollama runtime."""
    provider = build_provider(ctx.obj["config"])
    ctx.call_on_close(provider.close)
    require_ollama(provider)

    if model not in MODEL_REGISTRY:
        console.print(f"[yellow]{model} is not a known review model; installing anyway.[/yellow]")
    if provider.has_model(model):
        console.print(f"[green]{model} is already installed.[/green]")
        return

    info = model_info(model)
    console.print(f"[cyan]Downloading {model} ({info.size})...[/cyan]")
    try:
        provider.pull_model(model)
    except Exception as e:
        raise click.ClickException(f"Could not download {model}: {e}")
    console.print(f"[green]{model} installed.[/green]")


@models_cmd.command("remove")
@click.argument("model")
@click.option("--yes", "-y", is_flag=True, help="Remove without asking.")
@click.pass_context
def remove_cmd(ctx, model: str, yes: bool):
    """Delete MODEL from the local Ollama runtime."""
    provider = build_provider(ctx.obj["config"])
    ctx.call_on_close(provider.close)
    require_ollama(provider)

    if not provider.has_model(model):
        raise click.ClickException(f"{model} is not installed.")
    if not yes and not click.confirm(f"Remove {model}?", default=False):
        console.print("Nothing removed.")
        return
    try:
        provider.delete_model(model)
    except Exception as e:
        raise click.ClickException(f"Could not remove {model}: {e}")
    console.print(f"[green]{model} removed.[/green]")
