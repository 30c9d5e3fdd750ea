"""review command: AI review of a single file or a whole project."""

from __future__ import annotations

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from mitchai_cli.render import render_file_review, render_project_review
from mitchai_cli.runtime import build_mcp_client, build_provider, require_ollama
from mitchai_core.reviewer import ModelUnavailableError, ProjectReviewer, relative_path

console = Console()
logger = logging.getLogger(__name__)


@click.command("review")
@click.argument("path", default=".", type=click.Path(exists=True))
@click.option("--model", default=None, help="Model to review with. Overrides config and recommendation.")
@click.option(
    "--tier",
    type=click.Choice(["fast", "balanced", "premium"]),
    default=None,
    help="Model tier used when no model is configured.",
)
@click.option("--workers", type=click.IntRange(min=1), default=None, help="Files reviewed in parallel.")
@click.option("--yes", "-y", is_flag=True, help="Download a missing model without asking.")
@click.pass_context
def review_cmd(ctx, path: str, model: str | None, tier: str | None, workers: int | None, yes: bool):
    """Review a file or a project with a local model.

    PATH defaults to the current directory. Directories are reviewed file by
    file, grouped by detected language; a single file is reviewed on its own.
    """
    from mitchai_core.config import load_config

    verbose = bool(ctx.obj.get("verbose")) if ctx.obj else False
    config_path = ctx.obj.get("config_path", ".mitchai.yml") if ctx.obj else ".mitchai.yml"
    config = load_config(
        config_path,
        cli_overrides={"model": model, "tier": tier, "workers": workers, "auto_pull": True if yes else None},
    )

    provider = build_provider(config)
    mcp_client = build_mcp_client(config)
    ctx.call_on_close(provider.close)
    ctx.call_on_close(mcp_client.close)

    require_ollama(provider)

    target = Path(path)
    root = str(target.resolve())

    def _progress(done: int, total: int, file_path: str) -> None:
        console.print(f"  [dim][{done}/{total}][/dim] {escape(relative_path(file_path, root))}")

    reviewer = ProjectReviewer(
        config,
        mcp_client,
        provider,
        confirm_download=lambda name: click.confirm(f"Model {name} is not installed. Download it now?", default=True),
        progress=_progress,
    )

    console.print("[cyan]Starting Mitch-AI review...[/cyan]")
    if verbose:
        console.print(f"[dim]Target: {escape(root)}[/dim]")

    try:
        if target.is_file():
            console.print("[cyan]Reviewing single file...[/cyan]")
            result = reviewer.review_file(str(target))
            render_file_review(str(target), result, console)
        else:
            console.print("[cyan]Reviewing entire project...[/cyan]")
            review = reviewer.review_project(root)
            render_project_review(review, console, verbose=verbose)
    except ModelUnavailableError as e:
        raise click.ClickException(str(e))
    except (click.ClickException, click.Abort):
        raise
    except Exception as e:
        if verbose:
            console.print_exception()
        logger.debug("Review failed", exc_info=True)
        raise click.ClickException(f"Review failed: {e}" + ("" if verbose else " (use -v for details)"))
