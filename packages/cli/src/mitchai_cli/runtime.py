"""Construction of the runtime collaborators shared by several commands.

Commands never build an OllamaProvider or MCPClient themselves; they go
through here so the config keys are read in exactly one place.
"""

from __future__ import annotations

import logging
import shutil

import click

from mitchai_core.providers.ollama import OllamaProvider
from mitchai_mcp.client import MCPClient

logger = logging.getLogger(__name__)

OLLAMA_DOWNLOAD_URL = "https://ollama.com/download"


def build_provider(config: dict) -> OllamaProvider:
    return OllamaProvider(base_url=config["ollama_url"], timeout=float(config["inference_timeout"]))


def build_mcp_client(config: dict, server_url: str | None = None, timeout: float | None = None) -> MCPClient:
    return MCPClient(
        server_url=server_url or config["mcp_url"],
        timeout=float(timeout if timeout is not None else config["mcp_timeout"]),
    )


def require_ollama(provider: OllamaProvider) -> None:
    """Raise ClickException unless the Ollama runtime is reachable.

    Distinguishes "not installed" from "installed but not running" so the
    message tells the user what to do next.
    """
    if provider.is_running():
        return
    if shutil.which("ollama") is None:
        raise click.ClickException(f"Ollama not found. Install it from {OLLAMA_DOWNLOAD_URL} and run `ollama serve`.")
    raise click.ClickException(
        f"Ollama is installed but not reachable at {provider.base_url}. Start it with `ollama serve`."
    )
