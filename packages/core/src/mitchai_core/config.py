import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "ollama_url": "http://localhost:11434",
    "mcp_url": "http://localhost:4568",
    "mcp_host": "127.0.0.1",
    "mcp_port": 4568,
    "model": None,  # None = pick the recommended model for the detected languages
    "tier": "fast",
    "mcp_timeout": 30.0,  # seconds per tool call
    "inference_timeout": 300.0,  # seconds per model call
    "workers": 1,  # files reviewed in parallel; 1 keeps the review sequential
    "auto_pull": False,  # pull a missing model without asking
}

USER_CONFIG_PATH = Path("~/.mitchai.yml")


def _read_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(data).__name__}.")
    return data


def load_config(config_path: str = ".mitchai.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. ~/.mitchai.yml
      3. .mitchai.yml in the current directory (or --config)
      4. Environment variables (OLLAMA_HOST, MITCHAI_MCP_URL)
      5. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    config.update(_read_yaml(USER_CONFIG_PATH.expanduser()))
    config.update(_read_yaml(Path(config_path)))

    ollama_host = os.environ.get("OLLAMA_HOST")
    if ollama_host:
        config["ollama_url"] = ollama_host if "://" in ollama_host else f"http://{ollama_host}"
    mcp_url = os.environ.get("MITCHAI_MCP_URL")
    if mcp_url:
        config["mcp_url"] = mcp_url

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    return config
