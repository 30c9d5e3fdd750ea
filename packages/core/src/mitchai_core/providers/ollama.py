from __future__ import annotations

import logging

import httpx

from mitchai_core.providers.base import BaseProvider

logger = logging.getLogger(__name__)

DEFAULT_OLLAMA_URL = "http://localhost:11434"


class OllamaProvider(BaseProvider):
    """Chat and model management against a local Ollama runtime."""

    # Low temperature keeps the JSON response shape stable across files.
    TEMPERATURE = 0.2

    def __init__(self, base_url: str = DEFAULT_OLLAMA_URL, timeout: float = 300.0, client: httpx.Client | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client = client or httpx.Client(base_url=self.base_url, timeout=timeout)

    def close(self) -> None:
        self.client.close()

    def _call_api(self, model: str, messages: list[dict]) -> str:
        response = self.client.post(
            "/api/chat",
            json={
                "model": model,
                "messages": messages,
                "stream": False,
                "options": {"temperature": self.TEMPERATURE},
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
        data = response.json()
        if isinstance(data, str):
            return data
        message = data.get("message") or {}
        content = message.get("content") if isinstance(message, dict) else None
        if content is None:
            raise ValueError(f"Response has no message content: {str(data)[:200]}")
        return content

    # ------------------------------------------------------------------ #
    # Runtime management                                                   #
    # ------------------------------------------------------------------ #

    def is_running(self) -> bool:
        try:
            return self.client.get("/api/version", timeout=5.0).status_code == 200
        except httpx.HTTPError:
            return False

    def version(self) -> str | None:
        try:
            response = self.client.get("/api/version", timeout=5.0)
            response.raise_for_status()
            return response.json().get("version")
        except (httpx.HTTPError, ValueError):
            return None

    def list_models(self) -> list[str]:
        """Names of installed models; empty when the runtime is unreachable."""
        try:
            response = self.client.get("/api/tags", timeout=10.0)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.debug("Could not list models: %s", e)
            return []
        return [m["name"] for m in response.json().get("models", []) if m.get("name")]

    def has_model(self, model: str) -> bool:
        installed = self.list_models()
        # "phi3:mini" is reported as-is; bare names are reported with ":latest".
        return model in installed or f"{model}:latest" in installed

    def pull_model(self, model: str) -> None:
        logger.info("Pulling model %s (this may take a while)", model)
        response = self.client.post("/api/pull", json={"model": model, "stream": False}, timeout=None)
        response.raise_for_status()
        status = response.json().get("status")
        if status != "success":
            raise RuntimeError(f"Model download failed for {model}: {status}")

    def delete_model(self, model: str) -> None:
        response = self.client.request("DELETE", "/api/delete", json={"model": model})
        response.raise_for_status()
