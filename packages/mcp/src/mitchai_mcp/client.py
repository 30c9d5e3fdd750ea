from __future__ import annotations

import json
import logging
import threading
from typing import Any

import httpx

from mitchai_mcp.protocol import DEFAULT_PORT, JSONRPC_VERSION

logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = f"http://localhost:{DEFAULT_PORT}"
DEFAULT_TIMEOUT = 30.0


class MCPError(Exception):
    """Base class for every failure talking to the MCP server."""


class MCPConnectionError(MCPError):
    """The request never got a response: refused, unreachable or timed out."""


class MCPServerError(MCPError):
    """The server answered, but with an error or something unusable."""


class MCPClient:
    """Blocking client for the MCP server.

    One instance owns one request-id sequence. The counter is bumped under a
    lock so an instance can be shared across review worker threads.
    """

    def __init__(
        self,
        server_url: str = DEFAULT_SERVER_URL,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: httpx.Client | None = None,
    ):
        self.server_url = server_url.rstrip("/")
        self.timeout = timeout
        self._http = http_client or httpx.Client(timeout=timeout)
        self._request_id = 0
        self._lock = threading.Lock()

    @property
    def request_id(self) -> int:
        return self._request_id

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> MCPClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Envelope handling                                                    #
    # ------------------------------------------------------------------ #

    def _next_id(self) -> int:
        with self._lock:
            self._request_id += 1
            return self._request_id

    def _rpc(self, method: str, params: dict) -> dict:
        message = {"jsonrpc": JSONRPC_VERSION, "method": method, "params": params, "id": self._next_id()}
        try:
            response = self._http.post(f"{self.server_url}/mcp", json=message, timeout=self.timeout)
        except httpx.HTTPError as e:
            raise MCPConnectionError(f"Failed to connect to MCP server: {e}") from e

        try:
            envelope = response.json()
        except ValueError as e:
            raise MCPServerError(f"Invalid JSON response: {e}") from e
        if not isinstance(envelope, dict):
            raise MCPServerError(f"Invalid JSON response: expected an object, got {type(envelope).__name__}")

        error = envelope.get("error")
        if error:
            message_text = error.get("message") if isinstance(error, dict) else error
            raise MCPServerError(f"MCP Error: {message_text}")
        return envelope.get("result") or {}

    def call_tool(self, name: str, arguments: dict | None = None) -> str:
        """Invoke a tool and return the text of its first content block."""
        result = self._rpc("tools/call", {"name": name, "arguments": arguments or {}})
        try:
            return result["content"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise MCPServerError(f"Malformed MCP response: {str(result)[:200]}") from e

    def _call_json(self, name: str, arguments: dict) -> Any:
        text = self.call_tool(name, arguments)
        try:
            return json.loads(text)
        except (json.JSONDecodeError, TypeError) as e:
            raise MCPServerError(f"Invalid JSON in tool response: {e}") from e

    # ------------------------------------------------------------------ #
    # Tool wrappers                                                        #
    # ------------------------------------------------------------------ #

    def read_file(self, path: str) -> str:
        return self.call_tool("read_file", {"path": path})

    def list_files(self, path: str, exclude_patterns: list[str] | None = None) -> list[str]:
        arguments: dict = {"path": path}
        if exclude_patterns is not None:
            arguments["exclude_patterns"] = exclude_patterns
        return self._call_json("find_ruby_files", arguments)

    def list_source_files(self, path: str, languages: list[str] | None = None) -> dict[str, list[str]]:
        return self._call_json("find_all_source_files", {"path": path, "languages": languages or []})

    def git_diff(self, diff_range: str = "HEAD~1..HEAD") -> str:
        return self.call_tool("git_diff", {"range": diff_range})

    def detect_code_smells(self, content: str, language: str | None = None) -> list[str]:
        arguments = {"content": content}
        if language:
            arguments["language"] = language
        return self._call_json("detect_code_smells", arguments)

    def analyze_complexity(self, path: str, language: str | None = None) -> dict:
        arguments = {"path": path}
        if language:
            arguments["language"] = language
        return self._call_json("analyze_complexity", arguments)

    def analyze_project_structure(self, path: str = ".") -> dict:
        return self._call_json("analyze_project_structure", {"path": path})

    def analyze_file(self, path: str, language: str | None = None) -> dict:
        arguments = {"path": path}
        if language:
            arguments["language"] = language
        return self._call_json("analyze_file_with_language", arguments)

    # ------------------------------------------------------------------ #
    # Server introspection                                                 #
    # ------------------------------------------------------------------ #

    def list_tools(self) -> list[dict]:
        return self._rpc("tools/list", {}).get("tools", [])

    def status(self) -> dict:
        try:
            response = self._http.get(f"{self.server_url}/status", timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise MCPConnectionError(f"Failed to connect to MCP server: {e}") from e
        try:
            return response.json()
        except ValueError as e:
            raise MCPServerError(f"Invalid JSON response: {e}") from e

    def is_running(self) -> bool:
        try:
            return self.status().get("status") == "running"
        except MCPError:
            return False
