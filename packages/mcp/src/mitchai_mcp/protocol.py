"""Wire format for the tool server.

JSON-RPC 2.0 style envelopes over HTTP POST. A request body is decoded once
into one of four request variants; everything downstream works on the
variant, never on the raw dict.
"""

from __future__ import annotations

import importlib.metadata
import json
from dataclasses import dataclass, field
from typing import Any, Union

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "Mitch-AI MCP Server"
DEFAULT_PORT = 4568

# Reserved error codes
PARSE_ERROR = -32700
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


def server_version() -> str:
    try:
        return importlib.metadata.version("mitchai")
    except importlib.metadata.PackageNotFoundError:
        return "0.0.0+unknown"


class ParseError(Exception):
    """The request body is not a JSON object."""


@dataclass(frozen=True)
class Initialize:
    id: Any = None


@dataclass(frozen=True)
class ToolsList:
    id: Any = None


@dataclass(frozen=True)
class ToolsCall:
    id: Any = None
    # None when params.name is absent or not a string.
    name: str | None = None
    arguments: Any = field(default_factory=dict)


@dataclass(frozen=True)
class UnknownMethod:
    id: Any = None
    method: Any = None


Request = Union[Initialize, ToolsList, ToolsCall, UnknownMethod]


def decode_request(body: bytes | str) -> Request:
    """Decode a raw request body. Raises ParseError for anything but a JSON object."""
    try:
        data = json.loads(body)
    except (ValueError, TypeError) as e:
        raise ParseError(str(e)) from e
    if not isinstance(data, dict):
        raise ParseError(f"Expected a JSON object, got {type(data).__name__}")

    request_id = data.get("id")
    method = data.get("method")
    params = data.get("params")
    if params is None:
        params = {}

    if method == "initialize":
        return Initialize(id=request_id)
    if method == "tools/list":
        return ToolsList(id=request_id)
    if method == "tools/call":
        if not isinstance(params, dict):
            return ToolsCall(id=request_id, name=None, arguments=None)
        name = params.get("name")
        arguments = params.get("arguments")
        return ToolsCall(
            id=request_id,
            name=name if isinstance(name, str) else None,
            arguments={} if arguments is None else arguments,
        )
    return UnknownMethod(id=request_id, method=method)


def success(request_id: Any, result: dict) -> dict:
    return {"jsonrpc": JSONRPC_VERSION, "result": result, "id": request_id}


def error(request_id: Any, code: int, message: str) -> dict:
    return {"jsonrpc": JSONRPC_VERSION, "error": {"code": code, "message": message}, "id": request_id}


def text_content(text: str) -> dict:
    return {"content": [{"type": "text", "text": text}]}
