"""Request dispatch for the MCP server.

``Dispatcher.handle`` takes a raw request body and always returns an
``RpcReply``; it never raises. The registry is fixed at construction and read
concurrently by the transport's worker threads.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable

from mitchai_mcp import protocol
from mitchai_mcp.protocol import Initialize, ParseError, ToolsCall, ToolsList
from mitchai_mcp.tools import InvalidArgumentsError, Tool, default_tools

logger = logging.getLogger(__name__)


@dataclass
class RpcReply:
    status_code: int
    payload: dict


class Dispatcher:
    def __init__(self, tools: Iterable[Tool] | None = None):
        registry: dict[str, Tool] = {}
        for tool in default_tools() if tools is None else tools:
            if tool.name in registry:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            registry[tool.name] = tool
        self._tools = MappingProxyType(registry)

    @property
    def tools(self):
        return self._tools

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools)

    def handle(self, body: bytes | str) -> RpcReply:
        try:
            request = protocol.decode_request(body)
        except ParseError as e:
            logger.debug("Rejecting unparseable request: %s", e)
            return RpcReply(400, protocol.error(None, protocol.PARSE_ERROR, "Parse error"))

        try:
            return RpcReply(200, self.dispatch(request))
        except Exception:
            logger.exception("Unhandled error while dispatching %r", request)
            return RpcReply(500, protocol.error(request.id, protocol.INTERNAL_ERROR, "Internal error"))

    def dispatch(self, request: protocol.Request) -> dict:
        if isinstance(request, Initialize):
            return protocol.success(
                request.id,
                {
                    "protocolVersion": protocol.PROTOCOL_VERSION,
                    "capabilities": {"tools": {}, "resources": {}},
                    "serverInfo": {"name": protocol.SERVER_NAME, "version": protocol.server_version()},
                },
            )
        if isinstance(request, ToolsList):
            return protocol.success(request.id, {"tools": [tool.descriptor() for tool in self._tools.values()]})
        if isinstance(request, ToolsCall):
            return self._call_tool(request)
        return protocol.error(request.id, protocol.METHOD_NOT_FOUND, "Method not found")

    def _call_tool(self, request: ToolsCall) -> dict:
        if request.name is None:
            return protocol.error(request.id, protocol.INVALID_PARAMS, "Invalid params: tool name is required")
        tool = self._tools.get(request.name)
        if tool is None:
            return protocol.error(request.id, protocol.INVALID_PARAMS, f"Tool not found: {request.name}")
        if not isinstance(request.arguments, dict):
            return protocol.error(request.id, protocol.INVALID_PARAMS, "Invalid params: arguments must be an object")

        try:
            result = tool(request.arguments)
        except InvalidArgumentsError as e:
            return protocol.error(request.id, protocol.INVALID_PARAMS, f"Invalid params: {e}")
        except Exception as e:
            logger.warning("Tool %s failed: %s", request.name, e)
            return protocol.error(request.id, protocol.INTERNAL_ERROR, f"Tool execution failed: {e}")

        text = result if isinstance(result, str) else json.dumps(result)
        return protocol.success(request.id, protocol.text_content(text))
