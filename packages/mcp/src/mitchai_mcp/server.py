"""HTTP transport for the MCP server.

``create_app`` wires a Dispatcher into a FastAPI app; ``serve`` runs it with
uvicorn. The module is also the entry point used by ``mitchai server start``:

    python -m mitchai_mcp.server --port 4568
"""

from __future__ import annotations

import logging

import click
import uvicorn
from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mitchai_mcp.dispatcher import Dispatcher
from mitchai_mcp.protocol import DEFAULT_PORT, SERVER_NAME, server_version

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"


def create_app(dispatcher: Dispatcher | None = None) -> FastAPI:
    """Build the FastAPI application serving ``POST /mcp`` and ``GET /status``."""
    dispatcher = dispatcher or Dispatcher()

    app = FastAPI(title=SERVER_NAME, version=server_version(), docs_url=None, redoc_url=None)
    app.state.dispatcher = dispatcher

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.post("/mcp")
    async def mcp(request: Request) -> JSONResponse:
        body = await request.body()
        # Tools touch the filesystem and spawn git; keep them off the event loop.
        reply = await run_in_threadpool(dispatcher.handle, body)
        return JSONResponse(status_code=reply.status_code, content=reply.payload)

    @app.get("/status")
    async def status() -> JSONResponse:
        return JSONResponse(
            {
                "status": "running",
                "server": SERVER_NAME,
                "version": server_version(),
                "tools": dispatcher.tool_names,
            }
        )

    return app


def serve(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT, log_level: str = "info") -> None:
    logger.info("Starting %s on %s:%d", SERVER_NAME, host, port)
    uvicorn.run(create_app(), host=host, port=port, log_level=log_level)


@click.command()
@click.option("--host", default=DEFAULT_HOST, show_default=True, help="Interface to bind.")
@click.option("--port", default=DEFAULT_PORT, show_default=True, type=int, help="Port to listen on.")
@click.option("--log-level", default="info", show_default=True, help="uvicorn log level.")
def main(host: str, port: int, log_level: str):
    """Run the Mitch-AI MCP server in the foreground."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    serve(host=host, port=port, log_level=log_level)


if __name__ == "__main__":
    main()
