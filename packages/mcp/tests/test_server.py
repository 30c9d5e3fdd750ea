"""Tests for the HTTP transport, driven through FastAPI's TestClient."""

import pytest
from click.testing import CliRunner
from fastapi.testclient import TestClient

from mitchai_mcp.client import MCPClient, MCPServerError
from mitchai_mcp.dispatcher import Dispatcher
from mitchai_mcp.server import create_app, main


@pytest.fixture
def client():
    with TestClient(create_app()) as test_client:
        yield test_client


def test_initialize_over_http(client):
    response = client.post("/mcp", json={"jsonrpc": "2.0", "method": "initialize", "id": 1})
    assert response.status_code == 200
    assert response.json()["result"]["serverInfo"]["name"] == "Mitch-AI MCP Server"


def test_parse_error_returns_400(client):
    response = client.post("/mcp", content=b"{oops", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json() == {"jsonrpc": "2.0", "error": {"code": -32700, "message": "Parse error"}, "id": None}


def test_tool_failure_is_http_200(client, tmp_path):
    response = client.post(
        "/mcp",
        json={
            "jsonrpc": "2.0",
            "method": "tools/call",
            "params": {"name": "read_file", "arguments": {"path": str(tmp_path / "missing.rb")}},
            "id": 2,
        },
    )
    assert response.status_code == 200
    error = response.json()["error"]
    assert error["code"] == -32603
    assert "not found" in error["message"]


def test_status(client):
    body = client.get("/status").json()
    assert body["status"] == "running"
    assert body["server"] == "Mitch-AI MCP Server"
    assert "read_file" in body["tools"]
    assert body["version"]


def test_cors_preflight(client):
    response = client.options(
        "/mcp",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert "POST" in response.headers["access-control-allow-methods"]


def test_custom_dispatcher():
    app = create_app(Dispatcher([]))
    with TestClient(app) as test_client:
        assert test_client.get("/status").json()["tools"] == []


# ---------------------------------------------------------------------------
# Client against the real app
# ---------------------------------------------------------------------------


def test_client_round_trip(client, tmp_path):
    source = tmp_path / "user.rb"
    source.write_text("class User\nend\n")
    mcp = MCPClient("http://testserver", http_client=client)

    assert mcp.read_file(str(source)) == "class User\nend\n"
    assert mcp.analyze_complexity(str(source))["classes"] == 1
    assert mcp.list_source_files(str(tmp_path), ["ruby"]) == {"ruby": [str(source)]}
    assert mcp.is_running()
    with pytest.raises(MCPServerError, match="Tool not found: nope"):
        mcp.call_tool("nope")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def test_main_runs_uvicorn(mocker):
    run = mocker.patch("mitchai_mcp.server.uvicorn.run")
    result = CliRunner().invoke(main, ["--host", "0.0.0.0", "--port", "5001"])
    assert result.exit_code == 0, result.output
    _, kwargs = run.call_args
    assert kwargs["host"] == "0.0.0.0"
    assert kwargs["port"] == 5001
