"""Tests for the tool bridge server and the sandbox client."""

import json

import httpx
import pytest

from react_agent.sandbox.client import ToolCallError, call_tool
from react_agent.tools.calculator import CalculatorTool
from react_agent.tools.eval import EvalTool, GetToolLibraryTool
from react_agent.tools.memory import MEMORY_KEY, memory_tools
from react_agent.tools.server import ToolRequest, ToolResponse, ToolServer


@pytest.fixture
def server(context):
    """Running tool server exposing the calculator, memory and eval tools."""
    tools = [CalculatorTool(), *memory_tools(), EvalTool([]), GetToolLibraryTool([])]
    with ToolServer(tools, context) as server:
        yield server


def post(server: ToolServer, **kwargs) -> httpx.Response:
    return httpx.post(f"http://127.0.0.1:{server.port}/", timeout=10, **kwargs)


class TestWireModels:
    """Tests for the bridge request and response models."""

    def test_request_uses_camel_case_name(self):
        """Test that the tool name travels as toolName."""
        request = ToolRequest.model_validate_json('{"toolName": "calculator", "arguments": "{}"}')
        assert request.tool_name == "calculator"
        assert json.loads(request.model_dump_json(by_alias=True)) == {"toolName": "calculator", "arguments": "{}"}

    def test_response_shape(self):
        """Test the response JSON fields."""
        response = ToolResponse(success=False, error="nope")
        assert json.loads(response.model_dump_json()) == {"result": "", "success": False, "error": "nope"}


class TestToolServer:
    """Tests for the HTTP bridge."""

    def test_binds_ephemeral_port(self, server):
        """Test that port 0 yields a real port."""
        assert server.running
        assert server.port > 0

    def test_executes_tool(self, server):
        """Test a successful tool execution."""
        response = post(
            server, json={"toolName": "calculator", "arguments": '{"operation":"add","a":2,"b":3}'}
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        body = response.json()
        assert body == {"result": '{"result":5,"operation":"add"}', "success": True, "error": None}

    def test_tools_share_the_callers_state(self, server, context):
        """Test that bridged tools mutate the same state store."""
        post(server, json={"toolName": "store_memory", "arguments": '{"key":"a","value":"b"}'})
        assert context.state.get(MEMORY_KEY) == {"a": "b"}

    def test_tool_failure(self, server):
        """Test that a failing tool reports its error."""
        body = post(server, json={"toolName": "calculator", "arguments": '{"operation":"divide","a":1,"b":0}'}).json()

        assert body["success"] is False
        assert body["error"] == "Cannot divide by zero"

    def test_unknown_tool(self, server):
        """Test an unknown tool name."""
        body = post(server, json={"toolName": "nope", "arguments": "{}"}).json()
        assert body == {"result": "", "success": False, "error": "Tool 'nope' not found"}

    @pytest.mark.parametrize("tool_name", ["eval", "get_tool_library"])
    def test_eval_tools_not_exposed(self, server, tool_name):
        """Test that the sandbox cannot reach the eval tools."""
        body = post(server, json={"toolName": tool_name, "arguments": "{}"}).json()
        assert body["error"] == f"Tool '{tool_name}' not found"

    @pytest.mark.parametrize("content", [b"not json", b"{}", b'{"arguments": "{}"}', b""])
    def test_malformed_request(self, server, content):
        """Test that bad bodies yield an error response, not a connection failure."""
        response = post(server, content=content)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert body["error"].startswith("Invalid request:")

    @pytest.mark.parametrize("method", ["GET", "HEAD", "PUT", "DELETE", "PATCH", "OPTIONS", "TRACE", "BREW"])
    def test_non_post_is_not_found(self, server, method):
        """Test that other methods get an empty 404."""
        response = httpx.request(method, f"http://127.0.0.1:{server.port}/", timeout=10)

        assert response.status_code == 404
        assert response.content == b""

    def test_serves_sequential_requests(self, server):
        """Test that the server keeps serving after each connection closes."""
        for i in range(5):
            arguments = json.dumps({"operation": "add", "a": i, "b": 1})
            body = post(server, json={"toolName": "calculator", "arguments": arguments}).json()
            assert json.loads(body["result"])["result"] == i + 1

    def test_stop(self, context):
        """Test that a stopped server releases its port."""
        server = ToolServer([CalculatorTool()], context)
        server.start()
        server.stop()

        assert not server.running
        with pytest.raises(RuntimeError, match="not running"):
            server.port


class TestSandboxClient:
    """Tests for the client used inside the sandbox."""

    def test_call_tool(self, server, monkeypatch):
        """Test calling a tool and decoding its result."""
        monkeypatch.setenv("TOOL_SERVER_PORT", str(server.port))
        assert call_tool("calculator", {"operation": "multiply", "a": 6, "b": 7}) == {
            "result": 42,
            "operation": "multiply",
        }

    def test_empty_result_decodes_to_dict(self, server, monkeypatch):
        """Test that tools with no output return an empty dict."""
        monkeypatch.setenv("TOOL_SERVER_PORT", str(server.port))
        assert call_tool("store_memory", {"key": "a", "value": "b"}) == {}

    def test_tool_error_raises(self, server, monkeypatch):
        """Test that a tool failure raises ToolCallError."""
        monkeypatch.setenv("TOOL_SERVER_PORT", str(server.port))
        with pytest.raises(ToolCallError, match="Cannot divide by zero"):
            call_tool("calculator", {"operation": "divide", "a": 1, "b": 0})

    def test_missing_port_raises(self, monkeypatch):
        """Test calling outside the sandbox."""
        monkeypatch.delenv("TOOL_SERVER_PORT", raising=False)
        with pytest.raises(ToolCallError, match="TOOL_SERVER_PORT is not set"):
            call_tool("calculator", {})

    def test_unreachable_server_raises(self, context, monkeypatch):
        """Test that a connection failure raises ToolCallError."""
        server = ToolServer([CalculatorTool()], context)
        server.start()
        port = server.port
        server.stop()

        monkeypatch.setenv("TOOL_SERVER_PORT", str(port))
        with pytest.raises(ToolCallError, match="Failed to call tool"):
            call_tool("calculator", {}, timeout=2)
