"""HTTP bridge exposing agent tools to an external process."""

import threading
from collections.abc import Iterable
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from react_agent.exceptions import ToolExecutionError
from react_agent.models.agent import ExecutionContext
from react_agent.tools.base import ToolBase
from react_agent.utils.logging import get_logger

logger = get_logger(__name__)

EVAL_TOOL_NAMES = frozenset({"eval", "get_tool_library"})


def is_eval_related(tool: ToolBase) -> bool:
    """Tools that must never be reachable from inside the sandbox."""
    return tool.name in EVAL_TOOL_NAMES


class ToolRequest(BaseModel):
    """Request to execute a tool over the bridge."""

    model_config = ConfigDict(populate_by_name=True)

    tool_name: str = Field(alias="toolName")
    arguments: str = "{}"


class ToolResponse(BaseModel):
    """Result of a bridged tool execution."""

    result: str = ""
    success: bool
    error: str | None = None


class ToolHTTPServer(HTTPServer):
    """Sequential HTTP server holding the exposed tools and their context."""

    def __init__(self, address: tuple[str, int], tools: dict[str, ToolBase], context: ExecutionContext):
        super().__init__(address, ToolRequestHandler)
        self.tools = tools
        self.context = context

    def dispatch(self, body: bytes) -> ToolResponse:
        """Decode a request body, run the tool and build the response."""
        try:
            request = ToolRequest.model_validate_json(body)
        except ValidationError as e:
            logger.warning(f"[Tool Server] Invalid request: {e}")
            return ToolResponse(success=False, error=f"Invalid request: {e}")

        tool = self.tools.get(request.tool_name)
        if tool is None:
            logger.warning(f"[Tool Server] Tool '{request.tool_name}' not found")
            return ToolResponse(success=False, error=f"Tool '{request.tool_name}' not found")

        if self.context.verbose:
            logger.info(f"[Tool Server] Executing tool '{request.tool_name}' arguments={request.arguments}")

        try:
            result = tool.execute_json(request.arguments, self.context)
        except ToolExecutionError as e:
            return ToolResponse(success=False, error=str(e))
        except Exception as e:
            logger.error(f"[Tool Server] Tool '{request.tool_name}' raised: {e}", exc_info=True)
            return ToolResponse(success=False, error=str(e))

        return ToolResponse(result=result, success=True)


class ToolRequestHandler(BaseHTTPRequestHandler):
    """Handles one bridge connection: POST runs a tool, anything else is 404."""

    server: ToolHTTPServer
    protocol_version = "HTTP/1.1"

    def do_POST(self) -> None:
        try:
            length = int(self.headers.get("Content-Length") or 0)
        except ValueError:
            length = 0
        body = self.rfile.read(length) if length > 0 else b""

        response = self.server.dispatch(body)
        self._send(200, response.model_dump_json().encode())

    def send_error(self, code: int, message: str | None = None, explain: str | None = None) -> None:
        # Methods without a do_* handler arrive here as 501
        if code == HTTPStatus.NOT_IMPLEMENTED:
            self._send(HTTPStatus.NOT_FOUND, b"")
            return
        super().send_error(code, message, explain)

    def _send(self, status: int, payload: bytes) -> None:
        self.send_response(status)
        if payload:
            self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(payload)))
        self.send_header("Connection", "close")
        self.end_headers()
        if payload:
            self.wfile.write(payload)
        self.close_connection = True

    def log_message(self, format: str, *args) -> None:
        logger.debug(f"[Tool Server] {self.address_string()} {format % args}")


class ToolServer:
    """Serves tool calls from a sandboxed process, one connection at a time.

    Eval-related tools are never exposed. Use as a context manager:

        with ToolServer(tools, context) as server:
            run_child(port=server.port)
    """

    def __init__(
        self,
        tools: Iterable[ToolBase],
        context: ExecutionContext,
        port: int = 0,
        host: str = "127.0.0.1",
    ):
        self.tools = {tool.name: tool for tool in tools if not is_eval_related(tool)}
        self.context = context
        self.host = host
        self._requested_port = port
        self._httpd: ToolHTTPServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def port(self) -> int:
        """Port the server is bound to."""
        if self._httpd is None:
            raise RuntimeError("Tool server is not running")
        return self._httpd.server_address[1]

    @property
    def running(self) -> bool:
        return self._httpd is not None

    def start(self) -> None:
        if self._httpd is not None:
            return

        self._httpd = ToolHTTPServer((self.host, self._requested_port), self.tools, self.context)
        self._thread = threading.Thread(target=self._httpd.serve_forever, name="tool-server", daemon=True)
        self._thread.start()
        logger.debug(f"Tool server listening on {self.host}:{self.port} with {len(self.tools)} tools")

    def stop(self) -> None:
        if self._httpd is None:
            return

        self._httpd.shutdown()
        self._httpd.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5)

        self._httpd = None
        self._thread = None
        logger.debug("Tool server stopped")

    def __enter__(self) -> Self:
        self.start()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.stop()
