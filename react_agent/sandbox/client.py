"""Client used by sandboxed code to call back into the agent's tools."""

import json
import os
from typing import Any

import httpx

TOOL_SERVER_PORT_ENV = "TOOL_SERVER_PORT"
DEFAULT_TIMEOUT = 60.0


class ToolCallError(RuntimeError):
    """The bridge rejected the call or the tool failed."""


def server_url() -> str:
    port = os.environ.get(TOOL_SERVER_PORT_ENV)
    if not port:
        raise ToolCallError(f"{TOOL_SERVER_PORT_ENV} is not set; tools can only be called from the eval sandbox")
    return f"http://127.0.0.1:{port}/"


def call_tool(name: str, arguments: dict[str, Any] | None = None, timeout: float = DEFAULT_TIMEOUT) -> Any:
    """Execute a tool through the bridge and return its decoded JSON result.

    Raises:
        ToolCallError: If the request fails or the tool reports an error
    """
    payload = {"toolName": name, "arguments": json.dumps(arguments or {})}

    try:
        response = httpx.post(server_url(), json=payload, timeout=timeout)
        response.raise_for_status()
        body = response.json()
    except (httpx.HTTPError, ValueError) as e:
        raise ToolCallError(f"Failed to call tool '{name}': {e}") from e

    if not body.get("success"):
        raise ToolCallError(f"Error calling tool '{name}': {body.get('error') or 'Unknown error'}")

    result = body.get("result") or "{}"
    return json.loads(result)
