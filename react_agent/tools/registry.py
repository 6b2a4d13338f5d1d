"""Tools registry for managing agent tools."""

from collections.abc import Iterable
from typing import Any

from react_agent.tools.base import ToolBase
from react_agent.tools.calculator import CalculatorTool
from react_agent.tools.clock import DateTimeTool
from react_agent.tools.eval import DEFAULT_TIMEOUT_SECONDS, EvalTool, GetToolLibraryTool, generate_tool_library
from react_agent.tools.files import file_tools
from react_agent.tools.memory import memory_tools
from react_agent.tools.search import SearchTool
from react_agent.tools.weather import WeatherTool


def base_tools(allow_file_writes: bool = False) -> list[ToolBase]:
    """Create the tools every agent gets, and that the eval sandbox can call."""
    return [
        CalculatorTool(),
        WeatherTool(),
        DateTimeTool(),
        SearchTool(),
        *memory_tools(),
        *file_tools(read_only=not allow_file_writes),
    ]


class ToolsRegistry:
    """Registry of the tools exposed to the model, keyed by unique name.

    In eval-only mode the model sees just `eval` and `get_tool_library`; the base
    tools stay reachable from inside the sandbox.
    """

    def __init__(
        self,
        tools: Iterable[ToolBase] | None = None,
        include_eval: bool = True,
        eval_only: bool = False,
        eval_timeout: float = DEFAULT_TIMEOUT_SECONDS,
        allow_file_writes: bool = False,
    ):
        self.eval_only = eval_only
        self.base_tools = list(tools) if tools is not None else base_tools(allow_file_writes)
        self._tools: dict[str, ToolBase] = {}
        self._register_default_tools(include_eval or eval_only, eval_timeout)

    def _register_default_tools(self, include_eval: bool, eval_timeout: float) -> None:
        tools: list[ToolBase] = [] if self.eval_only else list(self.base_tools)
        if include_eval:
            tools += [EvalTool(self.base_tools, timeout=eval_timeout), GetToolLibraryTool(self.base_tools)]

        for tool in tools:
            self.register_tool(tool)

    def register_tool(self, tool: ToolBase) -> None:
        """Register a new tool in the registry.

        Raises:
            ValueError: If a tool with the same name is already registered
        """
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool

    def get(self, name: str) -> ToolBase | None:
        return self._tools.get(name)

    def tools(self) -> list[ToolBase]:
        return list(self._tools.values())

    def definitions(self) -> list[dict[str, Any]]:
        """Get function-calling definitions for every registered tool."""
        return [tool.to_function_definition() for tool in self._tools.values()]

    def tool_library(self) -> str:
        """Python source of the sandbox tool library."""
        return generate_tool_library(self.base_tools)

    def get_tool_names(self) -> list[str]:
        """Get list of all registered tool names."""
        return list(self._tools.keys())

    def has_tool(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self):
        return iter(self._tools.values())
