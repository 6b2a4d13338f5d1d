"""Tools the agent can call."""

from react_agent.tools.base import Empty, NoArguments, Tool, ToolBase
from react_agent.tools.registry import ToolsRegistry, base_tools

__all__ = ["Empty", "NoArguments", "Tool", "ToolBase", "ToolsRegistry", "base_tools"]
