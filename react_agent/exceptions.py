"""Exception types raised by the agent, its tools and the state store."""


class AgentError(Exception):
    """Base class for all agent errors."""


class MaxIterationsError(AgentError):
    """The reasoning loop used up its iteration budget without a final answer."""

    def __init__(self, max_iterations: int):
        self.max_iterations = max_iterations
        super().__init__(f"Max iterations ({max_iterations}) reached")


class ToolExecutionError(AgentError):
    """A tool could not parse its arguments or failed while running."""

    def __init__(self, tool_name: str, message: str):
        self.tool_name = tool_name
        super().__init__(message)


class StateStoreError(AgentError):
    """Reading or writing the persisted state file failed."""
