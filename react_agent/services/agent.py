"""Reason-Act-Observe orchestration loop."""

from collections.abc import Iterable
from typing import Any, Self

from react_agent.clients.base import ChatClient
from react_agent.exceptions import MaxIterationsError, StateStoreError
from react_agent.models.agent import AgentConfig, ExecutionContext
from react_agent.models.messages import Message, ToolCall, ToolResult
from react_agent.services.state import StateKey, StateStore
from react_agent.tools.base import ToolBase
from react_agent.utils.logging import get_logger

logger = get_logger(__name__)


class ReActAgent:
    """Tool-calling agent that loops until the model answers without tools.

    The agent owns its conversation history and state store. Use it as a
    context manager to load persisted state on entry and flush it on exit:

        with ReActAgent(client, tools, AgentConfig(state_file_path=path)) as agent:
            print(agent.run("What is 2 + 3?"))
    """

    def __init__(
        self,
        client: ChatClient,
        tools: Iterable[ToolBase],
        config: AgentConfig | None = None,
        state: StateStore | None = None,
    ):
        """Initialize the agent.

        Args:
            client: Chat completion client
            tools: Tools the model may call, with unique names
            config: Loop configuration
            state: State store (defaults to an empty one)

        Raises:
            ValueError: If two tools share a name
        """
        self.client = client
        self.tools: dict[str, ToolBase] = {}
        for tool in tools:
            if tool.name in self.tools:
                raise ValueError(f"Tool '{tool.name}' is already registered")
            self.tools[tool.name] = tool

        self.context = ExecutionContext(config=config or AgentConfig(), state=state or StateStore())
        self._messages: list[Message] = []

    @property
    def config(self) -> AgentConfig:
        return self.context.config

    @property
    def state(self) -> StateStore:
        return self.context.state

    @property
    def messages(self) -> tuple[Message, ...]:
        """Snapshot of the conversation history."""
        return tuple(self._messages)

    def add_message(self, message: Message) -> None:
        self._messages.append(message)

    def add_messages(self, messages: Iterable[Message]) -> None:
        self._messages.extend(messages)

    def reset(self) -> None:
        """Clear the conversation history. State is kept."""
        self._messages.clear()

    def set_verbose(self, verbose: bool) -> None:
        self.context.config = self.config.model_copy(update={"verbose": verbose})

    def tool_definitions(self) -> list[dict[str, Any]]:
        return [tool.to_function_definition() for tool in self.tools.values()]

    def persistent_keys(self) -> list[StateKey[Any]]:
        """Persistent keys declared by the tools, without duplicates."""
        keys = {id(key): key for tool in self.tools.values() for key in tool.state_keys if key.persistent}
        return list(keys.values())

    def run(self, user_message: str) -> str:
        """Run the loop for one user message and return the final answer.

        Raises:
            MaxIterationsError: If the model keeps requesting tools past max_iterations
        """
        self._messages.append(Message.user(user_message))
        definitions = self.tool_definitions()
        max_iterations = self.config.max_iterations
        iteration = 0

        logger.info(f"Starting agent loop with {len(self._messages)} messages, {len(self.tools)} tools")

        while True:
            if iteration >= max_iterations:
                logger.warning(f"Agent loop reached max iterations ({max_iterations})")
                raise MaxIterationsError(max_iterations)

            logger.debug(f"Agent loop iteration {iteration + 1}/{max_iterations}")
            response = self.client.chat(self.messages, definitions, self.config.system_prompt)

            if not response.has_tool_calls:
                content = response.content or ""
                self._messages.append(Message.assistant(content))
                logger.info(f"Agent loop completed in {iteration + 1} iterations")
                return content

            tool_calls = response.tool_calls or []
            logger.info(f"Model requested {len(tool_calls)} tool calls: {', '.join(c.name for c in tool_calls)}")
            self._messages.append(Message.assistant_with_tools(response.content, tool_calls))

            for tool_call in tool_calls:
                result = self.execute_tool(tool_call)
                self._messages.append(Message.tool(result.result, result.tool_call_id, result.tool_name))

            iteration += 1

    def execute_tool(self, tool_call: ToolCall) -> ToolResult:
        """Execute one tool call. Failures become an unsuccessful result, never an exception."""
        tool = self.tools.get(tool_call.name)
        if tool is None:
            logger.error(f"Unknown tool requested: {tool_call.name}")
            return ToolResult(
                tool_call_id=tool_call.id,
                tool_name=tool_call.name,
                result=f"Error: Tool '{tool_call.name}' not found",
                success=False,
            )

        logger.debug(f"Executing tool: {tool_call.name} with arguments: {tool_call.arguments}")
        try:
            output = tool.execute_json(tool_call.arguments, self.context)
        except Exception as e:
            logger.error(f"Tool {tool_call.name} failed: {e}")
            return ToolResult(tool_call_id=tool_call.id, tool_name=tool_call.name, result=f"Error: {e}", success=False)

        logger.debug(f"Tool {tool_call.name} succeeded: {output[:100]}")
        return ToolResult(tool_call_id=tool_call.id, tool_name=tool_call.name, result=output, success=True)

    def load_state(self) -> int:
        """Load persisted state for the tools' keys. Failures are logged, not raised."""
        path = self.config.state_file_path
        if path is None:
            return 0

        try:
            loaded = self.state.load_from_file(path, self.persistent_keys())
        except StateStoreError as e:
            logger.warning(f"State load failed: {e}")
            return 0

        if loaded:
            logger.info(f"Loaded {loaded} state entries from {path}")
        return loaded

    def save_state(self) -> int:
        """Flush persistent state to the state file. Failures are logged, not raised."""
        path = self.config.state_file_path
        if path is None:
            return 0

        try:
            return self.state.save_to_file(path)
        except StateStoreError as e:
            logger.warning(f"State save failed: {e}")
            return 0

    def close(self) -> None:
        self.save_state()

    def __enter__(self) -> Self:
        self.load_state()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
