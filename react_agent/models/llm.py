"""Provider-agnostic chat completion models."""

from typing import Any, Literal

from pydantic import BaseModel, Field

from react_agent.models.messages import ToolCall


class FunctionSpec(BaseModel):
    """Name, description and parameter schema of a callable tool."""

    name: str
    description: str
    parameters: dict[str, Any]


class FunctionDefinition(BaseModel):
    """Tool definition in the widely used function-calling envelope."""

    type: Literal["function"] = "function"
    function: FunctionSpec


class ChatResponse(BaseModel):
    """One assistant turn returned by a chat client.

    `finish_reason` is "tool_calls" when the model wants tools run, "stop" for a final answer.
    """

    content: str | None = None
    tool_calls: list[ToolCall] | None = None
    finish_reason: str = "stop"

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


class TokenUsage(BaseModel):
    """Token usage reported by the provider for one request."""

    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_input_tokens: int = 0
    cache_read_input_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class UsageTotals(BaseModel):
    """Running token totals across requests."""

    requests: int = 0
    usage: TokenUsage = Field(default_factory=TokenUsage)

    def add(self, usage: TokenUsage) -> None:
        self.requests += 1
        self.usage = TokenUsage(
            input_tokens=self.usage.input_tokens + usage.input_tokens,
            output_tokens=self.usage.output_tokens + usage.output_tokens,
            cache_creation_input_tokens=self.usage.cache_creation_input_tokens + usage.cache_creation_input_tokens,
            cache_read_input_tokens=self.usage.cache_read_input_tokens + usage.cache_read_input_tokens,
        )
