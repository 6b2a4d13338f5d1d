"""Message and conversation data models."""

from enum import StrEnum
from typing import Self

from pydantic import BaseModel, ConfigDict, model_validator


class Role(StrEnum):
    """Who or what produced a message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


class ToolCall(BaseModel):
    """A tool call requested by the assistant.

    `arguments` is the raw JSON payload exactly as the model produced it.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    arguments: str


class Message(BaseModel):
    """A message in the conversation history."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str | None = None
    tool_calls: tuple[ToolCall, ...] | None = None
    tool_call_id: str | None = None
    name: str | None = None

    @model_validator(mode="after")
    def check_role_fields(self) -> Self:
        """Tool-call fields must agree with the role."""
        if self.role == Role.TOOL and not self.tool_call_id:
            raise ValueError("Tool messages must carry a tool_call_id")
        if self.tool_calls is not None and self.role != Role.ASSISTANT:
            raise ValueError("Only assistant messages can carry tool calls")
        if self.tool_call_id is not None and self.role != Role.TOOL:
            raise ValueError("Only tool messages can carry a tool_call_id")
        return self

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(role=Role.ASSISTANT, content=content)

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def tool(cls, content: str, tool_call_id: str, name: str) -> "Message":
        return cls(role=Role.TOOL, content=content, tool_call_id=tool_call_id, name=name)

    @classmethod
    def assistant_with_tools(cls, content: str | None, tool_calls: list[ToolCall]) -> "Message":
        return cls(role=Role.ASSISTANT, content=content, tool_calls=tuple(tool_calls))

    def format(self, max_content_length: int = 500) -> str:
        """Render the message as readable text, truncating long content."""
        lines = [f"Role: {self.role.value}"]

        if self.content is not None:
            content = self.content
            if len(content) > max_content_length:
                content = content[:max_content_length] + "..."
            lines.append(f"Content: {content}")

        if self.tool_calls:
            lines.append(f"Tool Calls ({len(self.tool_calls)}):")
            for call in self.tool_calls:
                lines.append(f"  - {call.name} (id: {call.id})")
                lines.append(f"    Arguments: {call.arguments}")

        if self.tool_call_id:
            lines.append(f"Tool Call ID: {self.tool_call_id}")

        if self.name:
            lines.append(f"Name: {self.name}")

        return "\n".join(lines) + "\n"


class ToolResult(BaseModel):
    """Result of executing one tool call."""

    model_config = ConfigDict(frozen=True)

    tool_call_id: str
    tool_name: str
    result: str
    success: bool
