"""Chat client boundary consumed by the agent loop."""

from collections.abc import Sequence
from typing import Any, Protocol

from react_agent.models.llm import ChatResponse
from react_agent.models.messages import Message


class ChatClient(Protocol):
    """Anything that can complete a conversation with optional tool calls."""

    def chat(
        self,
        messages: Sequence[Message],
        tools: list[dict[str, Any]],
        system_prompt: str | None = None,
    ) -> ChatResponse:
        """Send the conversation and return the next assistant turn.

        Args:
            messages: Conversation history, oldest first
            tools: Function-calling envelopes (`{"type": "function", "function": {...}}`)
            system_prompt: Instructions for the model

        Returns:
            The assistant turn, with tool calls when the model requests them
        """
        ...
