"""Anthropic API client with rate limiting and error handling."""

import json
import os
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal, Self

import tiktoken
from anthropic import Anthropic, APIConnectionError, APIStatusError
from anthropic.types import Message as AnthropicApiMessage
from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter
from pydantic import BaseModel

from react_agent.models.llm import ChatResponse, FunctionDefinition, TokenUsage, UsageTotals
from react_agent.models.messages import Message, Role, ToolCall
from react_agent.utils.logging import get_logger

logger = get_logger(__name__)

FINISH_REASONS = {
    "tool_use": "tool_calls",
    "end_turn": "stop",
    "stop_sequence": "stop",
    "max_tokens": "length",
}


class CacheControl(BaseModel):
    """Cache control configuration for prompt caching."""

    type: Literal["ephemeral"] = "ephemeral"
    ttl: Literal["5m", "1h"] = "5m"


class AnthropicMessage(BaseModel):
    """Message format for Anthropic API."""

    role: Literal["user", "assistant"]
    content: list[dict[str, Any]]

    @property
    def has_tool_results(self) -> bool:
        return any(block.get("type") == "tool_result" for block in self.content)


class AnthropicTool(BaseModel):
    """Tool definition for Anthropic API."""

    name: str
    description: str
    input_schema: dict[str, Any]
    cache_control: CacheControl | None = None


@dataclass
class AnthropicResponse:
    """Structured response from Anthropic API."""

    text: str | None
    tool_calls: list[ToolCall]
    stop_reason: str | None
    usage: TokenUsage
    model: str


@dataclass
class AnthropicConfig:
    """Configuration for Anthropic API client."""

    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 4096
    temperature: float = 0.1
    max_retries: int = 3
    retry_delay: float = 1.0

    # Token limits for validation and truncation
    max_message_tokens: int = 2000  # Maximum tokens per user message
    max_conversation_tokens: int = 200000  # Claude 4 Sonnet default context window
    token_headroom: int = 4096  # Reserve tokens for response

    extra_headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> Self:
        """Build a config from ANTHROPIC_MODEL, ANTHROPIC_MAX_TOKENS and ANTHROPIC_TEMPERATURE."""
        config = cls()
        if model := os.getenv("ANTHROPIC_MODEL"):
            config.model = model
        if max_tokens := os.getenv("ANTHROPIC_MAX_TOKENS"):
            config.max_tokens = int(max_tokens)
        if temperature := os.getenv("ANTHROPIC_TEMPERATURE"):
            config.temperature = float(temperature)
        return config


class AnthropicRateLimiter:
    """Moving-window rate limiter for requests and tokens."""

    def __init__(self, requests_per_minute: int = 50, tokens_per_minute: int = 40_000):
        """Initialize rate limiter.

        Args:
            requests_per_minute: Maximum requests per minute
            tokens_per_minute: Maximum tokens per minute
        """
        self.storage = MemoryStorage()
        self.limiter = MovingWindowRateLimiter(self.storage)

        self.request_limit = parse(f"{requests_per_minute}/minute")
        self.token_limit = parse(f"{tokens_per_minute}/minute")

    def check_rate_limit(self, estimated_tokens: int, identifier: str = "anthropic") -> None:
        """Block until the request fits within both rate limits."""
        logger.debug(f"Checking rate limit for {estimated_tokens} tokens, identifier: {identifier}")

        self._wait_for(self.request_limit, identifier, cost=1, label="Request")

        # A single request larger than the whole window can never fit; charge the full window instead
        cost = min(max(estimated_tokens, 1), self.token_limit.amount)
        self._wait_for(self.token_limit, f"{identifier}_tokens", cost=cost, label="Token")

    def _wait_for(self, limit, identifier: str, cost: int, label: str) -> None:
        while not self.limiter.hit(limit, identifier, cost=cost):
            window_stats = self.limiter.get_window_stats(limit, identifier)
            wait_time = max(0.1, window_stats.reset_time - time.time())
            logger.warning(f"{label} rate limit exceeded, waiting {wait_time:.2f}s")
            time.sleep(wait_time)


class AnthropicClient:
    """Anthropic API client implementing the agent's chat boundary."""

    tokenizer: tiktoken.Encoding | None = None
    api_key: str
    client: Anthropic
    config: AnthropicConfig
    rate_limiter: AnthropicRateLimiter

    def __init__(
        self,
        api_key: str | None = None,
        config: AnthropicConfig | None = None,
        rate_limiter: AnthropicRateLimiter | None = None,
    ):
        """Initialize Anthropic client.

        Args:
            api_key: Anthropic API key (defaults to ANTHROPIC_API_KEY env var)
            config: Client configuration (defaults to AnthropicConfig.from_env())
            rate_limiter: Shared rate limiter
        """
        anthropic_api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not anthropic_api_key:
            raise ValueError("ANTHROPIC_API_KEY environment variable is required")

        self.api_key = anthropic_api_key
        self.config = config or AnthropicConfig.from_env()
        self.rate_limiter = rate_limiter or AnthropicRateLimiter()
        self.usage = UsageTotals()

        # Retries are handled by _request_with_retries
        self.client = Anthropic(api_key=self.api_key, max_retries=0, default_headers=self.config.extra_headers)

        # Initialize tokenizer for token estimation
        try:
            # Close approximation for Claude
            self.tokenizer = tiktoken.encoding_for_model("gpt-4")
        except Exception as e:
            logger.debug(f"Tokenizer unavailable, estimating 4 characters per token: {e}")
            self.tokenizer = None

    def chat(
        self,
        messages: Sequence[Message],
        tools: list[dict[str, Any]],
        system_prompt: str | None = None,
    ) -> ChatResponse:
        """Send the conversation to Claude and return the next assistant turn."""
        anthropic_messages, history_system = to_anthropic_messages(messages)
        system = "\n\n".join(part for part in (system_prompt, history_system) if part)
        anthropic_tools = to_anthropic_tools(tools)

        response = self.create_message(anthropic_messages, system, anthropic_tools or None)

        return ChatResponse(
            content=response.text,
            tool_calls=response.tool_calls or None,
            finish_reason=FINISH_REASONS.get(response.stop_reason or "", response.stop_reason or "stop"),
        )

    def create_message(
        self,
        messages: list[AnthropicMessage],
        system_prompt: str,
        tools: list[AnthropicTool] | None = None,
        **kwargs,
    ) -> AnthropicResponse:
        """Create a message with Claude API.

        Args:
            messages: Conversation history
            system_prompt: System prompt for Claude
            tools: Available tools for Claude
            **kwargs: Overrides for model, max_tokens and temperature

        Returns:
            Structured Anthropic response
        """
        truncated_messages = self.truncate_conversation(messages, system_prompt, tools)

        # Estimate tokens for rate limiting
        estimated_tokens = self._estimate_tokens(truncated_messages, system_prompt)
        logger.debug(f"Estimated tokens: {estimated_tokens}")
        self.rate_limiter.check_rate_limit(estimated_tokens)

        request_params: dict[str, Any] = {
            "model": kwargs.get("model", self.config.model),
            "max_tokens": kwargs.get("max_tokens", self.config.max_tokens),
            "temperature": kwargs.get("temperature", self.config.temperature),
            "messages": [msg.model_dump() for msg in truncated_messages],
        }
        if system_prompt:
            request_params["system"] = system_prompt
        if tools:
            request_params["tools"] = [tool.model_dump(exclude_none=True) for tool in tools]

        logger.debug(
            f"Making Anthropic API call with model: {request_params['model']}, "
            f"{len(truncated_messages)} messages, {len(tools) if tools else 0} tools"
        )
        response: AnthropicApiMessage = self._request_with_retries(
            lambda: self.client.messages.create(**request_params)
        )

        usage = TokenUsage()
        if response.usage:
            usage = TokenUsage(
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
                cache_creation_input_tokens=response.usage.cache_creation_input_tokens or 0,
                cache_read_input_tokens=response.usage.cache_read_input_tokens or 0,
            )
        self.usage.add(usage)

        logger.debug(
            f"Response received - Stop reason: {response.stop_reason}, Content blocks: {len(response.content)}"
        )

        text, tool_calls = self._convert_content_blocks(response.content)
        return AnthropicResponse(
            text=text,
            tool_calls=tool_calls,
            stop_reason=response.stop_reason,
            usage=usage,
            model=response.model,
        )

    def _request_with_retries[T](self, call: Callable[[], T]) -> T:
        """Execute Anthropic API request with retry logic."""
        for attempt in range(self.config.max_retries):
            last_attempt = attempt >= self.config.max_retries - 1
            try:
                return call()

            except APIStatusError as e:
                if e.status_code == 429:  # Rate limit exceeded
                    retry_after = _retry_after(e)
                    if retry_after < 120 and not last_attempt:
                        logger.warning(f"Rate limited by Anthropic, retrying in {retry_after:g}s")
                        time.sleep(retry_after)
                        continue

                elif e.status_code >= 500 and not last_attempt:
                    # Server error, retry with exponential backoff
                    delay = self.config.retry_delay * (2**attempt)
                    logger.warning(f"Anthropic server error {e.status_code}, retrying in {delay:g}s")
                    time.sleep(delay)
                    continue

                # Re-raise if not retryable or max retries reached
                raise

            except APIConnectionError as e:
                if not last_attempt:
                    delay = self.config.retry_delay * (2**attempt)
                    logger.warning(f"Connection to Anthropic failed ({e}), retrying in {delay:g}s")
                    time.sleep(delay)
                    continue
                raise

        raise RuntimeError(f"Failed to complete request after {self.config.max_retries} attempts")

    def _convert_content_blocks(self, content: Sequence[Any]) -> tuple[str | None, list[ToolCall]]:
        """Split Anthropic content blocks into response text and tool calls."""
        texts: list[str] = []
        tool_calls: list[ToolCall] = []

        for block in content:
            block_type = getattr(block, "type", None)
            if block_type == "text":
                texts.append(block.text)
            elif block_type == "tool_use":
                tool_calls.append(ToolCall(id=block.id, name=block.name, arguments=json.dumps(block.input)))
            else:
                logger.debug(f"Skipping content block type: {block_type}")

        return ("".join(texts) if texts else None), tool_calls

    def _estimate_tokens(self, messages: list[AnthropicMessage], system_prompt: str) -> int:
        """Estimate token count for rate limiting."""
        text_content = system_prompt + "".join(_message_text(message) for message in messages)
        return self.estimate_message_tokens(text_content)

    def estimate_message_tokens(self, message: str) -> int:
        """Estimate token count for a single message.

        Args:
            message: Message content

        Returns:
            Estimated token count
        """
        if self.tokenizer is None:
            return len(message) // 4

        try:
            return len(self.tokenizer.encode(message))
        except ValueError:
            # Fallback: roughly 4 characters per token
            return len(message) // 4

    def validate_message_tokens(self, message: str) -> None:
        """Validate that a message doesn't exceed token limits.

        Args:
            message: Message content

        Raises:
            ValueError: If message exceeds token limit
        """
        token_count = self.estimate_message_tokens(message)
        if token_count > self.config.max_message_tokens:
            raise ValueError(
                f"Message exceeds token limit: {token_count} tokens > {self.config.max_message_tokens} limit"
            )

    def truncate_conversation(
        self, messages: list[AnthropicMessage], system_prompt: str, tools: list[AnthropicTool] | None = None
    ) -> list[AnthropicMessage]:
        """Truncate conversation from the beginning to fit within token limits.

        The result always starts with a user turn that carries no tool results,
        so no tool_result is left without its tool_use.

        Args:
            messages: Conversation messages
            system_prompt: System prompt
            tools: Available tools

        Returns:
            Truncated message list that fits within limits
        """
        if not messages:
            return messages

        available_tokens = self.config.max_conversation_tokens - self.config.token_headroom

        system_tokens = self.estimate_message_tokens(system_prompt)

        tool_tokens = 0
        if tools:
            tool_content = "".join(tool.name + tool.description + json.dumps(tool.input_schema) for tool in tools)
            tool_tokens = self.estimate_message_tokens(tool_content)

        available_tokens -= system_tokens + tool_tokens

        truncated_messages: list[AnthropicMessage] = []
        current_tokens = 0

        for message in reversed(messages):
            message_tokens = self.estimate_message_tokens(_message_text(message))

            if current_tokens + message_tokens <= available_tokens:
                truncated_messages.insert(0, message)
                current_tokens += message_tokens
            else:
                # Stop adding messages if we exceed the limit
                break

        if len(truncated_messages) < len(messages):
            while truncated_messages and (
                truncated_messages[0].role != "user" or truncated_messages[0].has_tool_results
            ):
                truncated_messages.pop(0)

            logger.warning(
                f"Truncated conversation from {len(messages)} to {len(truncated_messages)} messages "
                f"to fit within {available_tokens} token limit"
            )

        return truncated_messages


def to_anthropic_messages(messages: Sequence[Message]) -> tuple[list[AnthropicMessage], str | None]:
    """Convert agent history into Anthropic messages and extra system text.

    System messages are folded into the system prompt. Consecutive turns of the
    same role are merged, so the tool results of one assistant turn arrive as a
    single user message.
    """
    system_parts: list[str] = []
    converted: list[AnthropicMessage] = []

    for message in messages:
        if message.role == Role.SYSTEM:
            if message.content:
                system_parts.append(message.content)
            continue

        role: Literal["user", "assistant"] = "assistant" if message.role == Role.ASSISTANT else "user"
        blocks = _content_blocks(message)
        if not blocks:
            continue

        if converted and converted[-1].role == role:
            converted[-1].content.extend(blocks)
        else:
            converted.append(AnthropicMessage(role=role, content=blocks))

    return converted, ("\n\n".join(system_parts) or None)


def to_anthropic_tools(tools: list[dict[str, Any]]) -> list[AnthropicTool]:
    """Convert function-calling envelopes into Anthropic tool definitions."""
    converted = []
    for tool in tools:
        function = FunctionDefinition.model_validate(tool).function
        converted.append(
            AnthropicTool(name=function.name, description=function.description, input_schema=function.parameters)
        )
    return converted


def _content_blocks(message: Message) -> list[dict[str, Any]]:
    if message.role == Role.TOOL:
        content = message.content or ""
        return [
            {
                "type": "tool_result",
                "tool_use_id": message.tool_call_id,
                "content": content,
                "is_error": content.startswith("Error: "),
            }
        ]

    blocks: list[dict[str, Any]] = []
    if message.content:
        blocks.append({"type": "text", "text": message.content})

    for call in message.tool_calls or ():
        blocks.append({"type": "tool_use", "id": call.id, "name": call.name, "input": _parse_arguments(call)})

    return blocks


def _parse_arguments(call: ToolCall) -> dict[str, Any]:
    try:
        arguments = json.loads(call.arguments or "{}")
    except ValueError:
        logger.warning(f"Tool call {call.id} has malformed arguments, sending an empty input")
        return {}
    return arguments if isinstance(arguments, dict) else {}


def _message_text(message: AnthropicMessage) -> str:
    parts = []
    for block in message.content:
        match block.get("type"):
            case "text":
                parts.append(block["text"])
            case "tool_result":
                parts.append(str(block.get("content", "")))
            case "tool_use":
                parts.append(block["name"] + json.dumps(block.get("input", {})))
    return "".join(parts)


def _retry_after(error: APIStatusError) -> float:
    try:
        return float(error.response.headers.get("retry-after", 60))
    except (TypeError, ValueError):
        return 60.0


_anthropic_client: AnthropicClient | None = None


def get_anthropic_client() -> AnthropicClient:
    """Get or create Anthropic client instance."""
    global _anthropic_client
    if _anthropic_client is None:
        _anthropic_client = AnthropicClient()
    return _anthropic_client
