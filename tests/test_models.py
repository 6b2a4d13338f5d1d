"""Tests for data models."""

import json

import pytest
from pydantic import ValidationError

from react_agent.models.agent import DEFAULT_SYSTEM_PROMPT, AgentConfig, ExecutionContext
from react_agent.models.llm import ChatResponse, TokenUsage, UsageTotals
from react_agent.models.messages import Message, Role, ToolCall, ToolResult


class TestRole:
    """Tests for the role enumeration."""

    def test_role_serializes_to_lowercase(self):
        """Test that roles serialize to their fixed lowercase names."""
        assert [role.value for role in Role] == ["user", "assistant", "system", "tool"]
        assert json.loads(Message.user("hi").model_dump_json())["role"] == "user"

    def test_unknown_role_rejected(self):
        """Test that an unrecognized role string fails to deserialize."""
        with pytest.raises(ValidationError):
            Message.model_validate({"role": "robot", "content": "beep"})

        with pytest.raises(ValueError):
            Role("robot")


class TestMessage:
    """Tests for conversation messages."""

    def test_factories(self):
        """Test that factory methods set role and fields."""
        assert Message.user("hello").role == Role.USER
        assert Message.assistant("hi").content == "hi"
        assert Message.system("be nice").role == Role.SYSTEM

        tool_message = Message.tool('{"ok":true}', tool_call_id="call_1", name="calculator")
        assert tool_message.role == Role.TOOL
        assert tool_message.tool_call_id == "call_1"
        assert tool_message.name == "calculator"

    def test_assistant_with_tools_allows_empty_content(self):
        """Test assistant tool-call messages with no text."""
        calls = [ToolCall(id="1", name="calculator", arguments="{}")]
        message = Message.assistant_with_tools(None, calls)

        assert message.content is None
        assert message.tool_calls == (calls[0],)

    def test_tool_message_requires_tool_call_id(self):
        """Test that a tool message without tool_call_id is rejected."""
        with pytest.raises(ValidationError, match="tool_call_id"):
            Message(role=Role.TOOL, content="result")

    def test_tool_calls_only_on_assistant(self):
        """Test that tool calls on a user message are rejected."""
        with pytest.raises(ValidationError, match="Only assistant messages"):
            Message(role=Role.USER, content="hi", tool_calls=(ToolCall(id="1", name="x", arguments="{}"),))

    def test_tool_call_id_only_on_tool(self):
        """Test that tool_call_id on an assistant message is rejected."""
        with pytest.raises(ValidationError, match="Only tool messages"):
            Message(role=Role.ASSISTANT, content="hi", tool_call_id="1")

    def test_message_is_frozen(self):
        """Test that messages cannot be mutated."""
        message = Message.user("hello")
        with pytest.raises(ValidationError):
            message.content = "changed"

    def test_format_truncates_long_content(self):
        """Test readable formatting and content truncation."""
        text = Message.user("x" * 600).format(max_content_length=500)
        assert "Role: user" in text
        assert "x" * 500 + "..." in text
        assert "x" * 501 not in text

    def test_format_lists_tool_calls(self):
        """Test that formatting includes tool calls and ids."""
        message = Message.assistant_with_tools(
            "Let me check", [ToolCall(id="call_9", name="get_weather", arguments='{"location":"Paris"}')]
        )
        text = message.format()

        assert "Tool Calls (1):" in text
        assert "get_weather (id: call_9)" in text
        assert '{"location":"Paris"}' in text


class TestToolModels:
    """Tests for tool call and result records."""

    def test_tool_call_keeps_raw_arguments(self):
        """Test that arguments are kept as the raw JSON string."""
        call = ToolCall(id="1", name="calculator", arguments='{"a": 1}')
        assert call.arguments == '{"a": 1}'

    def test_tool_result(self):
        """Test tool result fields."""
        result = ToolResult(tool_call_id="1", tool_name="calculator", result="{}", success=True)
        assert result.success
        assert result.tool_call_id == "1"


class TestLLMModels:
    """Tests for chat response and usage models."""

    def test_chat_response_without_tool_calls(self):
        """Test a plain final answer."""
        response = ChatResponse(content="Done")
        assert not response.has_tool_calls
        assert response.finish_reason == "stop"

    def test_chat_response_with_empty_tool_calls(self):
        """Test that an empty tool call list counts as no tool calls."""
        assert not ChatResponse(content="Done", tool_calls=[]).has_tool_calls

    def test_usage_totals(self):
        """Test accumulation of token usage across requests."""
        totals = UsageTotals()
        totals.add(TokenUsage(input_tokens=10, output_tokens=5))
        totals.add(TokenUsage(input_tokens=3, output_tokens=2, cache_read_input_tokens=7))

        assert totals.requests == 2
        assert totals.usage.total_tokens == 20
        assert totals.usage.cache_read_input_tokens == 7


class TestAgentConfig:
    """Tests for agent configuration."""

    def test_defaults(self):
        """Test default configuration values."""
        config = AgentConfig()
        assert config.system_prompt == DEFAULT_SYSTEM_PROMPT
        assert config.max_iterations == 10
        assert config.state_file_path is None
        assert config.verbose is False

    def test_max_iterations_must_be_positive(self):
        """Test that a zero iteration budget is rejected."""
        with pytest.raises(ValidationError):
            AgentConfig(max_iterations=0)

    def test_config_is_frozen(self):
        """Test that configuration cannot be mutated."""
        config = AgentConfig()
        with pytest.raises(ValidationError):
            config.max_iterations = 3

    def test_execution_context_verbose(self):
        """Test that the context reports the config's verbose flag."""
        assert ExecutionContext(config=AgentConfig(verbose=True)).verbose
        assert not ExecutionContext().verbose
