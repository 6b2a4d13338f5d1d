"""Base types and definitions for tools."""

from abc import ABC, abstractmethod
from typing import Any, ClassVar, get_args, get_origin

from pydantic import BaseModel, ValidationError

from react_agent.exceptions import ToolExecutionError
from react_agent.models.agent import ExecutionContext
from react_agent.models.llm import FunctionDefinition, FunctionSpec
from react_agent.services.state import StateKey
from react_agent.tools.schema import object_schema
from react_agent.utils.logging import get_logger

logger = get_logger(__name__)


class NoArguments(BaseModel):
    """Input model for tools that take no parameters."""


class Empty(BaseModel):
    """Output model for tools that return nothing; serializes to `{}`."""


class ToolBase(ABC):
    """Type-erased tool interface used by the agent loop and the tool server."""

    name: ClassVar[str]
    description: ClassVar[str]

    # Persistent state keys this tool reads, so the agent can load them at startup.
    state_keys: tuple[StateKey[Any], ...] = ()

    @abstractmethod
    def execute_json(self, arguments: str, context: ExecutionContext) -> str:
        """Execute the tool with raw JSON arguments and return the JSON result.

        Raises:
            ToolExecutionError: If the arguments are invalid or the tool fails
        """

    @abstractmethod
    def schema(self) -> dict[str, Any]:
        """Get the JSON schema of this tool's parameters."""

    def to_function_definition(self) -> dict[str, Any]:
        """Get the tool definition in function-calling format."""
        definition = FunctionDefinition(
            function=FunctionSpec(name=self.name, description=self.description, parameters=self.schema())
        )
        return definition.model_dump()

    def describe(self) -> str:
        """Describe the tool and its parameters for humans."""
        parameters = self.schema()
        required = set(parameters.get("required", []))

        lines = [f"  {self.name}:", f"    {self.description}", "    Parameters:"]
        for param_name, prop in parameters.get("properties", {}).items():
            tag = "[required]" if param_name in required else "[optional]"
            lines.append(f"      - {param_name} ({prop.get('type', 'unknown')}) {tag}: {prop.get('description', '')}")

        return "\n".join(lines) + "\n"


class Tool[InputT: BaseModel, OutputT: BaseModel](ToolBase):
    """Typed tool with pydantic input and output models.

    Subclasses declare their models through the generic parameters and implement
    `invoke`:

        class ReverseTool(Tool[ReverseInput, ReverseOutput]):
            name = "reverse_string"
            description = "Reverses a string"

            def invoke(self, input: ReverseInput, context: ExecutionContext) -> ReverseOutput:
                return ReverseOutput(reversed=input.text[::-1])

    `invoke` may return None when there is nothing to report.
    """

    input_model: ClassVar[type[BaseModel]] = NoArguments
    output_model: ClassVar[type[BaseModel]] = Empty

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        for base in getattr(cls, "__orig_bases__", ()):
            if get_origin(base) is Tool:
                cls.input_model, cls.output_model = get_args(base)

    @abstractmethod
    def invoke(self, input: InputT, context: ExecutionContext) -> OutputT | None:
        """Run the tool. Raise an exception to report failure."""

    def execute(self, input: InputT, context: ExecutionContext) -> OutputT | None:
        """Invoke the tool, logging the call when the context is verbose."""
        try:
            output = self.invoke(input, context)
        except Exception as e:
            if context.verbose:
                logger.info(f"[Tool Call] {self.name} arguments={input.model_dump_json()} error={e}")
            raise

        if context.verbose:
            logger.info(f"[Tool Call] {self.name} arguments={input.model_dump_json()} result={_dump(output)}")

        return output

    def execute_json(self, arguments: str, context: ExecutionContext) -> str:
        raw = arguments if arguments and arguments.strip() else "{}"

        try:
            parsed = self.input_model.model_validate_json(raw)
        except ValidationError as e:
            if context.verbose:
                logger.info(f"[Tool Call] {self.name} arguments={raw} error={e}")
            raise ToolExecutionError(self.name, f"Invalid arguments for tool '{self.name}': {e}") from e

        try:
            output = self.execute(parsed, context)
        except ToolExecutionError:
            raise
        except Exception as e:
            raise ToolExecutionError(self.name, str(e) or type(e).__name__) from e

        return _dump(output)

    def schema(self) -> dict[str, Any]:
        return object_schema(self.input_model)


def _dump(output: BaseModel | None) -> str:
    if output is None:
        return "{}"
    return output.model_dump_json()
