"""Basic arithmetic tool."""

from typing import Literal

from pydantic import BaseModel, Field, field_serializer

from react_agent.models.agent import ExecutionContext
from react_agent.tools.base import Tool

Operation = Literal["add", "subtract", "multiply", "divide"]


class CalculatorInput(BaseModel):
    """Input parameters for calculator operations."""

    operation: Operation = Field(description="Operation to perform: add, subtract, multiply or divide")
    a: float = Field(description="First operand")
    b: float = Field(description="Second operand")


class CalculatorOutput(BaseModel):
    """Result from a calculator operation."""

    result: float
    operation: str

    @field_serializer("result")
    def serialize_result(self, value: float) -> int | float:
        # Whole numbers are reported without a trailing ".0"
        return int(value) if value.is_integer() else value


class CalculatorTool(Tool[CalculatorInput, CalculatorOutput]):
    name = "calculator"
    description = "Performs basic arithmetic operations (add, subtract, multiply, divide). Returns the result as a number."

    def invoke(self, input: CalculatorInput, context: ExecutionContext) -> CalculatorOutput:
        match input.operation:
            case "add":
                result = input.a + input.b
            case "subtract":
                result = input.a - input.b
            case "multiply":
                result = input.a * input.b
            case "divide":
                if input.b == 0:
                    raise ValueError("Cannot divide by zero")
                result = input.a / input.b

        return CalculatorOutput(result=result, operation=input.operation)
