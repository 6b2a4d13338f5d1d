"""Mock weather tool."""

from typing import Literal

from pydantic import BaseModel, Field

from react_agent.models.agent import ExecutionContext
from react_agent.tools.base import Tool


class WeatherInput(BaseModel):
    location: str = Field(description='Location name (e.g., "San Francisco", "London")')
    unit: Literal["celsius", "fahrenheit"] | None = Field(
        default=None, description="Temperature unit, defaults to fahrenheit"
    )


class WeatherOutput(BaseModel):
    location: str
    temperature: int
    unit: str
    condition: str


class WeatherTool(Tool[WeatherInput, WeatherOutput]):
    """Returns simulated weather data for any location."""

    name = "get_weather"
    description = (
        "Gets the current weather for a specified location. This is a mock tool that returns simulated weather data."
    )

    def invoke(self, input: WeatherInput, context: ExecutionContext) -> WeatherOutput:
        unit = input.unit or "fahrenheit"
        temperature = 22 if unit == "celsius" else 72

        return WeatherOutput(location=input.location, temperature=temperature, unit=unit, condition="sunny")
