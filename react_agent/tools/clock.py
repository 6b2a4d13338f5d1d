"""Current date and time tool."""

from datetime import datetime
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field

from react_agent.models.agent import ExecutionContext
from react_agent.tools.base import Tool

READABLE_FORMAT = "%A, %B %-d, %Y at %-I:%M %p"


class DateTimeInput(BaseModel):
    timezone: str | None = Field(
        default=None, description='IANA timezone such as "UTC" or "America/New_York". Defaults to local time'
    )
    format: Literal["iso", "readable"] | None = Field(default=None, description='Output format, "iso" by default')


class DateTimeOutput(BaseModel):
    datetime: str
    timezone: str


class DateTimeTool(Tool[DateTimeInput, DateTimeOutput]):
    name = "get_datetime"
    description = "Gets the current date and time, optionally for a specific timezone."

    def invoke(self, input: DateTimeInput, context: ExecutionContext) -> DateTimeOutput:
        if input.timezone:
            try:
                zone = ZoneInfo(input.timezone)
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise ValueError(f"Unknown timezone: {input.timezone}") from e
            now = datetime.now(zone)
            zone_name = input.timezone
        else:
            now = datetime.now().astimezone()
            zone_name = now.tzname() or "local"

        if input.format == "readable":
            formatted = now.strftime(READABLE_FORMAT)
        else:
            formatted = now.replace(tzinfo=None).isoformat(timespec="seconds")

        return DateTimeOutput(datetime=formatted, timezone=zone_name)
