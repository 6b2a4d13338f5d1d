"""Agent configuration and the execution context handed to tools."""

from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, ConfigDict, PositiveInt

from react_agent.services.state import StateStore

DEFAULT_SYSTEM_PROMPT = "You are a helpful AI agent that can use tools to assist with user requests."


class AgentConfig(BaseModel):
    """Configuration for agent behavior."""

    model_config = ConfigDict(frozen=True)

    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    max_iterations: PositiveInt = 10
    state_file_path: Path | None = None
    verbose: bool = False


@dataclass
class ExecutionContext:
    """Explicit context passed to every loop step and tool invocation."""

    config: AgentConfig = field(default_factory=AgentConfig)
    state: StateStore = field(default_factory=StateStore)

    @property
    def verbose(self) -> bool:
        return self.config.verbose
