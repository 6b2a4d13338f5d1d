"""Key/value memory tools backed by the persistent agent state."""

from pydantic import BaseModel, Field

from react_agent.models.agent import ExecutionContext
from react_agent.services.state import StateKey
from react_agent.tools.base import Empty, NoArguments, Tool, ToolBase

MEMORY_KEY: StateKey[dict[str, str]] = StateKey.durable("agent_memory", dict[str, str], dict)


def get_memory(context: ExecutionContext) -> dict[str, str]:
    return context.state.get(MEMORY_KEY)


class StoreMemoryInput(BaseModel):
    key: str = Field(description="The key to store the memory under")
    value: str = Field(description="The value to store")


class RetrieveMemoryInput(BaseModel):
    key: str = Field(description="The key to retrieve")


class RetrieveMemoryOutput(BaseModel):
    key: str
    value: str | None
    found: bool


class ListMemoryOutput(BaseModel):
    keys: list[str]
    count: int


class StoreMemoryTool(Tool[StoreMemoryInput, Empty]):
    name = "store_memory"
    description = (
        "Store a key-value pair in memory for later retrieval. "
        "Use this to remember important information across interactions."
    )
    state_keys = (MEMORY_KEY,)

    def invoke(self, input: StoreMemoryInput, context: ExecutionContext) -> None:
        get_memory(context)[input.key] = input.value


class RetrieveMemoryTool(Tool[RetrieveMemoryInput, RetrieveMemoryOutput]):
    name = "retrieve_memory"
    description = "Retrieve a value from memory by its key. Returns the stored value if it exists."
    state_keys = (MEMORY_KEY,)

    def invoke(self, input: RetrieveMemoryInput, context: ExecutionContext) -> RetrieveMemoryOutput:
        value = get_memory(context).get(input.key)
        return RetrieveMemoryOutput(key=input.key, value=value, found=value is not None)


class ListMemoryTool(Tool[NoArguments, ListMemoryOutput]):
    name = "list_memory"
    description = "List all available memory keys that have been stored."
    state_keys = (MEMORY_KEY,)

    def invoke(self, input: NoArguments, context: ExecutionContext) -> ListMemoryOutput:
        keys = sorted(get_memory(context))
        return ListMemoryOutput(keys=keys, count=len(keys))


def memory_tools() -> list[ToolBase]:
    """Create the memory tool set."""
    return [StoreMemoryTool(), RetrieveMemoryTool(), ListMemoryTool()]
