"""Mock web search tool."""

from pydantic import BaseModel, Field

from react_agent.models.agent import ExecutionContext
from react_agent.tools.base import Tool

DEFAULT_RESULTS = 3
MAX_RESULTS = 10


class SearchInput(BaseModel):
    query: str = Field(description="The search query string")
    num_results: int | None = Field(default=None, description="Number of results to return (1-10, default: 3)")


class SearchResult(BaseModel):
    title: str
    url: str
    snippet: str


class SearchOutput(BaseModel):
    results: list[SearchResult]


class SearchTool(Tool[SearchInput, SearchOutput]):
    name = "search"
    description = "Searches the web for information. This is a mock tool that returns simulated search results."

    def invoke(self, input: SearchInput, context: ExecutionContext) -> SearchOutput:
        requested = DEFAULT_RESULTS if input.num_results is None else input.num_results
        count = min(max(requested, 1), MAX_RESULTS)

        results = [
            SearchResult(
                title=f"Result {i} for '{input.query}'",
                url=f"https://example.com/result{i}",
                snippet=f"This is a mock search result snippet for '{input.query}'. "
                "It provides relevant information about the search topic.",
            )
            for i in range(1, count + 1)
        ]
        return SearchOutput(results=results)
