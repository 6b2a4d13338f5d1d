"""Shared test fixtures."""

import pytest

from react_agent.models.agent import AgentConfig, ExecutionContext
from react_agent.services.state import StateStore


@pytest.fixture
def context():
    """Fresh execution context with an empty state store."""
    return ExecutionContext(config=AgentConfig(), state=StateStore())


@pytest.fixture
def verbose_context():
    """Execution context with tool-call logging enabled."""
    return ExecutionContext(config=AgentConfig(verbose=True), state=StateStore())
