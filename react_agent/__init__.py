"""ReAct tool-calling agent with a sandboxed code-execution bridge."""

__version__ = "0.1.0"
