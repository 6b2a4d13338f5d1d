"""Agent services: the orchestration loop and the state store."""
