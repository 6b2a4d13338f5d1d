"""Data models for conversations and agent configuration."""
