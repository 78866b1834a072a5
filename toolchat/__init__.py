"""toolchat: per-turn MCP tool orchestration with streamed completions."""

__version__ = "0.1.0"
