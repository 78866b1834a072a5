"""
Per-turn MCP integration.

- MCPClient: one live server connection
- MCPClientPool: opens clients concurrently and closes them exactly once
- ToolRegistry: merged, read-only tool namespace
"""

from toolchat.infrastructure.mcp.client import MCPClient
from toolchat.infrastructure.mcp.client_pool import MCPClientPool, PoolOpenResult
from toolchat.infrastructure.mcp.tool_registry import RegisteredTool, ToolRegistry

__all__ = ["MCPClient", "MCPClientPool", "PoolOpenResult", "RegisteredTool", "ToolRegistry"]
