"""Embeddable loopback MCP server exposing UI automation tools."""

from embedded_mcp.backend import AutomationBackend, MockAutomationBackend
from embedded_mcp.config import ServerConfig
from embedded_mcp.dispatcher import ToolDispatcher
from embedded_mcp.errors import ErrorCode, LifecycleError, MCPError
from embedded_mcp.lifecycle import EmbeddedServer, ServerState, ToolInfo, embedded_server
from embedded_mcp.protocol import SERVER_VERSION as __version__
from embedded_mcp.protocol import ProtocolHandler
from embedded_mcp.registry import ToolRegistry, default_registry
from embedded_mcp.tooling import ToolDefinition, ToolResult

__all__ = [
    "AutomationBackend",
    "EmbeddedServer",
    "ErrorCode",
    "LifecycleError",
    "MCPError",
    "MockAutomationBackend",
    "ProtocolHandler",
    "ServerConfig",
    "ServerState",
    "ToolDefinition",
    "ToolDispatcher",
    "ToolInfo",
    "ToolRegistry",
    "ToolResult",
    "__version__",
    "default_registry",
    "embedded_server",
]
