"""Tool registration helpers for the embedded MCP server."""

from __future__ import annotations

from embedded_mcp.backend import AutomationBackend
from embedded_mcp.tooling import ToolDefinition
from embedded_mcp.tools.interaction import (
    input_text_tool,
    scroll_tool,
    tap_button_tool,
)
from embedded_mcp.tools.screen import get_screen_info_tool


def build_tools(backend: AutomationBackend) -> list[ToolDefinition]:
    """Instantiate all tool definitions with the provided backend."""
    return [
        tap_button_tool(backend),
        input_text_tool(backend),
        get_screen_info_tool(backend),
        scroll_tool(backend),
    ]
