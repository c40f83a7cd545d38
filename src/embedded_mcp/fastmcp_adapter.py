"""Adapters for exposing the tool registry via FastMCP.

FastMCP provides the official MCP transports (stdio, streamable HTTP). Every
call still goes through :class:`~embedded_mcp.dispatcher.ToolDispatcher`, so
validation and failure handling match the embedded HTTP server.
"""

from __future__ import annotations

from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools import Tool
from fastmcp.tools.tool import ToolResult

from embedded_mcp.dispatcher import ToolDispatcher
from embedded_mcp.errors import MCPError
from embedded_mcp.registry import ToolRegistry
from embedded_mcp.tooling import ToolDefinition


class ToolDefinitionAdapter(Tool):
    """Expose a :class:`ToolDefinition` as a FastMCP tool."""

    def __init__(self, definition: ToolDefinition, dispatcher: ToolDispatcher) -> None:
        """Create a FastMCP tool wrapper for the provided definition."""
        super().__init__(
            name=definition.name,
            description=definition.description,
            parameters=definition.input_schema.to_json_schema(),
            tags=set(),
        )
        self._definition = definition
        self._dispatcher = dispatcher

    async def run(self, arguments: dict[str, Any]) -> ToolResult:
        """Validate arguments and delegate to the dispatcher."""
        try:
            result = await self._dispatcher.invoke(self._definition.name, arguments)
        except MCPError as error:
            raise ToolError(error.message) from error
        if result.is_error:
            raise ToolError(result.text)
        return ToolResult(content=result.text, structured_content=result.to_dict())


def to_fastmcp_tools(dispatcher: ToolDispatcher) -> list[Tool]:
    """Wrap every registry tool for FastMCP."""
    return [
        ToolDefinitionAdapter(definition, dispatcher)
        for definition in dispatcher.registry.list()
    ]


def build_fastmcp_app(
    registry: ToolRegistry, dispatcher: ToolDispatcher | None = None
) -> FastMCP:
    """Create a FastMCP server instance with every registry tool added."""
    app = FastMCP(
        name="embedded-mcp-server",
        instructions="UI automation tools exposed over the Model Context Protocol.",
    )
    for tool in to_fastmcp_tools(dispatcher or ToolDispatcher(registry)):
        app.add_tool(tool)
    return app
