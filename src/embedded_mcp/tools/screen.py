"""Screen inspection tools."""

from __future__ import annotations

from typing import Any

from embedded_mcp.backend import AutomationBackend
from embedded_mcp.errors import ErrorCode, raise_mcp_error
from embedded_mcp.tooling import (
    PropertySchema,
    ToolDefinition,
    ToolResult,
    object_schema,
)


def get_screen_info_tool(backend: AutomationBackend) -> ToolDefinition:
    """Create the getScreenInfo tool definition."""

    async def handler(arguments: dict[str, Any]) -> ToolResult:
        max_depth = arguments["maxDepth"]
        if not float(max_depth).is_integer():
            raise_mcp_error(
                ErrorCode.TOOL_EXECUTION_ERROR,
                f"Parameter 'maxDepth' must be a whole number, got: {max_depth}",
            )
        text = await backend.get_screen_info(
            include_invisible=arguments["includeInvisible"],
            max_depth=int(max_depth),
        )
        return ToolResult.from_text(text)

    return ToolDefinition(
        name="getScreenInfo",
        description="Get information about the current screen content and UI elements",
        input_schema=object_schema(
            {
                "includeInvisible": PropertySchema(
                    type="boolean",
                    description="Whether to include invisible UI elements",
                    default=False,
                ),
                "maxDepth": PropertySchema(
                    type="number",
                    description="Maximum depth of UI hierarchy to scan",
                    default=10,
                ),
            }
        ),
        handler=handler,
    )
