"""Tools that act on the UI: tapping, typing and scrolling."""

from __future__ import annotations

from typing import Any

from embedded_mcp.backend import AutomationBackend
from embedded_mcp.tooling import (
    PropertySchema,
    ToolDefinition,
    ToolResult,
    object_schema,
)
from embedded_mcp.tools.common import optional_str, require_any

SCROLL_DIRECTIONS = ("up", "down", "left", "right")
SCROLL_DISTANCES = ("short", "medium", "long")


def tap_button_tool(backend: AutomationBackend) -> ToolDefinition:
    """Create the tapButton tool definition."""

    async def handler(arguments: dict[str, Any]) -> ToolResult:
        require_any(arguments, "text", "resourceId")
        text = await backend.tap_button(
            text=optional_str(arguments, "text"),
            resource_id=optional_str(arguments, "resourceId"),
            timeout_ms=arguments["timeout"],
        )
        return ToolResult.from_text(text)

    return ToolDefinition(
        name="tapButton",
        description="Tap a button on the screen by its text content or resource ID",
        input_schema=object_schema(
            {
                "text": PropertySchema(
                    type="string",
                    description="The text displayed on the button to tap",
                ),
                "resourceId": PropertySchema(
                    type="string",
                    description=(
                        "The Android resource ID of the button (alternative to text)"
                    ),
                ),
                "timeout": PropertySchema(
                    type="number",
                    description="Maximum time to wait for the button in milliseconds",
                    default=5000,
                ),
            }
        ),
        handler=handler,
    )


def input_text_tool(backend: AutomationBackend) -> ToolDefinition:
    """Create the inputText tool definition."""

    async def handler(arguments: dict[str, Any]) -> ToolResult:
        text = await backend.input_text(
            text=arguments["text"],
            field_id=optional_str(arguments, "fieldId"),
            field_hint=optional_str(arguments, "fieldHint"),
            clear_first=arguments["clearFirst"],
        )
        return ToolResult.from_text(text)

    return ToolDefinition(
        name="inputText",
        description="Input text into a text field or editable view",
        input_schema=object_schema(
            {
                "text": PropertySchema(
                    type="string", description="The text to input"
                ),
                "fieldId": PropertySchema(
                    type="string",
                    description="The resource ID of the target text field",
                ),
                "fieldHint": PropertySchema(
                    type="string",
                    description=(
                        "The hint text of the target field (alternative to fieldId)"
                    ),
                ),
                "clearFirst": PropertySchema(
                    type="boolean",
                    description="Whether to clear existing text before input",
                    default=True,
                ),
            },
            required=("text",),
        ),
        handler=handler,
    )


def scroll_tool(backend: AutomationBackend) -> ToolDefinition:
    """Create the scroll tool definition."""

    async def handler(arguments: dict[str, Any]) -> ToolResult:
        text = await backend.scroll(
            direction=arguments["direction"],
            distance=arguments["distance"],
            container_id=optional_str(arguments, "containerId"),
        )
        return ToolResult.from_text(text)

    return ToolDefinition(
        name="scroll",
        description="Scroll the screen or a specific scrollable view",
        input_schema=object_schema(
            {
                "direction": PropertySchema(
                    type="string",
                    description="Direction to scroll",
                    enum=SCROLL_DIRECTIONS,
                ),
                "distance": PropertySchema(
                    type="string",
                    description="How far to scroll",
                    enum=SCROLL_DISTANCES,
                    default="medium",
                ),
                "containerId": PropertySchema(
                    type="string",
                    description=(
                        "Resource ID of specific scrollable container (optional)"
                    ),
                ),
            },
            required=("direction",),
        ),
        handler=handler,
    )
