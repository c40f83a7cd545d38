"""Schema-driven validation and execution of tool calls."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Mapping
from typing import Any

from embedded_mcp.errors import (
    InvalidParamsError,
    MCPError,
    ToolExecutionError,
)
from embedded_mcp.registry import ToolRegistry
from embedded_mcp.tooling import ToolInputSchema, ToolResult, matches_type

logger = logging.getLogger(__name__)


def validate_arguments(
    schema: ToolInputSchema, arguments: Mapping[str, Any] | None
) -> dict[str, Any]:
    """Validate and default incoming tool arguments.

    Args:
        schema: Input schema of the target tool.
        arguments: Raw arguments supplied by the caller. ``None`` means none.

    Raises:
        InvalidParamsError: If any argument is unknown, missing, of the wrong
            type or outside its enum. Every problem found is listed in
            ``error.data["errors"]``.

    Returns:
        New argument dictionary with defaults filled in.

    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, Mapping):
        raise InvalidParamsError(
            "Tool arguments must be an object",
            {"errors": [f"expected object, got {type(arguments).__name__}"]},
        )

    problems: list[str] = []
    if not schema.additional_properties:
        for name in arguments:
            if name not in schema.properties:
                problems.append(f"unknown parameter '{name}'")

    for name in schema.required:
        if arguments.get(name) is None:
            problems.append(f"missing required parameter '{name}'")

    validated: dict[str, Any] = {}
    for name, value in arguments.items():
        prop = schema.properties.get(name)
        if prop is None:
            if schema.additional_properties:
                validated[name] = value
            continue
        if value is None:
            continue
        if not matches_type(value, prop.type):
            problems.append(
                f"parameter '{name}' must be of type {prop.type}, "
                f"got {type(value).__name__}"
            )
            continue
        if prop.enum is not None and value not in prop.enum:
            allowed = ", ".join(prop.enum)
            problems.append(f"parameter '{name}' must be one of: {allowed}")
            continue
        validated[name] = value

    if problems:
        raise InvalidParamsError(
            f"Invalid parameters: {'; '.join(problems)}", {"errors": problems}
        )

    for name, prop in schema.properties.items():
        if name not in validated and prop.default is not None:
            validated[name] = prop.default
    return validated


class ToolDispatcher:
    """Resolve, validate and execute tool calls against a registry."""

    def __init__(
        self, registry: ToolRegistry, *, tool_timeout: float | None = None
    ) -> None:
        """Create a dispatcher.

        Args:
            registry: Registry used to resolve tool names.
            tool_timeout: Optional limit in seconds for a single handler call.

        """
        self.registry = registry
        self.tool_timeout = tool_timeout

    async def invoke(
        self, name: str, arguments: Mapping[str, Any] | None = None
    ) -> ToolResult:
        """Execute a registered tool.

        Args:
            name: Name of the registered tool to execute.
            arguments: Raw arguments for the tool.

        Raises:
            ToolNotFoundError: If the tool name is not registered.
            InvalidParamsError: If argument validation fails. The handler is not
                called in that case.

        Returns:
            The tool's result. Handler failures are returned as a result with
            ``is_error`` set rather than raised.

        """
        tool = self.registry.get(name)
        validated = validate_arguments(tool.input_schema, arguments)
        logger.debug("Calling tool %s with %s", name, validated)
        try:
            result = await self._run(name, tool.handler, validated)
        except MCPError as error:
            logger.warning("Tool %s failed: %s", name, error.message)
            return ToolResult.failure(error.message)
        except Exception as exc:
            logger.warning("Tool %s raised %s", name, exc, exc_info=True)
            return ToolResult.failure(f"Tool execution failed: {exc}")

        if not isinstance(result, ToolResult):
            logger.warning("Tool %s returned %r", name, type(result))
            return ToolResult.failure(
                f"Tool '{name}' returned an unsupported result type"
            )
        if result.is_error:
            logger.warning("Tool %s reported an error: %s", name, result.text)
        return result

    async def _run(
        self, name: str, handler: Any, arguments: dict[str, Any]
    ) -> object:
        outcome = handler(arguments)
        if not inspect.isawaitable(outcome):
            return outcome
        if self.tool_timeout is None:
            return await outcome
        try:
            return await asyncio.wait_for(outcome, timeout=self.tool_timeout)
        except asyncio.TimeoutError as exc:
            raise ToolExecutionError(
                f"Tool '{name}' timed out after {self.tool_timeout:g}s"
            ) from exc
