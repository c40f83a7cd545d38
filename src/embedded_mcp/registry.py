"""Immutable tool registry.

The registry is built once from a collection of tool definitions and never
changes afterwards. Hosts that want a different tool set build a new registry.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any

from embedded_mcp.backend import AutomationBackend, MockAutomationBackend
from embedded_mcp.errors import ToolNotFoundError
from embedded_mcp.tooling import ToolDefinition, ToolHandler
from embedded_mcp.tools import build_tools


class ToolRegistry:
    """Ordered, read-only collection of tool definitions keyed by name."""

    def __init__(self, tools: Iterable[ToolDefinition]) -> None:
        """Register every tool in ``tools``.

        Args:
            tools: Tool definitions, in discovery order.

        Raises:
            ValueError: If two tools share a name.

        """
        ordered: list[ToolDefinition] = []
        by_name: dict[str, ToolDefinition] = {}
        for tool in tools:
            if tool.name in by_name:
                raise ValueError(f"Tool '{tool.name}' is already registered")
            by_name[tool.name] = tool
            ordered.append(tool)
        self._tools = tuple(ordered)
        self._by_name = by_name

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def list(self) -> tuple[ToolDefinition, ...]:
        """Return every definition in registration order."""
        return self._tools

    def names(self) -> list[str]:
        """Return tool names in registration order."""
        return [tool.name for tool in self._tools]

    def get(self, name: str) -> ToolDefinition:
        """Look up a tool definition.

        Raises:
            ToolNotFoundError: If no tool is registered under ``name``.

        """
        try:
            return self._by_name[name]
        except KeyError:
            raise ToolNotFoundError(
                f"Tool '{name}' not found", {"tool": name}
            ) from None

    def resolve(self, name: str) -> ToolHandler:
        """Return the handler registered under ``name``."""
        return self.get(name).handler

    def metadata(self) -> list[dict[str, Any]]:
        """Produce discovery metadata for every tool, in order."""
        return [tool.metadata() for tool in self._tools]


def default_registry(backend: AutomationBackend | None = None) -> ToolRegistry:
    """Build the registry of automation tools backed by ``backend``."""
    return ToolRegistry(build_tools(backend or MockAutomationBackend()))
