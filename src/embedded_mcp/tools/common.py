"""Shared helpers for the automation tools."""

from __future__ import annotations

from typing import Any

from embedded_mcp.errors import ErrorCode, raise_mcp_error


def require_any(arguments: dict[str, Any], *names: str) -> None:
    """Fail the tool call unless at least one of ``names`` was supplied."""
    if any(arguments.get(name) is not None for name in names):
        return
    quoted = " or ".join(f"'{name}'" for name in names)
    raise_mcp_error(
        ErrorCode.TOOL_EXECUTION_ERROR,
        f"Either {quoted} parameter is required",
    )


def optional_str(arguments: dict[str, Any], name: str) -> str | None:
    """Return a string argument or ``None`` when it was not supplied."""
    value = arguments.get(name)
    return value if isinstance(value, str) else None
