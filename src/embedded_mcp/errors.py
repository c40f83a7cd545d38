"""Error types for the embedded MCP server.

Two families live here. :class:`MCPError` and its subclasses are protocol errors:
they always end up as a JSON-RPC error object in an HTTP response.
:class:`LifecycleError` and its subclasses are raised synchronously to the host
application from ``start()``/``restart()`` and never reach the wire.
"""

from __future__ import annotations

from enum import IntEnum
from typing import NoReturn, TypedDict


class ErrorCode(IntEnum):
    """JSON-RPC error codes used by the server."""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603
    TOOL_NOT_FOUND = -32000
    TOOL_EXECUTION_ERROR = -32001


class ErrorObject(TypedDict, total=False):
    """Structured JSON payload for protocol errors."""

    code: int
    message: str
    data: object


class MCPError(Exception):
    """Protocol error carrying a JSON-RPC error code and optional data."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        data: object | None = None,
        *,
        code: ErrorCode | None = None,
    ) -> None:
        """Create a protocol error.

        Args:
            message: Human-readable description of the failure.
            data: Optional JSON-friendly details.
            code: Overrides the class default code.

        """
        super().__init__(message)
        if code is not None:
            self.code = code
        self.message = message
        self.data = data

    def to_error_object(self) -> ErrorObject:
        """Return the JSON-RPC error object for this failure."""
        error: ErrorObject = {"code": int(self.code), "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


class ParseError(MCPError):
    """Request body was not valid JSON."""

    code = ErrorCode.PARSE_ERROR


class InvalidRequestError(MCPError):
    """Request body was JSON but not a valid request envelope."""

    code = ErrorCode.INVALID_REQUEST


class MethodNotFoundError(MCPError):
    """Requested method is not part of the protocol."""

    code = ErrorCode.METHOD_NOT_FOUND


class InvalidParamsError(MCPError):
    """Method or tool parameters failed validation."""

    code = ErrorCode.INVALID_PARAMS


class InternalError(MCPError):
    """Unexpected failure while handling a request."""

    code = ErrorCode.INTERNAL_ERROR


class ToolNotFoundError(MCPError):
    """No tool is registered under the requested name."""

    code = ErrorCode.TOOL_NOT_FOUND


class ToolExecutionError(MCPError):
    """A tool handler failed while executing."""

    code = ErrorCode.TOOL_EXECUTION_ERROR


_ERROR_CLASSES: dict[ErrorCode, type[MCPError]] = {
    cls.code: cls
    for cls in (
        ParseError,
        InvalidRequestError,
        MethodNotFoundError,
        InvalidParamsError,
        InternalError,
        ToolNotFoundError,
        ToolExecutionError,
    )
}


def raise_mcp_error(
    code: ErrorCode, message: str, data: object | None = None
) -> NoReturn:
    """Raise the :class:`MCPError` subclass matching ``code``."""
    raise _ERROR_CLASSES[code](message, data)


class LifecycleError(RuntimeError):
    """Base class for failures reported by the server lifecycle manager."""


class AlreadyRunningError(LifecycleError):
    """``start()`` was called while the server was not stopped."""


class InvalidPortError(LifecycleError, ValueError):
    """Requested port is outside the registered/dynamic range."""


class StartupTimeoutError(LifecycleError):
    """The listener did not come up within the startup timeout."""


class StartupFailedError(LifecycleError):
    """The listener exited before it finished starting (e.g. port in use)."""
