"""JSON-RPC envelope handling and method routing.

A request moves through ``decode -> route -> execute -> encode`` and nothing is
kept between requests. Every outcome, including unexpected exceptions, is
encoded as a well-formed response envelope.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    StrictInt,
    StrictStr,
    ValidationError,
    model_validator,
)

from embedded_mcp.dispatcher import ToolDispatcher
from embedded_mcp.errors import (
    ErrorCode,
    InternalError,
    InvalidParamsError,
    InvalidRequestError,
    MCPError,
    MethodNotFoundError,
    ParseError,
    ToolExecutionError,
)
from embedded_mcp.registry import ToolRegistry

logger = logging.getLogger(__name__)

SERVER_NAME = "embedded-mcp-server"
SERVER_VERSION = "1.0.0"
PROTOCOL_VERSION = "2024-11-05"
JSONRPC_VERSION = "2.0"

RequestId = StrictStr | StrictInt | None


class Method(str, Enum):
    """Methods understood by the protocol handler."""

    INITIALIZE = "initialize"
    TOOLS_LIST = "tools/list"
    TOOLS_CALL = "tools/call"
    PING = "ping"
    INITIALIZED = "notifications/initialized"


class RequestEnvelope(BaseModel):
    """Inbound JSON-RPC request."""

    model_config = ConfigDict(extra="ignore")

    jsonrpc: Literal["2.0"] | None = None
    method: StrictStr
    params: dict[str, Any] | None = None
    id: RequestId = None

    @property
    def has_id(self) -> bool:
        """Whether the client supplied an ``id`` member at all."""
        return "id" in self.model_fields_set

    @property
    def is_notification(self) -> bool:
        """Notification-namespace call sent without an ``id``."""
        return not self.has_id and self.method.startswith("notifications/")


class ResponseEnvelope(BaseModel):
    """Outbound JSON-RPC response carrying either a result or an error."""

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: Any = None
    result: Any = None
    error: dict[str, Any] | None = None

    @model_validator(mode="after")
    def _exactly_one(self) -> ResponseEnvelope:
        if (self.result is None) == (self.error is None):
            raise ValueError("exactly one of result or error must be set")
        return self

    def to_dict(self) -> dict[str, Any]:
        """Serialize, keeping ``id`` even when it is null."""
        body: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            body["error"] = self.error
        else:
            body["result"] = self.result
        return body


def success_envelope(request_id: Any, result: Any) -> dict[str, Any]:
    """Encode a success response."""
    return ResponseEnvelope(id=request_id, result=result).to_dict()


def error_envelope(request_id: Any, error: MCPError) -> dict[str, Any]:
    """Encode an error response."""
    return ResponseEnvelope(id=request_id, error=dict(error.to_error_object())).to_dict()


def decode_json(raw: bytes | str) -> Any:
    """Parse a request body.

    Raises:
        ParseError: If the body is not valid JSON.

    """
    try:
        return json.loads(raw)
    except (ValueError, UnicodeDecodeError) as exc:
        raise ParseError("Parse error", str(exc)) from None


def _recover_id(payload: Any) -> Any:
    if isinstance(payload, dict):
        candidate = payload.get("id")
        if candidate is None or (
            isinstance(candidate, (str, int)) and not isinstance(candidate, bool)
        ):
            return candidate
    return None


def parse_envelope(payload: Any) -> RequestEnvelope:
    """Validate a decoded body as a request envelope.

    Raises:
        InvalidRequestError: If the body is not a valid request object.

    """
    if not isinstance(payload, dict):
        raise InvalidRequestError(
            "Invalid Request", "request must be a JSON object"
        )
    try:
        return RequestEnvelope.model_validate(payload)
    except ValidationError as error:
        details = [
            f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}"
            for item in error.errors()
        ]
        raise InvalidRequestError("Invalid Request", details) from None


RouteHandler = Callable[[dict[str, Any]], Awaitable[Any]]


class ProtocolHandler:
    """Decode, route and encode protocol requests."""

    def __init__(
        self, registry: ToolRegistry, dispatcher: ToolDispatcher | None = None
    ) -> None:
        """Create a handler.

        Args:
            registry: Registry used for discovery.
            dispatcher: Dispatcher used for tool calls; built from ``registry``
                when omitted.

        """
        self.registry = registry
        self.dispatcher = dispatcher or ToolDispatcher(registry)
        self._routes: dict[Method, RouteHandler] = {
            Method.INITIALIZE: self._initialize,
            Method.TOOLS_LIST: self._tools_list,
            Method.TOOLS_CALL: self._tools_call,
            Method.PING: self._ping,
            Method.INITIALIZED: self._ping,
        }

    async def handle(self, raw: bytes | str) -> dict[str, Any] | None:
        """Handle one request body.

        Returns:
            The response envelope, or ``None`` for notifications that expect no
            reply.

        """
        request_id: Any = None
        envelope: RequestEnvelope | None = None
        try:
            payload = decode_json(raw)
            request_id = _recover_id(payload)
            envelope = parse_envelope(payload)
            request_id = envelope.id
            result = await self.route(envelope)
        except MCPError as error:
            if envelope is not None and envelope.is_notification:
                logger.debug("Dropping error for notification: %s", error.message)
                return None
            logger.debug("Request failed with %s: %s", error.code.name, error.message)
            return error_envelope(request_id, error)
        except Exception as exc:
            logger.error("Internal error while handling request: %s", exc, exc_info=True)
            return error_envelope(request_id, InternalError(f"Internal error: {exc}"))
        if envelope.is_notification:
            return None
        return success_envelope(request_id, result)

    async def route(self, envelope: RequestEnvelope) -> Any:
        """Dispatch a decoded envelope to its method handler."""
        try:
            method = Method(envelope.method)
        except ValueError:
            raise MethodNotFoundError(
                f"Method not found: {envelope.method}", {"method": envelope.method}
            ) from None
        logger.debug("Routing %s (id=%r)", method.value, envelope.id)
        return await self._routes[method](envelope.params or {})

    async def _initialize(self, _params: dict[str, Any]) -> dict[str, Any]:
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
        }

    async def _ping(self, _params: dict[str, Any]) -> dict[str, Any]:
        return {}

    async def _tools_list(self, params: dict[str, Any]) -> dict[str, Any]:
        cursor = params.get("cursor")
        if cursor is not None and not isinstance(cursor, str):
            raise InvalidParamsError("cursor must be a string")
        # Pagination is not implemented; the cursor is accepted and ignored.
        return {"tools": self.registry.metadata(), "nextCursor": None}

    async def _tools_call(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise InvalidParamsError("Missing required parameter 'name'")
        result = await self.dispatcher.invoke(name, params.get("arguments"))
        if result.is_error:
            raise ToolExecutionError(
                result.text,
                {"tool": name, "content": result.to_dict()["content"]},
            )
        return result.to_dict()

    def list_tools_flat(self) -> dict[str, Any]:
        """Discovery payload for the flat ``GET /list_tools`` surface."""
        return {"tools": self.registry.metadata()}

    async def call_tool_flat(self, raw: bytes | str) -> tuple[int, dict[str, Any]]:
        """Handle the flat ``POST /call_tool`` surface.

        Returns:
            HTTP status code and JSON body. Tool failures are reported as
            ``{"content": [...], "isError": true}``; request and lookup failures
            as ``{"error": {...}}``.

        """
        try:
            payload = decode_json(raw)
            if not isinstance(payload, dict):
                raise InvalidRequestError(
                    "Invalid Request", "request must be a JSON object"
                )
            name = payload.get("name")
            if not isinstance(name, str) or not name:
                raise InvalidParamsError("Missing required parameter 'name'")
            result = await self.dispatcher.invoke(name, payload.get("arguments"))
        except MCPError as error:
            status = 404 if error.code == ErrorCode.TOOL_NOT_FOUND else 400
            return status, {"error": dict(error.to_error_object())}
        except Exception as exc:
            logger.error("Internal error in call_tool: %s", exc, exc_info=True)
            error = InternalError(f"Internal server error: {exc}")
            return 500, {"error": dict(error.to_error_object())}
        return (400 if result.is_error else 200), result.to_dict()
