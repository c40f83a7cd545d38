"""FastAPI application exposing the protocol over HTTP."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from embedded_mcp.errors import ErrorCode, InternalError
from embedded_mcp.protocol import (
    PROTOCOL_VERSION,
    SERVER_NAME,
    SERVER_VERSION,
    ProtocolHandler,
)

logger = logging.getLogger(__name__)

# Browser clients are only accepted from the local machine.
LOOPBACK_ORIGIN_REGEX = r"https?://(127\.0\.0\.1|localhost)(:\d+)?"
SERVER_HEADER = f"{SERVER_NAME}/{SERVER_VERSION}"


def create_app(handler: ProtocolHandler, port: int) -> FastAPI:
    """Build the HTTP application.

    Args:
        handler: Protocol handler serving every request.
        port: Port the listener is bound to, reported by ``/health``.

    Returns:
        Configured FastAPI application.

    """
    app = FastAPI(
        title=SERVER_NAME,
        version=SERVER_VERSION,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=LOOPBACK_ORIGIN_REGEX,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
        allow_credentials=False,
        max_age=3600,
    )

    @app.middleware("http")
    async def add_server_header(request: Request, call_next: Any) -> Response:
        response = await call_next(request)
        response.headers["X-MCP-Server"] = SERVER_HEADER
        return response

    @app.exception_handler(Exception)
    async def unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled error [%s %s]: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=True,
        )
        error = InternalError(f"Internal server error: {exc}")
        return JSONResponse(
            {"jsonrpc": "2.0", "id": None, "error": dict(error.to_error_object())},
            status_code=500,
        )

    @app.post("/")
    async def rpc(request: Request) -> Response:
        envelope = await handler.handle(await request.body())
        if envelope is None:
            return Response(status_code=202)
        error = envelope.get("error") or {}
        status = 400 if error.get("code") == ErrorCode.PARSE_ERROR else 200
        return JSONResponse(envelope, status_code=status)

    @app.get("/")
    async def describe() -> dict[str, Any]:
        return {
            "name": SERVER_NAME,
            "version": SERVER_VERSION,
            "description": "Embedded MCP server for in-process automation tools",
            "protocolVersion": PROTOCOL_VERSION,
            "endpoints": {
                "rpc": "POST / - JSON-RPC 2.0 (initialize, tools/list, tools/call)",
                "list_tools": "GET /list_tools - List all available automation tools",
                "call_tool": "POST /call_tool - Execute a tool with parameters",
                "health": "GET /health - Server health check",
            },
            "documentation": "https://spec.modelcontextprotocol.io/specification/",
        }

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {
            "status": "healthy",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "port": port,
            "tools_count": len(handler.registry),
        }

    @app.get("/list_tools")
    async def list_tools() -> dict[str, Any]:
        return handler.list_tools_flat()

    @app.post("/call_tool")
    async def call_tool(request: Request) -> JSONResponse:
        status, body = await handler.call_tool_flat(await request.body())
        return JSONResponse(body, status_code=status)

    return app
