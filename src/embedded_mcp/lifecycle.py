"""Start/stop lifecycle of the embedded HTTP server.

:class:`EmbeddedServer` owns one uvicorn listener running on a background
thread. All state transitions happen under a single lock, so two concurrent
``start()`` calls can never both get past the running check.

Usage::

    server = EmbeddedServer()
    server.start(port=12345)
    server.get_server_url()  # "http://127.0.0.1:12345"
    server.stop()
"""

from __future__ import annotations

import logging
import socket
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

import uvicorn

from embedded_mcp.config import (
    DEFAULT_PORT,
    DEFAULT_STARTUP_TIMEOUT,
    LOOPBACK_HOST,
    MAX_PORT,
    MIN_PORT,
    ServerConfig,
)
from embedded_mcp.dispatcher import ToolDispatcher
from embedded_mcp.errors import (
    AlreadyRunningError,
    InvalidPortError,
    StartupFailedError,
    StartupTimeoutError,
)
from embedded_mcp.http_app import create_app
from embedded_mcp.protocol import ProtocolHandler
from embedded_mcp.registry import ToolRegistry, default_registry

logger = logging.getLogger(__name__)

_POLL_INTERVAL = 0.01


class ServerState(Enum):
    """Lifecycle states of an :class:`EmbeddedServer`."""

    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"


@dataclass(frozen=True)
class ToolInfo:
    """Summary of an available tool for display in the host application."""

    name: str
    description: str
    required_parameters: list[str]
    all_parameters: list[str]


def validate_port(port: Any) -> int:
    """Check that ``port`` is an integer in the registered/dynamic range.

    Raises:
        InvalidPortError: If the port is not an integer in [1024, 65535].

    """
    if isinstance(port, bool) or not isinstance(port, int):
        raise InvalidPortError(f"Port must be an integer, got: {port!r}")
    if not MIN_PORT <= port <= MAX_PORT:
        raise InvalidPortError(
            f"Port must be between {MIN_PORT} and {MAX_PORT}, got: {port}"
        )
    return port


class EmbeddedServer:
    """Host-controlled lifecycle for the loopback MCP HTTP server."""

    def __init__(
        self,
        registry: ToolRegistry | None = None,
        dispatcher: ToolDispatcher | None = None,
        config: ServerConfig | None = None,
    ) -> None:
        """Create a stopped server.

        Args:
            registry: Tools to expose. Defaults to the automation tools backed by
                the mock backend.
            dispatcher: Dispatcher for tool calls. Built from ``registry`` and
                ``config.tool_timeout`` when omitted.
            config: Lifecycle settings.

        """
        self.config = config or ServerConfig()
        self.registry = registry or default_registry()
        self.dispatcher = dispatcher or ToolDispatcher(
            self.registry, tool_timeout=self.config.tool_timeout
        )
        self._lock = threading.Lock()
        self._state = ServerState.STOPPED
        self._listener: _Listener | None = None
        self._port: int | None = None

    def __enter__(self) -> EmbeddedServer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    @property
    def state(self) -> ServerState:
        """Current lifecycle state."""
        return self._state

    def is_running(self) -> bool:
        """Return whether the listener is up and serving."""
        return self._state is ServerState.RUNNING

    def get_server_url(self) -> str | None:
        """Loopback URL of the running server, or ``None`` when not running."""
        port = self.get_current_port()
        if port is None:
            return None
        return f"http://{LOOPBACK_HOST}:{port}"

    def get_current_port(self) -> int | None:
        """Port of the running server, or ``None`` when not running."""
        if self._state is not ServerState.RUNNING:
            return None
        return self._port

    def get_available_tools(self) -> list[ToolInfo]:
        """Summaries of every tool the server exposes."""
        return [
            ToolInfo(
                name=tool.name,
                description=tool.description,
                required_parameters=tool.required_parameters,
                all_parameters=tool.parameter_names,
            )
            for tool in self.registry.list()
        ]

    def start(
        self, port: int = DEFAULT_PORT, timeout: float = DEFAULT_STARTUP_TIMEOUT
    ) -> None:
        """Start listening on ``127.0.0.1:port``.

        Args:
            port: Port to bind, in [1024, 65535].
            timeout: Seconds to wait for the listener to come up.

        Raises:
            AlreadyRunningError: If the server is not stopped.
            InvalidPortError: If ``port`` is out of range. No listener is created.
            StartupTimeoutError: If the listener is not up within ``timeout``.
            StartupFailedError: If the listener exits while starting, for
                example because the port is already in use.

        """
        with self._lock:
            if self._state is not ServerState.STOPPED:
                raise AlreadyRunningError(
                    f"MCP server is already {self._state.value} on port {self._port}"
                )
            validate_port(port)
            logger.info("Starting embedded MCP server on port %s", port)
            self._state = ServerState.STARTING
            self._port = port
            try:
                self._listener = self._launch(port, timeout)
            except BaseException:
                self._listener = None
                self._port = None
                self._state = ServerState.STOPPED
                raise
            self._state = ServerState.RUNNING
        logger.info("Embedded MCP server started at %s", self.get_server_url())

    def stop(self) -> None:
        """Stop the server. Safe to call when already stopped."""
        with self._lock:
            if self._state is not ServerState.RUNNING:
                logger.debug("MCP server is not running, stop() called redundantly")
                return
            logger.info("Stopping embedded MCP server on port %s", self._port)
            listener = self._listener
            try:
                if listener is not None:
                    self._shutdown(listener)
            finally:
                self._listener = None
                self._port = None
                self._state = ServerState.STOPPED
        logger.info("Embedded MCP server stopped")

    def restart(
        self, new_port: int, timeout: float = DEFAULT_STARTUP_TIMEOUT
    ) -> None:
        """Stop the server, then start it on ``new_port``.

        Not atomic: if the start fails the server is left stopped and the caller
        may retry ``start()``.
        """
        logger.info("Restarting MCP server on port %s", new_port)
        self.stop()
        self.start(new_port, timeout)

    def _launch(self, port: int, timeout: float) -> _Listener:
        deadline = time.monotonic() + timeout
        sock = _bind_loopback(port)
        try:
            handler = ProtocolHandler(self.registry, self.dispatcher)
            config = uvicorn.Config(
                create_app(handler, port),
                host=LOOPBACK_HOST,
                port=port,
                log_level=self.config.uvicorn_log_level,
                lifespan="off",
                timeout_graceful_shutdown=max(
                    1, round(self.config.shutdown_grace_period)
                ),
            )
            server = uvicorn.Server(config)
            thread = threading.Thread(
                target=server.run,
                kwargs={"sockets": [sock]},
                name=f"embedded-mcp-{port}",
                daemon=True,
            )
        except BaseException:
            sock.close()
            raise
        listener = _Listener(server=server, thread=thread, sock=sock)
        thread.start()

        while not server.started:
            if not thread.is_alive():
                self._shutdown(listener)
                raise StartupFailedError(
                    f"Failed to start MCP server on {LOOPBACK_HOST}:{port}; "
                    "the listener exited during startup"
                )
            if time.monotonic() >= deadline:
                logger.error("MCP server did not start within %ss", timeout)
                self._shutdown(listener)
                raise StartupTimeoutError(
                    f"Server failed to start within {timeout:g}s"
                )
            time.sleep(_POLL_INTERVAL)
        return listener

    def _shutdown(self, listener: _Listener) -> None:
        server, thread = listener.server, listener.thread
        server.should_exit = True
        thread.join(self.config.shutdown_grace_period + 1.0)
        if thread.is_alive():
            logger.warning("MCP server did not drain in time, forcing exit")
            server.force_exit = True
            thread.join(self.config.shutdown_timeout)
        if thread.is_alive():
            logger.error(
                "MCP server thread %s still alive after shutdown; abandoning it",
                thread.name,
            )
        listener.sock.close()


@dataclass
class _Listener:
    server: uvicorn.Server
    thread: threading.Thread
    sock: socket.socket


def _bind_loopback(port: int) -> socket.socket:
    """Bind a TCP socket to the loopback interface.

    Raises:
        StartupFailedError: If the address cannot be bound.

    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((LOOPBACK_HOST, port))
    except OSError as exc:
        sock.close()
        raise StartupFailedError(
            f"Failed to bind {LOOPBACK_HOST}:{port}: {exc}"
        ) from exc
    return sock


embedded_server = EmbeddedServer()
