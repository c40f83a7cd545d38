"""Lifecycle coverage against real loopback listeners."""

from __future__ import annotations

import asyncio
import socket
import threading
import time
from typing import Any

import httpx
import pytest

from embedded_mcp import lifecycle
from embedded_mcp.config import ServerConfig
from embedded_mcp.errors import (
    AlreadyRunningError,
    InvalidPortError,
    StartupFailedError,
    StartupTimeoutError,
)
from embedded_mcp.lifecycle import EmbeddedServer, ServerState, validate_port
from embedded_mcp.registry import ToolRegistry
from embedded_mcp.tooling import ToolDefinition, ToolInputSchema, ToolResult


def _port_is_listening(port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.settimeout(0.5)
        return sock.connect_ex(("127.0.0.1", port)) == 0


def _port_is_free(port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind(("127.0.0.1", port))
        except OSError:
            return False
        return True


class TestStartStop:
    """Start, stop and status reads."""

    def test_start_serves_health(self, server: EmbeddedServer, free_port: int) -> None:
        """A started server answers the liveness probe on loopback."""
        # Act
        server.start(port=free_port)

        # Assert
        assert server.is_running() is True
        assert server.state is ServerState.RUNNING
        assert server.get_server_url() == f"http://127.0.0.1:{free_port}"
        assert server.get_current_port() == free_port
        response = httpx.get(f"{server.get_server_url()}/health", timeout=5)
        assert response.json()["status"] == "healthy"
        assert response.json()["port"] == free_port

    def test_rpc_over_http(self, server: EmbeddedServer, free_port: int) -> None:
        """JSON-RPC calls work end to end over the socket."""
        server.start(port=free_port)

        response = httpx.post(
            server.get_server_url() + "/",
            json={
                "jsonrpc": "2.0",
                "method": "tools/call",
                "params": {"name": "scroll", "arguments": {"direction": "up"}},
                "id": "req-1",
            },
            timeout=5,
        )

        body = response.json()
        assert body["id"] == "req-1"
        assert body["result"]["isError"] is False

    def test_stop_releases_port(self, server: EmbeddedServer, free_port: int) -> None:
        """Stopping closes the listener and clears status reads."""
        server.start(port=free_port)

        server.stop()

        assert server.is_running() is False
        assert server.get_server_url() is None
        assert server.get_current_port() is None
        assert not _port_is_listening(free_port)

    def test_stop_is_idempotent(self, server: EmbeddedServer, free_port: int) -> None:
        """Stopping twice, or before starting, is silently safe."""
        server.stop()
        server.start(port=free_port)

        server.stop()
        server.stop()

        assert server.is_running() is False
        assert server.state is ServerState.STOPPED

    def test_binds_loopback_only(self, server: EmbeddedServer, free_port: int) -> None:
        """The listener socket is bound to 127.0.0.1."""
        server.start(port=free_port)

        assert server._listener is not None
        assert server._listener.sock.getsockname() == ("127.0.0.1", free_port)

    def test_context_manager_stops(self, free_port: int) -> None:
        """Leaving the context stops the server."""
        with EmbeddedServer() as embedded:
            embedded.start(port=free_port)
            assert embedded.is_running()

        assert embedded.is_running() is False

    def test_stop_with_call_in_flight_is_bounded(self, free_port: int) -> None:
        """stop() does not wait for a tool call that never finishes."""
        # Arrange
        entered = threading.Event()

        async def hang(_: dict[str, Any]) -> ToolResult:
            entered.set()
            await asyncio.sleep(30)
            return ToolResult.from_text("too late")

        config = ServerConfig(shutdown_grace_period=0.5, shutdown_timeout=2.0)
        embedded = EmbeddedServer(
            registry=ToolRegistry(
                [
                    ToolDefinition(
                        name="hang",
                        description="Never returns in time.",
                        input_schema=ToolInputSchema(),
                        handler=hang,
                    )
                ]
            ),
            config=config,
        )
        embedded.start(port=free_port)

        def call() -> None:
            try:
                httpx.post(
                    f"http://127.0.0.1:{free_port}/call_tool",
                    json={"name": "hang"},
                    timeout=10,
                )
            except httpx.HTTPError:
                pass

        caller = threading.Thread(target=call, daemon=True)
        caller.start()
        assert entered.wait(timeout=5)

        # Act
        began = time.monotonic()
        embedded.stop()
        elapsed = time.monotonic() - began

        # Assert
        limit = config.shutdown_grace_period + 1.0 + config.shutdown_timeout
        assert elapsed < limit
        assert embedded.state is ServerState.STOPPED
        assert not _port_is_listening(free_port)
        caller.join(timeout=10)


class TestStartFailures:
    """Start failures are reported synchronously and leave a clean state."""

    def test_second_start_fails(self, server: EmbeddedServer, free_port: int) -> None:
        """Starting twice raises AlreadyRunningError; the first stays up."""
        server.start(port=free_port)

        with pytest.raises(AlreadyRunningError):
            server.start(port=free_port)

        assert server.is_running()
        assert httpx.get(f"http://127.0.0.1:{free_port}/health", timeout=5).status_code == 200

    @pytest.mark.parametrize("port", [80, 0, 1023, 65536, -1, "8080", 8080.0, True])
    def test_invalid_port(self, server: EmbeddedServer, port: object) -> None:
        """Ports outside [1024, 65535] are rejected before binding."""
        with pytest.raises(InvalidPortError):
            server.start(port=port)  # type: ignore[arg-type]

        assert server.state is ServerState.STOPPED
        assert server._listener is None

    def test_invalid_port_is_value_error(self) -> None:
        """InvalidPortError can be caught as a ValueError."""
        with pytest.raises(ValueError):
            validate_port(80)

    def test_port_in_use(self, server: EmbeddedServer) -> None:
        """A port held by another listener fails the start cleanly."""
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind(("127.0.0.1", 0))
            blocker.listen()
            port = blocker.getsockname()[1]

            with pytest.raises(StartupFailedError):
                server.start(port=port)

        assert server.state is ServerState.STOPPED

    def test_bad_timeout_leaves_nothing_bound(
        self, server: EmbeddedServer, free_port: int
    ) -> None:
        """A non-numeric timeout fails before any socket or thread exists."""
        with pytest.raises(TypeError):
            server.start(port=free_port, timeout="5")  # type: ignore[arg-type]

        assert server.state is ServerState.STOPPED
        assert _port_is_free(free_port)

    def test_app_setup_failure_releases_socket(
        self, server: EmbeddedServer, free_port: int, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Errors after binding close the socket so the port can be reused."""

        def broken_app(*_: object) -> None:
            raise RuntimeError("app setup failed")

        monkeypatch.setattr(lifecycle, "create_app", broken_app)

        with pytest.raises(RuntimeError, match="app setup failed"):
            server.start(port=free_port)

        assert server.state is ServerState.STOPPED
        assert _port_is_free(free_port)

    def test_startup_timeout_allows_retry(
        self, server: EmbeddedServer, free_port: int
    ) -> None:
        """A timed-out start releases everything so a retry succeeds."""
        with pytest.raises(StartupTimeoutError):
            server.start(port=free_port, timeout=0)

        assert server.state is ServerState.STOPPED

        server.start(port=free_port)
        assert server.is_running()

    def test_concurrent_starts_allow_one_winner(
        self, server: EmbeddedServer, free_port: int
    ) -> None:
        """Racing start() calls never produce two listeners."""
        outcomes: list[str] = []
        barrier = threading.Barrier(4)

        def attempt() -> None:
            barrier.wait()
            try:
                server.start(port=free_port)
            except AlreadyRunningError:
                outcomes.append("rejected")
            else:
                outcomes.append("started")

        threads = [threading.Thread(target=attempt) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=15)

        assert sorted(outcomes) == ["rejected", "rejected", "rejected", "started"]
        assert server.is_running()


class TestRestart:
    """restart() is stop() followed by start()."""

    def test_restart_moves_port(self, server: EmbeddedServer, free_port: int) -> None:
        """The server comes back on the new port."""
        server.start(port=free_port)
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as probe:
            probe.bind(("127.0.0.1", 0))
            new_port = probe.getsockname()[1]

        server.restart(new_port)

        assert server.get_current_port() == new_port
        assert not _port_is_listening(free_port)
        response = httpx.get(f"http://127.0.0.1:{new_port}/health", timeout=5)
        assert response.json()["port"] == new_port

    def test_failed_restart_leaves_server_stopped(
        self, server: EmbeddedServer, free_port: int
    ) -> None:
        """A restart onto an invalid port ends stopped, and start can retry."""
        server.start(port=free_port)

        with pytest.raises(InvalidPortError):
            server.restart(80)

        assert server.is_running() is False
        server.start(port=free_port)
        assert server.is_running()


def test_available_tools_summary(server: EmbeddedServer) -> None:
    """Tool summaries list required and declared parameters."""
    tools = {tool.name: tool for tool in server.get_available_tools()}

    assert list(tools) == ["tapButton", "inputText", "getScreenInfo", "scroll"]
    assert tools["scroll"].required_parameters == ["direction"]
    assert tools["scroll"].all_parameters == ["direction", "distance", "containerId"]
    assert tools["tapButton"].required_parameters == []
