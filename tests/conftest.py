"""Shared test fixtures."""

from __future__ import annotations

import socket
from collections.abc import Iterator

import pytest

from embedded_mcp.backend import MockAutomationBackend
from embedded_mcp.config import ServerConfig
from embedded_mcp.dispatcher import ToolDispatcher
from embedded_mcp.lifecycle import EmbeddedServer
from embedded_mcp.protocol import ProtocolHandler
from embedded_mcp.registry import ToolRegistry, default_registry


@pytest.fixture()
def backend() -> MockAutomationBackend:
    """Mock backend without simulated latency."""
    return MockAutomationBackend(latency_scale=0.0)


@pytest.fixture()
def registry(backend: MockAutomationBackend) -> ToolRegistry:
    """Registry with the four automation tools."""
    return default_registry(backend)


@pytest.fixture()
def dispatcher(registry: ToolRegistry) -> ToolDispatcher:
    """Dispatcher over the default registry."""
    return ToolDispatcher(registry)


@pytest.fixture()
def handler(registry: ToolRegistry, dispatcher: ToolDispatcher) -> ProtocolHandler:
    """Protocol handler over the default registry."""
    return ProtocolHandler(registry, dispatcher)


@pytest.fixture()
def free_port() -> int:
    """Return a loopback port that is currently unused."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return int(sock.getsockname()[1])


@pytest.fixture()
def server(registry: ToolRegistry) -> Iterator[EmbeddedServer]:
    """Stopped server that is always stopped again after the test."""
    embedded = EmbeddedServer(
        registry=registry,
        config=ServerConfig(shutdown_grace_period=0.5, shutdown_timeout=2.0),
    )
    yield embedded
    embedded.stop()



@pytest.fixture(scope="module")
def anyio_backend() -> str:
    """Run anyio-marked tests on asyncio, the event loop the code targets."""
    return "asyncio"
