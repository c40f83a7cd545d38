"""Tests for environment-driven configuration."""

from __future__ import annotations

from embedded_mcp.config import DEFAULT_PORT, ServerConfig


def test_defaults() -> None:
    """Without overrides the documented defaults apply."""
    config = ServerConfig.from_env({})

    assert config == ServerConfig()
    assert config.port == DEFAULT_PORT == 12345
    assert config.tool_timeout is None


def test_environment_overrides() -> None:
    """EMBEDDED_MCP_* variables override the defaults."""
    config = ServerConfig.from_env(
        {
            "EMBEDDED_MCP_PORT": "8765",
            "EMBEDDED_MCP_STARTUP_TIMEOUT": "2.5",
            "EMBEDDED_MCP_SHUTDOWN_GRACE": "0.2",
            "EMBEDDED_MCP_TOOL_TIMEOUT": "30",
            "EMBEDDED_MCP_UVICORN_LOG_LEVEL": "INFO",
        }
    )

    assert config.port == 8765
    assert config.startup_timeout == 2.5
    assert config.shutdown_grace_period == 0.2
    assert config.tool_timeout == 30.0
    assert config.uvicorn_log_level == "info"


def test_invalid_values_fall_back(caplog) -> None:
    """Malformed values are ignored with a warning."""
    config = ServerConfig.from_env(
        {"EMBEDDED_MCP_PORT": "http", "EMBEDDED_MCP_TOOL_TIMEOUT": "off"}
    )

    assert config.port == DEFAULT_PORT
    assert config.tool_timeout is None
    assert "EMBEDDED_MCP_PORT" in caplog.text
