"""Runtime configuration for the embedded server."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_PORT = 12345
DEFAULT_STARTUP_TIMEOUT = 5.0
MIN_PORT = 1024
MAX_PORT = 65535
LOOPBACK_HOST = "127.0.0.1"

_ENV_PREFIX = "EMBEDDED_MCP_"


def _optional_float(raw: str) -> float | None:
    if raw.strip().lower() in {"", "none", "off"}:
        return None
    return float(raw)


@dataclass(frozen=True)
class ServerConfig:
    """Tunable settings for :class:`~embedded_mcp.lifecycle.EmbeddedServer`.

    Attributes:
        port: Port used when ``start()`` is called without one.
        startup_timeout: Seconds to wait for the listener to come up.
        shutdown_grace_period: Seconds in-flight requests get to finish on stop.
        shutdown_timeout: Extra seconds to wait after forcing the listener down.
        tool_timeout: Optional per-call limit in seconds for tool handlers.
        uvicorn_log_level: Log level handed to uvicorn.

    """

    port: int = DEFAULT_PORT
    startup_timeout: float = DEFAULT_STARTUP_TIMEOUT
    shutdown_grace_period: float = 1.0
    shutdown_timeout: float = 5.0
    tool_timeout: float | None = None
    uvicorn_log_level: str = "warning"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ServerConfig:
        """Build a config from ``EMBEDDED_MCP_*`` environment variables.

        Malformed values are ignored with a warning and the default is kept.
        """
        environ = os.environ if environ is None else environ
        parsers: dict[str, Callable[[str], Any]] = {
            "port": int,
            "startup_timeout": float,
            "shutdown_grace_period": float,
            "shutdown_timeout": float,
            "tool_timeout": _optional_float,
            "uvicorn_log_level": str.lower,
        }
        env_names = {
            "port": "PORT",
            "startup_timeout": "STARTUP_TIMEOUT",
            "shutdown_grace_period": "SHUTDOWN_GRACE",
            "shutdown_timeout": "SHUTDOWN_TIMEOUT",
            "tool_timeout": "TOOL_TIMEOUT",
            "uvicorn_log_level": "UVICORN_LOG_LEVEL",
        }
        values: dict[str, Any] = {}
        for item in fields(cls):
            key = _ENV_PREFIX + env_names[item.name]
            raw = environ.get(key)
            if raw is None:
                continue
            try:
                values[item.name] = parsers[item.name](raw)
            except ValueError:
                logger.warning("Ignoring invalid value %r for %s", raw, key)
        return cls(**values)
