"""Command-line interface for the embedded MCP server."""

from __future__ import annotations

import argparse
import json
import logging
import time
from dataclasses import asdict

from embedded_mcp.config import ServerConfig
from embedded_mcp.errors import LifecycleError
from embedded_mcp.fastmcp_adapter import build_fastmcp_app
from embedded_mcp.lifecycle import EmbeddedServer

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(description="Run the embedded MCP server.")
    parser.add_argument(
        "--port", type=int, default=None, help="Loopback port to listen on."
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for the server to start.",
    )
    parser.add_argument(
        "--catalog",
        action="store_true",
        help="Print the available tool catalog as JSON and exit.",
    )
    parser.add_argument(
        "--stdio",
        action="store_true",
        help="Serve the tools over the MCP stdio transport instead of HTTP.",
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level.")
    return parser


def _wait_for_shutdown(server: EmbeddedServer) -> None:
    while server.is_running():
        time.sleep(0.5)


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format=LOG_FORMAT)

    config = ServerConfig.from_env()
    server = EmbeddedServer(config=config)

    if args.catalog:
        catalog = [asdict(info) for info in server.get_available_tools()]
        print(json.dumps(catalog, indent=2))
        return 0

    if args.stdio:
        app = build_fastmcp_app(server.registry, server.dispatcher)
        app.run(transport="stdio")
        return 0

    port = config.port if args.port is None else args.port
    timeout = config.startup_timeout if args.timeout is None else args.timeout
    try:
        server.start(port, timeout)
    except LifecycleError as error:
        logger.error("%s", error)
        return 1

    print(server.get_server_url(), flush=True)
    try:
        _wait_for_shutdown(server)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    finally:
        server.stop()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
