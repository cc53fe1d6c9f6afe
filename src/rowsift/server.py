"""Main FastMCP server for Rowsift."""

from __future__ import annotations

from pathlib import Path

from fastmcp import FastMCP

from ._version import __version__
from .servers.export_server import export_rows_endpoint, export_server, filtered_rows_endpoint
from .utils.logging_config import get_logger, set_correlation_id, setup_structured_logging

logger = get_logger(__name__)

ROWS_PATH = "/api/tenants/{tenantId}/databases/{databaseId}/tables/{tableId}/rows"


def _load_instructions() -> str:
    """Load instructions from the markdown file."""
    instructions_path = Path(__file__).parent / "instructions.md"
    try:
        return instructions_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.warning(f"Instructions file not found at {instructions_path}")
        return "Rowsift MCP Server - Instructions file not available"
    except (PermissionError, OSError, UnicodeDecodeError) as e:
        logger.error(f"Error loading instructions: {e}")
        return "Rowsift MCP Server - Error loading instructions"


# Initialize FastMCP server
mcp = FastMCP("Rowsift", instructions=_load_instructions())

# Mount specialized servers
mcp.mount(export_server)

# Plain HTTP routes, served alongside MCP by the http and sse transports
mcp.custom_route(f"{ROWS_PATH}/export", methods=["GET"])(export_rows_endpoint)
mcp.custom_route(f"{ROWS_PATH}/filtered", methods=["GET"])(filtered_rows_endpoint)


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================


def main() -> None:
    """Main entry point for the server."""
    import argparse

    parser = argparse.ArgumentParser(description="Rowsift")
    parser.add_argument(
        "--transport",
        choices=["stdio", "http", "sse"],
        default="stdio",
        help="Transport method",
    )
    parser.add_argument("--host", default="0.0.0.0", help="Host for HTTP/SSE transport")  # nosec B104  # noqa: S104
    parser.add_argument("--port", type=int, default=8000, help="Port for HTTP/SSE transport")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level",
    )

    args = parser.parse_args()

    setup_structured_logging(args.log_level)

    # Set server-level correlation ID
    server_correlation_id = set_correlation_id()

    logger.info(
        f"Starting Rowsift {__version__} with {args.transport} transport",
        transport=args.transport,
        host=args.host if args.transport != "stdio" else None,
        port=args.port if args.transport != "stdio" else None,
        log_level=args.log_level,
        server_id=server_correlation_id,
    )

    if args.transport == "stdio":
        mcp.run()
    else:
        mcp.run(transport=args.transport, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
