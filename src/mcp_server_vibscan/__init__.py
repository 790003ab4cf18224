"""MCP Server for rotating-machinery vibration scans.

Run as a CLI:
    mcp-server-vibscan

Or via Python:
    python -m mcp_server_vibscan
"""

from __future__ import annotations

__version__ = "0.1.0"


def main() -> None:
    """CLI entry point for the vibration-scan MCP server."""
    import argparse
    import logging
    import os

    parser = argparse.ArgumentParser(
        prog="mcp-server-vibscan",
        description="MCP server for rotating-machinery fault diagnosis from motion-intensity signals",
    )
    parser.add_argument(
        "--transport",
        choices=["stdio"],
        default="stdio",
        help="MCP transport (default: stdio)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=os.environ.get("VIBSCAN_LOG_LEVEL", "WARNING").upper(),
        help="Log level for stderr output (default: $VIBSCAN_LOG_LEVEL or WARNING)",
    )
    args = parser.parse_args()

    # stdout carries the stdio transport
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    from mcp_server_vibscan.server import serve

    serve(transport=args.transport)


if __name__ == "__main__":
    main()
