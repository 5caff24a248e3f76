"""Stdio MCP server: one process, one API key."""

import argparse
import logging
import os
from typing import Sequence

import anyio
from mcp.server.stdio import stdio_server

from .mcp_server import build_server
from .sms_client import SmsConfig, default_base_url, redact_key

# Configure Logging (stderr; stdout carries the protocol)
logging.basicConfig(
    level=os.getenv("SMS_MCP_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger("sms-mcp-cli")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="sms-mcp", description="SMS MCP server (stdio transport)")
    parser.add_argument("-k", "--api-key", dest="api_key", default=None,
                        help="SMS API key (overrides SMS_API_KEY)")
    return parser.parse_args(argv)


def resolve_api_key(cli_key: str | None) -> str:
    """The CLI flag wins over the environment; empty string when neither is set."""
    if cli_key:
        return cli_key
    return os.getenv("SMS_API_KEY", "")


async def serve(config: SmsConfig) -> None:
    server = build_server(config)
    async with stdio_server() as (read_stream, write_stream):
        logger.info(f"SMS MCP server running on stdio (key {redact_key(config.api_key)})")
        await server.run(read_stream, write_stream, server.create_initialization_options())
    logger.info("Stdio transport closed")


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    api_key = resolve_api_key(args.api_key)
    if not api_key:
        # Upstream rejects the call; nothing is validated locally.
        logger.warning(
            "No API key provided. Set SMS_API_KEY environment variable or pass --api-key argument."
        )

    config = SmsConfig(base_url=default_base_url(), api_key=api_key)
    anyio.run(serve, config)


if __name__ == "__main__":
    main()
