"""Command-line entry point for the Airframe MCP client."""

import argparse
import asyncio
import logging
import sys

from pydantic import ValidationError

from airframe_mcp.bridge import AirframeBridge
from airframe_mcp.config import (
    DEFAULT_SERVER_URL,
    BridgeConfig,
    ConfigurationError,
    Settings,
)
from airframe_mcp.logging_setup import configure_logging
from airframe_mcp.transport import McpLocalTransport
from airframe_mcp.url_validation import validate_server_url

logger = logging.getLogger("airframe_mcp")

USAGE = "Usage: airframe-mcp --api-key YOUR_API_KEY [--server-url URL]"
API_KEYS_URL = "https://airframe.ai/account/api-keys"

DESCRIPTION = "Airframe MCP Client for Claude Desktop"

EPILOG = f"""\
Get your API key at: {API_KEYS_URL}

Claude Desktop Configuration:
  Add to ~/Library/Application Support/Claude/claude_desktop_config.json:
  {{
    "mcpServers": {{
      "airframe": {{
        "command": "airframe-mcp",
        "args": ["--api-key", "YOUR_API_KEY"]
      }}
    }}
  }}
"""


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports problems as ConfigurationError instead of exiting."""

    def error(self, message):
        raise ConfigurationError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="airframe-mcp",
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
        allow_abbrev=False,
    )
    parser.add_argument(
        "--api-key",
        metavar="KEY",
        help="Your Airframe API key (required, starts with af_)",
    )
    parser.add_argument(
        "--server-url",
        metavar="URL",
        help=f"MCP server URL (default: {DEFAULT_SERVER_URL})",
    )
    parser.add_argument("-h", "--help", action="store_true", help="Show this help message")
    return parser


def parse_cli_args(argv: list[str], settings: Settings | None = None) -> BridgeConfig | None:
    """Resolve the bridge configuration from flags, falling back to settings.

    Returns:
        The resolved configuration, or None if help was requested

    Raises:
        ConfigurationError: If the API key is missing or the URL is unsafe
    """
    settings = settings or Settings()
    parser = build_parser()

    try:
        args, unknown = parser.parse_known_args(argv)
    except ConfigurationError as e:
        if "--api-key" in str(e):
            raise ConfigurationError("--api-key is required") from e
        raise

    if unknown:
        logger.debug(f"Ignoring unrecognized arguments: {unknown}")

    if args.help:
        parser.print_help(sys.stdout)
        return None

    api_key = args.api_key or settings.api_key
    if not api_key:
        raise ConfigurationError("--api-key is required")

    server_url = args.server_url or settings.server_url
    reason = validate_server_url(server_url)
    if reason:
        raise ConfigurationError(reason)

    if not api_key.startswith(settings.api_key_prefix):
        logger.warning(f"Warning: API key should start with '{settings.api_key_prefix}'")

    return BridgeConfig(api_key=api_key, server_url=server_url)


async def run_bridge(config: BridgeConfig, settings: Settings) -> None:
    """Serve the bridge over stdio until the client disconnects."""
    transport = McpLocalTransport()
    bridge = AirframeBridge(
        config.api_key,
        config.server_url,
        sink=transport,
        timeout=settings.request_timeout_seconds,
        max_response_bytes=settings.max_response_bytes,
        max_error_body_chars=settings.max_error_body_chars,
    )
    transport.register(bridge.list_capabilities, bridge.invoke_capability)

    async with bridge:
        logger.info(f"Forwarding to {config.server_url}")
        await transport.run()


def main(argv: list[str] | None = None) -> None:
    """Run the Airframe MCP client."""
    try:
        settings = Settings()
    except ValidationError as e:
        print(f"Error: invalid AIRFRAME_* environment settings\n{e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(settings.log_level)

    try:
        config = parse_cli_args(sys.argv[1:] if argv is None else argv, settings)
    except ConfigurationError as e:
        print(f"Error: {e}\n", file=sys.stderr)
        print(USAGE, file=sys.stderr)
        print(f"\nGet your API key at: {API_KEYS_URL}", file=sys.stderr)
        sys.exit(1)

    if config is None:
        sys.exit(0)

    try:
        asyncio.run(run_bridge(config, settings))
    except KeyboardInterrupt:
        pass
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
