"""Logging configuration. Everything goes to stderr; stdout carries MCP traffic."""

import logging
import sys

LOG_PREFIX = "[Airframe MCP]"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=f"{LOG_PREFIX} %(message)s",
        stream=sys.stderr,
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
