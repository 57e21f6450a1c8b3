"""Stdio-to-HTTP bridge exposing Airframe's MCP server to local agent hosts."""

__version__ = "1.0.0"

from .bridge import AirframeBridge
from .config import BridgeConfig, ConfigurationError, Settings
from .url_validation import validate_server_url

__all__ = [
    "AirframeBridge",
    "BridgeConfig",
    "ConfigurationError",
    "Settings",
    "validate_server_url",
]
