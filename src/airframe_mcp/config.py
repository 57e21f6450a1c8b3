"""Configuration settings for the Airframe MCP client."""

from dataclasses import dataclass

from pydantic_settings import BaseSettings

DEFAULT_SERVER_URL = "https://mcp.airframe.ai/mcp"
MAX_RESPONSE_SIZE = 10 * 1024 * 1024  # 10MB
MAX_ERROR_BODY_CHARS = 200
REQUEST_TIMEOUT_SECONDS = 120.0  # AI agent calls can be slow
API_KEY_PREFIX = "af_"


class ConfigurationError(Exception):
    """Raised for startup configuration problems (missing key, unsafe URL)."""


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Credentials and endpoint
    api_key: str | None = None
    server_url: str = DEFAULT_SERVER_URL

    # Forwarding limits
    request_timeout_seconds: float = REQUEST_TIMEOUT_SECONDS
    max_response_bytes: int = MAX_RESPONSE_SIZE
    max_error_body_chars: int = MAX_ERROR_BODY_CHARS

    api_key_prefix: str = API_KEY_PREFIX

    # Logging
    log_level: str = "INFO"

    model_config = {"env_prefix": "AIRFRAME_"}


@dataclass(frozen=True)
class BridgeConfig:
    """Resolved configuration handed to the bridge core."""

    api_key: str
    server_url: str
