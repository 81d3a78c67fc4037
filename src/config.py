"""
Centralized configuration with environment variable overrides.

Endpoint, client and logging settings are configurable here. Nothing
in the session or transport code hardcodes a host, port or token size.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from src.logging_context import install_client_id_filter

load_dotenv()

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(name)s] [%(client_id)s] %(levelname)s: %(message)s"


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class ServerConfig:
    """Location of the agent's WebSocket endpoint."""

    scheme: str = os.getenv("CHAT_SERVER_SCHEME", "ws")
    host: str = os.getenv("CHAT_SERVER_HOST", "localhost")
    port: int = _safe_int("CHAT_SERVER_PORT", "8001")
    path: str = os.getenv("CHAT_SERVER_PATH", "/ws")

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}{self.path.rstrip('/')}"

    def endpoint_for(self, client_id: str) -> str:
        """Full endpoint URL with the client id appended as a path segment."""
        return f"{self.base_url}/{client_id}"


@dataclass(frozen=True)
class ClientConfig:
    """Per-client session settings."""

    client_id_length: int = _safe_int("CLIENT_ID_LENGTH", "8")
    max_input_length: int = _safe_int("MAX_INPUT_LENGTH", "4000")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    server: ServerConfig = field(default_factory=ServerConfig)
    client: ClientConfig = field(default_factory=ClientConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "agent-chat")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.server.scheme not in ("ws", "wss"):
        raise ValueError(
            f"CHAT_SERVER_SCHEME must be 'ws' or 'wss', got {config.server.scheme!r}"
        )
    if not 1 <= config.server.port <= 65535:
        raise ValueError(
            f"CHAT_SERVER_PORT must be between 1 and 65535, got {config.server.port}"
        )
    if not config.server.host:
        raise ValueError("CHAT_SERVER_HOST must not be empty")
    if not config.server.path.startswith("/"):
        raise ValueError(
            f"CHAT_SERVER_PATH must start with '/', got {config.server.path!r}"
        )
    if config.client.client_id_length < 1:
        raise ValueError(
            f"CLIENT_ID_LENGTH must be >= 1, got {config.client.client_id_length}"
        )
    if config.client.max_input_length < 1:
        raise ValueError(
            f"MAX_INPUT_LENGTH must be >= 1, got {config.client.max_input_length}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    install_client_id_filter()
    logger.info("Configuration loaded for '%s' (%s)", config.app_name, config.server.base_url)
    return config


# Singleton instance
settings = load_config()
