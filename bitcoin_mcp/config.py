"""Configuration management."""

import os
from dataclasses import dataclass
from urllib.parse import urlparse

DEFAULT_REST_BASE_URL = "https://api.binance.com/api/v3"
DEFAULT_STREAM_BASE_URL = "wss://stream.binance.com:9443/ws"
DEFAULT_USER_AGENT = "binance-mcp-tool/1.0.0"


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    if not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


@dataclass(frozen=True)
class SystemConfig:
    """Endpoints and limits shared by the REST source and the stream collector."""

    rest_base_url: str = DEFAULT_REST_BASE_URL
    stream_base_url: str = DEFAULT_STREAM_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: float = 10.0
    max_stream_seconds: float = 30.0
    stream_open_timeout: float = 10.0
    stream_close_timeout: float = 1.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "SystemConfig":
        """Load configuration from environment variables.

        Every variable is optional; unset ones fall back to the public
        Binance endpoints and the default limits.
        """
        return cls(
            rest_base_url=os.getenv("BINANCE_REST_API", DEFAULT_REST_BASE_URL).rstrip("/"),
            stream_base_url=os.getenv("BINANCE_WS_URL", DEFAULT_STREAM_BASE_URL).rstrip("/"),
            user_agent=os.getenv("BINANCE_USER_AGENT", DEFAULT_USER_AGENT),
            request_timeout=_float_env("BINANCE_REQUEST_TIMEOUT", 10.0),
            max_stream_seconds=_float_env("BINANCE_STREAM_MAX_SECONDS", 30.0),
            stream_open_timeout=_float_env("BINANCE_STREAM_OPEN_TIMEOUT", 10.0),
            stream_close_timeout=_float_env("BINANCE_STREAM_CLOSE_TIMEOUT", 1.0),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> None:
        """Validate configuration."""
        if urlparse(self.rest_base_url).scheme not in ("http", "https"):
            raise ValueError("BINANCE_REST_API must be an http(s) URL")
        if urlparse(self.stream_base_url).scheme not in ("ws", "wss"):
            raise ValueError("BINANCE_WS_URL must be a ws(s) URL")
        if not self.user_agent:
            raise ValueError("BINANCE_USER_AGENT must not be empty")
        if self.request_timeout <= 0:
            raise ValueError("BINANCE_REQUEST_TIMEOUT must be positive")
        if self.max_stream_seconds <= 0:
            raise ValueError("BINANCE_STREAM_MAX_SECONDS must be positive")
        if self.stream_open_timeout <= 0 or self.stream_close_timeout <= 0:
            raise ValueError("Stream open/close timeouts must be positive")
