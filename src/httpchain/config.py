"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All settings for the serving adapter, the demo app and its token verifier,
in one dataclass with environment-variable support and fail-fast
validation.

=============================================================================
ENVIRONMENT VARIABLES
=============================================================================

    HTTP_HOST           Bind address              (default: 127.0.0.1)
    HTTP_PORT           Port                      (default: 8080)
    HTTP_WORKERS        Worker threads            (default: 8)
    HTTP_TIMEOUT        Request read timeout (s)  (default: 30)
    HTTP_LOG_LEVEL      DEBUG/INFO/WARNING/...    (default: INFO)
    HTTP_LOG_FORMAT     text | json               (default: text)
    AUTH_JWT_SECRET     HMAC secret for /post     (required to serve)
    AUTH_JWT_AUDIENCE   Expected "aud" claim      (optional)
    AUTH_JWT_ISSUER     Expected "iss" claim      (optional)

    # From shell:
    AUTH_JWT_SECRET=... HTTP_PORT=3000 python -m httpchain

=============================================================================
"""

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .errors import ConfigError


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP server and demo application.

    Development:
        ServerConfig(port=8080, log_level="DEBUG", jwt_secret="dev-secret...")

    Production:
        ServerConfig.from_env()
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    port: int = 8080
    backlog: int = 128
    buffer_size: int = 8192
    timeout: Optional[float] = 30.0

    # ─────────────────────────────────────────────────────────────────────
    # HTTP SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    keep_alive: bool = True
    keep_alive_timeout: float = 5.0
    max_request_size: int = 10 * 1024 * 1024  # 10 MB

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────
    # One worker handles one connection at a time; requests on different
    # connections are dispatched independently.

    min_workers: int = 4
    max_workers: int = 16
    queue_size: int = 100

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    log_format: str = "text"

    # ─────────────────────────────────────────────────────────────────────
    # AUTHENTICATION
    # ─────────────────────────────────────────────────────────────────────

    jwt_secret: str = ""
    jwt_algorithms: Tuple[str, ...] = field(default_factory=lambda: ("HS256",))
    jwt_audience: Optional[str] = None
    jwt_issuer: Optional[str] = None

    # ─────────────────────────────────────────────────────────────────────
    # APPLICATION
    # ─────────────────────────────────────────────────────────────────────

    server_name: str = "httpchain/1.0"
    index_body: str = "Middlewares in Go!"

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Create configuration from HTTP_* and AUTH_* environment variables."""
        workers = int(os.getenv("HTTP_WORKERS", "8"))
        timeout = os.getenv("HTTP_TIMEOUT", "30")
        return cls(
            host=os.getenv("HTTP_HOST", "127.0.0.1"),
            port=int(os.getenv("HTTP_PORT", "8080")),
            min_workers=workers,
            max_workers=max(workers, 16),
            timeout=float(timeout) if timeout else None,
            log_level=os.getenv("HTTP_LOG_LEVEL", "INFO"),
            log_format=os.getenv("HTTP_LOG_FORMAT", "text"),
            jwt_secret=os.getenv("AUTH_JWT_SECRET", ""),
            jwt_audience=os.getenv("AUTH_JWT_AUDIENCE") or None,
            jwt_issuer=os.getenv("AUTH_JWT_ISSUER") or None,
        )

    def validate(self) -> None:
        """
        Validate configuration values at startup, not at first use.

        Raises:
            ConfigError: On the first invalid setting.
        """
        if not 0 <= self.port < 65536:
            raise ConfigError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.min_workers < 1:
            raise ConfigError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ConfigError("max_workers must be >= min_workers")

        if self.queue_size < 1:
            raise ConfigError("queue_size must be >= 1")

        if self.buffer_size < 1024:
            raise ConfigError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ConfigError("timeout must be > 0")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}")

        if self.log_format not in ("text", "json"):
            raise ConfigError("log_format must be 'text' or 'json'")

        if not self.jwt_algorithms:
            raise ConfigError("jwt_algorithms must not be empty")

    def require_secret(self) -> str:
        """The JWT secret, or ConfigError when it is not configured."""
        if not self.jwt_secret:
            raise ConfigError("AUTH_JWT_SECRET (jwt_secret) is required")
        return self.jwt_secret
