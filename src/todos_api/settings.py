from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import quote


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - REDIS_URL: full Redis URL; when set it overrides host/port/password/TLS
    - REDIS_HOST / REDIS_PORT: Redis endpoint (default localhost:6379)
    - REDIS_PASSWORD: optional Redis password
    - REDIS_USE_TLS: 'true' to connect with rediss:// (default: false)
    - REDIS_SOCKET_TIMEOUT: seconds bounding every Redis call (default 5)
    - REDIS_HEALTH_CHECK_INTERVAL: seconds between connectivity pings (default 10)
    - REDIS_CHANNEL: pub/sub channel for audit events (default 'log_channel')
    - TODO_CACHE_TTL: TTL in seconds for todo collections in Redis (default 300)
    - JWT_SECRET: HS256 secret used to verify bearer tokens
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: log level name (default INFO)
    - ENVIRONMENT: 'development' (default) or 'production' (JSON logs)
    """

    redis_url: Optional[str]
    redis_host: str
    redis_port: int
    redis_password: Optional[str]
    redis_use_tls: bool
    redis_socket_timeout: float
    redis_health_check_interval: float
    log_channel: str
    cache_ttl: int
    jwt_secret: Optional[str]
    cors_allow_origins: List[str]
    log_level: str
    environment: str

    @property
    def redis_dsn(self) -> str:
        """Return the Redis URL, assembling it from host/port/password when REDIS_URL is unset."""
        if self.redis_url:
            return self.redis_url
        scheme = "rediss" if self.redis_use_tls else "redis"
        if self.redis_password:
            return f"{scheme}://:{quote(self.redis_password, safe='')}@{self.redis_host}:{self.redis_port}"
        return f"{scheme}://{self.redis_host}:{self.redis_port}"


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_bool(value: str, default: bool = False) -> bool:
    v = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_int(value: str, default: int) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return default


def _parse_float(value: str, default: float) -> float:
    try:
        parsed = float(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    environment = _get_env("ENVIRONMENT", "development").strip().lower()
    if environment not in {"development", "production"}:
        environment = "development"

    cache_ttl = _parse_int(_get_env("TODO_CACHE_TTL", "300"), 300)
    if cache_ttl < 0:
        cache_ttl = 300

    return Settings(
        redis_url=os.getenv("REDIS_URL") or None,
        redis_host=_get_env("REDIS_HOST", "localhost").strip(),
        redis_port=_parse_int(_get_env("REDIS_PORT", "6379"), 6379),
        redis_password=os.getenv("REDIS_PASSWORD") or None,
        redis_use_tls=_parse_bool(_get_env("REDIS_USE_TLS", "false"), False),
        redis_socket_timeout=_parse_float(_get_env("REDIS_SOCKET_TIMEOUT", "5"), 5.0),
        redis_health_check_interval=_parse_float(_get_env("REDIS_HEALTH_CHECK_INTERVAL", "10"), 10.0),
        log_channel=_get_env("REDIS_CHANNEL", "log_channel").strip(),
        cache_ttl=cache_ttl,
        jwt_secret=os.getenv("JWT_SECRET") or None,
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
        environment=environment,
    )
