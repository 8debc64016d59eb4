"""Configuration for the sqlgate MCP server."""
import os
from dataclasses import dataclass, field

from psycopg.conninfo import make_conninfo


@dataclass
class GatewayConfig:
    """Server configuration loaded from environment variables."""

    # Database connection
    db_host: str = field(
        default_factory=lambda: os.environ.get("SQLGATE_DB_HOST", "localhost")
    )
    db_port: int = field(
        default_factory=lambda: int(os.environ.get("SQLGATE_DB_PORT", "5432"))
    )
    db_user: str = field(
        default_factory=lambda: os.environ.get("SQLGATE_DB_USER", "")
    )
    db_password: str = field(
        default_factory=lambda: os.environ.get("SQLGATE_DB_PASSWORD", "")
    )
    db_name: str = field(
        default_factory=lambda: os.environ.get("SQLGATE_DB_NAME", "")
    )
    db_sslmode: str = field(
        default_factory=lambda: os.environ.get("SQLGATE_DB_SSLMODE", "prefer")
    )

    # Pool settings
    pool_min_size: int = field(
        default_factory=lambda: int(os.environ.get("SQLGATE_POOL_MIN", "1"))
    )
    pool_max_size: int = field(
        default_factory=lambda: int(os.environ.get("SQLGATE_POOL_MAX", "10"))
    )
    pool_max_lifetime: int = field(
        default_factory=lambda: int(
            os.environ.get("SQLGATE_POOL_MAX_LIFETIME", "3600")
        )
    )
    pool_max_idle: int = field(
        default_factory=lambda: int(os.environ.get("SQLGATE_POOL_MAX_IDLE", "600"))
    )

    # Timeouts (seconds)
    acquire_timeout: float = field(
        default_factory=lambda: float(
            os.environ.get("SQLGATE_ACQUIRE_TIMEOUT", "60")
        )
    )
    query_timeout: float = field(
        default_factory=lambda: float(os.environ.get("SQLGATE_QUERY_TIMEOUT", "60"))
    )

    # MCP server
    server_name: str = field(
        default_factory=lambda: os.environ.get("SQLGATE_SERVER_NAME", "sqlgate")
    )
    server_version: str = field(
        default_factory=lambda: os.environ.get("SQLGATE_SERVER_VERSION", "1.0.0")
    )
    transport: str = field(
        default_factory=lambda: os.environ.get("SQLGATE_TRANSPORT", "stdio")
    )
    http_host: str = field(
        default_factory=lambda: os.environ.get("SQLGATE_HOST", "127.0.0.1")
    )
    http_port: int = field(
        default_factory=lambda: int(os.environ.get("APP_PORT", "8000"))
    )
    log_level: str = field(
        default_factory=lambda: os.environ.get("SQLGATE_LOG_LEVEL", "INFO").upper()
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.db_host and self.db_name)


def build_conninfo(cfg: GatewayConfig) -> str:
    """Build a psycopg conninfo string.

    The execution timeout is enforced server-side through statement_timeout
    so a runaway statement fails instead of blocking its connection.
    """
    params = {
        "host": cfg.db_host,
        "port": cfg.db_port,
        "dbname": cfg.db_name,
        "sslmode": cfg.db_sslmode,
        "connect_timeout": max(1, int(cfg.acquire_timeout)),
        "options": f"-c statement_timeout={int(cfg.query_timeout * 1000)}",
        "application_name": cfg.server_name,
    }
    if cfg.db_user:
        params["user"] = cfg.db_user
    if cfg.db_password:
        params["password"] = cfg.db_password
    return make_conninfo(**params)


config = GatewayConfig()
