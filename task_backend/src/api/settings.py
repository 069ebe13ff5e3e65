from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List

DEFAULT_JWT_SECRET = "change-me-in-production"


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'sqlite'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/tasks.db'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - JWT_SECRET: signing key for bearer tokens (must be set in production)
    - JWT_ALGORITHM: JWT signing algorithm (default: HS256)
    - JWT_EXPIRES_DAYS: token lifetime in days (default: 30)
    - BCRYPT_ROUNDS: bcrypt cost factor (default: 12)
    - ENVIRONMENT: 'development' (default) or 'production'
    - LOG_LEVEL: structlog filtering level (default: INFO)
    """

    persistence_backend: str
    sqlite_db_path: str
    cors_allow_origins: List[str]
    jwt_secret: str
    jwt_algorithm: str
    jwt_expires_days: int
    bcrypt_rounds: int
    environment: str
    log_level: str

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int) -> int:
    try:
        parsed = int(value.strip())
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
    """
    Return application settings loaded from environment variables.

    Raises:
        ValueError: if ENVIRONMENT is 'production' and JWT_SECRET was left at its default.
    """
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "sqlite"}:
        backend = "memory"

    environment = _get_env("ENVIRONMENT", "development").strip().lower()
    jwt_secret = _get_env("JWT_SECRET", DEFAULT_JWT_SECRET)
    if environment == "production" and jwt_secret == DEFAULT_JWT_SECRET:
        raise ValueError("JWT_SECRET must be set to a secure value when ENVIRONMENT=production")

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/tasks.db").strip(),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        jwt_secret=jwt_secret,
        jwt_algorithm=_get_env("JWT_ALGORITHM", "HS256").strip(),
        jwt_expires_days=_parse_int(_get_env("JWT_EXPIRES_DAYS", "30"), 30),
        bcrypt_rounds=_parse_int(_get_env("BCRYPT_ROUNDS", "12"), 12),
        environment=environment,
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
    )
