from __future__ import annotations

import os
from dataclasses import dataclass
from urllib.parse import quote_plus


@dataclass(frozen=True, slots=True)
class PlatformConfig:
    enabled: bool
    scheme: str
    host: str
    port: str
    token: str
    timeout_seconds: float
    application_name: str

    @property
    def is_enabled(self) -> bool:
        return self.enabled and bool(self.token)

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}/api"


@dataclass(frozen=True, slots=True)
class ServerConfig:
    environment: str
    database_url: str
    host: str
    port: int
    api_prefix: str
    dev_enable_docs: bool
    jwt_secret: str
    jwt_issuer: str
    jwt_audience: str
    access_token_ttl_seconds: int
    metrics_token: str | None
    platform: PlatformConfig


def _require_env(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise ValueError(f"{name} is required")
    return value


def _parse_bool(raw: str | None, default: bool) -> bool:
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_int(name: str, default: str) -> int:
    raw = os.getenv(name, default).strip()
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc


def _database_url_from_parts() -> str:
    host = os.getenv("DB_HOST", "localhost").strip()
    port = _parse_int("DB_PORT", "5432")
    user = os.getenv("DB_USER", "postgres").strip()
    password = _require_env("DB_PASSWORD")
    name = os.getenv("DB_NAME", "auth_db").strip()
    return f"postgresql+psycopg://{quote_plus(user)}:{quote_plus(password)}@{host}:{port}/{name}"


def _validate_database_url(url: str, allow_test_sqlite: bool) -> str:
    lowered = url.lower()
    if lowered.startswith("postgresql://") or lowered.startswith("postgresql+psycopg://"):
        return url
    if allow_test_sqlite and lowered.startswith("sqlite://"):
        return url
    raise ValueError("DATABASE_URL must use PostgreSQL in non-test deployments")


def _normalize_prefix(raw: str) -> str:
    cleaned = raw.strip().rstrip("/")
    if cleaned and not cleaned.startswith("/"):
        cleaned = "/" + cleaned
    return cleaned


def load_platform_config() -> PlatformConfig:
    scheme = os.getenv("CHIRPSTACK_SCHEME", "http").strip().lower()
    if scheme not in {"http", "https"}:
        raise ValueError("CHIRPSTACK_SCHEME must be http or https")
    try:
        timeout = float(os.getenv("CHIRPSTACK_TIMEOUT_SECONDS", "30"))
    except ValueError as exc:
        raise ValueError("CHIRPSTACK_TIMEOUT_SECONDS must be a number") from exc

    return PlatformConfig(
        enabled=_parse_bool(os.getenv("CHIRPSTACK_ENABLED"), True),
        scheme=scheme,
        host=os.getenv("CHIRPSTACK_HOST", "localhost").strip(),
        port=str(_parse_int("CHIRPSTACK_PORT", "8090")),
        token=os.getenv("CHIRPSTACK_TOKEN", "").strip(),
        timeout_seconds=max(1.0, timeout),
        application_name=os.getenv("CHIRPSTACK_APPLICATION_NAME", "Lnode").strip() or "Lnode",
    )


def load_config() -> ServerConfig:
    environment = os.getenv("LNODE_ENV", "development").strip().lower()
    allow_test_sqlite = _parse_bool(os.getenv("LNODE_ALLOW_SQLITE_FOR_TESTS"), environment in {"test", "ci"})

    database_url = os.getenv("DATABASE_URL", "").strip() or _database_url_from_parts()
    database_url = _validate_database_url(database_url, allow_test_sqlite=allow_test_sqlite)

    dev_docs_flag = _parse_bool(os.getenv("LNODE_DEV_ENABLE_DOCS"), False)
    dev_enable_docs = bool(dev_docs_flag and environment in {"development", "local", "dev", "test", "ci"})

    return ServerConfig(
        environment=environment,
        database_url=database_url,
        host=os.getenv("HOST", "0.0.0.0"),
        port=_parse_int("PORT", "8080"),
        api_prefix=_normalize_prefix(os.getenv("LNODE_API_PREFIX", "/api/v1")),
        dev_enable_docs=dev_enable_docs,
        jwt_secret=_require_env("JWT_SECRET"),
        jwt_issuer=os.getenv("JWT_ISSUER", "lnode-api"),
        jwt_audience=os.getenv("JWT_AUDIENCE", "lnode-users"),
        access_token_ttl_seconds=_parse_int("JWT_TTL_SECONDS", "86400"),
        metrics_token=os.getenv("LNODE_METRICS_TOKEN", "").strip() or None,
        platform=load_platform_config(),
    )
