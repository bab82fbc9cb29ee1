"""Configuration management for the authgate service."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from datetime import timedelta
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

logger = logging.getLogger("authgate.config")

STORE_BACKENDS = frozenset({"sqlite", "dynamodb"})
DEFAULT_SESSION_SECRET = "devops-secret"

# YAML key -> environment variable
_ENV_KEYS: Dict[str, str] = {
    "store": "AUTHGATE_STORE",
    "region": "AWS_REGION",
    "table": "DDB_TABLE",
    "dynamodb_endpoint": "DDB_ENDPOINT_URL",
    "database_path": "AUTHGATE_DB_PATH",
    "session_secret": "SESSION_SECRET",
    "session_ttl_hours": "AUTHGATE_SESSION_TTL_HOURS",
    "secure_cookies": "AUTHGATE_SESSION_SECURE",
    "host": "HOST",
    "port": "PORT",
}


def default_database_path() -> Path:
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "authgate.sqlite3").resolve(strict=False)


def _parse_flag(value: object) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _parse_int(key: str, value: object) -> int:
    try:
        return int(str(value).strip())
    except ValueError as exc:
        raise ValueError(f"Configuration value '{key}' must be an integer, got {value!r}") from exc


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, built once at startup and passed to collaborators."""

    store_backend: str = "sqlite"
    region: str = "us-east-1"
    table_name: str = "Users"
    dynamodb_endpoint: Optional[str] = None
    database_path: Path = default_database_path()
    session_secret: str = DEFAULT_SESSION_SECRET
    session_ttl: timedelta = timedelta(hours=8)
    secure_cookies: bool = False
    host: str = "0.0.0.0"
    port: int = 3000

    @staticmethod
    def from_dict(data: Mapping[str, object], base: Optional["Settings"] = None) -> "Settings":
        """Overlay raw configuration values onto ``base`` (or the defaults)."""

        settings = base or Settings()
        changes: Dict[str, object] = {}

        if data.get("store") is not None:
            backend = str(data["store"]).strip().lower()
            if backend not in STORE_BACKENDS:
                raise ValueError(
                    f"Unknown store backend '{backend}'; expected one of {', '.join(sorted(STORE_BACKENDS))}"
                )
            changes["store_backend"] = backend
        if data.get("region"):
            changes["region"] = str(data["region"]).strip()
        if data.get("table"):
            changes["table_name"] = str(data["table"]).strip()
        if data.get("dynamodb_endpoint"):
            changes["dynamodb_endpoint"] = str(data["dynamodb_endpoint"]).strip()
        if data.get("database_path"):
            changes["database_path"] = Path(str(data["database_path"])).expanduser().resolve(strict=False)
        if data.get("session_secret"):
            changes["session_secret"] = str(data["session_secret"])
        if data.get("session_ttl_hours") is not None:
            hours = _parse_int("session_ttl_hours", data["session_ttl_hours"])
            if hours <= 0:
                raise ValueError("Configuration value 'session_ttl_hours' must be positive")
            changes["session_ttl"] = timedelta(hours=hours)
        if data.get("secure_cookies") is not None:
            changes["secure_cookies"] = _parse_flag(data["secure_cookies"])
        if data.get("host"):
            changes["host"] = str(data["host"]).strip()
        if data.get("port") is not None:
            port = _parse_int("port", data["port"])
            if not 0 < port < 65536:
                raise ValueError("Configuration value 'port' must be between 1 and 65535")
            changes["port"] = port

        return replace(settings, **changes)


def _read_config_file(config_path: Path) -> Dict[str, object]:
    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Configuration file {config_path} must contain a mapping")
    return raw


def _read_environment(environ: Mapping[str, str]) -> Dict[str, object]:
    values: Dict[str, object] = {}
    for key, env_name in _ENV_KEYS.items():
        raw = environ.get(env_name)
        if raw is not None and raw.strip():
            values[key] = raw
    return values


def resolve_config_path(env_value: Optional[str]) -> Optional[Path]:
    """Resolve the optional YAML configuration file path."""
    if not env_value:
        return None
    return Path(env_value).expanduser().resolve(strict=False)


def load_settings(
    config_path: Optional[Path] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Build settings from defaults, an optional YAML file and the environment."""

    env = os.environ if environ is None else environ
    if config_path is None:
        config_path = resolve_config_path(env.get("AUTHGATE_CONFIG"))

    settings = Settings()
    if config_path is not None:
        settings = Settings.from_dict(_read_config_file(config_path), settings)
    settings = Settings.from_dict(_read_environment(env), settings)

    if settings.session_secret == DEFAULT_SESSION_SECRET:
        logger.warning(
            "SESSION_SECRET is not configured; falling back to the built-in development secret."
        )
    return settings


__all__ = ["Settings", "default_database_path", "load_settings", "resolve_config_path"]
