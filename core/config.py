"""
Runtime configuration for FleetGuard, read from the environment (and .env).
"""
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

load_dotenv()

log = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        log.warning("Ignoring non-integer %s=%r, using %s", name, value, default)
        return default


def normalize_database_url(raw: Optional[str]) -> Optional[str]:
    """Return the connection string if SQLAlchemy can parse it, else None (local-only mode)."""
    if not raw or not raw.strip():
        return None
    try:
        make_url(raw.strip())
    except ArgumentError:
        log.warning("DATABASE_URL is not a valid connection string; running in local-only mode")
        return None
    return raw.strip()


@dataclass(frozen=True)
class Settings:
    database_url: Optional[str]
    data_dir: Path
    secret_key: str
    access_token_expire_minutes: int
    manager_access_pin: str
    sync_enabled: bool
    sync_interval_seconds: int
    offline_queue_warn_size: int
    openai_api_key: Optional[str]
    openai_base_url: Optional[str]
    openai_model: str
    log_level: str

    @property
    def remote_configured(self) -> bool:
        return self.database_url is not None


def get_settings() -> Settings:
    return Settings(
        database_url=normalize_database_url(os.getenv("DATABASE_URL")),
        data_dir=Path(os.getenv("FLEETGUARD_DATA_DIR", "data")),
        secret_key=os.getenv("SECRET_KEY", "FLEETGUARD_DEV_SECRET_KEY"),
        access_token_expire_minutes=_env_int("ACCESS_TOKEN_EXPIRE_MINUTES", 480),
        manager_access_pin=os.getenv("MANAGER_ACCESS_PIN", "6767"),
        sync_enabled=_env_bool("SYNC_ENABLED", True),
        sync_interval_seconds=_env_int("SYNC_INTERVAL_SECONDS", 30),
        offline_queue_warn_size=_env_int("OFFLINE_QUEUE_WARN_SIZE", 500),
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
