"""Application settings and environment helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Iterable, List

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite:///./data/app.db"
DEFAULT_VERIFY_TOKEN = "rundown_webhook_token"

STRAVA_API_BASE = "https://www.strava.com/api/v3"
STRAVA_OAUTH_BASE = "https://www.strava.com/oauth"


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number") from exc


def _split_csv(raw: str | None) -> List[str]:
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def _unique(values: Iterable[str]) -> List[str]:
    seen = set()
    ordered: List[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


def normalize_database_url(url: str) -> str:
    """Rewrite Heroku/Render style ``postgres://`` URLs for SQLAlchemy."""

    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, built once at startup and handed to components."""

    database_url: str = DEFAULT_DATABASE_URL
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"
    db_reset: bool = False

    strava_client_id: str = ""
    strava_client_secret: str = ""
    strava_verify_token: str = DEFAULT_VERIFY_TOKEN
    strava_webhook_callback_url: str = ""
    strava_api_base: str = STRAVA_API_BASE
    strava_oauth_base: str = STRAVA_OAUTH_BASE
    http_timeout: float = 20.0

    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    webhook_workers: int = 2
    webhook_backlog: int = 100

    @classmethod
    def from_env(cls, *, load_dotenv_file: bool = True) -> "Settings":
        """Read settings from the process environment (and ``.env``)."""

        if load_dotenv_file:
            load_dotenv(override=False)

        cors_origins = _unique(_split_csv(os.getenv("CORS_ORIGINS"))) or ["*"]

        return cls(
            database_url=normalize_database_url(
                os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL
            ),
            host=os.getenv("HOST", "0.0.0.0"),
            port=_env_int("PORT", 8080),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            db_reset=_env_bool("DB_RESET", False),
            strava_client_id=os.getenv("STRAVA_CLIENT_ID", ""),
            strava_client_secret=os.getenv("STRAVA_CLIENT_SECRET", ""),
            strava_verify_token=os.getenv("STRAVA_VERIFY_TOKEN") or DEFAULT_VERIFY_TOKEN,
            strava_webhook_callback_url=os.getenv("STRAVA_WEBHOOK_CALLBACK_URL", ""),
            strava_api_base=os.getenv("STRAVA_API_BASE", STRAVA_API_BASE).rstrip("/"),
            strava_oauth_base=os.getenv("STRAVA_OAUTH_BASE", STRAVA_OAUTH_BASE).rstrip("/"),
            http_timeout=_env_float("STRAVA_HTTP_TIMEOUT", 20.0),
            cors_origins=cors_origins,
            webhook_workers=_env_int("WEBHOOK_WORKERS", 2),
            webhook_backlog=_env_int("WEBHOOK_BACKLOG", 100),
        )


__all__ = [
    "DEFAULT_DATABASE_URL",
    "DEFAULT_VERIFY_TOKEN",
    "STRAVA_API_BASE",
    "STRAVA_OAUTH_BASE",
    "Settings",
    "normalize_database_url",
]
