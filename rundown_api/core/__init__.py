"""Core configuration and infrastructure helpers."""

from .config import Settings
from .database import create_db_engine, get_session, init_db
from .errors import (
    Forbidden,
    NotFound,
    RundownError,
    StorageError,
    TokenExpired,
    UpstreamError,
    ValidationError,
)
from .logging_config import configure_logging
from .time import as_utc, from_unix, isoformat_z, utcnow

__all__ = [
    "Forbidden",
    "NotFound",
    "RundownError",
    "Settings",
    "StorageError",
    "TokenExpired",
    "UpstreamError",
    "ValidationError",
    "as_utc",
    "configure_logging",
    "create_db_engine",
    "from_unix",
    "get_session",
    "init_db",
    "isoformat_z",
    "utcnow",
]
