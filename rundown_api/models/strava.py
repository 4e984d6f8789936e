"""Database model for Strava OAuth credentials."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field as ORMField, SQLModel

from ..core.time import utcnow


class StravaUser(SQLModel, table=True):
    """One connected athlete and the OAuth credentials issued for them."""

    __tablename__ = "strava_users"

    id: Optional[int] = ORMField(default=None, primary_key=True)
    access_token: str
    refresh_token: str
    expires_at: datetime
    athlete_id: int = ORMField(index=True, unique=True)
    username: Optional[str] = ORMField(default=None, max_length=255)
    firstname: Optional[str] = ORMField(default=None, max_length=255)
    lastname: Optional[str] = ORMField(default=None, max_length=255)
    profile: Optional[str] = None
    created_at: datetime = ORMField(default_factory=utcnow)
    updated_at: datetime = ORMField(default_factory=utcnow)


__all__ = ["StravaUser"]
