"""Database model for received Strava webhook events."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field as ORMField, SQLModel

from ..core.time import utcnow


class WebhookEvent(SQLModel, table=True):
    """Append-only audit row for each push notification."""

    __tablename__ = "strava_webhook_events"

    id: Optional[int] = ORMField(default=None, primary_key=True)
    object_type: str = ORMField(max_length=50)
    object_id: int
    aspect_type: str = ORMField(max_length=50)
    updates: str = "{}"  # JSON object
    owner_id: int = ORMField(index=True)
    subscription_id: Optional[int] = None
    event_time: datetime
    processed: bool = ORMField(default=False, index=True)
    created_at: datetime = ORMField(default_factory=utcnow)


__all__ = ["WebhookEvent"]
