"""Request payloads accepted by the API."""

from __future__ import annotations

from typing import Annotated, Any, Dict, Optional

from pydantic import BaseModel, Field

# Strava ids are 64-bit; anything wider cannot be stored.
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
# 9999-12-31T23:59:59Z, the last second a datetime can hold.
MAX_UNIX_SECONDS = 253402300799

StravaId = Annotated[int, Field(ge=INT64_MIN, le=INT64_MAX)]
UnixSeconds = Annotated[int, Field(ge=0, le=MAX_UNIX_SECONDS, description="Unix seconds")]


class AthleteProfile(BaseModel):
    """Athlete block of the Strava token exchange response."""

    id: StravaId
    username: Optional[str] = None
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    profile_medium: Optional[str] = None


class StravaConnectRequest(BaseModel):
    """Credential bundle posted by the client after the OAuth exchange."""

    access_token: str
    refresh_token: str
    expires_at: UnixSeconds
    athlete: AthleteProfile


class StravaWebhookEvent(BaseModel):
    """Push notification body as sent by Strava."""

    object_type: str
    object_id: StravaId
    aspect_type: str
    owner_id: StravaId
    event_time: UnixSeconds
    updates: Dict[str, Any] = Field(default_factory=dict)
    subscription_id: Optional[StravaId] = None


__all__ = [
    "INT64_MAX",
    "INT64_MIN",
    "MAX_UNIX_SECONDS",
    "AthleteProfile",
    "StravaConnectRequest",
    "StravaId",
    "StravaWebhookEvent",
    "UnixSeconds",
]
