"""Database model exports."""

from .strava import StravaUser
from .webhook import WebhookEvent

__all__ = [
    "StravaUser",
    "WebhookEvent",
]
