"""Service layer helpers."""

from .credentials import CredentialBundle, CredentialStore, user_to_dict
from .dispatcher import WebhookDispatcher
from .strava_client import StravaClient, TokenGrant
from .webhooks import classify_event, process_event, record_event, verify_handshake

__all__ = [
    "CredentialBundle",
    "CredentialStore",
    "StravaClient",
    "TokenGrant",
    "WebhookDispatcher",
    "classify_event",
    "process_event",
    "record_event",
    "user_to_dict",
    "verify_handshake",
]
