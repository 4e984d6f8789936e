"""
Strava webhook handling.

Covers the subscription handshake, storing received events and the
background classification that runs after the event was acknowledged.
"""

from __future__ import annotations

import json
import logging
import secrets
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..core.errors import Forbidden, NotFound, StorageError
from ..core.time import from_unix
from ..models import WebhookEvent
from ..schemas import StravaWebhookEvent
from .credentials import CredentialStore

logger = logging.getLogger(__name__)

SUBSCRIBE_MODE = "subscribe"
AUTHORIZED_FIELD = "authorized"


class ObjectType(str, Enum):
    ACTIVITY = "activity"
    ATHLETE = "athlete"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: str) -> "ObjectType":
        try:
            return cls(raw)
        except ValueError:
            return cls.UNKNOWN


class AspectType(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


# Classified events -----------------------------------------------------------


@dataclass(frozen=True)
class ActivityEvent:
    activity_id: int
    owner_id: int
    aspect_type: str


@dataclass(frozen=True)
class AthleteDeauthorized:
    owner_id: int


@dataclass(frozen=True)
class AthleteUpdate:
    owner_id: int
    updates: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class IgnoredEvent:
    object_type: str
    aspect_type: str
    owner_id: int


ClassifiedEvent = Union[ActivityEvent, AthleteDeauthorized, AthleteUpdate, IgnoredEvent]


# Handshake -------------------------------------------------------------------


def verify_handshake(
    mode: Optional[str],
    challenge: Optional[str],
    verify_token: Optional[str],
    expected_token: str,
) -> str:
    """Return the challenge to echo, or raise ``Forbidden``."""

    token_ok = verify_token is not None and secrets.compare_digest(
        verify_token.encode(), expected_token.encode()
    )
    if mode != SUBSCRIBE_MODE or not token_ok or challenge is None:
        logger.warning("Webhook verification failed (mode=%r)", mode)
        raise Forbidden("Forbidden")
    logger.info("Webhook verification successful")
    return challenge


# Ingestion -------------------------------------------------------------------


def record_event(session: Session, event: StravaWebhookEvent) -> WebhookEvent:
    """Persist one received notification and return the stored row."""

    row = WebhookEvent(
        object_type=event.object_type,
        object_id=event.object_id,
        aspect_type=event.aspect_type,
        updates=json.dumps(event.updates),
        owner_id=event.owner_id,
        subscription_id=event.subscription_id,
        event_time=from_unix(event.event_time),
        processed=False,
    )
    session.add(row)
    try:
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Database error while storing webhook event: %s", exc)
        raise StorageError("Failed to store webhook event") from exc
    session.refresh(row)
    logger.info(
        "Received Strava webhook event %s: %s %s %s (owner %s)",
        row.id,
        event.object_type,
        event.aspect_type,
        event.object_id,
        event.owner_id,
    )
    return row


# Classification --------------------------------------------------------------


def is_deauthorization(value: Any) -> bool:
    """Strava sends ``"false"`` for a revoked app; accept a real boolean too."""

    if isinstance(value, bool):
        return value is False
    if isinstance(value, str):
        return value.strip().lower() == "false"
    return False


def classify_event(event: StravaWebhookEvent) -> ClassifiedEvent:
    object_type = ObjectType.parse(event.object_type)

    if object_type is ObjectType.ACTIVITY:
        return ActivityEvent(
            activity_id=event.object_id,
            owner_id=event.owner_id,
            aspect_type=event.aspect_type,
        )

    if object_type is ObjectType.ATHLETE and event.aspect_type == AspectType.UPDATE.value:
        if AUTHORIZED_FIELD in event.updates and is_deauthorization(
            event.updates[AUTHORIZED_FIELD]
        ):
            return AthleteDeauthorized(owner_id=event.owner_id)
        return AthleteUpdate(owner_id=event.owner_id, updates=dict(event.updates))

    return IgnoredEvent(
        object_type=event.object_type,
        aspect_type=event.aspect_type,
        owner_id=event.owner_id,
    )


def _handle_activity(event: ActivityEvent) -> None:
    if event.aspect_type == AspectType.CREATE.value:
        logger.info("New activity %s for athlete %s", event.activity_id, event.owner_id)
    elif event.aspect_type == AspectType.UPDATE.value:
        logger.info("Activity %s updated for athlete %s", event.activity_id, event.owner_id)
    elif event.aspect_type == AspectType.DELETE.value:
        logger.info("Activity %s deleted for athlete %s", event.activity_id, event.owner_id)
    else:
        logger.info(
            "Unhandled aspect %r for activity %s", event.aspect_type, event.activity_id
        )


def _handle_deauthorization(session: Session, event: AthleteDeauthorized) -> None:
    logger.info("Athlete %s deauthorized the application", event.owner_id)
    try:
        CredentialStore(session).delete(event.owner_id)
    except NotFound:
        logger.info("No stored credentials for deauthorized athlete %s", event.owner_id)
    except StorageError as exc:
        logger.error(
            "Failed to delete credentials for deauthorized athlete %s: %s",
            event.owner_id,
            exc.message,
        )


def _mark_processed(session: Session, event_id: int) -> None:
    row = session.get(WebhookEvent, event_id)
    if row is None:
        return
    row.processed = True
    session.add(row)
    try:
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Failed to mark webhook event %s processed: %s", event_id, exc)


def process_event(engine: Engine, event_id: int, event: StravaWebhookEvent) -> ClassifiedEvent:
    """Classify a stored event and apply its side effects.

    Runs on the webhook dispatcher, outside any request. Failures are logged
    and never reach the webhook caller.
    """

    classified = classify_event(event)
    with Session(engine) as session:
        if isinstance(classified, ActivityEvent):
            _handle_activity(classified)
        elif isinstance(classified, AthleteDeauthorized):
            _handle_deauthorization(session, classified)
        elif isinstance(classified, AthleteUpdate):
            logger.info(
                "Athlete %s updated: %s", classified.owner_id, sorted(classified.updates)
            )
        else:
            logger.info(
                "Ignoring %s/%s event for owner %s",
                classified.object_type,
                classified.aspect_type,
                classified.owner_id,
            )
        _mark_processed(session, event_id)
    return classified


__all__ = [
    "ActivityEvent",
    "AspectType",
    "AthleteDeauthorized",
    "AthleteUpdate",
    "ClassifiedEvent",
    "IgnoredEvent",
    "ObjectType",
    "classify_event",
    "is_deauthorization",
    "process_event",
    "record_event",
    "verify_handshake",
]
