"""FastAPI dependencies for objects built once at startup."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Path, Query, Request
from sqlmodel import Session

from ..core import Settings, get_session
from ..schemas import INT64_MAX, INT64_MIN
from ..services import CredentialStore, StravaClient, WebhookDispatcher

AthleteId = Annotated[int, Path(ge=INT64_MIN, le=INT64_MAX)]
SubscriptionId = Annotated[int, Query(ge=INT64_MIN, le=INT64_MAX)]


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_strava_client(request: Request) -> StravaClient:
    return request.app.state.strava_client


def get_dispatcher(request: Request) -> WebhookDispatcher:
    return request.app.state.webhook_dispatcher


def get_credential_store(session: Session = Depends(get_session)) -> CredentialStore:
    return CredentialStore(session)


__all__ = [
    "AthleteId",
    "SubscriptionId",
    "get_credential_store",
    "get_dispatcher",
    "get_settings",
    "get_strava_client",
]
