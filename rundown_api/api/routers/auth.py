"""Strava credential endpoints used by the client after the OAuth exchange."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from ...schemas import StravaConnectRequest
from ...services import CredentialBundle, CredentialStore, user_to_dict
from ..deps import AthleteId, get_credential_store

router = APIRouter(prefix="/api/auth/strava", tags=["auth"])


@router.post("/connect")
def strava_connect(
    body: StravaConnectRequest,
    store: CredentialStore = Depends(get_credential_store),
) -> Dict[str, Any]:
    """Store (or overwrite) the credential bundle for the posted athlete."""

    user = store.upsert(CredentialBundle.from_connect_request(body))
    return {
        "message": "Successfully connected to Strava",
        "user": user_to_dict(user),
    }


@router.get("/user/{athlete_id}")
def get_strava_user(
    athlete_id: AthleteId,
    store: CredentialStore = Depends(get_credential_store),
) -> Dict[str, Any]:
    return user_to_dict(store.get(athlete_id))


@router.delete("/disconnect/{athlete_id}")
def strava_disconnect(
    athlete_id: AthleteId,
    store: CredentialStore = Depends(get_credential_store),
) -> Dict[str, str]:
    store.delete(athlete_id)
    return {"message": "Successfully disconnected from Strava"}


__all__ = ["router"]
