"""Strava API pass-through routes."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from ...core import TokenExpired, as_utc, utcnow
from ...services import CredentialStore, StravaClient
from ..deps import AthleteId, get_credential_store, get_strava_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/strava", tags=["strava"])


@router.get("/activities/{athlete_id}")
async def activities(
    athlete_id: AthleteId,
    store: CredentialStore = Depends(get_credential_store),
    strava: StravaClient = Depends(get_strava_client),
) -> List[Any]:
    user = store.get(athlete_id)

    # Expired tokens are reported, never refreshed here.
    if utcnow() > as_utc(user.expires_at):
        logger.info("Access token for athlete %s has expired", athlete_id)
        raise TokenExpired("Token expired, please refresh")

    return await strava.list_activities(user.access_token)


@router.post("/refresh-token/{athlete_id}")
async def refresh_token(
    athlete_id: AthleteId,
    store: CredentialStore = Depends(get_credential_store),
    strava: StravaClient = Depends(get_strava_client),
) -> Dict[str, Any]:
    user = store.get(athlete_id)
    grant = await strava.refresh_token(user.refresh_token)
    store.update_tokens(athlete_id, grant.access_token, grant.refresh_token, grant.expires_at)
    return {
        "message": "Token refreshed successfully",
        "access_token": grant.access_token,
        "expires_at": grant.expires_at_unix,
    }


__all__ = ["router"]
