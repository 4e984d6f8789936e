"""Strava push-subscription endpoints."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlmodel import Session

from ...core import Settings, ValidationError, get_session
from ...schemas import StravaWebhookEvent
from ...services import StravaClient, WebhookDispatcher, process_event, record_event, verify_handshake
from ..deps import SubscriptionId, get_dispatcher, get_settings, get_strava_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhooks/strava", tags=["webhooks"])


@router.get("")
def verify_subscription(
    mode: Optional[str] = Query(None, alias="hub.mode"),
    challenge: Optional[str] = Query(None, alias="hub.challenge"),
    verify_token: Optional[str] = Query(None, alias="hub.verify_token"),
    settings: Settings = Depends(get_settings),
) -> Dict[str, str]:
    """Answer Strava's callback validation; the response key is fixed."""

    echoed = verify_handshake(mode, challenge, verify_token, settings.strava_verify_token)
    return {"hub.challenge": echoed}


@router.post("")
def receive_event(
    event: StravaWebhookEvent,
    request: Request,
    session: Session = Depends(get_session),
    dispatcher: WebhookDispatcher = Depends(get_dispatcher),
) -> Dict[str, str]:
    row = record_event(session, event)
    # Acknowledge now; classification happens on the dispatcher.
    dispatcher.submit(process_event, request.app.state.engine, row.id, event)
    return {"message": "Event received"}


@router.post("/subscribe")
async def subscribe(
    callback_url: Optional[str] = None,
    settings: Settings = Depends(get_settings),
    strava: StravaClient = Depends(get_strava_client),
) -> Dict[str, Any]:
    target = callback_url or settings.strava_webhook_callback_url
    if not target:
        raise ValidationError("callback_url is required")

    subscription = await strava.create_subscription(target, settings.strava_verify_token)
    logger.info("Created Strava webhook subscription for %s", target)
    return {
        "message": "Webhook subscription created",
        "subscription": subscription,
        "callback_url": target,
    }


@router.delete("/unsubscribe")
async def unsubscribe(
    subscription_id: SubscriptionId,
    strava: StravaClient = Depends(get_strava_client),
) -> Dict[str, Any]:
    await strava.delete_subscription(subscription_id)
    logger.info("Deleted Strava webhook subscription %s", subscription_id)
    return {"message": "Webhook subscription deleted", "subscription_id": subscription_id}


@router.get("/subscriptions")
async def list_subscriptions(
    strava: StravaClient = Depends(get_strava_client),
) -> Dict[str, Any]:
    return {"subscriptions": await strava.list_subscriptions()}


__all__ = ["router"]
