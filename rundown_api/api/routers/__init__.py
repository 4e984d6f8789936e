"""Aggregate API routers."""

from fastapi import APIRouter

from .auth import router as auth_router
from .strava import router as strava_router
from .system import router as system_router
from .webhooks import router as webhooks_router

ALL_ROUTERS: tuple[APIRouter, ...] = (
    system_router,
    auth_router,
    strava_router,
    webhooks_router,
)

__all__ = ["ALL_ROUTERS"]
