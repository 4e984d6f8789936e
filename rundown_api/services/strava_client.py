"""
Strava API Client
Token refresh, activity listing and push-subscription management.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from ..core.config import Settings
from ..core.errors import UpstreamError
from ..core.time import from_unix

logger = logging.getLogger(__name__)


def _failure_status(response: httpx.Response) -> int:
    # An unexpected 2xx/3xx must not reach our caller as a success code.
    return response.status_code if response.status_code >= 400 else 502


@dataclass(frozen=True)
class TokenGrant:
    """Result of a successful refresh-token exchange."""

    access_token: str
    refresh_token: str
    expires_at_unix: int
    expires_at: datetime


class StravaClient:
    """Stateless wrapper around the handful of Strava endpoints we call.

    Every method sends exactly one request and never retries.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.client_id = settings.strava_client_id
        self.client_secret = settings.strava_client_secret
        self.api_base = settings.strava_api_base
        self.oauth_base = settings.strava_oauth_base
        self.timeout = settings.http_timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def _credentials(self) -> Dict[str, str]:
        return {"client_id": self.client_id, "client_secret": self.client_secret}

    async def _send(self, method: str, url: str, failure: str, **kwargs: Any) -> httpx.Response:
        try:
            async with self._client() as client:
                return await client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Strava %s %s failed: %s", method, url, exc)
            raise UpstreamError(failure, status_code=500) from exc

    @staticmethod
    def _json(response: httpx.Response, failure: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            logger.error("Undecodable Strava response from %s: %s", response.url, exc)
            raise UpstreamError(failure, status_code=500) from exc

    async def list_activities(self, access_token: str) -> List[Any]:
        """Return the athlete's activities exactly as Strava sends them."""

        response = await self._send(
            "GET",
            f"{self.api_base}/athlete/activities",
            "Failed to fetch activities",
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if response.status_code != 200:
            logger.warning("Strava activities request returned %s", response.status_code)
            raise UpstreamError(
                "Failed to fetch activities from Strava", status_code=_failure_status(response)
            )
        return self._json(response, "Failed to decode activities")

    async def refresh_token(self, refresh_token: str) -> TokenGrant:
        response = await self._send(
            "POST",
            f"{self.oauth_base}/token",
            "Failed to refresh token",
            json={
                **self._credentials(),
                "refresh_token": refresh_token,
                "grant_type": "refresh_token",
            },
        )
        if response.status_code != 200:
            logger.warning("Strava token refresh returned %s", response.status_code)
            raise UpstreamError(
                "Failed to refresh token with Strava", status_code=_failure_status(response)
            )

        data = self._json(response, "Failed to decode token response")
        try:
            expires_at_unix = int(data["expires_at"])
            return TokenGrant(
                access_token=data["access_token"],
                refresh_token=data["refresh_token"],
                expires_at_unix=expires_at_unix,
                expires_at=from_unix(expires_at_unix),
            )
        except (KeyError, TypeError, ValueError, OverflowError, OSError) as exc:
            logger.error("Malformed Strava token response: %s", exc)
            raise UpstreamError("Failed to decode token response", status_code=500) from exc

    async def create_subscription(self, callback_url: str, verify_token: str) -> Dict[str, Any]:
        """Register ``callback_url`` for push events; Strava answers 201."""

        response = await self._send(
            "POST",
            f"{self.api_base}/push_subscriptions",
            "Failed to create webhook subscription",
            data={
                **self._credentials(),
                "callback_url": callback_url,
                "verify_token": verify_token,
            },
        )
        if response.status_code != 201:
            logger.error(
                "Strava subscription create returned %s: %s",
                response.status_code,
                response.text,
            )
            raise UpstreamError(
                "Failed to create webhook subscription", status_code=_failure_status(response)
            )
        return self._json(response, "Failed to decode subscription response")

    async def delete_subscription(self, subscription_id: int) -> None:
        response = await self._send(
            "DELETE",
            f"{self.api_base}/push_subscriptions/{subscription_id}",
            "Failed to delete webhook subscription",
            params=self._credentials(),
        )
        if response.status_code != 204:
            logger.error(
                "Strava subscription delete returned %s: %s",
                response.status_code,
                response.text,
            )
            raise UpstreamError(
                "Failed to delete webhook subscription", status_code=_failure_status(response)
            )

    async def list_subscriptions(self) -> List[Dict[str, Any]]:
        response = await self._send(
            "GET",
            f"{self.api_base}/push_subscriptions",
            "Failed to list webhook subscriptions",
            params=self._credentials(),
        )
        if response.status_code != 200:
            logger.error(
                "Strava subscription list returned %s: %s",
                response.status_code,
                response.text,
            )
            raise UpstreamError(
                "Failed to list webhook subscriptions", status_code=_failure_status(response)
            )
        return self._json(response, "Failed to decode subscription list")


__all__ = ["StravaClient", "TokenGrant"]
