"""Twitch app access token cache (client-credentials flow)."""

import logging
import time
from dataclasses import dataclass
from typing import Callable

import httpx

logger = logging.getLogger(__name__)


class TwitchError(Exception):
    """Base class for Twitch API failures."""


class TwitchAuthError(TwitchError):
    """Credential exchange failed. Fatal for the current run."""


@dataclass
class CachedToken:
    access_token: str
    expires_at: float  # clock() value at which Twitch expires the token


class TwitchTokenCache:
    """
    Holds one bearer token and refreshes it shortly before it expires.

    Not locked: concurrent callers may both refresh, which the token
    endpoint tolerates.
    """

    def __init__(
        self,
        client_id: str | None,
        client_secret: str | None,
        token_url: str = "https://id.twitch.tv/oauth2/token",
        safety_margin: float = 60.0,
        timeout: float = 10.0,
        http_client: httpx.Client | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url
        self.safety_margin = safety_margin
        self.timeout = timeout
        self.http_client = http_client
        self.clock = clock
        self.token: CachedToken | None = None

    def is_fresh(self) -> bool:
        return self.token is not None and self.clock() < self.token.expires_at - self.safety_margin

    def get_token(self) -> str:
        """Return a valid bearer token, exchanging credentials when stale."""
        if self.is_fresh():
            return self.token.access_token
        self.token = self._exchange()
        return self.token.access_token

    def invalidate(self) -> None:
        self.token = None

    def _exchange(self) -> CachedToken:
        if not self.client_id or not self.client_secret:
            raise TwitchAuthError("Twitch credentials not configured")

        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "grant_type": "client_credentials",
        }
        try:
            if self.http_client is not None:
                response = self.http_client.post(self.token_url, data=data, timeout=self.timeout)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.post(self.token_url, data=data)
        except httpx.HTTPError as e:
            logger.error(f"Twitch token exchange failed: {e}")
            raise TwitchAuthError(f"Token exchange failed: {e}") from e

        if not response.is_success:
            raise TwitchAuthError(f"Failed to get Twitch token: {response.status_code}")

        try:
            payload = response.json()
            access_token = payload["access_token"]
            expires_in = float(payload.get("expires_in") or 0)
        except (ValueError, KeyError, TypeError) as e:
            raise TwitchAuthError(f"Malformed token response: {e}") from e
        if not access_token:
            raise TwitchAuthError("Token response missing access_token")

        logger.info(f"Obtained Twitch app token (expires in {int(expires_in)}s)")
        return CachedToken(access_token=access_token, expires_at=self.clock() + expires_in)
