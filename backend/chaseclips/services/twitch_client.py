"""Twitch Helix client: paginated clip listing and batched metadata lookups."""

import logging
from datetime import datetime, timezone
from typing import Callable, Iterable

import httpx

from chaseclips.config import Settings
from chaseclips.services.clip_types import RawClip
from chaseclips.services.rate_limiter import IntervalRateLimiter
from chaseclips.services.twitch_auth import TwitchTokenCache

logger = logging.getLogger(__name__)

# Helix maximum for `first` and for repeated `id` lookups
PAGE_SIZE = 100
LOOKUP_BATCH_SIZE = 100


def format_rfc3339(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def unique_ids(ids: Iterable[str | None]) -> list[str]:
    """Drop empties and duplicates, keeping first-seen order."""
    return list(dict.fromkeys(i for i in ids if i))


class HelixClient:
    """
    Rate-limited Helix client.

    Every request goes through the injected rate limiter. Only the token
    exchange raises (TwitchAuthError); listing and lookup failures are
    logged and degrade to partial or empty results.
    """

    def __init__(
        self,
        client_id: str | None,
        token_cache: TwitchTokenCache,
        api_base: str = "https://api.twitch.tv/helix",
        rate_limiter: IntervalRateLimiter | None = None,
        http_client: httpx.Client | None = None,
        clips_timeout: float = 15.0,
        metadata_timeout: float = 10.0,
        rate_limit_retry_delay: float = 2.0,
        max_rate_limit_retries: int = 5,
    ):
        self.client_id = client_id
        self.token_cache = token_cache
        self.api_base = api_base.rstrip("/")
        self.rate_limiter = rate_limiter or IntervalRateLimiter(0.05)
        self.http_client = http_client or httpx.Client()
        self.clips_timeout = clips_timeout
        self.metadata_timeout = metadata_timeout
        self.rate_limit_retry_delay = rate_limit_retry_delay
        self.max_rate_limit_retries = max_rate_limit_retries

    @classmethod
    def from_settings(cls, settings: Settings, http_client: httpx.Client | None = None) -> "HelixClient":
        token_cache = TwitchTokenCache(
            client_id=settings.twitch_client_id,
            client_secret=settings.twitch_client_secret,
            token_url=settings.twitch_token_url,
            safety_margin=settings.token_safety_margin_seconds,
            timeout=settings.token_timeout,
            http_client=http_client,
        )
        return cls(
            client_id=settings.twitch_client_id,
            token_cache=token_cache,
            api_base=settings.twitch_api_base,
            rate_limiter=IntervalRateLimiter(settings.page_delay_seconds),
            http_client=http_client,
            clips_timeout=settings.clips_timeout,
            metadata_timeout=settings.metadata_timeout,
            rate_limit_retry_delay=settings.rate_limit_retry_delay,
            max_rate_limit_retries=settings.max_rate_limit_retries,
        )

    def close(self) -> None:
        self.http_client.close()

    def _headers(self) -> dict[str, str]:
        return {
            "Client-ID": self.client_id or "",
            "Authorization": f"Bearer {self.token_cache.get_token()}",
        }

    def _get(self, path: str, params, timeout: float) -> httpx.Response:
        """GET a Helix path. A 401 refreshes the token and retries once."""
        response = None
        for attempt in range(2):
            headers = self._headers()
            self.rate_limiter.wait()
            response = self.http_client.get(
                f"{self.api_base}{path}",
                params=params,
                headers=headers,
                timeout=timeout,
            )
            if response.status_code != 401 or attempt:
                break
            logger.info(f"Helix rejected the app token on {path}, refreshing")
            self.token_cache.invalidate()
        return response

    def fetch_clips(
        self,
        broadcaster_id: str,
        started_at: datetime,
        max_pages: int,
        ended_at: datetime | None = None,
        game_id: str | None = None,
    ) -> list[RawClip]:
        """Fetch up to `max_pages` pages of clips for one broadcaster, newest window first.

        A 429 retries the same page after a fixed delay and does not count
        against `max_pages`. Any other failure ends the fetch and returns what
        was collected so far.
        """
        clips: list[RawClip] = []
        cursor: str | None = None
        pages = 0
        rate_limited = 0

        while pages < max_pages:
            params = {
                "broadcaster_id": broadcaster_id,
                "started_at": format_rfc3339(started_at),
                "first": str(PAGE_SIZE),
            }
            if ended_at:
                params["ended_at"] = format_rfc3339(ended_at)
            if cursor:
                params["after"] = cursor

            try:
                response = self._get("/clips", params, self.clips_timeout)
            except httpx.HTTPError as e:
                logger.warning(f"Clip fetch for {broadcaster_id} failed: {e}")
                break

            if response.status_code == 429:
                rate_limited += 1
                if rate_limited > self.max_rate_limit_retries:
                    logger.warning(f"Giving up on {broadcaster_id} after {rate_limited - 1} rate-limit retries")
                    break
                logger.info(f"Rate limited on {broadcaster_id} page {pages + 1}, waiting {self.rate_limit_retry_delay}s")
                self.rate_limiter.pause(self.rate_limit_retry_delay)
                continue

            if not response.is_success:
                logger.warning(f"Failed to fetch clips for {broadcaster_id}: {response.status_code}")
                break

            rate_limited = 0
            pages += 1

            # A malformed page ends the fetch; earlier pages are kept
            try:
                data = response.json()
                batch = data.get("data") or []
                page_clips = [RawClip.from_helix(item) for item in batch]
                cursor = (data.get("pagination") or {}).get("cursor")
            except (ValueError, KeyError, TypeError, AttributeError) as e:
                logger.warning(f"Unreadable clip page for {broadcaster_id}: {e!r}")
                break

            clips.extend(clip for clip in page_clips if not game_id or clip.game_id == game_id)

            if not cursor or len(batch) < PAGE_SIZE:
                break

        return clips

    def _lookup(
        self,
        path: str,
        ids: Iterable[str | None],
        param: str,
        extract: Callable[[dict], str | None],
    ) -> dict[str, str]:
        results: dict[str, str] = {}
        pending = unique_ids(ids)

        for i in range(0, len(pending), LOOKUP_BATCH_SIZE):
            batch = pending[i:i + LOOKUP_BATCH_SIZE]
            try:
                response = self._get(path, [(param, item) for item in batch], self.metadata_timeout)
                if not response.is_success:
                    logger.warning(f"Lookup {path} failed for batch {i // LOOKUP_BATCH_SIZE + 1}: {response.status_code}")
                    continue
                for row in response.json().get("data") or []:
                    value = extract(row)
                    if value:
                        results[str(row["id"])] = value
            except (httpx.HTTPError, ValueError, KeyError) as e:
                logger.warning(f"Lookup {path} error for batch {i // LOOKUP_BATCH_SIZE + 1}: {e}")

        return results

    def get_video_titles(self, video_ids: Iterable[str | None]) -> dict[str, str]:
        """Map VOD id -> title. Missing or failed lookups are simply absent."""
        return self._lookup("/videos", video_ids, "id", lambda row: row.get("title"))

    def get_profile_images(self, user_ids: Iterable[str | None]) -> dict[str, str]:
        """Map user id -> profile image URL."""
        return self._lookup("/users", user_ids, "id", lambda row: row.get("profile_image_url"))

    def get_user_ids_by_login(self, logins: Iterable[str | None]) -> dict[str, str]:
        """Map lowercase login -> user id."""
        found = self._lookup(
            "/users",
            [login.lower() for login in logins if login],
            "login",
            lambda row: row.get("login"),
        )
        # _lookup keys by id; invert to login -> id
        return {login.lower(): user_id for user_id, login in found.items()}
