"""Fake Helix API and fixtures shared across tests."""

from datetime import datetime, timedelta, timezone

import httpx

from chaseclips.models.streamer import Streamer
from chaseclips.services.clip_types import ClipRecord, RawClip
from chaseclips.services.rate_limiter import IntervalRateLimiter
from chaseclips.services.twitch_auth import TwitchTokenCache
from chaseclips.services.twitch_client import HelixClient

GTA_GAME_ID = "32982"
NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def helix_clip(clip_id, broadcaster_id="1001", title="ChaseRP pursuit", **overrides) -> dict:
    """A clip payload as Helix lists it."""
    payload = {
        "id": clip_id,
        "url": f"https://clips.twitch.tv/{clip_id}",
        "embed_url": f"https://clips.twitch.tv/embed?clip={clip_id}",
        "broadcaster_id": broadcaster_id,
        "broadcaster_name": f"Streamer{broadcaster_id}",
        "creator_id": "9",
        "creator_name": "clipper",
        "video_id": "",
        "game_id": GTA_GAME_ID,
        "language": "en",
        "title": title,
        "view_count": 10,
        "created_at": "2026-02-27T20:15:00Z",
        "thumbnail_url": f"https://clips-media-assets2.twitch.tv/{clip_id}-preview.jpg",
        "duration": 30.0,
    }
    payload.update(overrides)
    return payload


def make_record(clip_id, title="ChaseRP pursuit", view_count=10, **kwargs) -> ClipRecord:
    clip = RawClip(
        id=clip_id,
        title=title,
        broadcaster_id="1001",
        broadcaster_name="Streamer1001",
        view_count=view_count,
        duration=30.0,
        created_at=NOW - timedelta(days=1),
        embed_url=f"https://clips.twitch.tv/embed?clip={clip_id}",
        thumbnail_url=f"https://clips-media-assets2.twitch.tv/{clip_id}-preview.jpg",
        url=f"https://clips.twitch.tv/{clip_id}",
        game_id=GTA_GAME_ID,
    )
    return ClipRecord(clip=clip, **kwargs)


def add_streamers(db, *twitch_ids, **fields) -> list[Streamer]:
    streamers = [
        Streamer(twitch_id=twitch_id, twitch_login=f"streamer{twitch_id}", twitch_name=f"Streamer{twitch_id}", **fields)
        for twitch_id in twitch_ids
    ]
    db.add_all(streamers)
    db.commit()
    return streamers


class FakeHelix:
    """
    Serves canned Twitch responses through httpx.MockTransport.

    Clip listings are paged by position: the cursor is the index of the
    next clip, so `clips` can hold any number of payloads per broadcaster.
    """

    def __init__(self):
        self.clips: dict[str, list[dict]] = {}
        self.videos: dict[str, str] = {}
        self.users: dict[str, dict] = {}
        self.failing_broadcasters: set[str] = set()
        self.token_status = 200
        self.requests: list[httpx.Request] = []
        self.token_requests = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path.endswith("/oauth2/token"):
            self.token_requests += 1
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"message": "invalid client"})
            return httpx.Response(200, json={"access_token": "app-token", "expires_in": 3600, "token_type": "bearer"})

        if path.endswith("/clips"):
            broadcaster_id = request.url.params["broadcaster_id"]
            if broadcaster_id in self.failing_broadcasters:
                return httpx.Response(500, json={"message": "internal error"})
            items = self.clips.get(broadcaster_id, [])
            start = int(request.url.params.get("after") or 0)
            first = int(request.url.params.get("first") or 20)
            page = items[start:start + first]
            pagination = {"cursor": str(start + first)} if start + first < len(items) else {}
            return httpx.Response(200, json={"data": page, "pagination": pagination})

        if path.endswith("/videos"):
            ids = request.url.params.get_list("id")
            data = [{"id": i, "title": self.videos[i]} for i in ids if i in self.videos]
            return httpx.Response(200, json={"data": data})

        if path.endswith("/users"):
            ids = request.url.params.get_list("id")
            logins = request.url.params.get_list("login")
            data = [
                user for user in self.users.values()
                if user["id"] in ids or user["login"] in logins
            ]
            return httpx.Response(200, json={"data": data})

        return httpx.Response(404)

    def clip_requests(self, broadcaster_id: str | None = None) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.url.path.endswith("/clips")
            and (broadcaster_id is None or r.url.params["broadcaster_id"] == broadcaster_id)
        ]

    def http_client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))

    def client(self, **kwargs) -> HelixClient:
        http = self.http_client()
        token_cache = TwitchTokenCache("test-client-id", "test-client-secret", http_client=http)
        kwargs.setdefault("rate_limiter", IntervalRateLimiter(0, sleep=lambda seconds: None))
        return HelixClient("test-client-id", token_cache, http_client=http, **kwargs)
