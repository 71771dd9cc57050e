from datetime import datetime, timedelta, timezone

import httpx
import pytest

from chaseclips.services.rate_limiter import IntervalRateLimiter
from chaseclips.services.twitch_auth import TwitchAuthError, TwitchTokenCache
from chaseclips.services.twitch_client import HelixClient, format_rfc3339, unique_ids

from tests.helpers import FakeHelix, NOW, helix_clip

STARTED_AT = NOW - timedelta(days=7)


class RecordingLimiter(IntervalRateLimiter):
    def __init__(self):
        super().__init__(0, sleep=lambda seconds: None)
        self.waits = 0
        self.pauses = []

    def wait(self):
        self.waits += 1
        return super().wait()

    def pause(self, seconds):
        self.pauses.append(seconds)
        super().pause(seconds)


def scripted_client(responses, **kwargs):
    """HelixClient whose /clips calls answer from `responses` in order.

    Each entry is a status code or a callable returning an httpx.Response;
    a 200 entry serves a full page with a cursor.
    """
    calls = []
    script = iter(responses)

    def handler(request):
        if request.url.path.endswith("/oauth2/token"):
            return httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})
        calls.append(request)
        step = next(script)
        if callable(step):
            return step(request)
        if step == 200:
            page = [helix_clip(f"c{len(calls)}-{i}") for i in range(100)]
            return httpx.Response(200, json={"data": page, "pagination": {"cursor": f"cur{len(calls)}"}})
        return httpx.Response(step, json={"message": "error"})

    http = httpx.Client(transport=httpx.MockTransport(handler))
    token_cache = TwitchTokenCache("cid", "secret", http_client=http)
    kwargs.setdefault("rate_limiter", RecordingLimiter())
    return HelixClient("cid", token_cache, http_client=http, **kwargs), calls


def test_format_rfc3339_normalizes_to_utc():
    assert format_rfc3339(datetime(2026, 1, 5, 18, 22, 11, tzinfo=timezone.utc)) == "2026-01-05T18:22:11Z"
    assert format_rfc3339(datetime(2026, 1, 5, 18, 22, 11)) == "2026-01-05T18:22:11Z"
    plus_two = timezone(timedelta(hours=2))
    assert format_rfc3339(datetime(2026, 1, 5, 20, 0, tzinfo=plus_two)) == "2026-01-05T18:00:00Z"


def test_unique_ids_drops_empties_and_keeps_order():
    assert unique_ids(["b", None, "a", "", "b"]) == ["b", "a"]


def test_follows_cursor_until_exhausted(helix: FakeHelix):
    helix.clips["1001"] = [helix_clip(f"clip{i}") for i in range(250)]
    client = helix.client()

    clips = client.fetch_clips("1001", STARTED_AT, max_pages=10)

    assert len(clips) == 250
    assert [c.id for c in clips[:2]] == ["clip0", "clip1"]
    assert len(helix.clip_requests("1001")) == 3


def test_clip_request_parameters_and_headers(helix: FakeHelix):
    helix.clips["1001"] = [helix_clip("a")]
    client = helix.client()

    client.fetch_clips("1001", STARTED_AT, max_pages=1, ended_at=NOW)

    request = helix.clip_requests()[0]
    assert request.url.params["broadcaster_id"] == "1001"
    assert request.url.params["first"] == "100"
    assert request.url.params["started_at"] == "2026-02-22T12:00:00Z"
    assert request.url.params["ended_at"] == "2026-03-01T12:00:00Z"
    assert "after" not in request.url.params
    assert request.headers["Client-ID"] == "test-client-id"
    assert request.headers["Authorization"] == "Bearer app-token"


def test_stops_at_max_pages():
    client, calls = scripted_client([200] * 10)
    clips = client.fetch_clips("1001", STARTED_AT, max_pages=4)
    assert len(calls) == 4
    assert len(clips) == 400


def test_short_page_ends_pagination_even_with_cursor():
    def short_page(request):
        return httpx.Response(200, json={"data": [helix_clip("x")], "pagination": {"cursor": "more"}})

    client, calls = scripted_client([short_page, 200])
    clips = client.fetch_clips("1001", STARTED_AT, max_pages=5)
    assert len(calls) == 1
    assert [c.id for c in clips] == ["x"]


def test_rate_limited_page_is_retried_without_using_the_page_budget():
    limiter = RecordingLimiter()
    client, calls = scripted_client([200, 429, 200, 200], rate_limiter=limiter, rate_limit_retry_delay=2.0)

    clips = client.fetch_clips("1001", STARTED_AT, max_pages=3)

    assert len(calls) == 4
    assert len(clips) == 300
    assert limiter.pauses == [2.0]
    # the retried request repeats the page-2 cursor
    assert calls[1].url.params["after"] == calls[2].url.params["after"] == "cur1"


def test_gives_up_after_repeated_rate_limits():
    limiter = RecordingLimiter()
    client, calls = scripted_client([200] + [429] * 10, rate_limiter=limiter, max_rate_limit_retries=3)

    clips = client.fetch_clips("1001", STARTED_AT, max_pages=5)

    assert len(clips) == 100
    assert len(calls) == 5
    assert limiter.pauses == [2.0, 2.0, 2.0]


def test_server_error_returns_partial_results():
    client, calls = scripted_client([200, 500, 200])
    clips = client.fetch_clips("1001", STARTED_AT, max_pages=5)
    assert len(calls) == 2
    assert len(clips) == 100


def test_transport_error_returns_partial_results():
    def boom(request):
        raise httpx.ReadTimeout("timed out")

    client, calls = scripted_client([200, boom])
    clips = client.fetch_clips("1001", STARTED_AT, max_pages=5)
    assert len(clips) == 100


def test_unreadable_body_ends_the_fetch():
    client, calls = scripted_client([lambda request: httpx.Response(200, content=b"<html>")])
    assert client.fetch_clips("1001", STARTED_AT, max_pages=3) == []


def test_game_filter_is_applied(helix: FakeHelix):
    helix.clips["1001"] = [
        helix_clip("gta"),
        helix_clip("chatting", game_id="509658"),
    ]
    client = helix.client()
    clips = client.fetch_clips("1001", STARTED_AT, max_pages=1, game_id="32982")
    assert [c.id for c in clips] == ["gta"]


def test_every_request_passes_the_rate_limiter(helix: FakeHelix):
    helix.clips["1001"] = [helix_clip(f"clip{i}") for i in range(150)]
    limiter = RecordingLimiter()
    client = helix.client(rate_limiter=limiter)
    client.fetch_clips("1001", STARTED_AT, max_pages=5)
    client.get_video_titles(["v1"])
    assert limiter.waits == 3


def test_auth_failure_propagates(helix: FakeHelix):
    helix.token_status = 401
    client = helix.client()
    with pytest.raises(TwitchAuthError):
        client.fetch_clips("1001", STARTED_AT, max_pages=1)
    assert helix.clip_requests() == []


def test_empty_video_id_becomes_none(helix: FakeHelix):
    helix.clips["1001"] = [helix_clip("a", video_id=""), helix_clip("b", video_id="555")]
    clips = helix.client().fetch_clips("1001", STARTED_AT, max_pages=1)
    assert [c.video_id for c in clips] == [None, "555"]


def test_video_titles_are_looked_up_in_batches_of_100(helix: FakeHelix):
    ids = [str(i) for i in range(150)]
    helix.videos = {i: f"VOD {i}" for i in ids}
    client = helix.client()

    titles = client.get_video_titles(ids + ids[:10] + [None])

    assert len(titles) == 150
    assert titles["42"] == "VOD 42"
    video_requests = [r for r in helix.requests if r.url.path.endswith("/videos")]
    assert [len(r.url.params.get_list("id")) for r in video_requests] == [100, 50]


def test_missing_videos_are_absent(helix: FakeHelix):
    helix.videos = {"1": "ChaseRP day 1"}
    assert helix.client().get_video_titles(["1", "2"]) == {"1": "ChaseRP day 1"}


def test_no_ids_means_no_requests(helix: FakeHelix):
    client = helix.client()
    assert client.get_video_titles([None, ""]) == {}
    assert client.get_profile_images([]) == {}
    assert helix.requests == []


def test_profile_images(helix: FakeHelix):
    helix.users = {
        "1001": {"id": "1001", "login": "officer_miller", "profile_image_url": "https://img/1001.png"},
        "1002": {"id": "1002", "login": "robber_bob", "profile_image_url": "https://img/1002.png"},
    }
    images = helix.client().get_profile_images(["1001", "1002", "1003"])
    assert images == {"1001": "https://img/1001.png", "1002": "https://img/1002.png"}


def test_failed_lookup_degrades_to_empty():
    def handler(request):
        if request.url.path.endswith("/oauth2/token"):
            return httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})
        return httpx.Response(503)

    http = httpx.Client(transport=httpx.MockTransport(handler))
    client = HelixClient("cid", TwitchTokenCache("cid", "secret", http_client=http), http_client=http,
                         rate_limiter=IntervalRateLimiter(0))
    assert client.get_video_titles(["1", "2"]) == {}


def test_user_ids_by_login_is_case_insensitive(helix: FakeHelix):
    helix.users = {"1001": {"id": "1001", "login": "officer_miller", "profile_image_url": None}}
    found = helix.client().get_user_ids_by_login(["Officer_Miller", "ghost"])
    assert found == {"officer_miller": "1001"}


def test_bad_row_on_a_later_page_keeps_earlier_pages():
    def row_without_id(request):
        row = helix_clip("broken")
        del row["id"]
        return httpx.Response(200, json={"data": [row], "pagination": {}})

    client, calls = scripted_client([200, row_without_id])
    clips = client.fetch_clips("1001", STARTED_AT, max_pages=5)
    assert len(calls) == 2
    assert len(clips) == 100


def test_non_object_page_keeps_earlier_pages():
    client, calls = scripted_client([200, lambda request: httpx.Response(200, json=["not", "a", "page"])])
    assert len(client.fetch_clips("1001", STARTED_AT, max_pages=5)) == 100


def token_rotating_client(clip_statuses):
    """Token endpoint hands out tok-1, tok-2, ...; /clips answers from `clip_statuses`."""
    tokens = []
    clip_calls = []
    statuses = iter(clip_statuses)

    def handler(request):
        if request.url.path.endswith("/oauth2/token"):
            tokens.append(f"tok-{len(tokens) + 1}")
            return httpx.Response(200, json={"access_token": tokens[-1], "expires_in": 3600})
        clip_calls.append(request)
        status = next(statuses)
        if status == 200:
            return httpx.Response(200, json={"data": [helix_clip("a")], "pagination": {}})
        return httpx.Response(status, json={"message": "invalid oauth token"})

    http = httpx.Client(transport=httpx.MockTransport(handler))
    client = HelixClient("cid", TwitchTokenCache("cid", "secret", http_client=http), http_client=http,
                         rate_limiter=IntervalRateLimiter(0))
    return client, tokens, clip_calls


def test_revoked_token_is_refreshed_and_the_request_retried():
    client, tokens, clip_calls = token_rotating_client([401, 200])

    clips = client.fetch_clips("1001", STARTED_AT, max_pages=1)

    assert [c.id for c in clips] == ["a"]
    assert tokens == ["tok-1", "tok-2"]
    assert [r.headers["Authorization"] for r in clip_calls] == ["Bearer tok-1", "Bearer tok-2"]


def test_persistent_401_is_retried_only_once():
    client, tokens, clip_calls = token_rotating_client([401, 401, 200])
    assert client.fetch_clips("1001", STARTED_AT, max_pages=1) == []
    assert len(clip_calls) == 2
    assert len(tokens) == 2
