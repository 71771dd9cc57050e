import httpx
import pytest

from chaseclips.services.twitch_auth import TwitchAuthError, TwitchTokenCache


class TokenServer:
    def __init__(self, status=200, payload=None, error=None):
        self.status = status
        self.payload = payload if payload is not None else {"access_token": "tok-1", "expires_in": 3600}
        self.error = error
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if self.error:
            raise self.error
        return httpx.Response(self.status, json=self.payload)


def make_cache(server, clock=None, client_id="cid", client_secret="secret"):
    http = httpx.Client(transport=httpx.MockTransport(server))
    now = clock or (lambda: 1000.0)
    return TwitchTokenCache(client_id, client_secret, http_client=http, clock=now)


def test_token_is_fetched_once_and_cached():
    server = TokenServer()
    cache = make_cache(server)
    assert cache.get_token() == "tok-1"
    assert cache.get_token() == "tok-1"
    assert len(server.requests) == 1


def test_exchange_posts_client_credentials():
    server = TokenServer()
    make_cache(server).get_token()
    body = server.requests[0].content.decode()
    assert "grant_type=client_credentials" in body
    assert "client_id=cid" in body
    assert "client_secret=secret" in body


def test_refreshes_within_the_safety_margin():
    server = TokenServer()
    now = [1000.0]
    cache = make_cache(server, clock=lambda: now[0])
    cache.get_token()

    now[0] = 1000.0 + 3600 - 61
    cache.get_token()
    assert len(server.requests) == 1

    now[0] = 1000.0 + 3600 - 59
    cache.get_token()
    assert len(server.requests) == 2


def test_invalidate_forces_a_new_exchange():
    server = TokenServer()
    cache = make_cache(server)
    cache.get_token()
    cache.invalidate()
    cache.get_token()
    assert len(server.requests) == 2


def test_missing_credentials_fail_without_a_request():
    server = TokenServer()
    cache = make_cache(server, client_secret=None)
    with pytest.raises(TwitchAuthError):
        cache.get_token()
    assert server.requests == []


def test_rejected_credentials_raise():
    cache = make_cache(TokenServer(status=400, payload={"message": "invalid client secret"}))
    with pytest.raises(TwitchAuthError, match="400"):
        cache.get_token()


def test_network_error_raises_auth_error():
    cache = make_cache(TokenServer(error=httpx.ConnectError("connection refused")))
    with pytest.raises(TwitchAuthError):
        cache.get_token()
    assert not cache.is_fresh()


def test_malformed_response_raises():
    cache = make_cache(TokenServer(payload={"token_type": "bearer"}))
    with pytest.raises(TwitchAuthError, match="Malformed"):
        cache.get_token()


@pytest.mark.parametrize("token", [None, ""])
def test_empty_access_token_raises(token):
    cache = make_cache(TokenServer(payload={"access_token": token, "expires_in": 3600}))
    with pytest.raises(TwitchAuthError, match="missing access_token"):
        cache.get_token()
    assert cache.token is None
