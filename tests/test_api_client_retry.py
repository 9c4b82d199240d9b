import httpx
import pytest

from pourrice.auth.provider import AnonymousAuthProvider, NotAuthenticatedError, StaticAuthProvider
from pourrice.clients.base import ApiClient, path_segment, unwrap_list
from pourrice.config.settings import Settings


def _settings(**retry) -> Settings:
    settings = Settings()
    retry_settings = settings.api.retry.model_copy(
        update={"max_attempts": 2, "base_delay_seconds": 0.0, "max_delay_seconds": 0.0, **retry}
    )
    api = settings.api.model_copy(
        update={"base_url": "http://api.test", "passcode": "secret", "retry": retry_settings}
    )
    return settings.model_copy(update={"api": api})


def _status_error(url: str, status: int, headers: dict[str, str] | None = None) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", url)
    response = httpx.Response(status, request=request, headers=headers or {})
    return httpx.HTTPStatusError(str(status), request=request, response=response)


class RefreshingAuth:
    def __init__(self):
        self.tokens = ["stale", "fresh"]
        self.invalidated = 0

    def current_user_id(self):
        return "u1"

    def id_token(self):
        return self.tokens[0]

    def invalidate(self):
        self.invalidated += 1
        self.tokens.pop(0)


def test_get_retries_on_429_and_honours_retry_after(monkeypatch):
    client = ApiClient(_settings())
    calls: list[dict] = []
    sleeps: list[float] = []

    def fake_get_json(url, *, params=None, headers=None, timeout_seconds=15):  # noqa: ARG001
        calls.append(dict(headers or {}))
        if len(calls) == 1:
            raise _status_error(url, 429, {"Retry-After": "3"})
        return {"ok": True}

    monkeypatch.setattr("pourrice.clients.base.get_json", fake_get_json)
    monkeypatch.setattr("pourrice.clients.base.time.sleep", lambda s: sleeps.append(s))

    assert client.get(client.url("API/Restaurants")) == {"ok": True}
    assert len(calls) == 2
    assert sleeps == [3.0]
    assert calls[0]["X-API-Passcode"] == "secret"
    assert "Authorization" not in calls[0]


def test_get_gives_up_after_max_attempts(monkeypatch):
    client = ApiClient(_settings(max_attempts=1))
    calls = 0

    def fake_get_json(url, **_kwargs):
        nonlocal calls
        calls += 1
        raise _status_error(url, 503)

    monkeypatch.setattr("pourrice.clients.base.get_json", fake_get_json)
    monkeypatch.setattr("pourrice.clients.base.time.sleep", lambda *_a, **_k: None)

    with pytest.raises(httpx.HTTPStatusError):
        client.get("http://api.test/API/Restaurants")
    assert calls == 2


def test_transport_errors_are_retried(monkeypatch):
    client = ApiClient(_settings())
    calls = 0

    def fake_get_json(url, **_kwargs):
        nonlocal calls
        calls += 1
        if calls < 3:
            raise httpx.ConnectError("refused", request=httpx.Request("GET", url))
        return []

    monkeypatch.setattr("pourrice.clients.base.get_json", fake_get_json)
    monkeypatch.setattr("pourrice.clients.base.time.sleep", lambda *_a, **_k: None)

    assert client.get("http://api.test/API/Restaurants") == []
    assert calls == 3


def test_client_errors_are_not_retried(monkeypatch):
    client = ApiClient(_settings())
    calls = 0

    def fake_get_json(url, **_kwargs):
        nonlocal calls
        calls += 1
        raise _status_error(url, 400)

    monkeypatch.setattr("pourrice.clients.base.get_json", fake_get_json)

    with pytest.raises(httpx.HTTPStatusError):
        client.get("http://api.test/API/Restaurants")
    assert calls == 1


def test_get_or_none_maps_404_to_none(monkeypatch):
    client = ApiClient(_settings())

    def fake_get_json(url, **_kwargs):
        raise _status_error(url, 404)

    monkeypatch.setattr("pourrice.clients.base.get_json", fake_get_json)
    assert client.get_or_none("http://api.test/API/Restaurants/missing") is None


def test_unauthorized_refreshes_token_once(monkeypatch):
    auth = RefreshingAuth()
    client = ApiClient(_settings(), auth)
    seen_tokens: list[str] = []

    def fake_send_json(method, url, *, payload=None, params=None, headers=None, timeout_seconds=15):  # noqa: ARG001
        seen_tokens.append(headers["Authorization"])
        if len(seen_tokens) == 1:
            raise _status_error(url, 401)
        return {"id": "new"}

    monkeypatch.setattr("pourrice.clients.base.send_json", fake_send_json)

    assert client.post("http://api.test/API/Bookings", {"x": 1}) == {"id": "new"}
    assert seen_tokens == ["Bearer stale", "Bearer fresh"]
    assert auth.invalidated == 1


def test_authenticated_call_without_user_raises(monkeypatch):
    client = ApiClient(_settings(), AnonymousAuthProvider())
    monkeypatch.setattr("pourrice.clients.base.send_json", lambda *_a, **_k: pytest.fail("no request expected"))

    with pytest.raises(NotAuthenticatedError):
        client.post("http://api.test/API/Bookings", {})
    with pytest.raises(NotAuthenticatedError):
        client.require_user_id()


def test_url_joins_parts_and_requires_base_url():
    client = ApiClient(_settings(), StaticAuthProvider(user_id="u1", token="t"))
    assert client.url("/API/Reviews/", "Restaurant", path_segment("a/b")) == "http://api.test/API/Reviews/Restaurant/a%2Fb"

    settings = _settings()
    empty = ApiClient(settings.model_copy(update={"api": settings.api.model_copy(update={"base_url": ""})}))
    with pytest.raises(RuntimeError, match="POURRICE_API_BASE_URL"):
        empty.url("API/Restaurants")


def test_unwrap_list_accepts_bare_lists_and_envelopes():
    assert unwrap_list([1, 2]) == [1, 2]
    assert unwrap_list({"data": [3]}, "data") == [3]
    assert unwrap_list({"count": 0}, "data") == []
    assert unwrap_list(None, "data") == []
