import httpx
import pytest

from pourrice.auth.provider import AuthProvider, FirebaseAuthProvider, NotAuthenticatedError, StaticAuthProvider
from pourrice.clients.factory import build_auth
from pourrice.config.settings import Settings


def _settings(api_key: str | None = "fb-key") -> Settings:
    settings = Settings()
    auth = settings.auth.model_copy(update={"firebase_api_key": api_key})
    return settings.model_copy(update={"auth": auth})


def _sign_in(monkeypatch, provider: FirebaseAuthProvider) -> dict:
    seen = {}

    def fake_send_json(method, url, *, payload=None, params=None, **_kwargs):
        seen.update(method=method, url=url, payload=payload, params=params)
        return {"localId": "u1", "email": "a@b.c", "idToken": "id-1", "refreshToken": "r-1", "expiresIn": "3600"}

    monkeypatch.setattr("pourrice.auth.provider.send_json", fake_send_json)
    provider.sign_in("a@b.c", "pw")
    return seen


def test_providers_satisfy_protocol():
    assert isinstance(StaticAuthProvider(user_id="u", token="t"), AuthProvider)
    assert isinstance(FirebaseAuthProvider(_settings()), AuthProvider)


def test_sign_in_stores_session(monkeypatch):
    monkeypatch.setattr("pourrice.auth.provider.time.time", lambda: 1000)
    provider = FirebaseAuthProvider(_settings())
    seen = _sign_in(monkeypatch, provider)

    assert seen["url"].endswith("/accounts:signInWithPassword")
    assert seen["params"] == {"key": "fb-key"}
    assert seen["payload"]["returnSecureToken"] is True
    assert provider.current_user_id() == "u1"
    assert provider.id_token() == "id-1"
    assert provider.session.expires_at_unix == 4600


def test_id_token_refreshes_near_expiry(monkeypatch):
    monkeypatch.setattr("pourrice.auth.provider.time.time", lambda: 1000)
    provider = FirebaseAuthProvider(_settings())
    _sign_in(monkeypatch, provider)

    forms = []

    def fake_post_form(url, *, data, params=None, **_kwargs):
        forms.append((url, data, params))
        return {"user_id": "u1", "id_token": "id-2", "refresh_token": "r-2", "expires_in": "3600"}

    monkeypatch.setattr("pourrice.auth.provider.post_form", fake_post_form)
    monkeypatch.setattr("pourrice.auth.provider.time.time", lambda: 4600 - 10)

    assert provider.id_token() == "id-2"
    assert forms[0][1] == {"grant_type": "refresh_token", "refresh_token": "r-1"}
    assert provider.session.refresh_token == "r-2"


def test_invalidate_forces_refresh(monkeypatch):
    monkeypatch.setattr("pourrice.auth.provider.time.time", lambda: 1000)
    provider = FirebaseAuthProvider(_settings())
    _sign_in(monkeypatch, provider)
    monkeypatch.setattr(
        "pourrice.auth.provider.post_form",
        lambda *_a, **_k: {"user_id": "u1", "id_token": "id-3", "refresh_token": "r-3", "expires_in": 3600},
    )

    provider.invalidate()
    assert provider.id_token() == "id-3"


def test_rejected_refresh_signs_out(monkeypatch):
    monkeypatch.setattr("pourrice.auth.provider.time.time", lambda: 1000)
    provider = FirebaseAuthProvider(_settings())
    _sign_in(monkeypatch, provider)

    def fake_post_form(url, **_kwargs):
        request = httpx.Request("POST", url)
        raise httpx.HTTPStatusError("400", request=request, response=httpx.Response(400, request=request))

    monkeypatch.setattr("pourrice.auth.provider.post_form", fake_post_form)
    provider.invalidate()

    assert provider.id_token() is None
    assert provider.current_user_id() is None


def test_missing_api_key_is_a_configuration_error():
    with pytest.raises(RuntimeError, match="FIREBASE_API_KEY"):
        FirebaseAuthProvider(_settings(api_key=None)).sign_in("a@b.c", "pw")


def test_build_auth_picks_provider_from_settings():
    assert isinstance(build_auth(_settings()), FirebaseAuthProvider)
    anonymous = build_auth(_settings(api_key=None))
    assert anonymous.current_user_id() is None
    assert anonymous.id_token() is None


def test_refresh_without_session_raises_not_authenticated():
    with pytest.raises(NotAuthenticatedError):
        FirebaseAuthProvider(_settings())._refresh()
