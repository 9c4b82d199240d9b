import httpx
import pytest

from pourrice.clients.assistant import AssistantClient
from pourrice.clients.base import ApiClient
from pourrice.config.settings import Settings
from pourrice.domain.models import Restaurant


def _client() -> AssistantClient:
    settings = Settings()
    retry = settings.api.retry.model_copy(update={"max_attempts": 0})
    api = settings.api.model_copy(update={"base_url": "http://api.test", "retry": retry})
    return AssistantClient(ApiClient(settings.model_copy(update={"api": api})))


def test_chat_keeps_history(monkeypatch):
    bodies: list[dict] = []

    def fake_send_json(method, url, *, payload=None, **_kwargs):  # noqa: ARG001
        assert url == "http://api.test/API/Gemini/chat"
        bodies.append(payload)
        return {"response": f"reply {len(bodies)}"}

    monkeypatch.setattr("pourrice.clients.base.send_json", fake_send_json)

    assistant = _client()
    assert assistant.chat("Any vegan dim sum?") == "reply 1"
    assert assistant.chat("  In Central?  ") == "reply 2"

    assert bodies[1]["message"] == "In Central?"
    assert [t["role"] for t in bodies[1]["history"]] == ["user", "model", "user"]
    assert [t.role for t in assistant.history] == ["user", "model", "user", "model"]

    assistant.reset()
    assert assistant.history == []


def test_blank_chat_message_is_ignored(monkeypatch):
    monkeypatch.setattr("pourrice.clients.base.send_json", lambda *_a, **_k: pytest.fail("no request expected"))
    assert _client().chat("   ") is None


def test_failed_chat_does_not_grow_history(monkeypatch):
    def fake_send_json(method, url, **_kwargs):
        request = httpx.Request(method, url)
        raise httpx.HTTPStatusError("500", request=request, response=httpx.Response(500, request=request))

    monkeypatch.setattr("pourrice.clients.base.send_json", fake_send_json)

    assistant = _client()
    with pytest.raises(httpx.HTTPStatusError):
        assistant.chat("hello")
    assert assistant.history == []


def test_describe_restaurant_posts_rest_payload(monkeypatch):
    sent = {}

    def fake_send_json(method, url, *, payload=None, **_kwargs):  # noqa: ARG001
        sent.update(url=url, payload=payload)
        return {"description": "A calm vegan cafe."}

    monkeypatch.setattr("pourrice.clients.base.send_json", fake_send_json)

    text = _client().describe_restaurant(Restaurant.model_validate({"id": "r1", "Name_EN": "Leaf"}))
    assert text == "A calm vegan cafe."
    assert sent["url"].endswith("/API/Gemini/restaurant-description")
    assert sent["payload"]["Name_EN"] == "Leaf"
