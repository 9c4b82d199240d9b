"""
AI assistant client.

The API proxies a generative model; this client keeps the running conversation
(user/model turns) so each chat request carries its history.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal

from pourrice.clients.base import ApiClient
from pourrice.domain.models import Restaurant

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssistantTurn:
    role: Literal["user", "model"]
    content: str

    def to_payload(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


def _reply_text(data: Any, *keys: str) -> str:
    if not isinstance(data, dict):
        return ""
    for key in keys:
        value = data.get(key)
        if isinstance(value, str):
            return value
    return ""


class AssistantClient:
    def __init__(self, api: ApiClient):
        self._api = api
        self._base_url = api.url(api.settings.api.endpoints.assistant)
        self._history: list[AssistantTurn] = []

    @property
    def history(self) -> list[AssistantTurn]:
        return list(self._history)

    def reset(self) -> None:
        self._history = []

    def chat(self, message: str) -> str | None:
        """Send `message` with the conversation so far; blank messages are ignored."""
        text = message.strip()
        if not text:
            return None
        turn = AssistantTurn(role="user", content=text)
        body = {
            "message": text,
            "history": [t.to_payload() for t in [*self._history, turn]],
        }
        data = self._api.post(f"{self._base_url}/chat", body, authenticated=False)
        reply = _reply_text(data, "response", "text")
        # History only grows once the exchange succeeded.
        self._history.extend([turn, AssistantTurn(role="model", content=reply)])
        return reply

    def generate(self, prompt: str) -> str | None:
        """One-shot generation without conversation context."""
        text = prompt.strip()
        if not text:
            return None
        data = self._api.post(f"{self._base_url}/generate", {"prompt": text}, authenticated=False)
        return _reply_text(data, "response", "text")

    def describe_restaurant(self, restaurant: Restaurant) -> str:
        data = self._api.post(
            f"{self._base_url}/restaurant-description",
            restaurant.to_api_payload(),
            authenticated=False,
        )
        return _reply_text(data, "description", "response")
