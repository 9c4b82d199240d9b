"""
Chat client over the REST chat endpoints.

Rooms and message history are plain REST resources; live delivery (Socket.IO) is
not handled here, so `send_message` persists through the API directly.
"""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import TypeAdapter

from pourrice.clients.base import ApiClient, path_segment, unwrap_list
from pourrice.domain.models import ChatMessage, ChatRoom

logger = logging.getLogger(__name__)

_ROOMS_ADAPTER = TypeAdapter(list[ChatRoom])
_MESSAGES_ADAPTER = TypeAdapter(list[ChatMessage])


class ChatClient:
    def __init__(self, api: ApiClient):
        self._api = api
        self._base_url = api.url(api.settings.api.endpoints.chat)

    def _room_url(self, room_id: str) -> str:
        return f"{self._base_url}/Rooms/{path_segment(room_id)}"

    def _message_url(self, room_id: str, message_id: str | None = None) -> str:
        url = f"{self._room_url(room_id)}/Messages"
        return f"{url}/{path_segment(message_id)}" if message_id else url

    def rooms_for_user(self, uid: str | None = None) -> list[ChatRoom]:
        """Chat overview (rooms with recent messages) for `uid` or the signed-in user."""
        uid = uid or self._api.require_user_id()
        payload = self._api.get(f"{self._base_url}/Records/{path_segment(uid)}", authenticated=True)
        return _ROOMS_ADAPTER.validate_python(unwrap_list(payload, "rooms", "data", "records"))

    def get_room(self, room_id: str) -> ChatRoom | None:
        payload = self._api.get_or_none(self._room_url(room_id), authenticated=True)
        return None if payload is None else ChatRoom.model_validate(payload)

    def create_room(
        self,
        participants: list[str],
        *,
        room_name: str | None = None,
        room_type: Literal["direct", "group"] = "direct",
    ) -> str:
        body: dict[str, object] = {"participants": list(participants), "type": room_type}
        if room_name:
            body["roomName"] = room_name
        data = self._api.post(f"{self._base_url}/Rooms", body)
        room_id = str((data or {}).get("roomId") or "")
        if not room_id:
            raise RuntimeError("Create room response did not include a roomId.")
        logger.info("Chat room %s created (%s participants)", room_id, len(participants))
        return room_id

    def messages(self, room_id: str, *, limit: int = 50) -> list[ChatMessage]:
        payload = self._api.get(self._message_url(room_id), params={"limit": limit}, authenticated=True)
        return _MESSAGES_ADAPTER.validate_python(unwrap_list(payload, "messages", "data"))

    def send_message(
        self,
        room_id: str,
        text: str,
        *,
        display_name: str,
        image_url: str | None = None,
    ) -> None:
        body: dict[str, object] = {"message": text, "displayName": display_name}
        if image_url:
            body["imageUrl"] = image_url
        self._api.post(self._message_url(room_id), body)

    def edit_message(self, room_id: str, message_id: str, text: str) -> None:
        self._api.put(self._message_url(room_id, message_id), {"message": text})

    def delete_message(self, room_id: str, message_id: str) -> None:
        self._api.delete(self._message_url(room_id, message_id))
