"""
Booking client.

Bookings are always created as `pending` / `unpaid` for the signed-in user; the
restaurant side confirms them and payment updates flip `paymentStatus`.
"""

from __future__ import annotations

import logging

from pydantic import TypeAdapter

from pourrice.clients.base import ApiClient, path_segment, unwrap_list
from pourrice.domain.models import Booking, BookingStatus, BookingUpdate, CreateBookingRequest, PaymentStatus

logger = logging.getLogger(__name__)

_BOOKINGS_ADAPTER = TypeAdapter(list[Booking])


class BookingClient:
    def __init__(self, api: ApiClient):
        self._api = api
        self._collection_url = api.url(api.settings.api.endpoints.bookings)

    def _item_url(self, booking_id: str) -> str:
        return f"{self._collection_url}/{path_segment(booking_id)}"

    def create(self, request: CreateBookingRequest) -> Booking | None:
        """Create a booking and return it as stored by the API.

        Raises:
            NotAuthenticatedError: If no user is signed in.
        """
        user_id = self._api.require_user_id()
        data = self._api.post(self._collection_url, request.to_booking_payload(user_id))
        booking_id = str((data or {}).get("id") or "")
        if not booking_id:
            raise RuntimeError("Create booking response did not include an id.")
        logger.info("Booking %s created at %s", booking_id, request.restaurant_name)
        return self.get(booking_id)

    def list_for_user(self) -> list[Booking]:
        """All bookings of the signed-in user, newest first."""
        user_id = self._api.require_user_id()
        payload = self._api.get(self._collection_url, params={"userId": user_id}, authenticated=True)
        bookings = _BOOKINGS_ADAPTER.validate_python(unwrap_list(payload, "data", "bookings"))
        return sorted(bookings, key=lambda b: b.date_time, reverse=True)

    def get(self, booking_id: str) -> Booking | None:
        payload = self._api.get_or_none(self._item_url(booking_id), authenticated=True)
        return None if payload is None else Booking.model_validate(payload)

    def update(
        self,
        booking_id: str,
        *,
        status: BookingStatus | None = None,
        payment_status: PaymentStatus | None = None,
        payment_intent_id: str | None = None,
    ) -> bool:
        """Patch status fields; returns False (without a request) when nothing changes."""
        update = BookingUpdate(
            status=status,
            payment_status=payment_status,
            payment_intent_id=payment_intent_id,
        )
        if update.is_empty:
            return False
        self._api.put(self._item_url(booking_id), update.to_payload())
        logger.info("Booking %s updated: %s", booking_id, update.to_payload())
        return True

    def cancel(self, booking_id: str) -> bool:
        return self.update(booking_id, status="cancelled")

    def complete(self, booking_id: str) -> bool:
        return self.update(booking_id, status="completed")
