"""
Domain models (Pydantic).

These types are the contract between the PourRice REST API / search proxy and the
rest of the package:
- catalog entities (`Restaurant`, `MenuItem`)
- user-generated records (`Review`, `Booking`, `ChatRoom`, `ChatMessage`)
- request/response envelopes (`SearchRequest`, `SearchResponse`, `Create*Request`)

The API is not consistent about field naming: search hits use `objectID` and
`_geoloc`, REST documents use `Name_EN` or `name_en`, and the newer collections
use camelCase. Parsing accepts every variant; serialization emits what the REST
API expects on write.
"""

from __future__ import annotations

from datetime import datetime, timezone
from math import isfinite
from typing import Annotated, Any, Literal

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from pourrice.core.geo import GeoPoint, format_distance
from pourrice.core.time import ensure_tz, parse_datetime

Language = Literal["EN", "TC"]
BookingStatus = Literal["pending", "confirmed", "completed", "cancelled"]
PaymentStatus = Literal["unpaid", "paid", "refunded"]

UNKNOWN = "Unknown"


def _to_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        f = float(value)
    elif isinstance(value, str):
        try:
            f = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return f if isfinite(f) else None


def _to_int(value: Any) -> int | None:
    f = _to_float(value)
    return int(f) if f is not None else None


def _to_str_list(value: Any) -> list[str] | None:
    if isinstance(value, list):
        return [str(v) for v in value]
    return None


def _to_dict(value: Any) -> dict[str, Any] | None:
    return dict(value) if isinstance(value, dict) else None


def _pick(data: dict[str, Any], *keys: str) -> Any:
    for k in keys:
        v = data.get(k)
        if v is not None:
            return v
    return None


def coerce_timestamp(value: Any) -> Any:
    """Normalize API timestamps: ISO strings and serialized Firestore `{_seconds, _nanoseconds}`."""
    if isinstance(value, dict):
        seconds = _pick(value, "_seconds", "seconds")
        if seconds is None:
            return value
        nanos = _pick(value, "_nanoseconds", "nanoseconds") or 0
        return datetime.fromtimestamp(float(seconds) + float(nanos) / 1e9, tz=timezone.utc)
    if isinstance(value, str) and value.strip():
        return parse_datetime(value)
    return value


ApiDatetime = Annotated[datetime, BeforeValidator(coerce_timestamp), AfterValidator(ensure_tz)]


def _bilingual(lang: Language, en: Any, tc: Any, default: Any) -> Any:
    if lang == "TC":
        return tc if tc is not None else (en if en is not None else default)
    return en if en is not None else (tc if tc is not None else default)


class ApiModel(BaseModel):
    """Base for camelCase API documents (accepts both alias and field name on input)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TimestampedModel(ApiModel):
    created_at: ApiDatetime | None = None
    modified_at: ApiDatetime | None = None


class Restaurant(BaseModel):
    """A restaurant record from the search proxy or the REST API."""

    model_config = ConfigDict(frozen=True)

    id: str
    name_en: str | None = None
    name_tc: str | None = None
    address_en: str | None = None
    address_tc: str | None = None
    district_en: str | None = None
    district_tc: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    keyword_en: list[str] | None = None
    keyword_tc: list[str] | None = None
    image_url: str | None = None
    menu: dict[str, Any] | None = None
    opening_hours: dict[str, Any] | None = None
    seats: int | None = None
    contacts: dict[str, Any] | None = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_payload(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        geoloc = data.get("_geoloc") if isinstance(data.get("_geoloc"), dict) else {}
        image = _pick(data, "ImageUrl", "imageUrl", "Image", "image_url")
        return {
            "id": str(_pick(data, "objectID", "id") or ""),
            "name_en": _pick(data, "Name_EN", "name_en"),
            "name_tc": _pick(data, "Name_TC", "name_tc"),
            "address_en": _pick(data, "Address_EN", "address_en"),
            "address_tc": _pick(data, "Address_TC", "address_tc"),
            "district_en": _pick(data, "District_EN", "district_en"),
            "district_tc": _pick(data, "District_TC", "district_tc"),
            "latitude": _to_float(_pick(geoloc, "lat")) if geoloc.get("lat") is not None
            else _to_float(_pick(data, "Latitude", "latitude")),
            "longitude": _to_float(_pick(geoloc, "lng")) if geoloc.get("lng") is not None
            else _to_float(_pick(data, "Longitude", "longitude")),
            "keyword_en": _to_str_list(_pick(data, "Keyword_EN", "keyword_en")),
            "keyword_tc": _to_str_list(_pick(data, "Keyword_TC", "keyword_tc")),
            "image_url": image if isinstance(image, str) and image else None,
            "menu": _to_dict(_pick(data, "Menu", "menu")),
            "opening_hours": _to_dict(_pick(data, "Opening_Hours", "openingHours", "opening_hours")),
            "seats": _to_int(_pick(data, "Seats", "seats")),
            "contacts": _to_dict(_pick(data, "Contacts", "contacts")),
        }

    @property
    def location(self) -> GeoPoint | None:
        """The restaurant's coordinates, or None unless both latitude and longitude are known."""
        if self.latitude is None or self.longitude is None:
            return None
        return GeoPoint(lat=self.latitude, lon=self.longitude)

    def to_api_payload(self) -> dict[str, Any]:
        """Serialize with the REST API's field names (used by create/update)."""
        return {
            "id": self.id,
            "Name_EN": self.name_en,
            "Name_TC": self.name_tc,
            "Address_EN": self.address_en,
            "Address_TC": self.address_tc,
            "District_EN": self.district_en,
            "District_TC": self.district_tc,
            "Latitude": self.latitude,
            "Longitude": self.longitude,
            "Keyword_EN": self.keyword_en,
            "Keyword_TC": self.keyword_tc,
            "ImageUrl": self.image_url,
            "Menu": self.menu,
            "Opening_Hours": self.opening_hours,
            "Seats": self.seats,
            "Contacts": self.contacts,
        }

    def display_name(self, lang: Language = "EN") -> str:
        return _bilingual(lang, self.name_en, self.name_tc, UNKNOWN)

    def display_address(self, lang: Language = "EN") -> str:
        return _bilingual(lang, self.address_en, self.address_tc, UNKNOWN)

    def display_district(self, lang: Language = "EN") -> str:
        return _bilingual(lang, self.district_en, self.district_tc, UNKNOWN)

    def display_keywords(self, lang: Language = "EN") -> list[str]:
        return list(_bilingual(lang, self.keyword_en, self.keyword_tc, []))


class NearbyRestaurant(BaseModel):
    """One entry of a nearby list: the restaurant plus its distance from the user."""

    restaurant: Restaurant
    distance_m: float = Field(..., ge=0)

    @property
    def distance_label(self) -> str:
        return format_distance(self.distance_m)


class SearchRequest(BaseModel):
    """Query for the search proxy (text + facet filters + optional geo constraint)."""

    query: str = ""
    districts: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    language: Language = "EN"
    page: int = Field(0, ge=0)
    hits_per_page: int = Field(12, ge=1, le=1000)
    around: GeoPoint | None = None
    around_radius_m: int | None = Field(default=None, ge=1)

    def to_query_params(self) -> dict[str, str]:
        params: dict[str, str] = {
            "language": self.language,
            "page": str(self.page),
            "hitsPerPage": str(self.hits_per_page),
        }
        if self.query.strip():
            params["query"] = self.query.strip()
        if self.districts:
            params["districts"] = ",".join(self.districts)
        if self.keywords:
            params["keywords"] = ",".join(self.keywords)
        if self.around is not None:
            params["aroundLatLng"] = f"{self.around.lat},{self.around.lon}"
        if self.around_radius_m is not None:
            params["aroundRadius"] = str(self.around_radius_m)
        return params


class SearchResponse(BaseModel):
    """One page of search hits with pagination metadata."""

    hits: list[Restaurant] = Field(default_factory=list)
    nb_hits: int = Field(0, alias="nbHits")
    page: int = 0
    nb_pages: int = Field(0, alias="nbPages")
    hits_per_page: int = Field(20, alias="hitsPerPage")
    processing_time_ms: str | None = Field(default=None, alias="processingTimeMS")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("processing_time_ms", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        return None if value is None else str(value)

    @property
    def has_next_page(self) -> bool:
        return self.page < self.nb_pages - 1

    @property
    def has_previous_page(self) -> bool:
        return self.page > 0

    @property
    def next_page(self) -> int | None:
        return self.page + 1 if self.has_next_page else None


class MenuItem(TimestampedModel):
    id: str
    name_en: str | None = None
    name_tc: str | None = None
    description_en: str | None = None
    description_tc: str | None = None
    price: float | None = None
    category: str | None = None
    image: str | None = None
    available: bool = True

    def display_name(self, lang: Language = "EN") -> str:
        return _bilingual(lang, self.name_en, self.name_tc, UNKNOWN)

    def display_description(self, lang: Language = "EN") -> str:
        return _bilingual(lang, self.description_en, self.description_tc, "")


class MenuItemPayload(ApiModel):
    """Create/update body for a menu item; unset fields are omitted."""

    name_en: str | None = None
    name_tc: str | None = None
    description_en: str | None = None
    description_tc: str | None = None
    price: float | None = Field(default=None, ge=0)
    category: str | None = None
    image: str | None = None
    available: bool | None = None


class Review(TimestampedModel):
    id: str
    user_id: str
    user_display_name: str = "Anonymous"
    user_photo_url: str | None = Field(default=None, alias="userPhotoURL")
    restaurant_id: str
    rating: float = Field(..., ge=1, le=5)
    comment: str | None = None
    image_url: str | None = None
    date_time: ApiDatetime

    @model_validator(mode="before")
    @classmethod
    def _default_date_time(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("dateTime") is None and data.get("date_time") is None:
            data = {**data, "dateTime": data.get("createdAt")}
        return data

    @property
    def star_count(self) -> int:
        return int(self.rating + 0.5)


class ReviewStats(ApiModel):
    restaurant_id: str
    total_reviews: int = Field(0, ge=0)
    average_rating: float = Field(0.0, ge=0, le=5)


class CreateReviewRequest(ApiModel):
    restaurant_id: str
    rating: float = Field(..., ge=1, le=5)
    comment: str | None = None
    date_time: str | None = None

    @field_validator("comment")
    @classmethod
    def _blank_comment(cls, value: str | None) -> str | None:
        return value if value and value.strip() else None


class UpdateReviewRequest(ApiModel):
    rating: float | None = Field(default=None, ge=1, le=5)
    comment: str | None = None


class Booking(TimestampedModel):
    id: str
    user_id: str
    restaurant_id: str
    restaurant_name: str
    date_time: ApiDatetime
    number_of_guests: int = Field(..., ge=1)
    status: BookingStatus = "pending"
    payment_status: PaymentStatus = "unpaid"
    payment_intent_id: str | None = None
    special_requests: str | None = None


class CreateBookingRequest(ApiModel):
    restaurant_id: str
    restaurant_name: str
    date_time: ApiDatetime
    number_of_guests: int = Field(..., ge=1)
    special_requests: str | None = None

    def to_booking_payload(self, user_id: str) -> dict[str, Any]:
        payload = self.to_payload()
        if not (self.special_requests or "").strip():
            payload.pop("specialRequests", None)
        payload.update({"userId": user_id, "status": "pending", "paymentStatus": "unpaid"})
        return payload


class BookingUpdate(ApiModel):
    status: BookingStatus | None = None
    payment_status: PaymentStatus | None = None
    payment_intent_id: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.to_payload()


class UserPreferences(ApiModel):
    language: Language = "EN"
    notifications: bool = False
    theme: str = "light"


class UserProfile(TimestampedModel):
    uid: str
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = Field(default=None, alias="photoURL")
    email_verified: bool = False
    phone_number: str | None = None
    type: str | None = None
    bio: str | None = None
    restaurant_id: str | None = None
    preferences: dict[str, Any] | None = None
    last_login_at: ApiDatetime | None = None
    login_count: int | None = None

    def structured_preferences(self) -> UserPreferences:
        """Typed view of `preferences`, filling defaults for missing keys."""
        return UserPreferences.model_validate(self.preferences or {})


class ChatMessage(ApiModel):
    message_id: str
    room_id: str
    user_id: str
    display_name: str
    message: str
    timestamp: ApiDatetime
    edited: bool = False
    deleted: bool = False
    image_url: str | None = None


class ChatRoom(TimestampedModel):
    room_id: str
    participants: list[str]
    room_name: str | None = None
    type: Literal["direct", "group"] = "direct"
    created_by: str | None = None
    last_message: str | None = None
    last_message_at: ApiDatetime | None = None
    message_count: int = 0
    participants_data: list[UserProfile] | None = None
    recent_messages: list[ChatMessage] | None = None

    @field_validator("participants", mode="before")
    @classmethod
    def _stringify_participants(cls, value: Any) -> Any:
        return [str(v) for v in value] if isinstance(value, list) else value
