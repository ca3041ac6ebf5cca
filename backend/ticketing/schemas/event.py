"""
Pydantic schemas for event requests and responses.

``EVENT_FIELD_RULES`` is the per-operation presence table for event fields.
``EventCreate`` and ``EventUpdate`` carry the matching constraints; the
validation chain and the client draft both read the table for their
required-field checks and user-facing messages.
"""

import enum
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ticketing.core.config import get_settings
from ticketing.models.event import EventStatus

TITLE_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 5000
MAX_TOTAL_SEATS = 100_000
CURRENCY_PATTERN = r"^[A-Za-z]{3}$"


class Presence(str, enum.Enum):
    REQUIRED = "required"
    OPTIONAL = "optional"


@dataclass(frozen=True)
class FieldRule:
    label: str
    create: Presence
    update: Presence
    message: str


EVENT_FIELD_RULES: dict[str, FieldRule] = {
    "title": FieldRule(
        "Title", Presence.REQUIRED, Presence.OPTIONAL,
        f"Title must be between 1 and {TITLE_MAX_LENGTH} characters",
    ),
    "description": FieldRule(
        "Description", Presence.OPTIONAL, Presence.OPTIONAL,
        f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters",
    ),
    "category_id": FieldRule(
        "Category", Presence.REQUIRED, Presence.OPTIONAL, "Category ID must be an integer",
    ),
    "venue_id": FieldRule(
        "Venue", Presence.REQUIRED, Presence.OPTIONAL, "Venue ID must be an integer",
    ),
    "start_date": FieldRule(
        "Start date", Presence.REQUIRED, Presence.OPTIONAL, "Start date must be a valid date (YYYY-MM-DD)",
    ),
    "end_date": FieldRule(
        "End date", Presence.OPTIONAL, Presence.OPTIONAL, "End date must be a valid date (YYYY-MM-DD)",
    ),
    "start_time": FieldRule(
        "Start time", Presence.REQUIRED, Presence.OPTIONAL, "Start time must be a valid time (HH:MM)",
    ),
    "end_time": FieldRule(
        "End time", Presence.OPTIONAL, Presence.OPTIONAL, "End time must be a valid time (HH:MM)",
    ),
    "price": FieldRule(
        "Price", Presence.OPTIONAL, Presence.OPTIONAL, "Price must be a non-negative number",
    ),
    "currency": FieldRule(
        "Currency", Presence.OPTIONAL, Presence.OPTIONAL, "Currency must be a 3-letter code",
    ),
    "total_seats": FieldRule(
        "Total seats", Presence.REQUIRED, Presence.OPTIONAL,
        f"Total seats must be an integer between 1 and {MAX_TOTAL_SEATS}",
    ),
    "status": FieldRule(
        "Status", Presence.OPTIONAL, Presence.OPTIONAL,
        "Status must be one of: " + ", ".join(s.value for s in EventStatus),
    ),
    "tags": FieldRule(
        "Tags", Presence.OPTIONAL, Presence.OPTIONAL,
        "Tags must be a comma-separated string or a list of strings",
    ),
}


def required_fields(operation: str) -> tuple[str, ...]:
    """Fields that must be present for ``operation`` ("create" or "update")."""
    return tuple(
        name
        for name, rule in EVENT_FIELD_RULES.items()
        if getattr(rule, operation) is Presence.REQUIRED
    )


def parse_tags(value: Any) -> list[str]:
    """Split comma-separated input into trimmed, non-empty labels, keeping order."""
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        raise ValueError("Tags must be a comma-separated string or a list of strings")
    return [str(item).strip() for item in items if str(item).strip()]


def _default_currency() -> str:
    return get_settings().DEFAULT_CURRENCY


class EventCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = Field(None, max_length=DESCRIPTION_MAX_LENGTH)
    category_id: int
    venue_id: int
    start_date: date
    end_date: Optional[date] = None
    start_time: time
    end_time: Optional[time] = None
    price: float = Field(0, ge=0, allow_inf_nan=False)
    currency: str = Field(default_factory=_default_currency, pattern=CURRENCY_PATTERN)
    total_seats: int = Field(..., gt=0, le=MAX_TOTAL_SEATS)
    status: EventStatus = EventStatus.UPCOMING
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, value: Any) -> list[str]:
        return parse_tags(value)

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        return value.upper()


_NON_NULLABLE_ON_UPDATE = (
    "title", "category_id", "venue_id", "start_date", "end_date", "start_time",
    "price", "currency", "total_seats", "status",
)


class EventUpdate(BaseModel):
    """Partial update: only fields present in the payload are applied."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    title: Optional[str] = Field(None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = Field(None, max_length=DESCRIPTION_MAX_LENGTH)
    category_id: Optional[int] = None
    venue_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    price: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    currency: Optional[str] = Field(None, pattern=CURRENCY_PATTERN)
    total_seats: Optional[int] = Field(None, gt=0, le=MAX_TOTAL_SEATS)
    status: Optional[EventStatus] = None
    tags: Optional[list[str]] = None

    @field_validator(*_NON_NULLABLE_ON_UPDATE, mode="before")
    @classmethod
    def _reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("may not be null")
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, value: Any) -> list[str]:
        return parse_tags(value)

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: Optional[str]) -> Optional[str]:
        return value.upper() if value else value

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class EventResponse(BaseModel):
    id: int
    title: str
    description: Optional[str]
    category_id: int
    venue_id: int
    organizer_id: int
    start_date: date
    end_date: date
    start_time: time
    end_time: Optional[time]
    price: float
    currency: str
    total_seats: int
    available_seats: int
    status: EventStatus
    tags: list[str]
    images: list[str]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class EventListResponse(BaseModel):
    events: list[EventResponse]
    total: int
    page: int
    page_size: int
    cached: bool = False


class EventFilters(BaseModel):
    """Query filters for the event list. "My events" is this with organizer_id set."""

    organizer_id: Optional[int] = None
    category_id: Optional[int] = None
    venue_id: Optional[int] = None
    status: Optional[EventStatus] = None
    search: Optional[str] = Field(None, max_length=100)
    upcoming_only: bool = False
    page: int = Field(1, ge=1)
    page_size: int = Field(20, ge=1, le=100)

    def cache_key(self) -> str:
        parts = self.model_dump(mode="json", exclude_none=True)
        return "&".join(f"{key}={parts[key]}" for key in sorted(parts))


class CategoryResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None

    model_config = {"from_attributes": True}


class VenueResponse(BaseModel):
    id: int
    name: str
    address: Optional[str] = None
    city: Optional[str] = None
    capacity: Optional[int] = None

    model_config = {"from_attributes": True}


class VenueListResponse(BaseModel):
    venues: list[VenueResponse]
