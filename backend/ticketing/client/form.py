"""
Event form state for creating and editing events.

``EventDraft`` mirrors the server's event fields as editable strings. Its
``validate`` repeats the server's required-field and date-order checks so
obviously bad drafts never leave the client; the server stays authoritative.
"""

import asyncio
from dataclasses import asdict, dataclass, fields
from datetime import date
from typing import Any, Optional

import httpx

from ticketing.client.api import EventsAPI
from ticketing.client.api_error import APIError
from ticketing.client.errors import GENERIC_MESSAGE, describe_error
from ticketing.client.notifications import Notification
from ticketing.core.logging import get_logger
from ticketing.schemas.event import parse_tags, required_fields

logger = get_logger(__name__)

MY_EVENTS_PATH = "/profile?tab=events"
REQUIRED_MESSAGE = "Please fill all required fields"
END_BEFORE_START_MESSAGE = "End date cannot be before start date"
# Optional columns an edit may clear; other blank fields mean "unchanged"
CLEARABLE_FIELDS = ("description", "end_time")


def _text(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass
class EventDraft:
    title: str = ""
    description: str = ""
    category_id: str = ""
    venue_id: str = ""
    start_date: str = ""
    end_date: str = ""
    start_time: str = ""
    end_time: str = ""
    price: str = ""
    currency: str = "NPR"
    total_seats: str = ""
    tags: str = ""
    status: str = "upcoming"

    @classmethod
    def from_event(cls, event: dict) -> "EventDraft":
        """Seed a draft from a server event record."""
        tags = event.get("tags")
        return cls(
            title=_text(event.get("title")),
            description=_text(event.get("description")),
            category_id=_text(event.get("category_id")),
            venue_id=_text(event.get("venue_id")),
            start_date=_text(event.get("start_date")).split("T")[0],
            end_date=_text(event.get("end_date")).split("T")[0],
            start_time=_text(event.get("start_time")),
            end_time=_text(event.get("end_time")),
            price=_text(event.get("price")),
            currency=event.get("currency") or "NPR",
            total_seats=_text(event.get("total_seats")),
            tags=", ".join(tags) if isinstance(tags, list) else "",
            status=event.get("status") or "upcoming",
        )

    def set(self, name: str, value: Any) -> None:
        if name not in {f.name for f in fields(self)}:
            raise KeyError(name)
        setattr(self, name, _text(value))

    def validate(self) -> Optional[str]:
        """Return an error message, or None when the draft may be submitted."""
        if any(not getattr(self, name).strip() for name in required_fields("create")):
            return REQUIRED_MESSAGE
        try:
            start = date.fromisoformat(self.start_date)
            end = date.fromisoformat(self.end_date) if self.end_date else start
        except ValueError:
            return "Please enter valid dates"
        if end < start:
            return END_BEFORE_START_MESSAGE
        return None

    def to_payload(self, clear_blank: bool = False) -> dict[str, Any]:
        """
        Request fields. With ``clear_blank`` (edit mode) a blank clearable
        field is sent as None so the stored value is removed.
        """
        payload: dict[str, Any] = asdict(self)
        payload["tags"] = parse_tags(self.tags)
        if clear_blank:
            for name in CLEARABLE_FIELDS:
                if not payload[name].strip():
                    payload[name] = None
        return payload


class EventForm:
    """
    State holder for the create/edit event page.

    ``load`` seeds the draft (edit mode), ``submit`` validates locally then
    sends one create or update request. Outcomes land in ``error``,
    ``notifications`` and ``redirect_to`` for the view to render.
    """

    def __init__(self, api: EventsAPI, user_id: Optional[int]):
        self.api = api
        self.user_id = user_id
        self.event_id: Optional[int] = None
        self.event: Optional[dict] = None
        self.draft = EventDraft()
        self.categories: list[dict] = []
        self.venues: list[dict] = []
        self.loading = False
        self.submitting = False
        self.error: Optional[str] = None
        self.redirect_to: Optional[str] = None
        self.notifications: list[Notification] = []

    @property
    def is_edit(self) -> bool:
        return self.event_id is not None

    async def load(self, event_id: Optional[int] = None) -> None:
        if self.user_id is None:
            self.redirect_to = "/login"
            return

        self.event_id = event_id
        self.loading = True
        try:
            if event_id is not None:
                event_res = await self.api.get_by_id(event_id)
                event = event_res.get("data") if event_res.get("success") else None
                if event is None:
                    self.error = "Event not found"
                    return
                # Display-only guard; the server enforces ownership again on submit
                if event.get("organizer_id") != self.user_id:
                    self.error = "You can only edit your own events"
                    return
                self.event = event
                self.draft = EventDraft.from_event(event)

            categories, venues = await asyncio.gather(self.api.get_categories(), self.api.get_venues())
            self.categories = categories.get("data") or []
            self.venues = (venues.get("data") or {}).get("venues") or []
        except APIError as exc:
            self.error = "Event not found" if exc.status_code == 404 else "Failed to load event data"
            logger.warning("event_form_load_failed", event_id=event_id, status_code=exc.status_code)
        except httpx.TransportError as exc:
            self.error = "Failed to load event data"
            logger.warning("event_form_load_failed", event_id=event_id, error=str(exc))
        finally:
            self.loading = False

    def set_field(self, name: str, value: Any) -> None:
        self.draft.set(name, value)

    async def submit(self, image: Optional[tuple] = None) -> bool:
        """Validate and send the draft. Returns True on success."""
        problem = self.draft.validate()
        if problem:
            self.error = problem
            return False

        self.submitting = True
        self.error = None
        try:
            payload = self.draft.to_payload(clear_blank=self.is_edit)
            if self.is_edit:
                data = await self.api.update(self.event_id, payload)
            else:
                data = await self.api.create(payload, image=image)

            if not data.get("success"):
                self.error = data.get("message") or self._failure_message()
                return False

            self.event = data.get("data")
            action = "Updated" if self.is_edit else "Created"
            self.notifications.append(
                Notification(
                    title=f"Event {action}",
                    description=f"Your event has been {action.lower()} successfully.",
                )
            )
            self.redirect_to = MY_EVENTS_PATH
            return True
        except Exception as exc:
            message = describe_error(exc, "submit event form")
            self.error = self._failure_message() if message == GENERIC_MESSAGE else message
            return False
        finally:
            self.submitting = False

    def _failure_message(self) -> str:
        return "Failed to update event" if self.is_edit else "Failed to create event"
