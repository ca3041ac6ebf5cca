"""
"My events" list state: fetch on mount, delete with optimistic removal.
"""

from typing import Optional

from ticketing.client.api import EventsAPI
from ticketing.client.errors import describe_error
from ticketing.client.notifications import Notification
from ticketing.core.logging import get_logger

logger = get_logger(__name__)


class MyEventsView:
    """
    Holds the organizer's events and the deletes currently in flight.

    ``deleting_id`` marks the control of the most recently started delete.
    Every id with a request in flight is tracked separately, so a repeat
    delete for any of them is ignored while deletes of other ids proceed.
    """

    def __init__(self, api: EventsAPI):
        self.api = api
        self.events: list[dict] = []
        self.loading = False
        self.error: Optional[str] = None
        self.deleting_id: Optional[int] = None
        self._pending: set[int] = set()
        self.notifications: list[Notification] = []

    async def mount(self) -> None:
        await self.refresh()

    def unmount(self) -> None:
        self.deleting_id = None
        self._pending.clear()

    async def refresh(self) -> None:
        self.loading = True
        self.error = None
        try:
            data = await self.api.my_events()
            self.events = (data.get("data") or {}).get("events") or []
        except Exception as exc:
            self.error = describe_error(exc, "fetch my events")
        finally:
            self.loading = False

    def is_deleting(self, event_id: int) -> bool:
        return event_id in self._pending

    async def delete(self, event_id: int, confirmed: bool = True) -> bool:
        """
        Delete ``event_id`` once the user has confirmed.

        On success the event is dropped from ``events`` without re-fetching.
        On failure local state is left as it was and an error toast is queued.
        """
        if not confirmed or event_id in self._pending:
            return False

        self._pending.add(event_id)
        self.deleting_id = event_id
        try:
            data = await self.api.delete(event_id)
            if not data.get("success"):
                self._notify_failure(data.get("message") or "Failed to delete event")
                return False
            self.events = [event for event in self.events if event.get("id") != event_id]
            self.notifications.append(
                Notification(
                    title="Event Deleted",
                    description="Your event has been deleted successfully.",
                )
            )
            logger.info("my_event_deleted", event_id=event_id)
            return True
        except Exception as exc:
            self._notify_failure(describe_error(exc, "delete event"))
            return False
        finally:
            self._pending.discard(event_id)
            if self.deleting_id == event_id:
                self.deleting_id = None

    def _notify_failure(self, message: str) -> None:
        self.notifications.append(Notification(title="Error", description=message, variant="destructive"))
