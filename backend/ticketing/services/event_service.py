"""
Event lifecycle: create, read, list, partial update and delete.

Ownership: only the organizer who created an event may update or delete it.
Every check (existence, ownership, references, dates, seats) runs before any
attribute is written, so a rejected request leaves the record untouched.
"""

from datetime import date
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.errors import (
    CategoryNotFoundError,
    EventNotFoundError,
    EventValidationError,
    NotEventOwnerError,
    VenueNotFoundError,
)
from ticketing.core.logging import get_logger
from ticketing.core.metrics import record_event_mutation
from ticketing.models.booking import Booking
from ticketing.models.category import Category
from ticketing.models.event import Event
from ticketing.models.venue import Venue
from ticketing.schemas.event import EventCreate, EventFilters, EventUpdate
from ticketing.services.storage import delete_event_image

logger = get_logger(__name__)

END_BEFORE_START_MESSAGE = "End date cannot be before start date"


def check_date_order(start_date: Optional[date], end_date: Optional[date]) -> None:
    """Reject ``end_date < start_date``; either side missing passes."""
    if start_date is not None and end_date is not None and end_date < start_date:
        raise EventValidationError.single("end_date", END_BEFORE_START_MESSAGE)


async def ensure_references(
    db: AsyncSession,
    category_id: Optional[int] = None,
    venue_id: Optional[int] = None,
) -> None:
    if category_id is not None and await db.get(Category, category_id) is None:
        raise CategoryNotFoundError(category_id)
    if venue_id is not None and await db.get(Venue, venue_id) is None:
        raise VenueNotFoundError(venue_id)


async def create_event(
    db: AsyncSession,
    event_data: EventCreate,
    organizer_id: int,
    images: Optional[list[str]] = None,
) -> Event:
    """Create an event owned by ``organizer_id`` with every seat available."""
    await ensure_references(db, event_data.category_id, event_data.venue_id)

    end_date = event_data.end_date or event_data.start_date
    check_date_order(event_data.start_date, end_date)

    event = Event(
        title=event_data.title,
        description=event_data.description,
        category_id=event_data.category_id,
        venue_id=event_data.venue_id,
        organizer_id=organizer_id,
        start_date=event_data.start_date,
        end_date=end_date,
        start_time=event_data.start_time,
        end_time=event_data.end_time,
        price=event_data.price,
        currency=event_data.currency,
        total_seats=event_data.total_seats,
        available_seats=event_data.total_seats,
        status=event_data.status.value,
        tags=list(event_data.tags),
        images=list(images or []),
    )
    db.add(event)
    await db.flush()
    await db.refresh(event)

    record_event_mutation("create", "success")
    logger.info(
        "event_created",
        event_id=event.id,
        organizer_id=organizer_id,
        title=event.title,
        seats=event.total_seats,
    )
    return event


async def get_event(db: AsyncSession, event_id: int) -> Event:
    result = await db.execute(select(Event).where(Event.id == event_id))
    event = result.scalar_one_or_none()
    if event is None:
        raise EventNotFoundError(event_id)
    return event


async def list_events(db: AsyncSession, filters: EventFilters) -> tuple[list[Event], int]:
    """Filtered, paginated listing ordered by start date and time."""
    query = select(Event)

    if filters.organizer_id is not None:
        query = query.where(Event.organizer_id == filters.organizer_id)
    if filters.category_id is not None:
        query = query.where(Event.category_id == filters.category_id)
    if filters.venue_id is not None:
        query = query.where(Event.venue_id == filters.venue_id)
    if filters.status is not None:
        query = query.where(Event.status == filters.status.value)
    if filters.search:
        query = query.where(Event.title.ilike(f"%{filters.search}%"))
    if filters.upcoming_only:
        query = query.where(Event.end_date >= date.today())

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar()

    events_query = (
        query
        .order_by(Event.start_date.asc(), Event.start_time.asc(), Event.id.asc())
        .offset((filters.page - 1) * filters.page_size)
        .limit(filters.page_size)
    )
    result = await db.execute(events_query)
    return list(result.scalars().all()), total


async def _get_owned_event(db: AsyncSession, event_id: int, user_id: int, operation: str) -> Event:
    try:
        event = await get_event(db, event_id)
    except EventNotFoundError:
        record_event_mutation(operation, "not_found")
        raise

    if event.organizer_id != user_id:
        record_event_mutation(operation, "forbidden")
        logger.warning(
            f"event_{operation}_forbidden",
            event_id=event_id,
            organizer_id=event.organizer_id,
            user_id=user_id,
        )
        raise NotEventOwnerError()
    return event


def _seat_changes(event: Event, new_total: int) -> dict[str, Any]:
    booked = event.total_seats - event.available_seats
    if new_total < booked:
        raise EventValidationError.single(
            "total_seats",
            f"Total seats cannot be less than the {booked} seats already booked",
        )
    return {"total_seats": new_total, "available_seats": new_total - booked}


async def update_event(
    db: AsyncSession,
    event_id: int,
    event_data: EventUpdate,
    user_id: int,
) -> Event:
    """
    Apply a partial update from the organizer.

    Omitted fields keep their stored values. Date ordering is checked against
    the merged record, and a seat total change shifts available seats by the
    same amount.
    """
    event = await _get_owned_event(db, event_id, user_id, "update")
    changes = event_data.changes()

    if not changes:
        logger.info("event_update_noop", event_id=event_id)
        return event

    await ensure_references(db, changes.get("category_id"), changes.get("venue_id"))

    try:
        check_date_order(
            changes.get("start_date", event.start_date),
            changes.get("end_date", event.end_date),
        )
        if "total_seats" in changes:
            changes.update(_seat_changes(event, changes["total_seats"]))
    except EventValidationError:
        record_event_mutation("update", "invalid")
        raise

    if "status" in changes:
        changes["status"] = changes["status"].value

    for field, value in changes.items():
        setattr(event, field, value)

    await db.flush()
    await db.refresh(event)

    record_event_mutation("update", "success")
    logger.info("event_updated", event_id=event.id, fields=sorted(changes))
    return event


async def delete_event(db: AsyncSession, event_id: int, user_id: int) -> None:
    """
    Delete an event owned by ``user_id``.

    Deletion is unconditional: existing bookings are removed with the event.
    """
    event = await _get_owned_event(db, event_id, user_id, "delete")

    confirmed = (
        await db.execute(
            select(func.count()).select_from(Booking).where(
                Booking.event_id == event_id,
                Booking.status == "confirmed",
            )
        )
    ).scalar()
    images = list(event.images or [])

    await db.delete(event)
    await db.flush()

    for reference in images:
        delete_event_image(reference)

    record_event_mutation("delete", "success")
    if confirmed:
        logger.warning("event_deleted_with_bookings", event_id=event_id, confirmed_bookings=confirmed)
    logger.info("event_deleted", event_id=event_id, organizer_id=user_id)


async def list_categories(db: AsyncSession) -> list[Category]:
    result = await db.execute(select(Category).order_by(Category.name.asc()))
    return list(result.scalars().all())


async def list_venues(db: AsyncSession) -> list[Venue]:
    result = await db.execute(select(Venue).order_by(Venue.name.asc()))
    return list(result.scalars().all())


async def get_venue(db: AsyncSession, venue_id: int) -> Venue:
    venue = await db.get(Venue, venue_id)
    if venue is None:
        raise VenueNotFoundError(venue_id)
    return venue
