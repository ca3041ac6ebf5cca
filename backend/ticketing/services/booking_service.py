"""
Seat booking: the only writer of ``Event.available_seats`` besides organizer
seat-total changes.

Seat decrements use optimistic locking on ``Event.version``:

  UPDATE events
     SET available_seats = available_seats - :n, version = version + 1
   WHERE id = :id AND version = :seen AND available_seats >= :n

Zero rows updated means another writer got there first; the read is retried
up to MAX_RETRY_ATTEMPTS times before giving up with 409. The
``available_seats >= 0`` check constraint backs this up in the database.
"""

import time

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from ticketing.core.errors import BookingConflictError, EventNotFoundError
from ticketing.core.logging import get_logger
from ticketing.core.metrics import booking_latency, record_booking_attempt
from ticketing.models.booking import Booking
from ticketing.models.event import Event, EventStatus

logger = get_logger(__name__)

MAX_RETRY_ATTEMPTS = 3
BOOKABLE_STATUSES = (EventStatus.UPCOMING.value, EventStatus.ONGOING.value)


async def book_seats(
    db: AsyncSession,
    user_id: int,
    event_id: int,
    seat_count: int = 1,
) -> Booking:
    started = time.perf_counter()
    try:
        booking = await _book_seats(db, user_id, event_id, seat_count)
    except BookingConflictError:
        record_booking_attempt("conflict")
        raise
    except HTTPException:
        record_booking_attempt("error")
        raise
    record_booking_attempt("success")
    booking_latency.observe(time.perf_counter() - started)
    return booking


async def _book_seats(db: AsyncSession, user_id: int, event_id: int, seat_count: int) -> Booking:
    existing = await db.execute(
        select(Booking).where(Booking.user_id == user_id, Booking.event_id == event_id)
    )
    previous = existing.scalar_one_or_none()
    if previous is not None and previous.status == "confirmed":
        raise BookingConflictError("You already have a booking for this event")

    for attempt in range(1, MAX_RETRY_ATTEMPTS + 1):
        event = (
            await db.execute(
                select(Event)
                .where(Event.id == event_id)
                .execution_options(populate_existing=True)
            )
        ).scalar_one_or_none()
        if event is None:
            raise EventNotFoundError(event_id)

        if event.status not in BOOKABLE_STATUSES:
            raise BookingConflictError(f"Event is {event.status} and cannot be booked")

        if event.available_seats < seat_count:
            logger.warning(
                "booking_failed_no_seats",
                event_id=event_id,
                requested=seat_count,
                available=event.available_seats,
            )
            raise BookingConflictError(
                f"Not enough seats. Requested: {seat_count}, Available: {event.available_seats}"
            )

        result = await db.execute(
            update(Event)
            .where(
                Event.id == event_id,
                Event.version == event.version,
                Event.available_seats >= seat_count,
            )
            .values(
                available_seats=Event.available_seats - seat_count,
                version=Event.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            break

        logger.info("booking_retry", event_id=event_id, attempt=attempt, reason="version_conflict")
    else:
        raise BookingConflictError("Booking failed due to high demand. Please try again.")

    # A cancelled booking row is reused; the (user, event) pair is unique
    if previous is not None:
        previous.seat_count = seat_count
        previous.status = "confirmed"
        booking = previous
    else:
        booking = Booking(user_id=user_id, event_id=event_id, seat_count=seat_count, status="confirmed")
        db.add(booking)
    await db.flush()
    await db.refresh(booking)
    await db.refresh(event)

    logger.info(
        "booking_created",
        booking_id=booking.id,
        user_id=user_id,
        event_id=event_id,
        seats=seat_count,
        attempt=attempt,
    )
    return booking


async def cancel_booking(db: AsyncSession, booking_id: int, user_id: int) -> Booking:
    """Cancel the caller's booking and release its seats."""
    result = await db.execute(
        select(Booking).where(Booking.id == booking_id, Booking.user_id == user_id)
    )
    booking = result.scalar_one_or_none()

    if booking is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")

    if booking.status == "cancelled":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Booking is already cancelled",
        )

    await db.execute(
        update(Event)
        .where(Event.id == booking.event_id)
        .values(
            available_seats=Event.available_seats + booking.seat_count,
            version=Event.version + 1,
        )
        .execution_options(synchronize_session=False)
    )

    booking.status = "cancelled"
    await db.flush()
    await db.refresh(booking)

    event = await db.get(Event, booking.event_id)
    if event is not None:
        await db.refresh(event)

    logger.info("booking_cancelled", booking_id=booking.id, event_id=booking.event_id, seats=booking.seat_count)
    return booking


async def get_user_bookings(db: AsyncSession, user_id: int) -> list[Booking]:
    result = await db.execute(
        select(Booking).where(Booking.user_id == user_id).order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return list(result.scalars().all())
