"""
Booking endpoints. Every seat change invalidates the cached event listings.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.security import get_current_user_id
from ticketing.db.session import get_db
from ticketing.schemas.booking import BookingCreate, BookingResponse
from ticketing.schemas.common import Envelope
from ticketing.services.booking_service import book_seats, cancel_booking, get_user_bookings
from ticketing.services.cache_service import invalidate_after_commit

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/", response_model=Envelope[BookingResponse], status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Book seats for an upcoming or ongoing event."""
    booking = await book_seats(db, user_id, booking_data.event_id, booking_data.seat_count)
    await invalidate_after_commit(db)
    return Envelope(data=BookingResponse.model_validate(booking), message="Booking confirmed")


@router.delete("/{booking_id}", response_model=Envelope[BookingResponse])
async def cancel_booking_endpoint(
    booking_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    booking = await cancel_booking(db, booking_id, user_id)
    await invalidate_after_commit(db)
    return Envelope(data=BookingResponse.model_validate(booking), message="Booking cancelled successfully")


@router.get("/", response_model=Envelope[list[BookingResponse]])
async def list_user_bookings(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    bookings = await get_user_bookings(db, user_id)
    return Envelope(data=[BookingResponse.model_validate(b) for b in bookings])
