"""
Booking model representing a user's reservation for an event.

- Unique (user_id, event_id): one booking row per user per event
- Cancelled bookings are kept with status 'cancelled'
- Deleting the event deletes its bookings
"""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from ticketing.db.base import Base, TimestampMixin


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    event_id = Column(
        Integer,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    seat_count = Column(Integer, nullable=False, default=1)
    status = Column(String(20), nullable=False, default="confirmed")

    user = relationship("User", back_populates="bookings")
    event = relationship("Event", back_populates="bookings")

    __table_args__ = (
        UniqueConstraint("user_id", "event_id", name="uq_user_event_booking"),
        CheckConstraint("seat_count > 0", name="check_booking_seat_count_positive"),
        CheckConstraint("status IN ('confirmed', 'cancelled')", name="check_booking_status"),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, user={self.user_id}, event={self.event_id}, status={self.status})>"
