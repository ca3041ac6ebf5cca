"""
Event model: schedule, venue, pricing and seat inventory.

- `available_seats` is denormalized; bookings move it, never past `total_seats`
- `version` is the optimistic-lock counter used by the booking service
- `tags` and `images` are ordered JSON lists
- `status` is stored as written by the organizer; there is no transition table
"""

import enum

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship

from ticketing.db.base import Base, TimestampMixin


class EventStatus(str, enum.Enum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in EventStatus)


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    venue_id = Column(Integer, ForeignKey("venues.id"), nullable=False, index=True)
    organizer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=True)

    price = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    currency = Column(String(3), nullable=False)

    total_seats = Column(Integer, nullable=False)
    available_seats = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=EventStatus.UPCOMING.value)

    tags = Column(JSON, nullable=False, default=list)
    images = Column(JSON, nullable=False, default=list)

    version = Column(Integer, nullable=False, default=1)

    organizer = relationship("User", back_populates="organized_events")
    category = relationship("Category")
    venue = relationship("Venue")
    bookings = relationship(
        "Booking",
        back_populates="event",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="check_event_dates_ordered"),
        CheckConstraint("price >= 0", name="check_event_price_non_negative"),
        CheckConstraint("total_seats > 0", name="check_total_seats_positive"),
        CheckConstraint("available_seats >= 0", name="check_available_seats_non_negative"),
        CheckConstraint("available_seats <= total_seats", name="check_available_lte_total"),
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="check_event_status"),
        Index("ix_events_start", "start_date", "start_time"),
    )

    def __repr__(self) -> str:
        return (
            f"<Event(id={self.id}, title={self.title}, "
            f"available={self.available_seats}/{self.total_seats}, status={self.status})>"
        )
