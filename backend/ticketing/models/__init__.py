from ticketing.models.user import User
from ticketing.models.category import Category
from ticketing.models.venue import Venue
from ticketing.models.event import Event, EventStatus
from ticketing.models.booking import Booking

__all__ = ["User", "Category", "Venue", "Event", "EventStatus", "Booking"]
