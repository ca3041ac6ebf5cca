from ticketing.schemas.common import Envelope, ErrorEnvelope
from ticketing.schemas.user import UserCreate, UserResponse, UserLogin, Token
from ticketing.schemas.event import (
    EventCreate,
    EventUpdate,
    EventResponse,
    EventListResponse,
    EventFilters,
    CategoryResponse,
    VenueResponse,
    VenueListResponse,
)
from ticketing.schemas.booking import BookingCreate, BookingResponse

__all__ = [
    "Envelope", "ErrorEnvelope",
    "UserCreate", "UserResponse", "UserLogin", "Token",
    "EventCreate", "EventUpdate", "EventResponse", "EventListResponse", "EventFilters",
    "CategoryResponse", "VenueResponse", "VenueListResponse",
    "BookingCreate", "BookingResponse",
]
