"""
Event endpoints: public reads, authenticated mutations, reference data.

Static paths (/categories, /venues, /my/events) are declared before
/{event_id} so they are never captured by the id route.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.api.validation import (
    EventCreateRequest,
    event_create_payload,
    event_update_payload,
)
from ticketing.core.logging import get_logger
from ticketing.core.security import get_current_user_id
from ticketing.db.session import get_db
from ticketing.models.event import EventStatus
from ticketing.schemas.common import Envelope
from ticketing.schemas.event import (
    CategoryResponse,
    EventFilters,
    EventListResponse,
    EventResponse,
    EventUpdate,
    VenueListResponse,
    VenueResponse,
)
from ticketing.services import cache_service, event_service
from ticketing.services.storage import delete_event_image, save_event_image

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])


async def _list(db: AsyncSession, filters: EventFilters) -> EventListResponse:
    """Cache-first listing shared by the public list and "my events"."""
    key = cache_service.event_list_key(filters.cache_key())
    cached = await cache_service.get_json(key)
    if cached:
        logger.info("events_list_cache_hit", page=filters.page)
        cached["cached"] = True
        return EventListResponse(**cached)

    events, total = await event_service.list_events(db, filters)
    response = EventListResponse(
        events=[EventResponse.model_validate(e) for e in events],
        total=total,
        page=filters.page,
        page_size=filters.page_size,
    )
    await cache_service.set_json(key, response.model_dump(mode="json"))
    return response


@router.get("/", response_model=Envelope[EventListResponse])
async def list_events_endpoint(
    organizer_id: Optional[int] = Query(None),
    category_id: Optional[int] = Query(None),
    venue_id: Optional[int] = Query(None),
    status_filter: Optional[EventStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=100),
    upcoming_only: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """List events with filters and pagination. Cached in Redis when enabled."""
    filters = EventFilters(
        organizer_id=organizer_id,
        category_id=category_id,
        venue_id=venue_id,
        status=status_filter,
        search=search,
        upcoming_only=upcoming_only,
        page=page,
        page_size=page_size,
    )
    return Envelope(data=await _list(db, filters))


@router.get("/my/events", response_model=Envelope[EventListResponse])
async def my_events_endpoint(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """The caller's own events: the general listing with the organizer filter injected."""
    filters = EventFilters(organizer_id=user_id, page=page, page_size=page_size)
    return Envelope(data=await _list(db, filters))


@router.get("/categories", response_model=Envelope[list[CategoryResponse]])
async def list_categories_endpoint(db: AsyncSession = Depends(get_db)):
    cached = await cache_service.get_json(cache_service.CATEGORIES_KEY)
    if cached is not None:
        return Envelope(data=cached)

    categories = [CategoryResponse.model_validate(c) for c in await event_service.list_categories(db)]
    await cache_service.set_json(
        cache_service.CATEGORIES_KEY, [c.model_dump() for c in categories]
    )
    return Envelope(data=categories)


@router.get("/venues", response_model=Envelope[VenueListResponse])
async def list_venues_endpoint(db: AsyncSession = Depends(get_db)):
    cached = await cache_service.get_json(cache_service.VENUES_KEY)
    if cached is not None:
        return Envelope(data=VenueListResponse(**cached))

    venues = VenueListResponse(
        venues=[VenueResponse.model_validate(v) for v in await event_service.list_venues(db)]
    )
    await cache_service.set_json(cache_service.VENUES_KEY, venues.model_dump())
    return Envelope(data=venues)


@router.get("/venues/{venue_id}", response_model=Envelope[VenueResponse])
async def get_venue_endpoint(venue_id: int, db: AsyncSession = Depends(get_db)):
    venue = await event_service.get_venue(db, venue_id)
    return Envelope(data=VenueResponse.model_validate(venue))


@router.post("/", response_model=Envelope[EventResponse], status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    user_id: int = Depends(get_current_user_id),
    request: EventCreateRequest = Depends(event_create_payload),
    db: AsyncSession = Depends(get_db),
):
    """
    Create an event. Requires authentication.

    Accepts a multipart (or urlencoded) form with an optional ``image`` file part.
    """
    images = []
    if request.image is not None:
        # References are checked first so a rejected request leaves no orphaned file
        await event_service.ensure_references(
            db, request.payload.category_id, request.payload.venue_id
        )
        images.append(await save_event_image(request.image))

    try:
        event = await event_service.create_event(db, request.payload, user_id, images=images)
        await cache_service.invalidate_after_commit(db)
    except Exception:
        for reference in images:
            delete_event_image(reference)
        raise
    return Envelope(data=EventResponse.model_validate(event), message="Event created successfully")


@router.get("/{event_id}", response_model=Envelope[EventResponse])
async def get_event_endpoint(event_id: int, db: AsyncSession = Depends(get_db)):
    """Single event; read straight from the database for live seat counts."""
    event = await event_service.get_event(db, event_id)
    return Envelope(data=EventResponse.model_validate(event))


@router.put("/{event_id}", response_model=Envelope[EventResponse])
async def update_event_endpoint(
    event_id: int,
    user_id: int = Depends(get_current_user_id),
    payload: EventUpdate = Depends(event_update_payload),
    db: AsyncSession = Depends(get_db),
):
    """Partial update by the event's organizer."""
    event = await event_service.update_event(db, event_id, payload, user_id)
    await cache_service.invalidate_after_commit(db)
    return Envelope(data=EventResponse.model_validate(event), message="Event updated successfully")


@router.delete("/{event_id}", response_model=Envelope[None])
async def delete_event_endpoint(
    event_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Delete an event. Only its organizer may do this; the deletion is permanent."""
    await event_service.delete_event(db, event_id, user_id)
    await cache_service.invalidate_after_commit(db)
    return Envelope(message="Event deleted successfully")
