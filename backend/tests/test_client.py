"""
Tests for the Python client: request wrapper, retries, error messages, the
event form and the "my events" view.
"""

import asyncio
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio

from ticketing.client import APIError, EventForm, EventsAPI, MyEventsView, describe_error, retry_request
from ticketing.client import errors as client_errors
from ticketing.client.form import END_BEFORE_START_MESSAGE, MY_EVENTS_PATH, REQUIRED_MESSAGE
from ticketing.core.security import create_access_token
from ticketing.db.session import get_db
from ticketing.main import app


class SerialASGITransport(httpx.AsyncBaseTransport):
    """ASGI transport that runs one request at a time; the app shares one test DB session."""

    def __init__(self) -> None:
        self._inner = httpx.ASGITransport(app=app)
        self._lock = asyncio.Lock()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        async with self._lock:
            return await self._inner.handle_async_request(request)


@pytest_asyncio.fixture
async def http(db_session) -> AsyncGenerator[httpx.AsyncClient, None]:
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with httpx.AsyncClient(transport=SerialASGITransport(), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def api_for(http):
    def build(user=None) -> EventsAPI:
        token = create_access_token(data={"sub": str(user.id)}) if user else None
        return EventsAPI(http, token=token, retry_delay=0)

    return build


def mock_api(handler, token: str = "token") -> EventsAPI:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")
    return EventsAPI(client, token=token, retry_delay=0)


def envelope(data=None, message=None, success=True) -> dict:
    return {"success": success, "data": data, "message": message}


def fill_draft(form: EventForm, category, venue, **overrides) -> None:
    values = {
        "title": "Music Night",
        "category_id": category.id,
        "venue_id": venue.id,
        "start_date": "2025-06-01",
        "start_time": "18:00",
        "total_seats": 100,
        "price": 0,
    }
    values.update(overrides)
    for name, value in values.items():
        form.set_field(name, value)


# EventsAPI


@pytest.mark.asyncio
async def test_login_stores_token(api_for, test_user):
    api = api_for()
    token = await api.login("test@example.com", "testpassword123")
    assert api.token == token

    data = await api.my_events()
    assert data["success"] is True

    api.clear_token()
    with pytest.raises(APIError) as exc_info:
        await api.my_events()
    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "Authentication required"


@pytest.mark.asyncio
async def test_get_all_passes_filters(api_for, test_event, other_event, other_user):
    data = await api_for().get_all(organizer_id=other_user.id, category_id=None)
    assert [e["id"] for e in data["data"]["events"]] == [other_event.id]


@pytest.mark.asyncio
async def test_api_error_carries_field_errors(api_for, test_user):
    with pytest.raises(APIError) as exc_info:
        await api_for(test_user).create({"title": "No date"})
    error = exc_info.value
    assert error.status_code == 422
    assert {e["field"] for e in error.errors} >= {"start_date", "category_id"}


@pytest.mark.asyncio
async def test_reads_retry_on_server_errors():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if len(calls) < 3:
            return httpx.Response(502, json={"success": False, "message": "Bad gateway"})
        return httpx.Response(200, json=envelope({"id": 7}))

    data = await mock_api(handler).get_by_id(7)
    assert data["data"] == {"id": 7}
    assert calls == ["/api/v1/events/7"] * 3


@pytest.mark.asyncio
async def test_reads_do_not_retry_client_errors():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(404, json={"success": False, "message": "Event 7 not found"})

    with pytest.raises(APIError):
        await mock_api(handler).get_by_id(7)
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_mutations_are_sent_once():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.method)
        return httpx.Response(503, json={"success": False, "message": "Unavailable"})

    api = mock_api(handler)
    for send in (api.create({"title": "x"}), api.update(1, {"title": "x"}), api.delete(1)):
        with pytest.raises(APIError):
            await send
    assert calls == ["POST", "PUT", "DELETE"]


@pytest.mark.asyncio
async def test_bearer_header_sent_when_token_set():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers.get("authorization"))
        return httpx.Response(200, json=envelope([]))

    api = mock_api(handler, token="abc")
    await api.get_categories()
    api.set_token("xyz")
    await api.get_categories()
    api.clear_token()
    await api.get_categories()
    assert seen == ["Bearer abc", "Bearer xyz", None]


# retry_request


@pytest.mark.asyncio
async def test_retry_request_gives_up_after_max_retries():
    attempts = 0

    async def always_down():
        nonlocal attempts
        attempts += 1
        raise httpx.ConnectError("connection refused")

    with pytest.raises(httpx.ConnectError) as exc_info:
        await retry_request(always_down, max_retries=3, delay=0)
    assert attempts == 3
    assert describe_error(exc_info.value) == client_errors.NETWORK_MESSAGE


@pytest.mark.asyncio
async def test_retry_request_returns_first_success():
    attempts = 0

    async def flaky():
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise APIError(500)
        return "ok"

    assert await retry_request(flaky, delay=0) == "ok"
    assert attempts == 2


# describe_error


@pytest.mark.parametrize(
    "error, expected",
    [
        (APIError(422, "Title is required"), "Title is required"),
        (APIError(401), client_errors.AUTH_MESSAGE),
        (APIError(403), client_errors.PERMISSION_MESSAGE),
        (APIError(404), client_errors.NOT_FOUND_MESSAGE),
        (APIError(500), client_errors.SERVER_MESSAGE),
        (APIError(418), client_errors.GENERIC_MESSAGE),
        (httpx.ReadTimeout("timed out"), client_errors.NETWORK_MESSAGE),
        (RuntimeError("db password is hunter2"), client_errors.GENERIC_MESSAGE),
    ],
)
def test_describe_error(error, expected):
    assert describe_error(error, "test") == expected


# EventForm


@pytest.mark.asyncio
async def test_form_requires_login(api_for):
    form = EventForm(api_for(), user_id=None)
    await form.load()
    assert form.redirect_to == "/login"


@pytest.mark.asyncio
async def test_form_create_event(api_for, test_user, category, venue):
    form = EventForm(api_for(test_user), test_user.id)
    await form.load()
    assert [c["id"] for c in form.categories] == [category.id]
    assert [v["id"] for v in form.venues] == [venue.id]

    fill_draft(form, category, venue, tags="music, live")
    assert await form.submit() is True

    assert form.error is None
    assert form.redirect_to == MY_EVENTS_PATH
    assert form.notifications[-1].title == "Event Created"
    assert form.event["tags"] == ["music", "live"]
    assert form.event["end_date"] == "2025-06-01"
    assert form.event["available_seats"] == 100


@pytest.mark.asyncio
async def test_form_edit_round_trip(api_for, test_user, test_event):
    form = EventForm(api_for(test_user), test_user.id)
    await form.load(test_event.id)
    assert form.error is None
    assert form.draft.tags == "music, live"
    assert form.draft.start_date == test_event.start_date.isoformat()

    form.set_field("title", "Renamed Concert")
    assert await form.submit() is True

    assert form.notifications[-1].title == "Event Updated"
    assert form.event["title"] == "Renamed Concert"
    assert form.event["tags"] == ["music", "live"]
    assert form.event["total_seats"] == 100


@pytest.mark.asyncio
async def test_form_edit_clears_optional_fields(api_for, test_user, test_event):
    form = EventForm(api_for(test_user), test_user.id)
    await form.load(test_event.id)
    assert form.draft.description == "A test event"

    form.set_field("description", "")
    form.set_field("end_time", "")
    assert await form.submit() is True

    assert form.event["description"] is None
    assert form.event["end_time"] is None
    assert form.event["title"] == "Test Concert"


@pytest.mark.asyncio
async def test_form_refuses_to_edit_other_users_event(api_for, test_user, other_event):
    form = EventForm(api_for(test_user), test_user.id)
    await form.load(other_event.id)
    assert form.error == "You can only edit your own events"
    assert form.event is None


@pytest.mark.asyncio
async def test_form_load_missing_event(api_for, test_user, category):
    form = EventForm(api_for(test_user), test_user.id)
    await form.load(424242)
    assert form.error == "Event not found"


@pytest.mark.asyncio
async def test_form_local_validation_blocks_request(category, venue):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(201, json=envelope({}))

    form = EventForm(mock_api(handler), user_id=1)
    fill_draft(form, category, venue, title="   ")
    assert await form.submit() is False
    assert form.error == REQUIRED_MESSAGE

    fill_draft(form, category, venue, end_date="2025-05-01")
    assert await form.submit() is False
    assert form.error == END_BEFORE_START_MESSAGE

    assert calls == []


@pytest.mark.asyncio
async def test_form_shows_server_message(category, venue):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"success": False, "message": "You can only modify your own events"})

    form = EventForm(mock_api(handler), user_id=1)
    form.event_id = 5
    fill_draft(form, category, venue)
    assert await form.submit() is False
    assert form.error == "You can only modify your own events"
    assert form.redirect_to is None


@pytest.mark.asyncio
async def test_form_falls_back_to_operation_message(category, venue):
    def handler(request: httpx.Request) -> httpx.Response:
        raise ValueError("unexpected")

    form = EventForm(mock_api(handler), user_id=1)
    fill_draft(form, category, venue)
    assert await form.submit() is False
    assert form.error == "Failed to create event"
    assert form.submitting is False


# MyEventsView


@pytest.mark.asyncio
async def test_my_events_lists_and_deletes(api_for, test_user, test_event, other_event):
    api = api_for(test_user)
    view = MyEventsView(api)
    await view.mount()
    assert [e["id"] for e in view.events] == [test_event.id]

    assert await view.delete(test_event.id) is True
    assert view.events == []
    assert view.deleting_id is None
    assert view.notifications[-1].title == "Event Deleted"

    with pytest.raises(APIError) as exc_info:
        await api.get_by_id(test_event.id)
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_my_events_delete_requires_confirmation(api_for, test_user, test_event):
    view = MyEventsView(api_for(test_user))
    await view.mount()
    assert await view.delete(test_event.id, confirmed=False) is False
    assert len(view.events) == 1


@pytest.mark.asyncio
async def test_my_events_delete_failure_keeps_list():
    deletes = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "DELETE":
            deletes.append(request.url.path)
            return httpx.Response(500, json={"success": False, "message": "Database unavailable"})
        return httpx.Response(200, json=envelope({"events": [{"id": 1}, {"id": 2}]}))

    view = MyEventsView(mock_api(handler))
    await view.mount()
    assert await view.delete(1) is False

    assert [e["id"] for e in view.events] == [1, 2]
    assert view.deleting_id is None
    assert deletes == ["/api/v1/events/1"]
    notification = view.notifications[-1]
    assert notification.title == "Error"
    assert notification.description == "Database unavailable"
    assert notification.variant == "destructive"


@pytest.mark.asyncio
async def test_my_events_ignores_repeat_delete_while_pending():
    release = asyncio.Event()
    deletes = []

    async def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "DELETE":
            deletes.append(request.url.path)
            await release.wait()
            return httpx.Response(200, json=envelope(message="Event deleted successfully"))
        return httpx.Response(200, json=envelope({"events": [{"id": 1}, {"id": 2}]}))

    view = MyEventsView(mock_api(handler))
    await view.mount()

    first = asyncio.create_task(view.delete(1))
    while not deletes:
        await asyncio.sleep(0)
    assert view.is_deleting(1)
    assert not view.is_deleting(2)

    assert await view.delete(1) is False
    release.set()
    assert await first is True

    assert deletes == ["/api/v1/events/1"]
    assert [e["id"] for e in view.events] == [2]
    assert view.deleting_id is None


@pytest.mark.asyncio
async def test_my_events_tracks_each_pending_delete():
    release = asyncio.Event()
    deletes = []

    async def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "DELETE":
            deletes.append(request.url.path)
            await release.wait()
            return httpx.Response(200, json=envelope(message="Event deleted successfully"))
        return httpx.Response(200, json=envelope({"events": [{"id": 1}, {"id": 2}, {"id": 3}]}))

    view = MyEventsView(mock_api(handler))
    await view.mount()

    first = asyncio.create_task(view.delete(1))
    second = asyncio.create_task(view.delete(2))
    while len(deletes) < 2:
        await asyncio.sleep(0)
    assert view.is_deleting(1)
    assert view.is_deleting(2)

    # The first delete is still pending after the second one started
    assert await view.delete(1) is False
    release.set()
    assert await first is True
    assert await second is True

    assert deletes == ["/api/v1/events/1", "/api/v1/events/2"]
    assert [e["id"] for e in view.events] == [3]
    assert not view.is_deleting(1)
    assert not view.is_deleting(2)


@pytest.mark.asyncio
async def test_my_events_fetch_failure_sets_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused")

    view = MyEventsView(mock_api(handler))
    await view.mount()
    assert view.events == []
    assert view.error == client_errors.NETWORK_MESSAGE
    assert view.loading is False
