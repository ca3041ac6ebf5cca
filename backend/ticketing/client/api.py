"""
Thin async wrapper over the ticketing HTTP API.

The bearer token is held on the instance (``set_token``/``clear_token``), not
in module state. Reads are retried with backoff; create/update/delete are
sent exactly once so a flaky network never duplicates a mutation.
"""

from typing import Any, BinaryIO, Optional

import httpx

from ticketing.client.api_error import APIError
from ticketing.client.retry import retry_request
from ticketing.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_PREFIX = "/api/v1"


class EventsAPI:
    def __init__(
        self,
        client: httpx.AsyncClient,
        token: Optional[str] = None,
        prefix: str = DEFAULT_PREFIX,
        retries: int = 3,
        retry_delay: float = 1.0,
    ):
        self._client = client
        self._token = token
        self._prefix = prefix.rstrip("/")
        self._retries = retries
        self._retry_delay = retry_delay

    @property
    def token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: str) -> None:
        self._token = token

    def clear_token(self) -> None:
        self._token = None

    def _headers(self) -> dict[str, str]:
        if self._token:
            return {"Authorization": f"Bearer {self._token}"}
        return {}

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict:
        response = await self._client.request(
            method, f"{self._prefix}{path}", headers=self._headers(), **kwargs
        )
        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_error:
            message = body.get("message") if isinstance(body, dict) else None
            errors = body.get("errors") if isinstance(body, dict) else None
            logger.debug("api_request_failed", method=method, path=path, status_code=response.status_code)
            raise APIError(response.status_code, message, errors)
        return body

    async def _read(self, path: str, params: Optional[dict] = None) -> dict:
        return await retry_request(
            lambda: self._request("GET", path, params=params),
            max_retries=self._retries,
            delay=self._retry_delay,
        )

    # Auth

    async def login(self, email: str, password: str) -> str:
        body = await self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.set_token(body["data"]["access_token"])
        return self._token

    # Reads

    async def get_all(self, **filters: Any) -> dict:
        params = {key: value for key, value in filters.items() if value is not None}
        return await self._read("/events/", params=params)

    async def get_by_id(self, event_id: int) -> dict:
        return await self._read(f"/events/{event_id}")

    async def get_categories(self) -> dict:
        return await self._read("/events/categories")

    async def get_venues(self) -> dict:
        return await self._read("/events/venues")

    async def get_venue(self, venue_id: int) -> dict:
        return await self._read(f"/events/venues/{venue_id}")

    async def my_events(self, page: int = 1, page_size: int = 20) -> dict:
        return await self._read("/events/my/events", params={"page": page, "page_size": page_size})

    # Mutations

    async def create(
        self,
        fields: dict[str, Any],
        image: Optional[tuple[str, BinaryIO, str]] = None,
    ) -> dict:
        """Create an event from form fields; ``image`` is ``(filename, file, content_type)``."""
        data = {key: _form_value(value) for key, value in fields.items() if value is not None}
        files = {"image": image} if image else None
        return await self._request("POST", "/events/", data=data, files=files)

    async def update(self, event_id: int, fields: dict[str, Any]) -> dict:
        return await self._request("PUT", f"/events/{event_id}", json=fields)

    async def delete(self, event_id: int) -> dict:
        return await self._request("DELETE", f"/events/{event_id}")


def _form_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    return str(value)
