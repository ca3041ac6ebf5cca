"""
Request validation chain for event mutations.

Order per request:
  1. authentication (``get_current_user_id``, declared first on each route)
  2. body parsing: form/multipart or JSON, blank strings treated as omitted
  3. field checks: every violation collected against ``EVENT_FIELD_RULES``
  4. cross-field date check, only once every field check has passed

Any failure raises ``EventValidationError`` before the service runs.
"""

from dataclasses import dataclass
from typing import Any, Optional

from fastapi import Request
from pydantic import BaseModel, ValidationError
from starlette.datastructures import UploadFile

from ticketing.core.errors import EventValidationError, FieldError
from ticketing.core.logging import get_logger
from ticketing.core.metrics import record_validation_rejection
from ticketing.schemas.event import EVENT_FIELD_RULES, EventCreate, EventUpdate
from ticketing.services.event_service import check_date_order

logger = get_logger(__name__)

IMAGE_FIELD = "image"


@dataclass
class EventCreateRequest:
    payload: EventCreate
    image: Optional[UploadFile] = None


def _drop_blank(data: dict[str, Any]) -> dict[str, Any]:
    return {
        key: value
        for key, value in data.items()
        if not (isinstance(value, str) and value.strip() == "")
    }


async def read_body(request: Request) -> tuple[dict[str, Any], Optional[UploadFile]]:
    """Return the body fields and the optional uploaded image."""
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            raise EventValidationError.single("body", "Request body must be valid JSON")
        if not isinstance(body, dict):
            raise EventValidationError.single("body", "Request body must be a JSON object")
        return _drop_blank(body), None

    form = await request.form()
    fields: dict[str, Any] = {}
    image: Optional[UploadFile] = None
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            if key == IMAGE_FIELD and value.filename:
                image = value
            continue
        fields[key] = value
    return _drop_blank(fields), image


def _field_errors(exc: ValidationError) -> list[FieldError]:
    errors: list[FieldError] = []
    seen: set[str] = set()
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else "body"
        if field in seen:
            continue
        seen.add(field)
        rule = EVENT_FIELD_RULES.get(field)
        if rule is None:
            message = error["msg"]
        elif error["type"] == "missing":
            message = f"{rule.label} is required"
        else:
            message = rule.message
        errors.append(FieldError(field, message))
    return errors


def _parse(schema: type[BaseModel], data: dict[str, Any], operation: str) -> Any:
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        errors = _field_errors(exc)
        record_validation_rejection(operation)
        logger.info(
            "event_validation_failed",
            operation=operation,
            fields=[e.field for e in errors],
        )
        raise EventValidationError(errors)


def _check_dates(payload: Any, operation: str) -> None:
    try:
        check_date_order(payload.start_date, payload.end_date)
    except EventValidationError:
        record_validation_rejection(operation)
        logger.info("event_validation_failed", operation=operation, fields=["end_date"])
        raise


def validate_event_create(data: dict[str, Any]) -> EventCreate:
    payload = _parse(EventCreate, data, "create")
    if payload.end_date is None:
        payload.end_date = payload.start_date
    _check_dates(payload, "create")
    return payload


def validate_event_update(data: dict[str, Any]) -> EventUpdate:
    payload = _parse(EventUpdate, data, "update")
    _check_dates(payload, "update")
    return payload


async def event_create_payload(request: Request) -> EventCreateRequest:
    data, image = await read_body(request)
    return EventCreateRequest(payload=validate_event_create(data), image=image)


async def event_update_payload(request: Request) -> EventUpdate:
    data, _ = await read_body(request)
    return validate_event_update(data)
