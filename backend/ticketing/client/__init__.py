"""
Python client for the ticketing API: the request wrapper plus the event form
and "my events" view state that a front end drives.
"""

from ticketing.client.api import APIError, EventsAPI
from ticketing.client.errors import describe_error
from ticketing.client.form import EventDraft, EventForm
from ticketing.client.my_events import MyEventsView
from ticketing.client.notifications import Notification
from ticketing.client.retry import retry_request

__all__ = [
    "APIError",
    "EventsAPI",
    "describe_error",
    "EventDraft",
    "EventForm",
    "MyEventsView",
    "Notification",
    "retry_request",
]
