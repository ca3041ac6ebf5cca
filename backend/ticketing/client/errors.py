"""
User-facing error messages for the client layer.

The server's own ``message`` is shown verbatim when present. Otherwise a
fallback is chosen by error category; raw exception text never reaches the
user.
"""

import httpx

from ticketing.client.api_error import APIError
from ticketing.core.logging import get_logger

logger = get_logger(__name__)

NETWORK_MESSAGE = "Network error. Please check your connection and try again."
AUTH_MESSAGE = "Authentication required. Please log in again."
PERMISSION_MESSAGE = "You do not have permission to perform this action."
NOT_FOUND_MESSAGE = "The requested resource was not found."
SERVER_MESSAGE = "Server error. Please try again later."
GENERIC_MESSAGE = "An unexpected error occurred. Please try again."


def describe_error(error: BaseException, context: str = "") -> str:
    logger.warning("api_error", context=context, error_type=type(error).__name__, error=str(error))

    if isinstance(error, httpx.TransportError):
        return NETWORK_MESSAGE
    if not isinstance(error, APIError):
        return GENERIC_MESSAGE
    if error.message:
        return error.message
    if error.status_code == 401:
        return AUTH_MESSAGE
    if error.status_code == 403:
        return PERMISSION_MESSAGE
    if error.status_code == 404:
        return NOT_FOUND_MESSAGE
    if error.status_code >= 500:
        return SERVER_MESSAGE
    return GENERIC_MESSAGE
