from typing import Optional


class APIError(Exception):
    """Non-2xx API response. ``message`` is the server's envelope message, if any."""

    def __init__(self, status_code: int, message: Optional[str] = None, errors: Optional[list] = None):
        super().__init__(f"{status_code}: {message or 'request failed'}")
        self.status_code = status_code
        self.message = message
        self.errors = errors or []
