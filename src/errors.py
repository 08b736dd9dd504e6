"""Error taxonomy shared by the gateways, the dispatcher and the HTTP layer.

Every ``ToolError`` carries the HTTP status it maps to and the message that
is safe to show the caller.  The underlying cause (provider response body,
traceback) is only ever logged server-side.
"""

from __future__ import annotations


class ToolError(Exception):
    """Base class for failures that end up in the response envelope."""

    status_code: int = 500
    public_message: str = "Server error"

    def __init__(self, message: str | None = None, *, public_message: str | None = None):
        if public_message is not None:
            self.public_message = public_message
        super().__init__(message or self.public_message)


class ValidationError(ToolError):
    """Unknown tool name or missing/invalid required arguments."""

    status_code = 400
    public_message = "Invalid arguments"


class AuthError(ToolError):
    """Missing or wrong ``X-Api-Key`` header."""

    status_code = 401
    public_message = "Unauthorized"


class UpstreamError(ToolError):
    """The calendar or messaging provider failed (network, auth, timeout, 4xx/5xx)."""

    def __init__(self, message: str, status_code: int | None = None):
        self.upstream_status = status_code
        super().__init__(message)


class CalendarAPIError(UpstreamError):
    """Raised when a Google Calendar call fails."""


class MessagingAPIError(UpstreamError):
    """Raised when the SMS provider call fails."""


class InternalError(ToolError):
    """Unexpected fault inside a handler."""


class NoAvailability(Exception):
    """No free slot in the search horizon.

    Not a ``ToolError``: this is a normal business outcome that the voice
    agent reads aloud, so it travels through the 200 channel.
    """
