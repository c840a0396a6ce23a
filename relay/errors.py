from __future__ import annotations

from typing import Any


class RelayError(Exception):
    """Base error for a failed chat turn.

    Carries the HTTP status and the short message put in the ``error``
    envelope returned to the widget.
    """

    status_code: int = 500
    message: str = "Server error"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ConfigurationError(RelayError):
    """The server is missing its upstream credential."""

    status_code = 500
    message = "Missing OPENAI_API_KEY env var"


class InputError(RelayError):
    status_code = 400
    message = "Empty or too long message"


class InternalRelayError(RelayError):
    status_code = 500
    message = "Server error"


class UpstreamStatusError(RelayError):
    """The completion API answered with a non-2xx status.

    The body is forwarded to the caller as-is, with the upstream status.
    """

    def __init__(self, status_code: int, body: Any):
        self.body = body
        super().__init__(message=f"Upstream returned HTTP {status_code}", status_code=status_code)


class MalformedUpstreamResponse(ValueError):
    """A 2xx upstream body did not match the Responses result shape."""
