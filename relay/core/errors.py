"""
core/errors.py
Relay error taxonomy.

Every failure a relay can hit is raised as a RelayError subclass and turned
into a JSON body + status code by the handler registered in main.py.
Nothing here is fatal to the process.
"""

from typing import Any, Optional


class RelayError(Exception):
    status_code: int = 500

    def __init__(
        self,
        error: str,
        detail: Optional[str] = None,
        **extra: Any,
    ):
        super().__init__(error)
        self.error = error
        self.detail = detail
        self.extra = extra

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error}
        if self.detail is not None:
            payload["detail"] = self.detail
        payload.update(self.extra)
        return payload


class BadRequest(RelayError):
    """Malformed or missing client input."""
    status_code = 400


class Misconfigured(RelayError):
    """A required backend address is not set."""
    status_code = 500


class UpstreamError(RelayError):
    """The backend answered with a non-success status."""
    status_code = 502


class NetworkFailure(RelayError):
    """The backend could not be reached at the transport level."""
    status_code = 502


class InvalidResponse(UpstreamError):
    """The backend answered 2xx but the body has the wrong shape."""
