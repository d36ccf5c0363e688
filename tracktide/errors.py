#!/usr/bin/env python
"""
Error taxonomy shared by the HTTP API and the client library.

Each error knows the HTTP status it maps to so the backend can render it and
the client can rebuild it from a response.
"""

from __future__ import annotations

from typing import Dict, Optional, Type


class TrackTideError(Exception):
    status_code = 500
    code = "internal_error"
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, *, details: Optional[dict] = None) -> None:
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        payload = {"error": self.message, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(TrackTideError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid request"


class AuthError(TrackTideError):
    status_code = 401
    code = "authentication_required"
    default_message = "Authentication required"


class NotFoundError(TrackTideError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class ConflictError(TrackTideError):
    # Duplicates are reported as 400 by the API, but stay a distinct kind
    status_code = 400
    code = "conflict"
    default_message = "Already exists"


class NetworkError(TrackTideError):
    status_code = 502
    code = "network_error"
    default_message = "Service unreachable"


class CatalogError(NetworkError):
    code = "catalog_error"
    default_message = "Failed to reach the music catalog"

    def __init__(self, message: Optional[str] = None, *, rate_limited: bool = False, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.rate_limited = rate_limited


class PlaybackError(TrackTideError):
    """Audio output failed to load or start. Never leaves the client."""

    code = "playback_error"
    default_message = "Failed to play song. Please try again."

    UNSUPPORTED = "unsupported"
    BLOCKED = "blocked"
    GENERIC = "generic"

    def __init__(self, message: Optional[str] = None, *, kind: str = GENERIC, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.kind = kind


_BY_CODE: Dict[str, Type[TrackTideError]] = {
    cls.code: cls
    for cls in (ValidationError, AuthError, NotFoundError, ConflictError, NetworkError, CatalogError)
}
_BY_STATUS: Dict[int, Type[TrackTideError]] = {
    400: ValidationError,
    401: AuthError,
    404: NotFoundError,
    502: NetworkError,
}


def error_from_response(status_code: int, payload: Optional[dict]) -> TrackTideError:
    """Rebuild a taxonomy error from an API error response."""
    payload = payload if isinstance(payload, dict) else {}
    message = payload.get("error") or payload.get("message")
    cls = _BY_CODE.get(payload.get("code") or "") or _BY_STATUS.get(status_code, TrackTideError)
    return cls(message)


__all__ = [
    "TrackTideError",
    "ValidationError",
    "AuthError",
    "NotFoundError",
    "ConflictError",
    "NetworkError",
    "CatalogError",
    "PlaybackError",
    "error_from_response",
]
