"""Okta-specific exceptions for error handling."""
from __future__ import annotations
from typing import Optional


class OktaError(Exception):
    """Base exception for all Okta provider operations."""
    pass


class OktaAPIError(OktaError):
    """HTTP error from the Okta management API.

    Attributes:
        status_code: HTTP status code (None when no response was received)
        message: Error message from response
        endpoint: API endpoint that failed
        error_code: Okta error code (e.g. E0000001) when present
    """

    def __init__(self, status_code: Optional[int], message: str, endpoint: str, error_code: str = ""):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        self.error_code = error_code
        if status_code is None:
            super().__init__(f"{endpoint}: {message}")
        else:
            super().__init__(f"[{status_code}] {endpoint}: {message}")


class NotFoundError(OktaAPIError):
    """Remote object does not exist (HTTP 404)."""
    pass


class InvalidRequestError(OktaAPIError):
    """Okta rejected the payload (validation error)."""
    pass


class InsufficientPermissionsError(OktaAPIError):
    """API token or OAuth client lacks the required permissions."""
    pass


class TransientError(OktaAPIError):
    """Network or server-side failure. Not retried by this library."""
    pass


class ParentNotFoundError(OktaError):
    """Parent object of a collection member does not exist."""

    def __init__(self, parent_kind: str, parent_id: str):
        self.parent_kind = parent_kind
        self.parent_id = parent_id
        super().__init__(f"{parent_kind} with id {parent_id} does not exist")


class LockTimeoutError(OktaError):
    """Timed out waiting for the named lock of a parent object."""

    def __init__(self, key: str, timeout: float):
        self.key = key
        self.timeout = timeout
        super().__init__(f"timed out after {timeout}s waiting for lock '{key}'")
