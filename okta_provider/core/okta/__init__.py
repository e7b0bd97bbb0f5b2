"""Okta management API client library.

Architecture:
- client.py: HTTP client with authentication and auto-refresh
- apps.py: Application fetch and replace
- auth_servers.py: Authorization server fetch and replace
- exceptions.py: Typed exceptions for error handling

Usage:
    from okta_provider.core.okta import OktaClient, ApplicationService

    client = OktaClient("https://dev-123.okta.com")
    client.authenticate_api_token("00abc...")

    apps = ApplicationService(client)
    app = apps.get_app("0oa1")
"""
from .client import (
    OktaClient,
    REQUEST_TIMEOUT,
)
from .exceptions import (
    OktaError,
    OktaAPIError,
    NotFoundError,
    InvalidRequestError,
    InsufficientPermissionsError,
    TransientError,
    ParentNotFoundError,
    LockTimeoutError,
)
from .apps import ApplicationService
from .auth_servers import AuthServerService

__all__ = [
    # Client
    "OktaClient",
    "REQUEST_TIMEOUT",

    # Exceptions
    "OktaError",
    "OktaAPIError",
    "NotFoundError",
    "InvalidRequestError",
    "InsufficientPermissionsError",
    "TransientError",
    "ParentNotFoundError",
    "LockTimeoutError",

    # Services
    "ApplicationService",
    "AuthServerService",
]
