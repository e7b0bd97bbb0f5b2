"""Low-level HTTP client for the Okta management API.

Handles authentication, token management, and HTTP operations.
"""
from __future__ import annotations
import logging
import threading
import time
import uuid
from typing import Optional, Dict, Any, List
from datetime import datetime, timedelta

import jwt
import requests

from okta_provider import __version__
from .exceptions import (
    OktaAPIError,
    NotFoundError,
    InvalidRequestError,
    InsufficientPermissionsError,
    TransientError,
)

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30
USER_AGENT = f"okta-provider-py/{__version__}"
CLIENT_ASSERTION_TYPE = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"


class OktaClient:
    """HTTP client for the Okta management API with automatic token management.

    Features:
    - SSWS API token, pre-issued access token or OAuth private-key JWT auth
    - Automatic token refresh when expired (OAuth only)
    - Centralized error handling mapped to typed exceptions

    Usage:
        client = OktaClient("https://dev-123.okta.com")
        client.authenticate_api_token("00abc...")
        response = client.get("/api/v1/apps/0oa1")
    """

    def __init__(self, org_url: str, request_timeout: float = REQUEST_TIMEOUT):
        """Initialize Okta client.

        Args:
            org_url: Okta org URL, e.g. https://dev-123.okta.com
            request_timeout: Per-request timeout in seconds
        """
        self.org_url = org_url.rstrip("/")
        self.request_timeout = request_timeout
        self._auth_header: Optional[str] = None
        self._token_expires_at: Optional[datetime] = None
        self._auth_method: Optional[str] = None
        self._auth_params: Dict[str, Any] = {}
        self._refresh_lock = threading.Lock()

    def authenticate_api_token(self, api_token: str) -> None:
        """Use a static SSWS API token. Never expires client-side."""
        self._auth_method = "api_token"
        self._auth_header = f"SSWS {api_token}"
        self._token_expires_at = None

    def authenticate_access_token(self, access_token: str) -> None:
        """Use a pre-issued OAuth 2.0 access token."""
        self._auth_method = "access_token"
        self._auth_header = f"Bearer {access_token}"
        self._token_expires_at = None

    def authenticate_private_key(
        self,
        client_id: str,
        private_key: str,
        scopes: List[str],
        key_id: Optional[str] = None,
    ) -> str:
        """Authenticate as an OAuth service app and store credentials for auto-refresh.

        Args:
            client_id: Client ID of the Okta service app
            private_key: PEM encoded RSA private key registered on the app
            scopes: Okta API scopes to request (e.g. okta.apps.manage)
            key_id: Optional key id placed in the assertion header

        Returns:
            Access token
        """
        self._auth_method = "private_key"
        self._auth_params = {
            "client_id": client_id,
            "private_key": private_key,
            "scopes": list(scopes),
            "key_id": key_id,
        }
        token, expires_in = self._get_private_key_token(client_id, private_key, scopes, key_id)
        self._auth_header = f"Bearer {token}"
        self._token_expires_at = datetime.now() + timedelta(seconds=expires_in)
        return token

    def _ensure_authenticated(self) -> None:
        """Ensure we have a valid token, refreshing if necessary."""
        if not self._auth_header:
            raise OktaAPIError(401, "Not authenticated - call one of the authenticate_* methods first", "")

        if self._auth_method != "private_key" or not self._token_expires_at:
            return

        if not self._token_expiring():
            return

        # One thread refreshes; the others wait and reuse its token
        with self._refresh_lock:
            if not self._token_expiring():
                return
            token, expires_in = self._get_private_key_token(
                self._auth_params["client_id"],
                self._auth_params["private_key"],
                self._auth_params["scopes"],
                self._auth_params["key_id"],
            )
            self._auth_header = f"Bearer {token}"
            self._token_expires_at = datetime.now() + timedelta(seconds=expires_in)

    def _token_expiring(self) -> bool:
        # Refresh if token expired or expiring soon (within 10 seconds)
        return datetime.now() >= self._token_expires_at - timedelta(seconds=10)

    def get(self, path: str, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute GET request with automatic authentication.

        Args:
            path: API endpoint path (e.g., "/api/v1/apps/0oa1")
            params: Query parameters
            **kwargs: Additional arguments for requests.request

        Returns:
            Response object

        Raises:
            OktaAPIError: On HTTP error
        """
        return self._send("GET", path, params=params, **kwargs)

    def put(self, path: str, json: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute PUT request with automatic authentication.

        Okta replaces the whole object on PUT; callers must send the full
        representation they fetched.
        """
        return self._send("PUT", path, json=json, **kwargs)

    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        self._ensure_authenticated()
        url = f"{self.org_url}{path}"
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }
        headers.update(kwargs.pop("headers", {}) or {})
        headers["Authorization"] = self._auth_header

        logger.debug("%s %s", method, url)
        try:
            resp = requests.request(method, url, headers=headers, timeout=self.request_timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise TransientError(None, str(e), url) from e
        self._handle_error(resp)
        return resp

    def _get_private_key_token(
        self,
        client_id: str,
        private_key: str,
        scopes: List[str],
        key_id: Optional[str] = None,
    ) -> tuple[str, int]:
        """Fetch an access token using client credentials with a signed JWT assertion."""
        url = f"{self.org_url}/oauth2/v1/token"
        now = int(time.time())
        claims = {
            "iss": client_id,
            "sub": client_id,
            "aud": url,
            "iat": now,
            "exp": now + 3600,
            "jti": uuid.uuid4().hex,
        }
        headers = {"kid": key_id} if key_id else None
        assertion = jwt.encode(claims, private_key, algorithm="RS256", headers=headers)
        data = {
            "grant_type": "client_credentials",
            "scope": " ".join(scopes),
            "client_assertion_type": CLIENT_ASSERTION_TYPE,
            "client_assertion": assertion,
        }
        try:
            resp = requests.post(
                url,
                data=data,
                headers={"Accept": "application/json", "User-Agent": USER_AGENT},
                timeout=self.request_timeout,
            )
        except requests.exceptions.RequestException as e:
            raise TransientError(None, str(e), url) from e
        if resp.status_code != 200:
            raise InsufficientPermissionsError(resp.status_code, resp.text, url)
        payload = resp.json()
        return payload["access_token"], int(payload.get("expires_in", 3600))

    def _handle_error(self, resp: requests.Response) -> None:
        """Centralized error handling for HTTP responses.

        Args:
            resp: Response object to check

        Raises:
            OktaAPIError: If response status indicates error
        """
        if resp.status_code < 400:
            return

        message, error_code = _error_summary(resp)
        status = resp.status_code
        if status == 404:
            raise NotFoundError(status, message, resp.url, error_code)
        if status in (400, 422):
            raise InvalidRequestError(status, message, resp.url, error_code)
        if status in (401, 403):
            raise InsufficientPermissionsError(status, message, resp.url, error_code)
        if status == 429 or status >= 500:
            raise TransientError(status, message, resp.url, error_code)
        raise OktaAPIError(status, message, resp.url, error_code)


def _error_summary(resp: requests.Response) -> tuple[str, str]:
    """Build a readable message from an Okta error body.

    Okta errors look like {"errorCode": "E0000001", "errorSummary": "...",
    "errorCauses": [{"errorSummary": "..."}]}.
    """
    try:
        body = resp.json()
    except ValueError:
        return resp.text, ""
    if not isinstance(body, dict):
        return resp.text, ""

    summary = body.get("errorSummary") or resp.text
    causes = [
        cause.get("errorSummary", "")
        for cause in body.get("errorCauses") or []
        if isinstance(cause, dict) and cause.get("errorSummary")
    ]
    if causes:
        summary = f"{summary}: {', '.join(causes)}"
    return summary, body.get("errorCode", "")
