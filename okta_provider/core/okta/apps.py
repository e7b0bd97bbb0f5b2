"""Okta application operations."""
from __future__ import annotations
import logging

from .client import OktaClient

logger = logging.getLogger(__name__)

NO_CACHE = {"Cache-Control": "no-cache"}


class ApplicationService:
    """Service for reading and replacing Okta applications."""

    def __init__(self, client: OktaClient):
        """Initialize application service.

        Args:
            client: Authenticated Okta client
        """
        self.client = client

    def get_app(self, app_id: str) -> dict:
        """Fetch the current representation of an application.

        Args:
            app_id: Application ID

        Returns:
            Application representation

        Raises:
            NotFoundError: If the application does not exist
        """
        resp = self.client.get(f"/api/v1/apps/{app_id}", headers=dict(NO_CACHE))
        return resp.json()

    def update_app(self, app_id: str, app: dict) -> dict:
        """Replace an application with the given full representation.

        Args:
            app_id: Application ID
            app: Full application representation

        Returns:
            Application representation as stored by Okta

        Raises:
            InvalidRequestError: If Okta rejects the payload
        """
        resp = self.client.put(f"/api/v1/apps/{app_id}", json=app)
        logger.debug("Updated application %s", app_id)
        return resp.json()
