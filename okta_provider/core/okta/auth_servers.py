"""Okta authorization server operations."""
from __future__ import annotations

from .apps import NO_CACHE
from .client import OktaClient


class AuthServerService:
    """Service for reading and replacing custom authorization servers."""

    def __init__(self, client: OktaClient):
        self.client = client

    def get_auth_server(self, auth_server_id: str) -> dict:
        """Fetch an authorization server; raises NotFoundError if it is gone."""
        resp = self.client.get(f"/api/v1/authorizationServers/{auth_server_id}", headers=dict(NO_CACHE))
        return resp.json()

    def update_auth_server(self, auth_server_id: str, auth_server: dict) -> dict:
        """Replace an authorization server with the given full representation."""
        resp = self.client.put(f"/api/v1/authorizationServers/{auth_server_id}", json=auth_server)
        return resp.json()
