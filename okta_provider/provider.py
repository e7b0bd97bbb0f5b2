"""Provider context shared by every resource adapter.

One ProviderContext lives for the whole process. It owns the Okta client
and the MutexKV, so every adapter it hands out serializes on the same
per-parent locks.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field

from okta_provider import audit
from okta_provider.config.settings import ProviderConfig
from okta_provider.core.mutex import MutexKV
from okta_provider.core.okta.client import OktaClient
from okta_provider.resources import RESOURCE_TYPES, CollectionMemberResource

logger = logging.getLogger(__name__)


def create_client(settings: ProviderConfig) -> OktaClient:
    """Build an authenticated OktaClient for the configured auth method."""
    client = OktaClient(settings.org_url, request_timeout=settings.request_timeout)
    method = settings.auth_method
    if method == "api_token":
        client.authenticate_api_token(settings.api_token)
    elif method == "access_token":
        client.authenticate_access_token(settings.access_token)
    else:
        client.authenticate_private_key(
            settings.client_id,
            settings.private_key_resolved,
            settings.scopes,
            key_id=settings.private_key_id or None,
        )
    return client


@dataclass
class ProviderContext:
    settings: ProviderConfig
    client: OktaClient
    mutex: MutexKV = field(default_factory=MutexKV)

    def resource(self, type_name: str) -> CollectionMemberResource:
        """Return an adapter for a registered resource type.

        Raises:
            KeyError: If the type is not registered
        """
        try:
            resource_type = RESOURCE_TYPES[type_name]
        except KeyError:
            raise KeyError(f"unknown resource type {type_name!r}") from None
        return CollectionMemberResource(
            resource_type.schema,
            resource_type.build_remote(self.client),
            self.mutex,
            lock_timeout=self.settings.lock_timeout,
            audit_hook=audit.safe_log_resource_event if self.settings.audit_enabled else None,
        )


def build_provider(settings: ProviderConfig) -> ProviderContext:
    logger.debug("Configuring provider for %s", settings.org_url)
    return ProviderContext(settings=settings, client=create_client(settings))
