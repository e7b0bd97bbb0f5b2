"""Audience members of a custom authorization server."""
from __future__ import annotations
from functools import partial

from okta_provider.core.okta.auth_servers import AuthServerService
from okta_provider.core.okta.client import OktaClient
from okta_provider.core.validators import validate_non_empty
from .base import RemoteCollection, ResourceSchema, ResourceType

AUTHORIZATION_SERVER = "authorization server"


def _audiences(client: OktaClient) -> RemoteCollection:
    service = AuthServerService(client)
    return RemoteCollection(
        AUTHORIZATION_SERVER,
        ("audiences",),
        service.get_auth_server,
        service.update_auth_server,
    )


AUDIENCE = ResourceType(
    schema=ResourceSchema(
        type_name="okta_auth_server_audience",
        parent_key="auth_server_id",
        value_key="audience",
        description="audience",
        validate_value=partial(validate_non_empty, field="audience"),
    ),
    build_remote=_audiences,
)
