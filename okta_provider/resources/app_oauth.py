"""OAuth redirect URI members of an OIDC application.

Both resources mutate the same application document, so they share the
"application/<app_id>" lock.
"""
from __future__ import annotations

from okta_provider.core.okta.apps import ApplicationService
from okta_provider.core.okta.client import OktaClient
from okta_provider.core.validators import validate_url
from .base import RemoteCollection, ResourceSchema, ResourceType

APPLICATION = "application"
POST_LOGOUT_REDIRECT_URIS_PATH = ("settings", "oauthClient", "post_logout_redirect_uris")
REDIRECT_URIS_PATH = ("settings", "oauthClient", "redirect_uris")


def _app_collection(path: tuple[str, ...]):
    def build(client: OktaClient) -> RemoteCollection:
        service = ApplicationService(client)
        return RemoteCollection(APPLICATION, path, service.get_app, service.update_app)
    return build


POST_LOGOUT_REDIRECT_URI = ResourceType(
    schema=ResourceSchema(
        type_name="okta_app_oauth_post_logout_redirect_uri",
        parent_key="app_id",
        value_key="uri",
        description="post logout redirect URI",
        validate_value=validate_url,
    ),
    build_remote=_app_collection(POST_LOGOUT_REDIRECT_URIS_PATH),
)

REDIRECT_URI = ResourceType(
    schema=ResourceSchema(
        type_name="okta_app_oauth_redirect_uri",
        parent_key="app_id",
        value_key="uri",
        description="redirect URI",
        validate_value=validate_url,
    ),
    build_remote=_app_collection(REDIRECT_URIS_PATH),
)
