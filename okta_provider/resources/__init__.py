"""Resource types managed by this provider, keyed by Terraform type name."""
from .base import (
    CollectionMemberResource,
    MemberConfig,
    RemoteCollection,
    ResourceSchema,
    ResourceState,
    ResourceType,
)
from .app_oauth import POST_LOGOUT_REDIRECT_URI, REDIRECT_URI
from .auth_server import AUDIENCE

RESOURCE_TYPES = {
    resource_type.schema.type_name: resource_type
    for resource_type in (POST_LOGOUT_REDIRECT_URI, REDIRECT_URI, AUDIENCE)
}

__all__ = [
    "CollectionMemberResource",
    "MemberConfig",
    "RemoteCollection",
    "ResourceSchema",
    "ResourceState",
    "ResourceType",
    "RESOURCE_TYPES",
]
