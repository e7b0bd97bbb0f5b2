"""Generic CRUD adapter for one member of a remote list-valued field.

A member has no identity of its own on the Okta side: its ID is the
value itself, and it "exists" while the value is in the parent's list.
Every create/update/delete is a guarded fetch-mutate-write of the whole
parent object.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from okta_provider.core import collection
from okta_provider.core.collection import Mutation, Outcome, ParentObject
from okta_provider.core.mutex import MutexKV
from okta_provider.core.okta.exceptions import NotFoundError, OktaError, ParentNotFoundError
from okta_provider.core.validators import parse_import_id, validate_identifier

logger = logging.getLogger(__name__)

AuditHook = Callable[..., Any]


@dataclass(frozen=True)
class MemberConfig:
    """Validated configuration of a collection member."""
    parent_id: str
    value: str


@dataclass(frozen=True)
class ResourceState:
    """Provider-side state of a collection member. `id` equals `value`."""
    id: str
    parent_id: str
    value: str

    @classmethod
    def from_config(cls, config: MemberConfig) -> "ResourceState":
        return cls(id=config.value, parent_id=config.parent_id, value=config.value)


@dataclass(frozen=True)
class ResourceSchema:
    """Describes how a resource type maps raw attributes to a MemberConfig.

    Attributes:
        type_name: Terraform resource type, e.g. okta_app_oauth_redirect_uri
        parent_key: Attribute holding the parent ID (e.g. "app_id")
        value_key: Attribute holding the member value (e.g. "uri")
        description: Human readable description of the member
        validate_value: Returns the normalized value or raises ValueError
    """
    type_name: str
    parent_key: str
    value_key: str
    description: str
    validate_value: Callable[[str], str]

    @property
    def import_hint(self) -> str:
        return f"<{self.parent_key}>/<{self.value_key}>"

    def parse_config(self, raw: Mapping[str, Any]) -> MemberConfig:
        """Validate raw attributes once, at the boundary.

        Raises:
            ValueError: If a required attribute is missing or invalid
        """
        values = {}
        for key in (self.parent_key, self.value_key):
            if key not in raw or raw[key] is None:
                raise ValueError(f"{self.type_name}: missing required attribute '{key}'")
            if not isinstance(raw[key], str):
                raise ValueError(f"{self.type_name}: attribute '{key}' must be a string")
            values[key] = raw[key]

        unknown = set(raw) - {self.parent_key, self.value_key, "id"}
        if unknown:
            raise ValueError(f"{self.type_name}: unsupported attributes {', '.join(sorted(unknown))}")

        parent_id = validate_identifier(values[self.parent_key], self.parent_key)
        try:
            value = self.validate_value(values[self.value_key])
        except ValueError as e:
            raise ValueError(f"{self.type_name}: invalid {self.value_key}: {e}") from e
        return MemberConfig(parent_id=parent_id, value=value)

    def import_state(self, import_id: str) -> ResourceState:
        """Build state from "<parent_id>/<value>" without any remote call."""
        parent_id, value = parse_import_id(import_id, self.import_hint)
        return ResourceState.from_config(
            self.parse_config({self.parent_key: parent_id, self.value_key: value})
        )

    def attributes(self, state: ResourceState) -> Dict[str, str]:
        return {
            "id": state.id,
            self.parent_key: state.parent_id,
            self.value_key: state.value,
        }


class RemoteCollection:
    """Fetcher and writer for one list field of one kind of parent object.

    Args:
        kind: Parent kind, used in lock keys and messages (e.g. "application")
        path: JSON path of the list inside the parent representation
        get: Callable returning the parent representation; raises NotFoundError
        put: Callable replacing the parent with a full representation
    """

    def __init__(
        self,
        kind: str,
        path: Sequence[str],
        get: Callable[[str], dict],
        put: Callable[[str, dict], Any],
    ):
        self.kind = kind
        self.path = tuple(path)
        self._get = get
        self._put = put

    def lock_key(self, parent_id: str) -> str:
        return f"{self.kind}/{parent_id}"

    def fetch(self, parent_id: str) -> ParentObject:
        body = self._get(parent_id)
        return ParentObject(
            id=parent_id,
            members=tuple(collection.get_path(body, self.path)),
            body=body,
        )

    def write(self, parent: ParentObject) -> None:
        self._put(parent.id, collection.set_path(parent.body, self.path, parent.members))


class CollectionMemberResource:
    """Create/read/update/delete/import for one collection member type.

    Usage:
        resource = CollectionMemberResource(schema, remote, mutex)
        state = resource.create(schema.parse_config({"app_id": "0oa1", "uri": "https://a/logout"}))
        resource.delete(state)
    """

    def __init__(
        self,
        schema: ResourceSchema,
        remote: RemoteCollection,
        mutex: MutexKV,
        lock_timeout: Optional[float] = None,
        audit_hook: Optional[AuditHook] = None,
    ):
        self.schema = schema
        self.remote = remote
        self.mutex = mutex
        self.lock_timeout = lock_timeout
        self.audit_hook = audit_hook

    def create(self, config: MemberConfig) -> ResourceState:
        """Append the value to the parent's list unless already present.

        Raises:
            ParentNotFoundError: If the parent object does not exist
            OktaAPIError: On fetch or write failure
        """
        self._ensure_member("create", config)
        return ResourceState.from_config(config)

    def read(self, state: ResourceState) -> ResourceState:
        # A single member is not independently queryable; trust the last write.
        return state

    def update(self, state: ResourceState, config: MemberConfig) -> ResourceState:
        """Re-append the (possibly new) value.

        The previous value is left in the parent's list; replacing it is the
        orchestrator's job (destroy then create).
        """
        if config.parent_id != state.parent_id:
            raise ValueError(
                f"{self.schema.type_name}: {self.schema.parent_key} cannot change "
                f"({state.parent_id} -> {config.parent_id}); the resource must be replaced"
            )
        self._ensure_member("update", config)
        return ResourceState.from_config(config)

    def delete(self, state: ResourceState) -> None:
        """Remove the value from the parent's list if present.

        A parent that no longer exists counts as success.
        """
        try:
            mutation = self._guarded(state.parent_id, state.id, collection.remove)
        except OktaError as e:
            logger.error("failed to delete %s %s from %s %s: %s",
                         self.schema.description, state.id, self.remote.kind, state.parent_id, e)
            self._audit("delete", state.parent_id, state.id, success=False, details={"error": str(e)})
            raise

        if mutation is None:
            logger.info("%s with id %s no longer exists, nothing to delete",
                        self.remote.kind, state.parent_id)
        elif mutation.outcome is Outcome.WAS_ABSENT:
            logger.info("%s with id %s does not have %s %s",
                        self.remote.kind, state.parent_id, self.schema.description, state.id)
        self._audit("delete", state.parent_id, state.id, details={"outcome": _outcome_name(mutation)})

    def import_state(self, import_id: str) -> ResourceState:
        return self.schema.import_state(import_id)

    def _ensure_member(self, operation: str, config: MemberConfig) -> None:
        try:
            mutation = self._guarded(config.parent_id, config.value, collection.append)
            if mutation is None:
                raise ParentNotFoundError(self.remote.kind, config.parent_id)
        except OktaError as e:
            logger.error("failed to %s %s %s on %s %s: %s", operation,
                         self.schema.description, config.value, self.remote.kind, config.parent_id, e)
            self._audit(operation, config.parent_id, config.value, success=False, details={"error": str(e)})
            raise

        if mutation.outcome is Outcome.ALREADY_PRESENT:
            logger.info("%s with id %s already has %s %s",
                        self.remote.kind, config.parent_id, self.schema.description, config.value)
        self._audit(operation, config.parent_id, config.value, details={"outcome": _outcome_name(mutation)})

    def _guarded(
        self,
        parent_id: str,
        value: str,
        mutate: Callable[[ParentObject, str], Mutation],
    ) -> Optional[Mutation]:
        """Fetch, mutate and write under the parent's lock.

        Returns:
            The mutation, or None if the parent does not exist
        """
        with self.mutex.hold(self.remote.lock_key(parent_id), self.lock_timeout):
            try:
                parent = self.remote.fetch(parent_id)
            except NotFoundError:
                return None
            mutation = mutate(parent, value)
            if mutation.changed:
                # The parent can vanish between fetch and write
                try:
                    self.remote.write(mutation.parent)
                except NotFoundError:
                    return None
                logger.info("%s with id %s: %s %s %s", self.remote.kind, parent_id,
                            mutate.__name__, self.schema.description, value)
            return mutation

    def _audit(self, operation: str, parent_id: str, value: str, success: bool = True,
               details: Optional[dict] = None) -> None:
        if self.audit_hook is None:
            return
        self.audit_hook(
            operation,
            self.schema.type_name,
            value,
            parent_id=parent_id,
            details=details,
            success=success,
        )


def _outcome_name(mutation: Optional[Mutation]) -> str:
    if mutation is None:
        return "parent_absent"
    return mutation.outcome.value


@dataclass(frozen=True)
class ResourceType:
    """Registry entry: a schema plus how to reach its parent's collection."""
    schema: ResourceSchema
    build_remote: Callable[[Any], RemoteCollection]
