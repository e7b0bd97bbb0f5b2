"""Append/remove a member of a parent object's list-valued field.

Everything here is pure: no I/O, inputs are never mutated.
"""
from __future__ import annotations
import copy
import enum
from dataclasses import dataclass, field, replace
from typing import Any, Sequence


class Outcome(enum.Enum):
    CHANGED = "changed"
    ALREADY_PRESENT = "already_present"
    WAS_ABSENT = "was_absent"


@dataclass(frozen=True)
class ParentObject:
    """Snapshot of a remote object owning a collection field.

    Attributes:
        id: Remote object ID
        members: Current collection values, insertion ordered
        body: Full remote representation as fetched
    """
    id: str
    members: tuple[str, ...] = ()
    body: dict = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class Mutation:
    parent: ParentObject
    outcome: Outcome

    @property
    def changed(self) -> bool:
        return self.outcome is Outcome.CHANGED


def append(parent: ParentObject, value: str) -> Mutation:
    """Append `value` unless it is already a member.

    Returns:
        Mutation with outcome CHANGED, or ALREADY_PRESENT and the
        unchanged parent
    """
    if value in parent.members:
        return Mutation(parent, Outcome.ALREADY_PRESENT)
    return Mutation(replace(parent, members=parent.members + (value,)), Outcome.CHANGED)


def remove(parent: ParentObject, value: str) -> Mutation:
    """Remove the first occurrence of `value` if it is a member.

    Returns:
        Mutation with outcome CHANGED, or WAS_ABSENT and the unchanged parent
    """
    if value not in parent.members:
        return Mutation(parent, Outcome.WAS_ABSENT)
    members = list(parent.members)
    members.remove(value)
    return Mutation(replace(parent, members=tuple(members)), Outcome.CHANGED)


def get_path(body: dict, path: Sequence[str]) -> list[str]:
    """Read the list at `path` inside a nested JSON body.

    Missing keys and nulls read as an empty list.
    """
    node: Any = body
    for key in path:
        if not isinstance(node, dict):
            return []
        node = node.get(key)
    if node is None:
        return []
    if not isinstance(node, list):
        raise ValueError(f"field {'.'.join(path)} is not a list")
    return [str(item) for item in node]


def set_path(body: dict, path: Sequence[str], values: Sequence[str]) -> dict:
    """Return a deep copy of `body` with the list at `path` set to `values`.

    Intermediate objects are created when missing.
    """
    if not path:
        raise ValueError("path must not be empty")
    result = copy.deepcopy(body)
    node = result
    for key in path[:-1]:
        child = node.get(key)
        if not isinstance(child, dict):
            child = {}
            node[key] = child
        node = child
    node[path[-1]] = list(values)
    return result
