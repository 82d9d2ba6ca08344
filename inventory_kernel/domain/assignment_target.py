"""
AssignmentTarget -- "assigned to whom", as a closed tagged union.

Responsibility:
    Represents the target of an assignment as one of four value types:
    ``UserTarget``, ``LocationTarget``, ``AssetTarget`` or ``Unassigned``.
    Converts to and from the persisted ``(assigned_type, assigned_to)``
    column pair.

Architecture position:
    Kernel > Domain -- pure value types, zero I/O.

Invariants enforced:
    ASSIGNMENT_SHAPE -- a target carries an id iff it is not Unassigned.
    Building a target from a discriminant without an id (or an id without
    a discriminant) raises InvalidTargetError.

Usage:
    match target:
        case UserTarget(user_id=uid): ...
        case LocationTarget(location_id=lid): ...
        case AssetTarget(asset_id=aid): ...
        case Unassigned(): ...
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union

from inventory_kernel.exceptions import InvalidTargetError


class TargetKind(str, Enum):
    """Persisted discriminant of a non-empty assignment."""

    USER = "user"
    LOCATION = "location"
    ASSET = "asset"


def _check_id(kind: TargetKind, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidTargetError(kind.value, None, "target id is required")
    if value <= 0:
        raise InvalidTargetError(kind.value, value, "target id must be positive")


@dataclass(frozen=True)
class UserTarget:
    """Assigned to a user."""

    user_id: int

    kind: ClassVar[TargetKind] = TargetKind.USER

    def __post_init__(self) -> None:
        _check_id(self.kind, self.user_id)

    @property
    def target_id(self) -> int:
        return self.user_id


@dataclass(frozen=True)
class LocationTarget:
    """Assigned to a physical location."""

    location_id: int

    kind: ClassVar[TargetKind] = TargetKind.LOCATION

    def __post_init__(self) -> None:
        _check_id(self.kind, self.location_id)

    @property
    def target_id(self) -> int:
        return self.location_id


@dataclass(frozen=True)
class AssetTarget:
    """Assigned to another (custodian) asset."""

    asset_id: int

    kind: ClassVar[TargetKind] = TargetKind.ASSET

    def __post_init__(self) -> None:
        _check_id(self.kind, self.asset_id)

    @property
    def target_id(self) -> int:
        return self.asset_id


@dataclass(frozen=True)
class Unassigned:
    """Not assigned to anything."""

    kind: ClassVar[None] = None

    @property
    def target_id(self) -> None:
        return None


AssignmentTarget = Union[UserTarget, LocationTarget, AssetTarget, Unassigned]

UNASSIGNED = Unassigned()


def make_target(kind: TargetKind | str | None, target_id: int | None) -> AssignmentTarget:
    """
    Build a target from a kind and an id.

    ``(None, None)`` is Unassigned.  A kind without an id, an id without a
    kind, or an unknown kind raises InvalidTargetError.
    """
    if kind is None:
        if target_id is not None:
            raise InvalidTargetError(None, target_id, "target id given without a kind")
        return UNASSIGNED

    try:
        kind = TargetKind(kind)
    except ValueError:
        raise InvalidTargetError(str(kind), target_id, "unknown target kind") from None

    match kind:
        case TargetKind.USER:
            return UserTarget(target_id)
        case TargetKind.LOCATION:
            return LocationTarget(target_id)
        case TargetKind.ASSET:
            return AssetTarget(target_id)


def target_from_columns(
    assigned_type: str | None,
    assigned_to: int | None,
) -> AssignmentTarget:
    """Rebuild a target from the persisted discriminant and id columns."""
    return make_target(assigned_type, assigned_to)


def target_to_columns(target: AssignmentTarget) -> tuple[str | None, int | None]:
    """Return the ``(assigned_type, assigned_to)`` pair for a target."""
    if isinstance(target, Unassigned):
        return None, None
    return target.kind.value, target.target_id
