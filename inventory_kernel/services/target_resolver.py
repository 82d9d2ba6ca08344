"""
TargetResolver -- display label for an assignment target.

Responsibility:
    Turns an ``AssignmentTarget`` into a human-readable label by asking
    the matching lookup collaborator: the user's name, the location's
    name, or a composed asset description.

Architecture position:
    Kernel > Services, but read-only: no writes, no side effects.  The
    lookups are injected so a host application can plug in its own user
    directory.

Failure modes:
    None raised.  An id that no longer resolves is a dangling reference
    and yields ``None``; callers render it blank.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from inventory_kernel.domain.assignment_target import (
    AssetTarget,
    AssignmentTarget,
    LocationTarget,
    Unassigned,
    UserTarget,
    target_from_columns,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.asset import Asset
from inventory_kernel.selectors.lookups import (
    AssetLookup,
    LocationLookup,
    SqlAssetLookup,
    SqlLocationLookup,
    SqlUserLookup,
    UserLookup,
)

logger = get_logger("services.target_resolver")


class TargetResolver:
    """Resolves assignment targets to labels."""

    def __init__(
        self,
        users: UserLookup,
        locations: LocationLookup,
        assets: AssetLookup,
    ):
        self._users = users
        self._locations = locations
        self._assets = assets

    @classmethod
    def for_session(cls, session: Session) -> TargetResolver:
        """Resolver backed by the kernel's own tables."""
        return cls(
            users=SqlUserLookup(session),
            locations=SqlLocationLookup(session),
            assets=SqlAssetLookup(session),
        )

    def describe(self, target: AssignmentTarget) -> str | None:
        """Label of the target, or None for Unassigned / dangling ids."""
        match target:
            case Unassigned():
                return None
            case UserTarget(user_id=user_id):
                label = self._users.name_of(user_id)
            case LocationTarget(location_id=location_id):
                label = self._locations.name_of(location_id)
            case AssetTarget(asset_id=asset_id):
                label = self._assets.describe(asset_id)

        if label is None:
            logger.debug(
                "dangling_target_reference",
                extra={"target_kind": target.kind.value, "target_id": target.target_id},
            )
        return label

    def exists(self, target: AssignmentTarget) -> bool:
        """True when a non-empty target resolves to an active row."""
        return not isinstance(target, Unassigned) and self.describe(target) is not None

    def describe_assignment(self, asset: Asset) -> str | None:
        """Label of whatever ``asset`` is currently assigned to."""
        return self.describe(target_from_columns(asset.assigned_type, asset.assigned_to))
