"""
Read-only lookups used to label assignment targets.

Responsibility:
    Declares the three lookup collaborators TargetResolver depends on
    (``UserLookup``, ``LocationLookup``, ``AssetLookup``) and provides the
    SQL implementations over the kernel's own tables.  A host application
    with its own user directory can pass any object satisfying the
    protocol instead.

Contract:
    Every method returns ``None`` when the id does not resolve to an
    active row.  A missing row is a dangling reference, not an error.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from sqlalchemy import select

from inventory_kernel.models.asset import Asset
from inventory_kernel.models.reference import AssetModel, Location, User
from inventory_kernel.selectors.base import BaseSelector


@runtime_checkable
class UserLookup(Protocol):
    """Resolves a user id to the user's display name."""

    def name_of(self, user_id: int) -> str | None:
        ...


@runtime_checkable
class LocationLookup(Protocol):
    """Resolves a location id to the location's name."""

    def name_of(self, location_id: int) -> str | None:
        ...


@runtime_checkable
class AssetLookup(Protocol):
    """Resolves an asset id to a composed description."""

    def describe(self, asset_id: int) -> str | None:
        ...


def compose_asset_description(
    tag: str,
    name: str | None,
    model_name: str | None,
) -> str:
    """``"<TAG> - <name>"``, falling back to the model name, then the bare tag."""
    label = name or model_name
    return f"{tag} - {label}" if label else tag


class SqlUserLookup(BaseSelector[User]):
    """UserLookup over the ``users`` table."""

    def name_of(self, user_id: int) -> str | None:
        return self.session.execute(
            select(User.name).where(User.id == user_id, User.is_active)
        ).scalar_one_or_none()


class SqlLocationLookup(BaseSelector[Location]):
    """LocationLookup over the ``locations`` table."""

    def name_of(self, location_id: int) -> str | None:
        return self.session.execute(
            select(Location.name).where(Location.id == location_id, Location.is_active)
        ).scalar_one_or_none()


class SqlAssetLookup(BaseSelector[Asset]):
    """AssetLookup over ``assets`` joined to its catalogue model."""

    def describe(self, asset_id: int) -> str | None:
        row = self.session.execute(
            select(Asset.tag, Asset.name, AssetModel.name)
            .outerjoin(AssetModel, Asset.model_id == AssetModel.id)
            .where(Asset.id == asset_id, Asset.is_active)
        ).one_or_none()
        if row is None:
            return None
        tag, name, model_name = row
        return compose_asset_description(tag, name, model_name)
