"""
Service layer for Asset operations.

Ordinary CRUD for tagged assets.  The assignment columns and the
checkout/checkin counters are not writable here; they belong to
AssignmentWorkflow.

Returns AssetInfo DTOs instead of ORM entities.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from inventory_kernel.domain.assignment_target import AssignmentTarget, target_from_columns
from inventory_kernel.exceptions import (
    AlreadyAssignedError,
    AssetNotFoundError,
    DuplicateAssetTagError,
    InfrastructureError,
    RequiredFieldError,
    ValidationError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.asset import Asset
from inventory_kernel.services.base import BaseService

logger = get_logger("services.asset")

_EDITABLE_FIELDS: frozenset[str] = frozenset({
    "serial",
    "name",
    "model_id",
    "status_id",
    "company_id",
    "location_id",
    "order_number",
    "purchase_date",
    "purchase_cost",
    "supplier_id",
    "warranty_months",
    "notes",
})

# Identity and assignment state are never copied
_COPIED_FIELDS: tuple[str, ...] = tuple(sorted(_EDITABLE_FIELDS - {"serial"}))


def normalize_tag(tag: str | None) -> str:
    """Strip and upper-case an asset tag; a blank tag is a RequiredFieldError."""
    if tag is None or not str(tag).strip():
        raise RequiredFieldError("tag")
    return str(tag).strip().upper()


def _normalize_serial(serial: str | None) -> str | None:
    if serial is None or not str(serial).strip():
        return None
    return str(serial).strip().upper()


@dataclass(frozen=True)
class AssetInfo:
    """Immutable DTO for asset data."""

    id: int
    tag: str
    serial: str | None
    name: str | None
    model_id: int | None
    status_id: int | None
    company_id: int | None
    location_id: int | None
    assigned_type: str | None
    assigned_to: int | None
    assigned_at: datetime | None
    expected_checkin: date | None
    custodian_user_id: int | None
    checkout_counter: int
    checkin_counter: int
    order_number: str | None
    purchase_date: date | None
    purchase_cost: Decimal | None
    supplier_id: int | None
    warranty_months: int | None
    notes: str | None
    is_active: bool

    @property
    def is_assigned(self) -> bool:
        return self.assigned_type is not None

    @property
    def target(self) -> AssignmentTarget:
        return target_from_columns(self.assigned_type, self.assigned_to)


class AssetService(BaseService[Asset]):
    """
    Service for managing assets.

    Enforces tag normalization and uniqueness and refuses to delete an
    asset that is still assigned.  All public methods return AssetInfo
    DTOs and raise typed InventoryKernelError subclasses.
    """

    def _to_dto(self, asset: Asset) -> AssetInfo:
        """Convert ORM Asset to AssetInfo DTO."""
        return AssetInfo(
            id=asset.id,
            tag=asset.tag,
            serial=asset.serial,
            name=asset.name,
            model_id=asset.model_id,
            status_id=asset.status_id,
            company_id=asset.company_id,
            location_id=asset.location_id,
            assigned_type=asset.assigned_type,
            assigned_to=asset.assigned_to,
            assigned_at=asset.assigned_at,
            expected_checkin=asset.expected_checkin,
            custodian_user_id=asset.custodian_user_id,
            checkout_counter=asset.checkout_counter,
            checkin_counter=asset.checkin_counter,
            order_number=asset.order_number,
            purchase_date=asset.purchase_date,
            purchase_cost=asset.purchase_cost,
            supplier_id=asset.supplier_id,
            warranty_months=asset.warranty_months,
            notes=asset.notes,
            is_active=asset.is_active,
        )

    def _get_by_id(self, asset_id: int, *, lock: bool = False) -> Asset:
        """Get an active asset by id, raising if missing or deleted."""
        stmt = select(Asset).where(Asset.id == asset_id, Asset.is_active)
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        asset = self.session.execute(stmt).scalar_one_or_none()
        if asset is None:
            raise AssetNotFoundError(asset_id)
        return asset

    def _ensure_tag_free(self, tag: str, exclude_id: int | None = None) -> None:
        # Deleted assets keep their tag
        stmt = select(Asset.id).where(Asset.tag == tag)
        if exclude_id is not None:
            stmt = stmt.where(Asset.id != exclude_id)
        existing = self.session.execute(stmt.limit(1)).scalar_one_or_none()
        if existing is not None:
            raise DuplicateAssetTagError(tag, existing)

    @staticmethod
    def _check_fields(fields: dict[str, Any]) -> dict[str, Any]:
        unknown = sorted(set(fields) - _EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(
                f"Unknown or read-only asset field(s): {', '.join(unknown)}",
                field=unknown[0],
            )
        cleaned = dict(fields)
        if "serial" in cleaned:
            cleaned["serial"] = _normalize_serial(cleaned["serial"])
        return cleaned

    def _flush(self, action: str) -> None:
        try:
            self.session.flush()
        except SQLAlchemyError as exc:
            logger.error(f"{action}_failed", exc_info=True)
            raise InfrastructureError(action, str(exc)) from exc

    def get_asset(self, asset_id: int) -> AssetInfo:
        """
        Get asset by ID.

        Raises:
            AssetNotFoundError: If the asset doesn't exist or is deleted.
        """
        return self._to_dto(self._get_by_id(asset_id))

    def find_by_tag(self, tag: str) -> AssetInfo | None:
        """Find an active asset by tag (case-insensitive), None if not found."""
        asset = self.session.execute(
            select(Asset).where(Asset.tag == normalize_tag(tag), Asset.is_active)
        ).scalar_one_or_none()
        return self._to_dto(asset) if asset else None

    def create_asset(self, tag: str, actor_id: int, **fields: Any) -> AssetInfo:
        """
        Create a new, unassigned asset.

        Args:
            tag: Asset tag; stripped and upper-cased.
            actor_id: Acting user.
            **fields: Descriptive fields (serial, name, model_id, ...).

        Raises:
            RequiredFieldError: Blank tag or missing actor.
            DuplicateAssetTagError: Tag already used, even by a deleted asset.
            ValidationError: Unknown or assignment field supplied.
        """
        self._ledger.require_actor(actor_id)
        tag = normalize_tag(tag)
        fields = self._check_fields(fields)
        self._ensure_tag_free(tag)

        asset = Asset(tag=tag, checkout_counter=0, checkin_counter=0, **fields)
        self._ledger.stamp_created(asset, actor_id)
        self.session.add(asset)
        self._flush("asset_create")

        logger.info("asset_created", extra={"asset_id": asset.id, "tag": tag})
        return self._to_dto(asset)

    def update_asset(self, asset_id: int, actor_id: int, **changes: Any) -> AssetInfo:
        """
        Edit an asset's descriptive fields (and optionally its tag).

        Raises:
            AssetNotFoundError: Asset missing or deleted.
            DuplicateAssetTagError: New tag already in use.
            ValidationError: Unknown or assignment field supplied, or
                ``location_id`` edited while the asset is assigned to a
                location (the assignment owns it).
        """
        self._ledger.require_actor(actor_id)
        changes = dict(changes)
        new_tag = normalize_tag(changes.pop("tag")) if "tag" in changes else None
        changes = self._check_fields(changes)

        asset = self._get_by_id(asset_id, lock=True)
        if "location_id" in changes and asset.assigned_type == "location":
            raise ValidationError(
                f"Asset {asset.tag} is assigned to location {asset.assigned_to}; "
                "release it to change its location",
                field="location_id",
            )
        if new_tag is not None and new_tag != asset.tag:
            self._ensure_tag_free(new_tag, exclude_id=asset.id)
            asset.tag = new_tag
        for key, value in changes.items():
            setattr(asset, key, value)
        self._ledger.stamp_modified(asset, actor_id)
        self._flush("asset_update")

        logger.info(
            "asset_updated",
            extra={"asset_id": asset.id, "fields": sorted(changes) + (["tag"] if new_tag else [])},
        )
        return self._to_dto(asset)

    def delete_asset(self, asset_id: int, actor_id: int) -> AssetInfo:
        """
        Soft-delete an unassigned asset.

        Seats attached to the asset are left as they are.

        Raises:
            AssetNotFoundError: Asset missing or already deleted.
            AlreadyAssignedError: Asset is still assigned; release it first.
        """
        self._ledger.require_actor(actor_id)
        asset = self._get_by_id(asset_id, lock=True)
        if asset.is_assigned:
            raise AlreadyAssignedError("asset", asset.id, asset.assigned_type, asset.assigned_to)

        self._ledger.soft_delete(asset, actor_id)
        self._flush("asset_delete")

        logger.info("asset_deleted", extra={"asset_id": asset.id, "tag": asset.tag})
        return self._to_dto(asset)

    def copy_asset(self, asset_id: int, new_tag: str, actor_id: int) -> AssetInfo:
        """
        Create a new asset from an existing one.

        The copy gets ``new_tag``, no serial, no assignment and zeroed
        counters.
        """
        source = self._get_by_id(asset_id)
        fields = {key: getattr(source, key) for key in _COPIED_FIELDS}
        copy = self.create_asset(new_tag, actor_id, **fields)
        logger.info("asset_copied", extra={"source_asset_id": source.id, "asset_id": copy.id})
        return copy
