"""
Service layer for Accessory operations.

Ordinary CRUD for quantity-tracked accessories.  Checking units out and
back in belongs to AssignmentWorkflow; this service only guards the
quantity against the units already out.

Returns AccessoryInfo DTOs instead of ORM entities.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock
from inventory_kernel.exceptions import (
    AccessoryCheckedOutError,
    AccessoryNotFoundError,
    AccessoryQuantityError,
    InfrastructureError,
    RequiredFieldError,
    ValidationError,
)
from inventory_kernel.invariants import KernelInvariant
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.accessory import Accessory
from inventory_kernel.selectors.accessory_selector import AccessorySelector, CheckoutView
from inventory_kernel.services.base import BaseService

logger = get_logger("services.accessory")

_EDITABLE_FIELDS: frozenset[str] = frozenset({
    "name",
    "qty",
    "min_amt",
    "category_id",
    "company_id",
    "manufacturer_id",
    "supplier_id",
    "location_id",
    "model_number",
    "order_number",
    "purchase_date",
    "purchase_cost",
    "notes",
})


@dataclass(frozen=True)
class AccessoryInfo:
    """Immutable DTO for accessory data, with its live availability."""

    id: int
    name: str
    qty: int
    min_amt: int | None
    checked_out: int
    category_id: int | None
    company_id: int | None
    location_id: int | None
    model_number: str | None
    order_number: str | None
    purchase_date: date | None
    purchase_cost: Decimal | None
    notes: str | None
    is_active: bool

    @property
    def available(self) -> int:
        return self.qty - self.checked_out

    @property
    def below_minimum(self) -> bool:
        return self.min_amt is not None and self.available < self.min_amt


def _check_count(field: str, value: Any, *, optional: bool = False) -> int | None:
    if value is None and optional:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(
            f"{field} must be a non-negative integer, got {value!r}", field=field,
        )
    return value


class AccessoryService(BaseService[Accessory]):
    """
    Service for managing accessories.

    Refuses to lower ``qty`` below the units checked out and to delete an
    accessory with units still out.  All public methods return
    AccessoryInfo DTOs and raise typed InventoryKernelError subclasses.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session, clock)
        self._checkouts = AccessorySelector(session)

    def _to_dto(self, accessory: Accessory) -> AccessoryInfo:
        return AccessoryInfo(
            id=accessory.id,
            name=accessory.name,
            qty=accessory.qty,
            min_amt=accessory.min_amt,
            checked_out=self._checkouts.checked_out(accessory.id),
            category_id=accessory.category_id,
            company_id=accessory.company_id,
            location_id=accessory.location_id,
            model_number=accessory.model_number,
            order_number=accessory.order_number,
            purchase_date=accessory.purchase_date,
            purchase_cost=accessory.purchase_cost,
            notes=accessory.notes,
            is_active=accessory.is_active,
        )

    def _get_by_id(self, accessory_id: int, *, lock: bool = False) -> Accessory:
        stmt = select(Accessory).where(Accessory.id == accessory_id, Accessory.is_active)
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        accessory = self.session.execute(stmt).scalar_one_or_none()
        if accessory is None:
            raise AccessoryNotFoundError(accessory_id)
        return accessory

    @staticmethod
    def _check_fields(fields: dict[str, Any]) -> dict[str, Any]:
        unknown = sorted(set(fields) - _EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(
                f"Unknown or read-only accessory field(s): {', '.join(unknown)}",
                field=unknown[0],
            )
        cleaned = dict(fields)
        if "name" in cleaned:
            name = cleaned["name"]
            if not isinstance(name, str) or not name.strip():
                raise RequiredFieldError("name")
            cleaned["name"] = name.strip()
        if "qty" in cleaned:
            cleaned["qty"] = _check_count("qty", cleaned["qty"])
        if "min_amt" in cleaned:
            cleaned["min_amt"] = _check_count("min_amt", cleaned["min_amt"], optional=True)
        return cleaned

    def _flush(self, action: str) -> None:
        try:
            self.session.flush()
        except SQLAlchemyError as exc:
            logger.error(f"{action}_failed", exc_info=True)
            raise InfrastructureError(action, str(exc)) from exc

    def get_accessory(self, accessory_id: int) -> AccessoryInfo:
        """
        Get an accessory with its checked-out count.

        Raises:
            AccessoryNotFoundError: If the accessory doesn't exist or is deleted.
        """
        return self._to_dto(self._get_by_id(accessory_id))

    def list_checkouts(self, accessory_id: int) -> list[CheckoutView]:
        """Units of an accessory currently checked out, oldest first."""
        accessory = self._get_by_id(accessory_id)
        return self._checkouts.list_checkouts(accessory.id)

    def create_accessory(self, name: str, actor_id: int, *, qty: int, **fields: Any) -> AccessoryInfo:
        """
        Create an accessory with ``qty`` units in stock.

        Raises:
            RequiredFieldError: Blank name or missing actor.
            ValidationError: Negative quantity, or unknown field supplied.
        """
        self._ledger.require_actor(actor_id)
        fields = self._check_fields({**fields, "name": name, "qty": qty})

        accessory = Accessory(**fields)
        self._ledger.stamp_created(accessory, actor_id)
        self.session.add(accessory)
        self._flush("accessory_create")

        logger.info(
            "accessory_created",
            extra={"accessory_id": accessory.id, "qty": accessory.qty},
        )
        return self._to_dto(accessory)

    def update_accessory(self, accessory_id: int, actor_id: int, **changes: Any) -> AccessoryInfo:
        """
        Edit an accessory's fields, including its quantity.

        Raises:
            AccessoryNotFoundError: Accessory missing or deleted.
            AccessoryQuantityError: ``qty`` below the units checked out.
            ValidationError: Unknown field or invalid count supplied.
        """
        self._ledger.require_actor(actor_id)
        changes = self._check_fields(changes)

        accessory = self._get_by_id(accessory_id, lock=True)
        if "qty" in changes:
            checked_out = self._checkouts.checked_out(accessory.id)
            # INVARIANT: ACCESSORY_CAPACITY
            if changes["qty"] < checked_out:
                logger.warning(
                    "accessory_update_rejected",
                    extra={
                        "accessory_id": accessory.id,
                        "qty": changes["qty"],
                        "checked_out": checked_out,
                        "invariant": KernelInvariant.ACCESSORY_CAPACITY.value,
                    },
                )
                raise AccessoryQuantityError(accessory.id, changes["qty"], checked_out)

        for key, value in changes.items():
            setattr(accessory, key, value)
        self._ledger.stamp_modified(accessory, actor_id)
        self._flush("accessory_update")

        logger.info(
            "accessory_updated",
            extra={"accessory_id": accessory.id, "fields": sorted(changes)},
        )
        return self._to_dto(accessory)

    def delete_accessory(self, accessory_id: int, actor_id: int) -> AccessoryInfo:
        """
        Soft-delete an accessory with no unit checked out.

        Raises:
            AccessoryNotFoundError: Accessory missing or already deleted.
            AccessoryCheckedOutError: Units are still checked out.
        """
        self._ledger.require_actor(actor_id)
        accessory = self._get_by_id(accessory_id, lock=True)
        checked_out = self._checkouts.checked_out(accessory.id)
        if checked_out:
            raise AccessoryCheckedOutError(accessory.id, checked_out)

        self._ledger.soft_delete(accessory, actor_id)
        self._flush("accessory_delete")

        logger.info("accessory_deleted", extra={"accessory_id": accessory.id})
        return self._to_dto(accessory)
