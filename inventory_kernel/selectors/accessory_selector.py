"""
AccessorySelector -- read-only queries over accessory checkouts.

Responsibility:
    Counts the units of an accessory that are checked out and lists its
    active checkouts with the borrower's name.  Used by AccessoryService
    and AssignmentWorkflow for their capacity checks and by callers for
    display.

Invariants enforced:
    - Returned (soft-deleted) checkouts are never counted or listed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select

from inventory_kernel.models.accessory import AccessoryCheckout
from inventory_kernel.models.reference import User
from inventory_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class CheckoutView:
    """One checked-out unit as displayed on an accessory."""

    checkout_id: int
    accessory_id: int
    user_id: int
    user_name: str | None
    checked_out_at: datetime
    checked_out_by_id: int
    note: str | None = None


class AccessorySelector(BaseSelector[AccessoryCheckout]):
    """Read-only accessory checkout queries."""

    def checked_out(self, accessory_id: int) -> int:
        return self.session.execute(
            select(func.count(AccessoryCheckout.id)).where(
                AccessoryCheckout.accessory_id == accessory_id,
                AccessoryCheckout.is_active,
            )
        ).scalar_one()

    def list_checkouts(self, accessory_id: int) -> list[CheckoutView]:
        """Active checkouts of an accessory, oldest first."""
        rows = self.session.execute(
            select(AccessoryCheckout, User.name)
            .outerjoin(User, AccessoryCheckout.assigned_to == User.id)
            .where(AccessoryCheckout.accessory_id == accessory_id, AccessoryCheckout.is_active)
            .order_by(AccessoryCheckout.id)
        ).all()
        return [
            CheckoutView(
                checkout_id=checkout.id,
                accessory_id=checkout.accessory_id,
                user_id=checkout.assigned_to,
                user_name=user_name,
                checked_out_at=checkout.created_at,
                checked_out_by_id=checkout.created_by_id,
                note=checkout.note,
            )
            for checkout, user_name in rows
        ]
