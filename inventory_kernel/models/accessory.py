"""
Module: inventory_kernel.models.accessory
Responsibility: ORM persistence for accessories (quantity-tracked items
    such as keyboards or chargers) and their per-unit checkouts to users.
Architecture position: Kernel > Models.  May import from db/base.py and
    sibling models only.

Invariants enforced:
    ACCESSORY_CAPACITY -- ``qty`` is non-negative (ck_accessories_qty);
        AccessoryService and AssignmentWorkflow keep the number of active
        checkouts at or below it.
    SOFT_DELETE_ONLY -- a returned checkout is stamped ``deleted_at``;
        checkout history is never removed.

Audit relevance:
    ``AccessoryCheckout.created_by_id`` is the user who checked the unit
    out and ``updated_by_id`` the one who checked it back in.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import IdType, SoftDeleteMixin, TrackedBase


class Accessory(SoftDeleteMixin, TrackedBase):
    """
    A stock of interchangeable units.

    Contract:
        Units are not tracked individually.  The number available is
        ``qty`` minus the active checkouts.  ``min_amt`` is the reorder
        threshold and is informational only.
    """

    __tablename__ = "accessories"

    __table_args__ = (
        CheckConstraint("qty >= 0", name="ck_accessories_qty"),
        Index("idx_accessories_deleted", "deleted_at"),
    )

    name: Mapped[str] = mapped_column(String(191), nullable=False)
    qty: Mapped[int] = mapped_column(nullable=False, default=0)
    min_amt: Mapped[int | None] = mapped_column(nullable=True)

    category_id: Mapped[int | None] = mapped_column(IdType, nullable=True)
    company_id: Mapped[int | None] = mapped_column(IdType, nullable=True)
    manufacturer_id: Mapped[int | None] = mapped_column(IdType, nullable=True)
    supplier_id: Mapped[int | None] = mapped_column(IdType, nullable=True)
    location_id: Mapped[int | None] = mapped_column(
        IdType, ForeignKey("locations.id"), nullable=True,
    )

    model_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    order_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    purchase_date: Mapped[date | None] = mapped_column(nullable=True)
    purchase_cost: Mapped[Decimal | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    checkouts: Mapped[list["AccessoryCheckout"]] = relationship(
        back_populates="accessory",
        order_by="AccessoryCheckout.id",
    )

    def __repr__(self) -> str:
        return f"<Accessory {self.id}: {self.name} (qty {self.qty})>"


class AccessoryCheckout(SoftDeleteMixin, TrackedBase):
    """One unit of an accessory checked out to a user."""

    __tablename__ = "accessories_users"

    __table_args__ = (
        Index("idx_accessories_users_accessory", "accessory_id", "deleted_at"),
        Index("idx_accessories_users_user", "assigned_to"),
    )

    accessory_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("accessories.id"), nullable=False,
    )
    assigned_to: Mapped[int] = mapped_column(
        IdType, ForeignKey("users.id"), nullable=False,
    )
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    accessory: Mapped[Accessory] = relationship(back_populates="checkouts")

    def __repr__(self) -> str:
        return f"<AccessoryCheckout {self.id}: accessory {self.accessory_id} -> user {self.assigned_to}>"
