"""
Module: inventory_kernel.models.asset
Responsibility: ORM persistence for physical assets and their current
    assignment (kind + target id + assigned-at + expected check-in).
Architecture position: Kernel > Models.  May import from db/base.py and
    sibling models only.

Invariants enforced:
    ASSIGNMENT_SHAPE -- ``assigned_type`` is null iff ``assigned_to`` is
        null, and an unassigned asset has no ``assigned_at`` /
        ``expected_checkin`` (ck_assets_assignment_shape).
    Tag uniqueness -- the tag is upper-cased by AssetService and unique
        (uq_assets_tag).

Failure modes:
    - IntegrityError on duplicate tag or a malformed assignment written
      outside AssignmentWorkflow.

Audit relevance:
    ``checkout_counter`` and ``checkin_counter`` only ever increase; they
    count assignment and return events over the asset's life.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import IdType, SoftDeleteMixin, TrackedBase

if TYPE_CHECKING:
    from inventory_kernel.models.reference import AssetModel, Location, StatusLabel


class Asset(SoftDeleteMixin, TrackedBase):
    """
    A tagged physical asset.

    Contract:
        The ``assigned_*`` columns and the two counters are written only by
        AssignmentWorkflow.  Everything else is ordinary CRUD data written
        by AssetService.
    """

    __tablename__ = "assets"

    __table_args__ = (
        UniqueConstraint("tag", name="uq_assets_tag"),
        CheckConstraint(
            "(assigned_type IS NULL AND assigned_to IS NULL "
            "AND assigned_at IS NULL AND expected_checkin IS NULL) "
            "OR (assigned_type IS NOT NULL AND assigned_to IS NOT NULL)",
            name="ck_assets_assignment_shape",
        ),
        CheckConstraint(
            "assigned_type IS NULL OR assigned_type IN ('user', 'location', 'asset')",
            name="ck_assets_assigned_type",
        ),
        Index("idx_assets_assignment", "assigned_type", "assigned_to"),
        Index("idx_assets_deleted", "deleted_at"),
    )

    tag: Mapped[str] = mapped_column(String(191), nullable=False)
    serial: Mapped[str | None] = mapped_column(String(191), nullable=True)
    name: Mapped[str | None] = mapped_column(String(191), nullable=True)

    model_id: Mapped[int | None] = mapped_column(
        IdType, ForeignKey("models.id"), nullable=True,
    )
    status_id: Mapped[int | None] = mapped_column(
        IdType, ForeignKey("status_labels.id"), nullable=True,
    )
    company_id: Mapped[int | None] = mapped_column(IdType, nullable=True)
    location_id: Mapped[int | None] = mapped_column(
        IdType, ForeignKey("locations.id"), nullable=True,
    )

    # Current assignment
    assigned_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    assigned_to: Mapped[int | None] = mapped_column(IdType, nullable=True)
    assigned_at: Mapped[datetime | None] = mapped_column(nullable=True)
    expected_checkin: Mapped[date | None] = mapped_column(nullable=True)
    # User reached through a custodian asset, frozen at assignment time
    custodian_user_id: Mapped[int | None] = mapped_column(IdType, nullable=True)

    checkout_counter: Mapped[int] = mapped_column(nullable=False, default=0)
    checkin_counter: Mapped[int] = mapped_column(nullable=False, default=0)

    # Purchase metadata
    order_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    purchase_date: Mapped[date | None] = mapped_column(nullable=True)
    purchase_cost: Mapped[Decimal | None] = mapped_column(nullable=True)
    supplier_id: Mapped[int | None] = mapped_column(IdType, nullable=True)
    warranty_months: Mapped[int | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    model: Mapped["AssetModel | None"] = relationship()
    status: Mapped["StatusLabel | None"] = relationship()
    location: Mapped["Location | None"] = relationship()

    @property
    def is_assigned(self) -> bool:
        return self.assigned_type is not None

    def __repr__(self) -> str:
        return f"<Asset {self.id}: {self.tag}>"
