"""
Module: inventory_kernel.models.license
Responsibility: ORM persistence for software licenses and the seat rows
    that make up each license's pool.
Architecture position: Kernel > Models.  May import from db/base.py and
    sibling models only.

Invariants enforced:
    SEAT_CAPACITY -- ``seats`` is non-negative (ck_licenses_seats); the
        active seat rows are kept equal to it by SeatPoolManager.
    SINGLE_SEAT_CHANNEL -- at most one of ``assigned_to_user`` and
        ``asset_id`` is set (ck_license_seats_single_channel).
    SOFT_DELETE_ONLY -- seats are retired by stamping ``deleted_at``;
        a seat referenced by a past assignment is never removed.

Audit relevance:
    Seat rows are owned by their license.  Only SeatPoolManager creates or
    retires them and only AssignmentWorkflow assigns or releases them.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import IdType, SoftDeleteMixin, TrackedBase


class License(SoftDeleteMixin, TrackedBase):
    """
    A software license with a declared number of seats.

    Contract:
        ``seats`` is the declared capacity.  Changing it goes through
        LicenseService so that the seat rows are reconciled in the same
        transaction.  ``reassignable`` is a license-wide policy: when false,
        an assigned seat can never be released.
    """

    __tablename__ = "licenses"

    __table_args__ = (
        CheckConstraint("seats >= 0", name="ck_licenses_seats"),
        Index("idx_licenses_deleted", "deleted_at"),
    )

    name: Mapped[str] = mapped_column(String(191), nullable=False)
    serial: Mapped[str | None] = mapped_column(Text, nullable=True)
    license_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    license_email: Mapped[str | None] = mapped_column(String(120), nullable=True)

    seats: Mapped[int] = mapped_column(nullable=False, default=1)
    reassignable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    category_id: Mapped[int | None] = mapped_column(IdType, nullable=True)
    manufacturer_id: Mapped[int | None] = mapped_column(IdType, nullable=True)
    supplier_id: Mapped[int | None] = mapped_column(IdType, nullable=True)
    company_id: Mapped[int | None] = mapped_column(IdType, nullable=True)

    order_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    purchase_cost: Mapped[Decimal | None] = mapped_column(nullable=True)
    purchase_date: Mapped[date | None] = mapped_column(nullable=True)
    expiration_date: Mapped[date | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    seat_rows: Mapped[list["LicenseSeat"]] = relationship(
        back_populates="license",
        order_by="LicenseSeat.id",
    )

    def __repr__(self) -> str:
        return f"<License {self.id}: {self.name} ({self.seats} seats)>"


class LicenseSeat(SoftDeleteMixin, TrackedBase):
    """
    One seat of a license.

    Contract:
        A seat is available iff it is active and neither
        ``assigned_to_user`` nor ``asset_id`` is set.  ``custodian_user_id``
        records the user reached through the asset at assignment time and is
        informational only.
    """

    __tablename__ = "license_seats"

    __table_args__ = (
        CheckConstraint(
            "assigned_to_user IS NULL OR asset_id IS NULL",
            name="ck_license_seats_single_channel",
        ),
        Index("idx_license_seats_license", "license_id", "deleted_at"),
        Index("idx_license_seats_asset", "asset_id"),
    )

    license_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("licenses.id"), nullable=False,
    )
    assigned_to_user: Mapped[int | None] = mapped_column(
        IdType, ForeignKey("users.id"), nullable=True,
    )
    asset_id: Mapped[int | None] = mapped_column(
        IdType, ForeignKey("assets.id"), nullable=True,
    )
    custodian_user_id: Mapped[int | None] = mapped_column(IdType, nullable=True)
    assigned_at: Mapped[datetime | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    license: Mapped[License] = relationship(back_populates="seat_rows")

    @property
    def is_assigned(self) -> bool:
        return self.assigned_to_user is not None or self.asset_id is not None

    @property
    def is_available(self) -> bool:
        return self.is_active and not self.is_assigned

    def __repr__(self) -> str:
        return f"<LicenseSeat {self.id} of license {self.license_id}>"
