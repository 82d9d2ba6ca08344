"""
SeatSelector -- read-only queries over a license's seat pool.

Responsibility:
    Counts total/available/assigned seats, lists the seats of a license
    with their state and assignee labels, and lists the seats attached to
    an asset.  Used by SeatPoolManager and AssignmentWorkflow for their
    precondition checks and by callers for display.

Invariants enforced:
    - Soft-deleted seats are never counted or listed.
    - "available" means active and neither channel set.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from sqlalchemy import and_, func, select

from inventory_kernel.models.asset import Asset
from inventory_kernel.models.license import License, LicenseSeat
from inventory_kernel.models.reference import Location, User
from inventory_kernel.selectors.base import BaseSelector
from inventory_kernel.selectors.lookups import SqlAssetLookup

_AVAILABLE = and_(
    LicenseSeat.assigned_to_user.is_(None),
    LicenseSeat.asset_id.is_(None),
)


class SeatState(str, Enum):
    AVAILABLE = "available"
    ASSIGNED = "assigned"


@dataclass(frozen=True)
class SeatCounts:
    """Seat pool counters for one license (active seats only)."""

    license_id: int
    total: int
    available: int

    @property
    def assigned(self) -> int:
        return self.total - self.available


@dataclass(frozen=True)
class SeatView:
    """One seat as displayed in a license's seat list."""

    seat_id: int
    license_id: int
    position: int
    state: SeatState
    user_id: int | None = None
    user_name: str | None = None
    asset_id: int | None = None
    asset_description: str | None = None
    location_name: str | None = None

    @property
    def label(self) -> str:
        return f"Seat {self.position}"


class SeatSelector(BaseSelector[LicenseSeat]):
    """Read-only seat pool queries."""

    def counts(self, license_id: int) -> SeatCounts:
        total, available = self.session.execute(
            select(
                func.count(LicenseSeat.id),
                func.count(LicenseSeat.id).filter(_AVAILABLE),
            ).where(LicenseSeat.license_id == license_id, LicenseSeat.is_active)
        ).one()
        return SeatCounts(license_id=license_id, total=total, available=available)

    def available_seat_ids(self, license_id: int, limit: int | None = None) -> list[int]:
        """Ids of available seats, lowest first."""
        stmt = (
            select(LicenseSeat.id)
            .where(LicenseSeat.license_id == license_id, LicenseSeat.is_active, _AVAILABLE)
            .order_by(LicenseSeat.id)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.execute(stmt).scalars())

    def list_seats(self, license_id: int) -> list[SeatView]:
        """Active seats of a license, numbered from 1 in id order."""
        rows = self.session.execute(
            select(LicenseSeat, User.name, Location.name)
            .outerjoin(User, LicenseSeat.assigned_to_user == User.id)
            .outerjoin(Asset, LicenseSeat.asset_id == Asset.id)
            .outerjoin(Location, Asset.location_id == Location.id)
            .where(LicenseSeat.license_id == license_id, LicenseSeat.is_active)
            .order_by(LicenseSeat.id)
        ).all()

        assets = SqlAssetLookup(self.session)
        views = []
        for position, (seat, user_name, location_name) in enumerate(rows, start=1):
            views.append(
                SeatView(
                    seat_id=seat.id,
                    license_id=seat.license_id,
                    position=position,
                    state=SeatState.ASSIGNED if seat.is_assigned else SeatState.AVAILABLE,
                    user_id=seat.assigned_to_user,
                    user_name=user_name,
                    asset_id=seat.asset_id,
                    asset_description=(
                        assets.describe(seat.asset_id) if seat.asset_id is not None else None
                    ),
                    location_name=location_name,
                )
            )
        return views

    def seats_for_asset(self, asset_id: int) -> list[LicenseSeat]:
        """Active seats of active licenses attached to an asset."""
        return list(
            self.session.execute(
                select(LicenseSeat)
                .join(License, LicenseSeat.license_id == License.id)
                .where(
                    LicenseSeat.asset_id == asset_id,
                    LicenseSeat.is_active,
                    License.is_active,
                )
                .order_by(LicenseSeat.id)
            ).scalars()
        )
