"""
SeatPoolManager -- keeps a license's seat rows equal to its seat count.

Responsibility:
    Creates or retires LicenseSeat rows when a license's declared
    ``seats`` value changes.  Growing the pool always succeeds; shrinking
    it retires free seats only and is rejected outright when there are not
    enough of them.

Architecture position:
    Kernel > Services -- called by LicenseService inside the same
    transaction as the license's own field save.

Invariants enforced:
    SEAT_CAPACITY -- ``previous_seat_count`` must be the live number of
        active seat rows; after a successful reconcile both the active rows
        and ``License.seats`` equal ``new_seat_count``.
    SOFT_DELETE_ONLY -- retired seats are soft-deleted, never removed;
        assigned seats are never retired.
    All checks happen before the first write, so a rejected reconcile
    leaves no partial effect.

Failure modes (returned, not raised):
    - InvalidSeatCountError: negative seat count.
    - SeatCountMismatchError: ``previous_seat_count`` is stale.
    - LicenseNotFoundError: license missing or soft-deleted.
    - InsufficientAvailableSeatsError: fewer free seats than the reduction.
    - InfrastructureError is raised (store failure).
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock
from inventory_kernel.domain.results import OperationStatus, ReconcileResult
from inventory_kernel.exceptions import (
    InfrastructureError,
    InsufficientAvailableSeatsError,
    InvalidSeatCountError,
    LicenseHasAssignedSeatsError,
    LicenseNotFoundError,
    NotFoundError,
    SeatCountMismatchError,
    SeatPoolError,
    ValidationError,
)
from inventory_kernel.invariants import KernelInvariant
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.license import License, LicenseSeat
from inventory_kernel.selectors.seat_selector import SeatSelector
from inventory_kernel.services.base import BaseService

logger = get_logger("services.seat_pool")


class SeatPoolManager(BaseService[LicenseSeat]):
    """
    Reconciles seat rows with declared seat counts.

    Non-goals:
        - Does NOT assign or release seats (AssignmentWorkflow).
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session, clock)
        self._seats = SeatSelector(session)

    def reconcile(
        self,
        license_id: int,
        previous_seat_count: int,
        new_seat_count: int,
        actor_id: int,
    ) -> ReconcileResult:
        """
        Grow or shrink the license's seat pool by ``new - previous`` seats.

        ``previous_seat_count`` must equal the license's live number of
        active seat rows, read under the license lock; a stale count is
        rejected with SeatCountMismatchError.  On success ``License.seats``
        is set to ``new_seat_count`` in the same flush.

        Returns:
            ReconcileResult with the created or retired seat ids, or the
            business error that rejected the change.

        Raises:
            InfrastructureError: store-level failure; the caller must roll
                back the transaction.
        """
        with LogContext.bind(actor_id=actor_id, entity_type="license", entity_id=license_id):
            try:
                created, retired = self._reconcile(
                    license_id, previous_seat_count, new_seat_count, actor_id
                )
            except (ValidationError, NotFoundError, SeatPoolError) as exc:
                logger.warning(
                    "seats_reconcile_rejected",
                    extra={
                        "error_code": exc.code,
                        "previous_seats": previous_seat_count,
                        "new_seats": new_seat_count,
                        "invariant": KernelInvariant.SEAT_CAPACITY.value,
                    },
                )
                return ReconcileResult(
                    status=OperationStatus.REJECTED,
                    license_id=license_id,
                    previous_seats=previous_seat_count,
                    new_seats=new_seat_count,
                    error=exc,
                )
            except SQLAlchemyError as exc:
                logger.error("seats_reconcile_failed", exc_info=True)
                raise InfrastructureError("reconcile", str(exc)) from exc

            logger.info(
                "seats_reconciled",
                extra={
                    "previous_seats": previous_seat_count,
                    "new_seats": new_seat_count,
                    "created_seats": len(created),
                    "retired_seats": len(retired),
                },
            )
        return ReconcileResult(
            status=OperationStatus.SUCCEEDED,
            license_id=license_id,
            previous_seats=previous_seat_count,
            new_seats=new_seat_count,
            created_seat_ids=tuple(created),
            retired_seat_ids=tuple(retired),
        )

    def sync(self, license_id: int, actor_id: int) -> ReconcileResult:
        """Reconcile from the live seat row count to ``License.seats``."""
        license = self.session.get(License, license_id)
        if license is None or not license.is_active:
            return ReconcileResult(
                status=OperationStatus.REJECTED,
                license_id=license_id,
                previous_seats=0,
                new_seats=0,
                error=LicenseNotFoundError(license_id),
            )
        current = self._seats.counts(license_id).total
        return self.reconcile(license_id, current, license.seats, actor_id)

    def retire_all(self, license_id: int, actor_id: int) -> list[int]:
        """
        Soft-delete every active seat of a license being deleted.

        Raises:
            LicenseHasAssignedSeatsError: a seat is still assigned.
        """
        counts = self._seats.counts(license_id)
        if counts.assigned:
            raise LicenseHasAssignedSeatsError(license_id, counts.assigned)

        seats = self.session.execute(
            select(LicenseSeat)
            .where(LicenseSeat.license_id == license_id, LicenseSeat.is_active)
            .with_for_update()
        ).scalars().all()
        for seat in seats:
            self._ledger.soft_delete(seat, actor_id)
        self.session.flush()
        return [seat.id for seat in seats]

    # ------------------------------------------------------------------

    def _reconcile(
        self,
        license_id: int,
        previous_seat_count: int,
        new_seat_count: int,
        actor_id: int,
    ) -> tuple[list[int], list[int]]:
        self._ledger.require_actor(actor_id)
        for count in (previous_seat_count, new_seat_count):
            if isinstance(count, bool) or not isinstance(count, int) or count < 0:
                raise InvalidSeatCountError(count)

        # Serializes concurrent reconciles and seat assignments on this license
        license = self.session.execute(
            select(License)
            .where(License.id == license_id, License.is_active)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if license is None:
            raise LicenseNotFoundError(license_id)

        # INVARIANT: SEAT_CAPACITY -- the delta is only meaningful against the live pool
        live = self._seats.counts(license_id).total
        if live != previous_seat_count:
            raise SeatCountMismatchError(license_id, previous_seat_count, live)

        created: list[int] = []
        retired: list[int] = []
        delta = new_seat_count - previous_seat_count
        if delta > 0:
            created = self._add_seats(license_id, delta, actor_id)
        elif delta < 0:
            retired = self._retire_free_seats(license_id, -delta, previous_seat_count, actor_id)

        if license.seats != new_seat_count:
            license.seats = new_seat_count
            self._ledger.stamp_modified(license, actor_id)
            self.session.flush()
        return created, retired

    def _add_seats(self, license_id: int, count: int, actor_id: int) -> list[int]:
        seats = []
        for _ in range(count):
            seat = LicenseSeat(license_id=license_id)
            self._ledger.stamp_created(seat, actor_id)
            self.session.add(seat)
            seats.append(seat)
        self.session.flush()
        return [seat.id for seat in seats]

    def _retire_free_seats(
        self,
        license_id: int,
        required: int,
        previous_seat_count: int,
        actor_id: int,
    ) -> list[int]:
        free = self.session.execute(
            select(LicenseSeat)
            .where(
                LicenseSeat.license_id == license_id,
                LicenseSeat.is_active,
                LicenseSeat.assigned_to_user.is_(None),
                LicenseSeat.asset_id.is_(None),
            )
            .order_by(LicenseSeat.id.desc())
            .with_for_update()
        ).scalars().all()

        # INVARIANT: SEAT_CAPACITY -- reject before touching any row
        if len(free) < required:
            raise InsufficientAvailableSeatsError(
                license_id=license_id,
                required=required,
                available=len(free),
                currently_assigned=previous_seat_count - len(free),
            )

        retired = free[:required]
        for seat in retired:
            self._ledger.soft_delete(seat, actor_id)
        self.session.flush()
        return [seat.id for seat in retired]
