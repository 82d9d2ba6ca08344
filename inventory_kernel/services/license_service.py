"""
Service layer for License operations.

Creates, edits, copies and deletes licenses.  Every change to the
declared ``seats`` value goes through SeatPoolManager in the same
transaction, so the seat rows always follow the license.

Returns LicenseInfo DTOs / LicenseResult instead of ORM entities.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock
from inventory_kernel.domain.results import LicenseResult, OperationStatus, ReconcileResult
from inventory_kernel.exceptions import (
    InfrastructureError,
    InvalidSeatCountError,
    LicenseNotFoundError,
    NotFoundError,
    RequiredFieldError,
    SeatPoolError,
    ValidationError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.license import License
from inventory_kernel.selectors.seat_selector import SeatSelector
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.seat_pool import SeatPoolManager

logger = get_logger("services.license")

# Descriptive fields a caller may set on create/update
_EDITABLE_FIELDS: frozenset[str] = frozenset({
    "name",
    "serial",
    "license_name",
    "license_email",
    "reassignable",
    "category_id",
    "manufacturer_id",
    "supplier_id",
    "company_id",
    "order_number",
    "purchase_cost",
    "purchase_date",
    "expiration_date",
    "notes",
})

# Fields duplicated by copy_license (the serial key is not)
_COPIED_FIELDS: tuple[str, ...] = tuple(sorted(_EDITABLE_FIELDS - {"name", "serial"}))


@dataclass(frozen=True)
class LicenseInfo:
    """Immutable DTO for license data and its seat counters."""

    id: int
    name: str
    serial: str | None
    seats: int
    reassignable: bool
    is_active: bool
    license_name: str | None
    license_email: str | None
    category_id: int | None
    manufacturer_id: int | None
    supplier_id: int | None
    company_id: int | None
    order_number: str | None
    purchase_cost: Decimal | None
    purchase_date: date | None
    expiration_date: date | None
    notes: str | None
    available_seats: int

    @property
    def assigned_seats(self) -> int:
        return self.seats - self.available_seats


class LicenseService(BaseService[License]):
    """
    Service for managing licenses and, through them, their seat pools.

    Contract:
        Mutating methods return a ``LicenseResult``; business-rule
        violations come back as a rejected result with the typed error and
        nothing written.  ``get_license`` raises LicenseNotFoundError.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        seat_pool: SeatPoolManager | None = None,
    ):
        super().__init__(session, clock)
        self._pool = seat_pool or SeatPoolManager(session, self._clock)
        self._seats = SeatSelector(session)

    def _to_dto(self, license: License) -> LicenseInfo:
        """Convert ORM License to LicenseInfo DTO."""
        return LicenseInfo(
            id=license.id,
            name=license.name,
            serial=license.serial,
            seats=license.seats,
            reassignable=license.reassignable,
            is_active=license.is_active,
            license_name=license.license_name,
            license_email=license.license_email,
            category_id=license.category_id,
            manufacturer_id=license.manufacturer_id,
            supplier_id=license.supplier_id,
            company_id=license.company_id,
            order_number=license.order_number,
            purchase_cost=license.purchase_cost,
            purchase_date=license.purchase_date,
            expiration_date=license.expiration_date,
            notes=license.notes,
            available_seats=self._seats.counts(license.id).available,
        )

    def _get_active(self, license_id: int, *, lock: bool = False) -> License:
        """Get an active license by id, raising if missing or deleted."""
        stmt = select(License).where(License.id == license_id, License.is_active)
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        license = self.session.execute(stmt).scalar_one_or_none()
        if license is None:
            raise LicenseNotFoundError(license_id)
        return license

    def get_license(self, license_id: int) -> LicenseInfo:
        """
        Get license by ID.

        Raises:
            LicenseNotFoundError: If the license doesn't exist or is deleted.
        """
        return self._to_dto(self._get_active(license_id))

    def list_licenses(self) -> list[LicenseInfo]:
        """Active licenses ordered by name."""
        licenses = self.session.execute(
            select(License).where(License.is_active).order_by(License.name, License.id)
        ).scalars().all()
        return [self._to_dto(lic) for lic in licenses]

    def create_license(
        self,
        name: str,
        actor_id: int,
        *,
        seats: int = 1,
        **fields: Any,
    ) -> LicenseResult:
        """
        Create a license and its ``seats`` unassigned seat rows.

        Args:
            name: Display name (required, stripped).
            actor_id: Acting user.
            seats: Declared seat count, >= 0.
            **fields: Other descriptive fields (serial, reassignable,
                category_id, ...).

        Returns:
            LicenseResult with the new license id and the reconcile result.
        """
        return self._execute(
            "license_create",
            "license_created",
            None,
            actor_id,
            lambda: self._create(name, actor_id, seats, fields),
        )

    def update_license(self, license_id: int, actor_id: int, **changes: Any) -> LicenseResult:
        """
        Edit a license.

        When ``seats`` is among the changes, the seat pool is reconciled
        from the license's current number of active seat rows first; if the
        reconcile is rejected nothing is changed.

        Returns:
            LicenseResult; on a rejected seat reduction ``reconcile``
            carries the InsufficientAvailableSeatsError details.
        """
        return self._execute(
            "license_update",
            "license_updated",
            license_id,
            actor_id,
            lambda: self._update(license_id, actor_id, changes),
        )

    def delete_license(self, license_id: int, actor_id: int) -> LicenseResult:
        """
        Soft-delete a license and every seat it owns.

        Rejected with LicenseHasAssignedSeatsError while a seat is assigned.
        """
        return self._execute(
            "license_delete",
            "license_deleted",
            license_id,
            actor_id,
            lambda: self._delete(license_id, actor_id),
        )

    def copy_license(
        self,
        license_id: int,
        actor_id: int,
        *,
        name: str | None = None,
    ) -> LicenseResult:
        """Create a new license from an existing one, without its serial key."""
        return self._execute(
            "license_copy",
            "license_copied",
            license_id,
            actor_id,
            lambda: self._copy(license_id, actor_id, name),
        )

    # ------------------------------------------------------------------

    def _execute(
        self,
        action: str,
        success_event: str,
        license_id: int | None,
        actor_id: int,
        operation: Callable[[], LicenseResult],
    ) -> LicenseResult:
        with LogContext.bind(actor_id=actor_id, entity_type="license", entity_id=license_id):
            try:
                result = operation()
            except (ValidationError, NotFoundError, SeatPoolError) as exc:
                logger.warning(
                    f"{action}_rejected",
                    extra={"error_code": exc.code, "reason": str(exc)},
                )
                return LicenseResult(
                    status=OperationStatus.REJECTED, license_id=license_id, error=exc,
                )
            except SQLAlchemyError as exc:
                logger.error(f"{action}_failed", exc_info=True)
                raise InfrastructureError(action, str(exc)) from exc

            if result.is_success:
                logger.info(
                    success_event,
                    extra={"license_id": result.license_id, "seats": result.seats},
                )
            else:
                logger.warning(
                    f"{action}_rejected",
                    extra={"error_code": result.error_code, "reason": str(result.error)},
                )
        return result

    @staticmethod
    def _check_fields(fields: dict[str, Any]) -> None:
        unknown = sorted(set(fields) - _EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(
                f"Unknown or read-only license field(s): {', '.join(unknown)}",
                field=unknown[0],
            )
        if "name" in fields:
            fields["name"] = _clean_name(fields["name"])

    @staticmethod
    def _check_seats(seats: Any) -> int:
        if isinstance(seats, bool) or not isinstance(seats, int) or seats < 0:
            raise InvalidSeatCountError(seats)
        return seats

    def _create(
        self,
        name: str,
        actor_id: int,
        seats: int,
        fields: dict[str, Any],
    ) -> LicenseResult:
        self._ledger.require_actor(actor_id)
        fields = {**fields, "name": name}
        self._check_fields(fields)
        seats = self._check_seats(seats)

        license = License(seats=seats, **fields)
        self._ledger.stamp_created(license, actor_id)
        self.session.add(license)
        self.session.flush()

        # Growing from zero cannot be rejected once the count is validated
        reconcile = self._pool.reconcile(license.id, 0, seats, actor_id)
        return LicenseResult(
            status=OperationStatus.SUCCEEDED,
            license_id=license.id,
            seats=license.seats,
            reconcile=reconcile,
        )

    def _update(self, license_id: int, actor_id: int, changes: dict[str, Any]) -> LicenseResult:
        self._ledger.require_actor(actor_id)
        changes = dict(changes)
        new_seats = changes.pop("seats", None)
        self._check_fields(changes)
        if new_seats is not None:
            new_seats = self._check_seats(new_seats)

        license = self._get_active(license_id, lock=True)

        reconcile: ReconcileResult | None = None
        if new_seats is not None:
            current = self._seats.counts(license_id).total
            reconcile = self._pool.reconcile(license_id, current, new_seats, actor_id)
            if not reconcile.is_success:
                return LicenseResult(
                    status=OperationStatus.REJECTED,
                    license_id=license_id,
                    seats=license.seats,
                    reconcile=reconcile,
                    error=reconcile.error,
                )

        for key, value in changes.items():
            setattr(license, key, value)
        self._ledger.stamp_modified(license, actor_id)
        self.session.flush()
        return LicenseResult(
            status=OperationStatus.SUCCEEDED,
            license_id=license.id,
            seats=license.seats,
            reconcile=reconcile,
        )

    def _delete(self, license_id: int, actor_id: int) -> LicenseResult:
        self._ledger.require_actor(actor_id)
        license = self._get_active(license_id, lock=True)
        self._pool.retire_all(license_id, actor_id)
        self._ledger.soft_delete(license, actor_id)
        self.session.flush()
        return LicenseResult(
            status=OperationStatus.SUCCEEDED,
            license_id=license.id,
            seats=license.seats,
        )

    def _copy(self, license_id: int, actor_id: int, name: str | None) -> LicenseResult:
        source = self._get_active(license_id)
        fields = {key: getattr(source, key) for key in _COPIED_FIELDS}
        return self._create(name if name is not None else source.name, actor_id, source.seats, fields)


def _clean_name(name: Any) -> str:
    if not isinstance(name, str) or not name.strip():
        raise RequiredFieldError("name")
    return name.strip()
