"""
Result DTOs returned by the kernel's write operations.

Responsibility:
    Immutable results for assign/release (``OperationResult``) and seat
    pool reconciliation (``ReconcileResult``).  A result carries either the
    refreshed state or the typed business error that rejected the request.

Architecture position:
    Kernel > Domain -- pure data, zero I/O, no ORM references.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from inventory_kernel.domain.assignment_target import UNASSIGNED, AssignmentTarget, Unassigned
from inventory_kernel.exceptions import InventoryKernelError


class EntityType(str, Enum):
    """Entities the kernel mutates."""

    ASSET = "asset"
    LICENSE = "license"
    LICENSE_SEAT = "license_seat"
    ACCESSORY = "accessory"


class OperationStatus(str, Enum):
    """Outcome of a write operation."""

    SUCCEEDED = "succeeded"
    REJECTED = "rejected"


@dataclass(frozen=True)
class AssignmentSnapshot:
    """Assignment state of an asset, a seat or an accessory after an operation."""

    entity_type: EntityType
    entity_id: int
    target: AssignmentTarget = UNASSIGNED
    assigned_at: datetime | None = None
    expected_checkin: date | None = None
    custodian_user_id: int | None = None
    # Assets only
    location_id: int | None = None
    status_id: int | None = None
    checkout_counter: int | None = None
    checkin_counter: int | None = None
    # Seats only
    license_id: int | None = None
    # Accessories only
    checkout_id: int | None = None
    available_qty: int | None = None

    @property
    def is_assigned(self) -> bool:
        return not isinstance(self.target, Unassigned)


@dataclass(frozen=True)
class OperationResult:
    """Result of an assign or release operation."""

    status: OperationStatus
    # None only when the caller named an entity type the kernel does not know
    entity_type: EntityType | None
    entity_id: int | None
    snapshot: AssignmentSnapshot | None = None
    error: InventoryKernelError | None = None

    @property
    def is_success(self) -> bool:
        return self.status == OperationStatus.SUCCEEDED

    @property
    def error_code(self) -> str | None:
        return self.error.code if self.error is not None else None

    @classmethod
    def succeeded(cls, snapshot: AssignmentSnapshot) -> OperationResult:
        return cls(
            status=OperationStatus.SUCCEEDED,
            entity_type=snapshot.entity_type,
            entity_id=snapshot.entity_id,
            snapshot=snapshot,
        )

    @classmethod
    def rejected(
        cls,
        entity_type: EntityType | None,
        entity_id: int | None,
        error: InventoryKernelError,
    ) -> OperationResult:
        return cls(
            status=OperationStatus.REJECTED,
            entity_type=entity_type,
            entity_id=entity_id,
            error=error,
        )


@dataclass(frozen=True)
class ReconcileResult:
    """Result of reconciling a license's seat rows with its seat count."""

    status: OperationStatus
    license_id: int
    previous_seats: int
    new_seats: int
    created_seat_ids: tuple[int, ...] = field(default_factory=tuple)
    retired_seat_ids: tuple[int, ...] = field(default_factory=tuple)
    error: InventoryKernelError | None = None

    @property
    def is_success(self) -> bool:
        return self.status == OperationStatus.SUCCEEDED

    @property
    def delta(self) -> int:
        return self.new_seats - self.previous_seats

    @property
    def error_code(self) -> str | None:
        return self.error.code if self.error is not None else None


@dataclass(frozen=True)
class LicenseResult:
    """Result of a license create/update/delete/copy."""

    status: OperationStatus
    license_id: int | None
    seats: int | None = None
    reconcile: ReconcileResult | None = None
    error: InventoryKernelError | None = None

    @property
    def is_success(self) -> bool:
        return self.status == OperationStatus.SUCCEEDED

    @property
    def error_code(self) -> str | None:
        return self.error.code if self.error is not None else None
