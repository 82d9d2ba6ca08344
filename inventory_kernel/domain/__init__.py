"""Pure domain layer: time, assignment targets, field rules and result DTOs."""

from inventory_kernel.domain.assignment_target import (
    UNASSIGNED,
    AssetTarget,
    AssignmentTarget,
    LocationTarget,
    TargetKind,
    Unassigned,
    UserTarget,
    make_target,
    target_from_columns,
    target_to_columns,
)
from inventory_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from inventory_kernel.domain.field_controller import (
    ASSET_CHANNELS,
    SEAT_CHANNELS,
    FieldAccess,
    apply_kind_change,
    fields_for,
    target_from_fields,
)
from inventory_kernel.domain.results import (
    AssignmentSnapshot,
    EntityType,
    LicenseResult,
    OperationResult,
    OperationStatus,
    ReconcileResult,
)

__all__ = [
    "ASSET_CHANNELS",
    "AssetTarget",
    "AssignmentSnapshot",
    "AssignmentTarget",
    "Clock",
    "DeterministicClock",
    "EntityType",
    "FieldAccess",
    "LicenseResult",
    "LocationTarget",
    "OperationResult",
    "OperationStatus",
    "ReconcileResult",
    "SEAT_CHANNELS",
    "SystemClock",
    "TargetKind",
    "UNASSIGNED",
    "Unassigned",
    "UserTarget",
    "apply_kind_change",
    "fields_for",
    "make_target",
    "target_from_columns",
    "target_from_fields",
    "target_from_fields",
    "target_to_columns",
]
