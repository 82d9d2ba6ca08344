"""
Kernel Invariants Contract.

These invariants are structural law for the inventory kernel.  They are
enforced by the services (before any write) and, where the store can
express them, by CHECK constraints on the tables.

This module exists solely to declare these invariants explicitly.  The
enforcement is distributed across AssignmentWorkflow, SeatPoolManager,
LicenseService, AssetService, AccessoryService and the ORM models.
"""

from enum import Enum, unique


@unique
class KernelInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel."""

    SEAT_CAPACITY = "seat_capacity"
    """A license never has more active seat rows than its declared
    ``seats``; after a reconcile the two are equal.  Enforced by
    SeatPoolManager."""

    SINGLE_SEAT_CHANNEL = "single_seat_channel"
    """A seat is assigned to a user or to an asset, never both.  Enforced
    by AssignmentWorkflow and ck_license_seats_single_channel."""

    ASSIGNMENT_SHAPE = "assignment_shape"
    """An asset's assignment kind is null iff its target id and assigned
    timestamp are null.  Enforced by AssignmentWorkflow and
    ck_assets_assignment_shape."""

    ASSIGN_ONCE = "assign_once"
    """An assigned entity cannot be assigned again before it is released.
    Enforced by AssignmentWorkflow under a row lock."""

    SOFT_DELETE_ONLY = "soft_delete_only"
    """Assets, licenses and seats are never physically removed; deletion
    stamps ``deleted_at`` and every default query filters on
    ``is_active``."""

    REASSIGNABLE_POLICY = "reassignable_policy"
    """A seat of a non-reassignable license cannot be released.  Enforced
    by AssignmentWorkflow."""

    ACCESSORY_CAPACITY = "accessory_capacity"
    """An accessory never has more active checkouts than its ``qty``.
    Enforced by AssignmentWorkflow under a row lock and by AccessoryService
    when ``qty`` is edited."""


ALL_KERNEL_INVARIANTS: frozenset[KernelInvariant] = frozenset(KernelInvariant)
