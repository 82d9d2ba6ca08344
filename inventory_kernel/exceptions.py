"""
Typed Exception Hierarchy for the Inventory Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Assignment rules reject requests for precise reasons ("this seat is
already taken", "this license forbids reassignment").  Callers render
those reasons to a user and must not parse message strings to do it.

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (ids, counts) for display

Business-rule errors are not raised out of the public operations.  The
services raise them internally and return them inside an
``OperationResult`` / ``ReconcileResult``.  Only ``InfrastructureError``
(and programming errors) ever propagate to the caller.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryKernelError (base)
    |
    +-- ValidationError
    |   +-- RequiredFieldError
    |   +-- InvalidTargetError
    |   +-- InvalidSeatCountError
    |   +-- SeatCountMismatchError
    |   +-- AccessoryQuantityError
    |   +-- DuplicateAssetTagError
    |
    +-- NotFoundError
    |   +-- AssetNotFoundError
    |   +-- LicenseNotFoundError
    |   +-- SeatNotFoundError
    |   +-- AccessoryNotFoundError
    |   +-- AccessoryCheckoutNotFoundError
    |
    +-- AssignmentError
    |   +-- AlreadyAssignedError
    |   +-- AlreadyUnassignedError
    |   +-- NotReassignableError
    |   +-- NoAvailableSeatsError
    |   +-- NoAvailableAccessoryError
    |   +-- AccessoryCheckedOutError
    |
    +-- SeatPoolError
    |   +-- InsufficientAvailableSeatsError
    |   +-- LicenseHasAssignedSeatsError
    |
    +-- InfrastructureError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                          | When Raised
----------------|-------------------------------|-------------------------------------
Validation      | VALIDATION_ERROR              | Malformed caller input
                | REQUIRED_FIELD                | Mandatory field missing or blank
                | INVALID_TARGET                | Target kind/id unusable here
                | INVALID_SEAT_COUNT            | Negative seat count
                | SEAT_COUNT_MISMATCH           | Stale previous seat count
                | ACCESSORY_QUANTITY_TOO_LOW    | Quantity below units checked out
                | DUPLICATE_ASSET_TAG           | Tag already used by an active asset
----------------|-------------------------------|-------------------------------------
Not found       | ASSET_NOT_FOUND               | No active asset with this id
                | LICENSE_NOT_FOUND             | No active license with this id
                | SEAT_NOT_FOUND                | No active seat with this id
                | ACCESSORY_NOT_FOUND           | No active accessory with this id
                | ACCESSORY_CHECKOUT_NOT_FOUND  | No checkout row with this id
----------------|-------------------------------|-------------------------------------
Assignment      | ALREADY_ASSIGNED              | Assign on an assigned entity
                | ALREADY_UNASSIGNED            | Release on an unassigned entity
                | NOT_REASSIGNABLE              | License forbids releasing seats
                | NO_AVAILABLE_SEATS            | License has no free seat
                | NO_AVAILABLE_ACCESSORY        | Every accessory unit checked out
                | ACCESSORY_CHECKED_OUT         | Delete while units are out
----------------|-------------------------------|-------------------------------------
Seat pool       | INSUFFICIENT_AVAILABLE_SEATS  | Seat reduction exceeds free seats
                | LICENSE_HAS_ASSIGNED_SEATS    | Delete while seats are in use
----------------|-------------------------------|-------------------------------------
Infrastructure  | INFRASTRUCTURE_FAILURE        | Store-level failure, full rollback

===============================================================================
"""


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses must have a ``code`` class attribute for
    machine-readable error identification.
    """

    code: str = "INVENTORY_KERNEL_ERROR"


# Validation exceptions


class ValidationError(InventoryKernelError):
    """Caller-supplied input is malformed; rejected before any mutation."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class RequiredFieldError(ValidationError):
    """A mandatory field is missing or blank."""

    code: str = "REQUIRED_FIELD"

    def __init__(self, field: str):
        super().__init__(f"Field '{field}' is required", field=field)


class InvalidTargetError(ValidationError):
    """The assignment target cannot be used for this operation."""

    code: str = "INVALID_TARGET"

    def __init__(self, target_kind: str | None, target_id: int | None, reason: str):
        self.target_kind = target_kind
        self.target_id = target_id
        self.reason = reason
        super().__init__(
            f"Invalid assignment target {target_kind}({target_id}): {reason}",
            field="target",
        )


class InvalidSeatCountError(ValidationError):
    """Declared seat count is not a non-negative integer."""

    code: str = "INVALID_SEAT_COUNT"

    def __init__(self, seats: int):
        self.seats = seats
        super().__init__(f"Seat count must be >= 0, got {seats}", field="seats")


class SeatCountMismatchError(ValidationError):
    """The caller's previous seat count is not the license's live row count."""

    code: str = "SEAT_COUNT_MISMATCH"

    def __init__(self, license_id: int, expected: int, actual: int):
        self.license_id = license_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"License {license_id} has {actual} active seat(s), not {expected}",
            field="previous_seat_count",
        )


class AccessoryQuantityError(ValidationError):
    """Accessory quantity would fall below the units checked out."""

    code: str = "ACCESSORY_QUANTITY_TOO_LOW"

    def __init__(self, accessory_id: int, qty: int, checked_out: int):
        self.accessory_id = accessory_id
        self.qty = qty
        self.checked_out = checked_out
        super().__init__(
            f"Accessory {accessory_id} has {checked_out} unit(s) checked out; "
            f"quantity {qty} is too low",
            field="qty",
        )


class DuplicateAssetTagError(ValidationError):
    """Another active asset already carries this tag."""

    code: str = "DUPLICATE_ASSET_TAG"

    def __init__(self, tag: str, existing_asset_id: int):
        self.tag = tag
        self.existing_asset_id = existing_asset_id
        super().__init__(
            f"Asset tag {tag} is already used by asset {existing_asset_id}",
            field="tag",
        )


# Not-found exceptions


class NotFoundError(InventoryKernelError):
    """Base exception for missing or soft-deleted entities."""

    code: str = "NOT_FOUND"


class AssetNotFoundError(NotFoundError):
    """No active asset with the given id."""

    code: str = "ASSET_NOT_FOUND"

    def __init__(self, asset_id: int):
        self.asset_id = asset_id
        super().__init__(f"Asset not found: {asset_id}")


class LicenseNotFoundError(NotFoundError):
    """No active license with the given id."""

    code: str = "LICENSE_NOT_FOUND"

    def __init__(self, license_id: int):
        self.license_id = license_id
        super().__init__(f"License not found: {license_id}")


class SeatNotFoundError(NotFoundError):
    """No active seat (of an active license) with the given id."""

    code: str = "SEAT_NOT_FOUND"

    def __init__(self, seat_id: int):
        self.seat_id = seat_id
        super().__init__(f"License seat not found: {seat_id}")


class AccessoryNotFoundError(NotFoundError):
    """No active accessory with the given id."""

    code: str = "ACCESSORY_NOT_FOUND"

    def __init__(self, accessory_id: int):
        self.accessory_id = accessory_id
        super().__init__(f"Accessory not found: {accessory_id}")


class AccessoryCheckoutNotFoundError(NotFoundError):
    """No checkout row with the given id."""

    code: str = "ACCESSORY_CHECKOUT_NOT_FOUND"

    def __init__(self, checkout_id: int):
        self.checkout_id = checkout_id
        super().__init__(f"Accessory checkout not found: {checkout_id}")


# Assignment exceptions


class AssignmentError(InventoryKernelError):
    """Base exception for assign/release precondition failures."""

    code: str = "ASSIGNMENT_ERROR"


class AlreadyAssignedError(AssignmentError):
    """The entity is already assigned; release it first."""

    code: str = "ALREADY_ASSIGNED"

    def __init__(
        self,
        entity_type: str,
        entity_id: int,
        assigned_type: str | None = None,
        assigned_to: int | None = None,
    ):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.assigned_type = assigned_type
        self.assigned_to = assigned_to
        super().__init__(
            f"{entity_type} {entity_id} is already assigned "
            f"to {assigned_type}({assigned_to})"
        )


class AlreadyUnassignedError(AssignmentError):
    """The entity is not assigned; there is nothing to release."""

    code: str = "ALREADY_UNASSIGNED"

    def __init__(self, entity_type: str, entity_id: int):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} {entity_id} is not assigned")


class NotReassignableError(AssignmentError):
    """The seat's license does not allow releasing assigned seats."""

    code: str = "NOT_REASSIGNABLE"

    def __init__(self, seat_id: int, license_id: int):
        self.seat_id = seat_id
        self.license_id = license_id
        super().__init__(
            f"Seat {seat_id} cannot be released: license {license_id} "
            f"is not reassignable"
        )


class NoAvailableSeatsError(AssignmentError):
    """Every active seat of the license is assigned."""

    code: str = "NO_AVAILABLE_SEATS"

    def __init__(self, license_id: int):
        self.license_id = license_id
        super().__init__(f"License {license_id} has no available seat")


class NoAvailableAccessoryError(AssignmentError):
    """Every unit of the accessory is checked out."""

    code: str = "NO_AVAILABLE_ACCESSORY"

    def __init__(self, accessory_id: int, qty: int, checked_out: int):
        self.accessory_id = accessory_id
        self.qty = qty
        self.checked_out = checked_out
        super().__init__(
            f"Accessory {accessory_id} has no unit available "
            f"({checked_out} of {qty} checked out)"
        )


class AccessoryCheckedOutError(AssignmentError):
    """The accessory still has units checked out and cannot be deleted."""

    code: str = "ACCESSORY_CHECKED_OUT"

    def __init__(self, accessory_id: int, checked_out: int):
        self.accessory_id = accessory_id
        self.checked_out = checked_out
        super().__init__(
            f"Accessory {accessory_id} has {checked_out} unit(s) checked out"
        )


# Seat pool exceptions


class SeatPoolError(InventoryKernelError):
    """Base exception for seat pool reconciliation failures."""

    code: str = "SEAT_POOL_ERROR"


class InsufficientAvailableSeatsError(SeatPoolError):
    """Seat reduction requires retiring more free seats than exist."""

    code: str = "INSUFFICIENT_AVAILABLE_SEATS"

    def __init__(
        self,
        license_id: int,
        required: int,
        available: int,
        currently_assigned: int,
    ):
        self.license_id = license_id
        self.required = required
        self.available = available
        self.currently_assigned = currently_assigned
        super().__init__(
            f"Cannot retire {required} seat(s) of license {license_id}: "
            f"only {available} available, {currently_assigned} assigned"
        )

    @property
    def shortfall(self) -> int:
        return self.required - self.available


class LicenseHasAssignedSeatsError(SeatPoolError):
    """The license still has assigned seats and cannot be deleted."""

    code: str = "LICENSE_HAS_ASSIGNED_SEATS"

    def __init__(self, license_id: int, assigned: int):
        self.license_id = license_id
        self.assigned = assigned
        super().__init__(
            f"License {license_id} has {assigned} assigned seat(s)"
        )


# Infrastructure


class InfrastructureError(InventoryKernelError):
    """
    Store-level failure (connectivity, constraint violation).

    Distinct from the business taxonomy: always propagated, never returned
    inside a result, and the enclosing transaction is rolled back.
    """

    code: str = "INFRASTRUCTURE_FAILURE"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Infrastructure failure during {operation}: {detail}")
