"""
AssignmentWorkflow -- assign and release assets, license seats and
accessory units.

Responsibility:
    Orchestrates the two symmetric operations of the kernel for each
    entity kind:

        Asset assignment      asset -> User | Location | Asset
        Seat assignment       seat  -> User | Asset
        Accessory checkout    one unit -> User (a new checkout row)

    Each call validates its preconditions under a row lock, mutates the
    assignment columns and audit counters, stamps the audit fields and
    returns an ``OperationResult`` carrying the refreshed assignment.

Architecture position:
    Kernel > Services -- the only writer of ``Asset.assigned_*``,
    ``Asset.checkout_counter`` / ``checkin_counter``, the seat
    assignee columns and the accessory checkout rows.

Invariants enforced:
    ASSIGN_ONCE -- an assigned entity is not assigned again; the row is
        locked with SELECT ... FOR UPDATE so a concurrent assign re-reads
        the committed state and fails with AlreadyAssignedError.
    ASSIGNMENT_SHAPE -- kind, id and assigned-at are written and cleared
        together.
    SINGLE_SEAT_CHANNEL -- a seat gets ``assigned_to_user`` or
        ``asset_id``, never both; a location is not a seat target.
    REASSIGNABLE_POLICY -- seats of a non-reassignable license are never
        released.
    ACCESSORY_CAPACITY -- a unit is checked out only while active
        checkouts are below ``qty``; the accessory row is locked first.
    Every business check runs before the first write, so a rejected
    operation leaves the session untouched.

Failure modes (returned inside OperationResult, never raised):
    - ValidationError family: missing actor or target, unknown target,
      self-assignment, location on a seat, check-in before assignment.
    - NotFoundError family: entity missing or soft-deleted.
    - AssignmentError family: already assigned / unassigned, not
      reassignable, no available seat or accessory unit.
    InfrastructureError is raised (store failure); the caller's
    ``session_scope()`` rolls everything back.

Audit relevance:
    ``checkout_counter`` and ``checkin_counter`` are incremented in the
    same flush as the assignment change they count.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inventory_kernel.domain.assignment_target import (
    UNASSIGNED,
    AssetTarget,
    AssignmentTarget,
    LocationTarget,
    Unassigned,
    UserTarget,
    target_from_columns,
    target_to_columns,
)
from inventory_kernel.domain.clock import Clock
from inventory_kernel.domain.results import (
    AssignmentSnapshot,
    EntityType,
    OperationResult,
)
from inventory_kernel.exceptions import (
    AccessoryCheckoutNotFoundError,
    AccessoryNotFoundError,
    AlreadyAssignedError,
    AlreadyUnassignedError,
    AssetNotFoundError,
    AssignmentError,
    InfrastructureError,
    InvalidTargetError,
    LicenseNotFoundError,
    NoAvailableAccessoryError,
    NoAvailableSeatsError,
    NotFoundError,
    NotReassignableError,
    RequiredFieldError,
    SeatNotFoundError,
    ValidationError,
)
from inventory_kernel.invariants import KernelInvariant
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.accessory import Accessory, AccessoryCheckout
from inventory_kernel.models.asset import Asset
from inventory_kernel.models.license import License, LicenseSeat
from inventory_kernel.models.reference import StatusLabel
from inventory_kernel.selectors.accessory_selector import AccessorySelector
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.target_resolver import TargetResolver

logger = get_logger("services.assignment_workflow")

# Invariant reported in the rejection log line, by error type
_INVARIANT_FOR: dict[type, KernelInvariant] = {
    AlreadyAssignedError: KernelInvariant.ASSIGN_ONCE,
    AlreadyUnassignedError: KernelInvariant.ASSIGNMENT_SHAPE,
    InvalidTargetError: KernelInvariant.ASSIGNMENT_SHAPE,
    NotReassignableError: KernelInvariant.REASSIGNABLE_POLICY,
    NoAvailableSeatsError: KernelInvariant.SEAT_CAPACITY,
    NoAvailableAccessoryError: KernelInvariant.ACCESSORY_CAPACITY,
}

# Longest custodian chain followed when looking for the custodian's user
_MAX_CUSTODIAN_DEPTH = 32


def _entity_type_or_none(entity_type: EntityType | str) -> EntityType | None:
    try:
        return EntityType(entity_type)
    except ValueError:
        return None


def _unknown_entity_type(entity_type: Any, entity_id: int) -> OperationResult:
    error = ValidationError(f"Unknown entity type: {entity_type!r}", field="entity_type")
    logger.warning(
        "entity_type_rejected",
        extra={"requested_type": str(entity_type), "error_code": error.code},
    )
    return OperationResult.rejected(None, entity_id, error)


class AssignmentWorkflow(BaseService[Asset]):
    """
    Assign/release orchestration for assets, license seats and accessories.

    Contract:
        Public methods never raise for business-rule violations; they
        return ``OperationResult.rejected(...)``.  Only
        ``InfrastructureError`` propagates.

    Non-goals:
        - Does NOT create or retire seats (SeatPoolManager).
        - Does NOT commit; the caller owns the transaction.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        resolver: TargetResolver | None = None,
    ):
        super().__init__(session, clock)
        self._resolver = resolver or TargetResolver.for_session(session)

    # =========================================================================
    # Generic entry points
    # =========================================================================

    def assign(
        self,
        entity_type: EntityType | str,
        entity_id: int,
        target: AssignmentTarget,
        actor_id: int,
        *,
        assigned_at: datetime | None = None,
        expected_checkin: date | None = None,
    ) -> OperationResult:
        """Assign an asset, a seat or an accessory unit, dispatching on ``entity_type``."""
        kind = _entity_type_or_none(entity_type)
        if kind is None:
            return _unknown_entity_type(entity_type, entity_id)
        match kind:
            case EntityType.ASSET:
                return self.assign_asset(
                    entity_id, target, actor_id,
                    assigned_at=assigned_at, expected_checkin=expected_checkin,
                )
            case EntityType.LICENSE_SEAT:
                if expected_checkin is not None:
                    return OperationResult.rejected(
                        EntityType.LICENSE_SEAT,
                        entity_id,
                        ValidationError(
                            "Seats have no expected check-in date",
                            field="expected_checkin",
                        ),
                    )
                return self.assign_seat(entity_id, target, actor_id, assigned_at=assigned_at)
            case EntityType.ACCESSORY:
                if assigned_at is not None or expected_checkin is not None:
                    return OperationResult.rejected(
                        EntityType.ACCESSORY,
                        entity_id,
                        ValidationError("Accessory checkouts take no dates"),
                    )
                return self.assign_accessory(entity_id, target, actor_id)
            case other:
                return OperationResult.rejected(
                    other,
                    entity_id,
                    ValidationError(f"{other.value} cannot be assigned", field="entity_type"),
                )

    def release(
        self,
        entity_type: EntityType | str,
        entity_id: int,
        actor_id: int,
        *,
        new_status_id: int | None = None,
        new_location_id: int | None = None,
    ) -> OperationResult:
        """Release an asset or a seat, dispatching on ``entity_type``."""
        kind = _entity_type_or_none(entity_type)
        if kind is None:
            return _unknown_entity_type(entity_type, entity_id)
        match kind:
            case EntityType.ASSET:
                return self.release_asset(
                    entity_id, actor_id,
                    new_status_id=new_status_id, new_location_id=new_location_id,
                )
            case EntityType.LICENSE_SEAT:
                if new_status_id is not None or new_location_id is not None:
                    return OperationResult.rejected(
                        EntityType.LICENSE_SEAT,
                        entity_id,
                        ValidationError("Status and location apply to assets only"),
                    )
                return self.release_seat(entity_id, actor_id)
            case EntityType.ACCESSORY:
                return OperationResult.rejected(
                    EntityType.ACCESSORY,
                    entity_id,
                    ValidationError(
                        "Accessory units are returned by checkout id", field="entity_type",
                    ),
                )
            case other:
                return OperationResult.rejected(
                    other,
                    entity_id,
                    ValidationError(f"{other.value} cannot be released", field="entity_type"),
                )

    # =========================================================================
    # Assets
    # =========================================================================

    def assign_asset(
        self,
        asset_id: int,
        target: AssignmentTarget,
        actor_id: int,
        *,
        assigned_at: datetime | None = None,
        expected_checkin: date | None = None,
    ) -> OperationResult:
        """
        Assign an unassigned asset to a user, a location or another asset.

        Location handling:
            User     -> ``location_id`` cleared
            Location -> ``location_id`` set to the target
            Asset    -> ``location_id`` copied from the custodian asset,
                        whose user is frozen into ``custodian_user_id``
        """
        return self._execute(
            "asset_assign",
            "asset_assigned",
            EntityType.ASSET,
            asset_id,
            actor_id,
            lambda: self._assign_asset(asset_id, target, actor_id, assigned_at, expected_checkin),
        )

    def release_asset(
        self,
        asset_id: int,
        actor_id: int,
        *,
        new_status_id: int | None = None,
        new_location_id: int | None = None,
    ) -> OperationResult:
        """Return an assigned asset, optionally recording its new status and location."""
        return self._execute(
            "asset_release",
            "asset_released",
            EntityType.ASSET,
            asset_id,
            actor_id,
            lambda: self._release_asset(asset_id, actor_id, new_status_id, new_location_id),
        )

    def _assign_asset(
        self,
        asset_id: int,
        target: AssignmentTarget,
        actor_id: int,
        assigned_at: datetime | None,
        expected_checkin: date | None,
    ) -> AssignmentSnapshot:
        self._ledger.require_actor(actor_id)
        self._require_target(target)

        asset = self._lock_asset(asset_id)
        # INVARIANT: ASSIGN_ONCE
        if asset.is_assigned:
            raise AlreadyAssignedError(
                EntityType.ASSET.value, asset.id, asset.assigned_type, asset.assigned_to,
            )

        location_id, custodian_user_id = self._resolve_asset_target(asset, target)
        assigned_at = assigned_at or self._clock.now()
        if expected_checkin is not None and expected_checkin < assigned_at.date():
            raise ValidationError(
                f"Expected check-in {expected_checkin} is before the assignment "
                f"date {assigned_at.date()}",
                field="expected_checkin",
            )

        asset.assigned_type, asset.assigned_to = target_to_columns(target)
        asset.assigned_at = assigned_at
        asset.expected_checkin = expected_checkin
        asset.custodian_user_id = custodian_user_id
        asset.location_id = location_id
        asset.checkout_counter = (asset.checkout_counter or 0) + 1
        self._ledger.stamp_modified(asset, actor_id)
        self.session.flush()
        return self._asset_snapshot(asset)

    def _release_asset(
        self,
        asset_id: int,
        actor_id: int,
        new_status_id: int | None,
        new_location_id: int | None,
    ) -> AssignmentSnapshot:
        self._ledger.require_actor(actor_id)

        asset = self._lock_asset(asset_id)
        if not asset.is_assigned:
            raise AlreadyUnassignedError(EntityType.ASSET.value, asset.id)

        if new_status_id is not None and not self._status_exists(new_status_id):
            raise ValidationError(f"Unknown status label: {new_status_id}", field="status_id")
        if new_location_id is not None:
            location = LocationTarget(new_location_id)
            if not self._resolver.exists(location):
                raise InvalidTargetError(
                    location.kind.value, new_location_id, "location not found",
                )

        asset.assigned_type = None
        asset.assigned_to = None
        asset.assigned_at = None
        asset.expected_checkin = None
        asset.custodian_user_id = None
        if new_status_id is not None:
            asset.status_id = new_status_id
        if new_location_id is not None:
            asset.location_id = new_location_id
        asset.checkin_counter = (asset.checkin_counter or 0) + 1
        self._ledger.stamp_modified(asset, actor_id)
        self.session.flush()
        return self._asset_snapshot(asset)

    def _resolve_asset_target(
        self, asset: Asset, target: AssignmentTarget,
    ) -> tuple[int | None, int | None]:
        """Return the ``(location_id, custodian_user_id)`` the assignment implies."""
        match target:
            case UserTarget():
                self._require_existing(target)
                return None, None
            case LocationTarget(location_id=location_id):
                self._require_existing(target)
                return location_id, None
            case AssetTarget(asset_id=custodian_id):
                if custodian_id == asset.id:
                    raise InvalidTargetError(
                        target.kind.value, custodian_id, "an asset cannot be assigned to itself",
                    )
                custodian = self._require_custodian(custodian_id)
                if self._custodian_chain_reaches(custodian, asset.id):
                    raise InvalidTargetError(
                        target.kind.value, custodian_id, "assignment would form a cycle",
                    )
                return custodian.location_id, self._custodian_user_of(custodian)
            case Unassigned():
                raise RequiredFieldError("target")

    # =========================================================================
    # License seats
    # =========================================================================

    def assign_seat(
        self,
        seat_id: int,
        target: AssignmentTarget,
        actor_id: int,
        *,
        assigned_at: datetime | None = None,
    ) -> OperationResult:
        """Assign one specific available seat to a user or an asset."""
        return self._execute(
            "seat_assign",
            "seat_assigned",
            EntityType.LICENSE_SEAT,
            seat_id,
            actor_id,
            lambda: self._assign_seat(seat_id, target, actor_id, assigned_at),
        )

    def assign_next_available_seat(
        self,
        license_id: int,
        target: AssignmentTarget,
        actor_id: int,
        *,
        assigned_at: datetime | None = None,
    ) -> OperationResult:
        """Assign the lowest-id available seat of a license."""
        return self._execute(
            "seat_assign",
            "seat_assigned",
            EntityType.LICENSE_SEAT,
            None,
            actor_id,
            lambda: self._assign_next_available_seat(license_id, target, actor_id, assigned_at),
            license_id=license_id,
        )

    def release_seat(self, seat_id: int, actor_id: int) -> OperationResult:
        """Free an assigned seat, if its license is reassignable."""
        return self._execute(
            "seat_release",
            "seat_released",
            EntityType.LICENSE_SEAT,
            seat_id,
            actor_id,
            lambda: self._release_seat(seat_id, actor_id),
        )

    def _assign_seat(
        self,
        seat_id: int,
        target: AssignmentTarget,
        actor_id: int,
        assigned_at: datetime | None,
    ) -> AssignmentSnapshot:
        self._ledger.require_actor(actor_id)
        self._require_seat_target(target)
        seat = self._lock_seat(seat_id)
        return self._assign_locked_seat(seat, target, actor_id, assigned_at)

    def _assign_next_available_seat(
        self,
        license_id: int,
        target: AssignmentTarget,
        actor_id: int,
        assigned_at: datetime | None,
    ) -> AssignmentSnapshot:
        self._ledger.require_actor(actor_id)
        self._require_seat_target(target)

        # Serializes with reconcile and other picks on the same license
        license = self.session.execute(
            select(License)
            .where(License.id == license_id, License.is_active)
            .with_for_update()
        ).scalar_one_or_none()
        if license is None:
            raise LicenseNotFoundError(license_id)

        seat = self.session.execute(
            select(LicenseSeat)
            .where(
                LicenseSeat.license_id == license_id,
                LicenseSeat.is_active,
                LicenseSeat.assigned_to_user.is_(None),
                LicenseSeat.asset_id.is_(None),
            )
            .order_by(LicenseSeat.id)
            .limit(1)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if seat is None:
            raise NoAvailableSeatsError(license_id)
        return self._assign_locked_seat(seat, target, actor_id, assigned_at)

    def _assign_locked_seat(
        self,
        seat: LicenseSeat,
        target: AssignmentTarget,
        actor_id: int,
        assigned_at: datetime | None,
    ) -> AssignmentSnapshot:
        # INVARIANT: ASSIGN_ONCE
        if seat.is_assigned:
            current = self._seat_target(seat)
            raise AlreadyAssignedError(
                EntityType.LICENSE_SEAT.value, seat.id, *target_to_columns(current),
            )

        # INVARIANT: SINGLE_SEAT_CHANNEL -- exactly one of the two is set
        user_id: int | None = None
        asset_id: int | None = None
        custodian_user_id: int | None = None
        match target:
            case UserTarget(user_id=target_user):
                self._require_existing(target)
                user_id = target_user
            case AssetTarget(asset_id=target_asset):
                custodian = self._require_custodian(target_asset)
                asset_id = target_asset
                custodian_user_id = self._custodian_user_of(custodian)

        seat.assigned_to_user = user_id
        seat.asset_id = asset_id
        seat.custodian_user_id = custodian_user_id
        seat.assigned_at = assigned_at or self._clock.now()
        self._ledger.stamp_modified(seat, actor_id)
        self.session.flush()
        return self._seat_snapshot(seat)

    def _release_seat(self, seat_id: int, actor_id: int) -> AssignmentSnapshot:
        self._ledger.require_actor(actor_id)

        seat = self._lock_seat(seat_id)
        if not seat.is_assigned:
            raise AlreadyUnassignedError(EntityType.LICENSE_SEAT.value, seat.id)
        # INVARIANT: REASSIGNABLE_POLICY
        if not seat.license.reassignable:
            raise NotReassignableError(seat.id, seat.license_id)

        seat.assigned_to_user = None
        seat.asset_id = None
        seat.custodian_user_id = None
        seat.assigned_at = None
        self._ledger.stamp_modified(seat, actor_id)
        self.session.flush()
        return self._seat_snapshot(seat)

    # =========================================================================
    # Accessories
    # =========================================================================

    def assign_accessory(
        self,
        accessory_id: int,
        target: AssignmentTarget,
        actor_id: int,
        *,
        note: str | None = None,
    ) -> OperationResult:
        """
        Check one unit of an accessory out to a user.

        Each call adds one checkout row; the same user may hold several
        units.  Refused when every unit is already checked out.
        """
        return self._execute(
            "accessory_assign",
            "accessory_assigned",
            EntityType.ACCESSORY,
            accessory_id,
            actor_id,
            lambda: self._assign_accessory(accessory_id, target, actor_id, note),
        )

    def release_accessory(self, checkout_id: int, actor_id: int) -> OperationResult:
        """Return a checked-out unit; the checkout row is soft-deleted."""
        return self._execute(
            "accessory_release",
            "accessory_released",
            EntityType.ACCESSORY,
            None,
            actor_id,
            lambda: self._release_accessory(checkout_id, actor_id),
            checkout_id=checkout_id,
        )

    def _assign_accessory(
        self,
        accessory_id: int,
        target: AssignmentTarget,
        actor_id: int,
        note: str | None,
    ) -> AssignmentSnapshot:
        self._ledger.require_actor(actor_id)
        self._require_target(target)
        if not isinstance(target, UserTarget):
            raise InvalidTargetError(
                target.kind.value, target.target_id,
                "an accessory can only be checked out to a user",
            )
        self._require_existing(target)

        accessory = self._lock_accessory(accessory_id)
        checked_out = AccessorySelector(self.session).checked_out(accessory.id)
        # INVARIANT: ACCESSORY_CAPACITY
        if accessory.qty - checked_out <= 0:
            raise NoAvailableAccessoryError(accessory.id, accessory.qty, checked_out)

        checkout = AccessoryCheckout(
            accessory_id=accessory.id, assigned_to=target.user_id, note=note,
        )
        self._ledger.stamp_created(checkout, actor_id)
        self.session.add(checkout)
        self.session.flush()
        return self._accessory_snapshot(accessory, checkout, checked_out + 1)

    def _release_accessory(self, checkout_id: int, actor_id: int) -> AssignmentSnapshot:
        self._ledger.require_actor(actor_id)

        checkout = self.session.execute(
            select(AccessoryCheckout)
            .where(AccessoryCheckout.id == checkout_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if checkout is None:
            raise AccessoryCheckoutNotFoundError(checkout_id)
        if not checkout.is_active:
            raise AlreadyUnassignedError(EntityType.ACCESSORY.value, checkout.accessory_id)

        accessory = self._lock_accessory(checkout.accessory_id)
        self._ledger.soft_delete(checkout, actor_id)
        self.session.flush()
        checked_out = AccessorySelector(self.session).checked_out(accessory.id)
        return self._accessory_snapshot(accessory, checkout, checked_out)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _execute(
        self,
        action: str,
        success_event: str,
        entity_type: EntityType,
        entity_id: int | None,
        actor_id: int,
        operation: Callable[[], AssignmentSnapshot],
        **log_extra: Any,
    ) -> OperationResult:
        """Run ``operation``, turning business errors into a rejected result."""
        with LogContext.bind(
            actor_id=actor_id, entity_type=entity_type.value, entity_id=entity_id,
        ):
            try:
                snapshot = operation()
            except (ValidationError, NotFoundError, AssignmentError) as exc:
                invariant = _INVARIANT_FOR.get(type(exc))
                logger.warning(
                    f"{action}_rejected",
                    extra={
                        **log_extra,
                        "error_code": exc.code,
                        "reason": str(exc),
                        "invariant": invariant.value if invariant else None,
                    },
                )
                return OperationResult.rejected(entity_type, entity_id, exc)
            except SQLAlchemyError as exc:
                logger.error(f"{action}_failed", extra=log_extra, exc_info=True)
                raise InfrastructureError(action, str(exc)) from exc

            target_type, target_id = target_to_columns(snapshot.target)
            extra: dict[str, Any] = {**log_extra, "target_type": target_type, "target_id": target_id}
            if entity_type is EntityType.LICENSE_SEAT:
                extra["seat_id"] = snapshot.entity_id
            elif entity_type is EntityType.ACCESSORY:
                extra["checkout_id"] = snapshot.checkout_id
                extra["available_qty"] = snapshot.available_qty
            logger.info(success_event, extra=extra)
        return OperationResult.succeeded(snapshot)

    def _lock_asset(self, asset_id: int) -> Asset:
        asset = self.session.execute(
            select(Asset)
            .where(Asset.id == asset_id, Asset.is_active)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if asset is None:
            raise AssetNotFoundError(asset_id)
        return asset

    def _lock_seat(self, seat_id: int) -> LicenseSeat:
        seat = self.session.execute(
            select(LicenseSeat)
            .join(License, LicenseSeat.license_id == License.id)
            .where(LicenseSeat.id == seat_id, LicenseSeat.is_active, License.is_active)
            .with_for_update(of=LicenseSeat)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if seat is None:
            raise SeatNotFoundError(seat_id)
        return seat

    def _lock_accessory(self, accessory_id: int) -> Accessory:
        accessory = self.session.execute(
            select(Accessory)
            .where(Accessory.id == accessory_id, Accessory.is_active)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if accessory is None:
            raise AccessoryNotFoundError(accessory_id)
        return accessory

    @staticmethod
    def _require_target(target: AssignmentTarget) -> None:
        if target is None or isinstance(target, Unassigned):
            raise RequiredFieldError("target")

    def _require_seat_target(self, target: AssignmentTarget) -> None:
        self._require_target(target)
        if isinstance(target, LocationTarget):
            raise InvalidTargetError(
                target.kind.value, target.target_id,
                "a license seat cannot be assigned to a location",
            )

    def _require_existing(self, target: AssignmentTarget) -> None:
        if not self._resolver.exists(target):
            raise InvalidTargetError(
                target.kind.value, target.target_id, f"{target.kind.value} not found",
            )

    def _require_custodian(self, asset_id: int) -> Asset:
        custodian = self.session.execute(
            select(Asset).where(Asset.id == asset_id, Asset.is_active)
        ).scalar_one_or_none()
        if custodian is None:
            raise InvalidTargetError("asset", asset_id, "custodian asset not found")
        return custodian

    def _custodian_chain_reaches(self, custodian: Asset, asset_id: int) -> bool:
        """True when following ``custodian``'s asset assignments leads to ``asset_id``."""
        current: Asset | None = custodian
        for _ in range(_MAX_CUSTODIAN_DEPTH):
            if current is None or current.assigned_type != "asset":
                return False
            if current.assigned_to == asset_id:
                return True
            current = self.session.get(Asset, current.assigned_to)
        return False

    @staticmethod
    def _custodian_user_of(custodian: Asset) -> int | None:
        """User reached through the custodian asset, at this moment."""
        if custodian.assigned_type == "user":
            return custodian.assigned_to
        return custodian.custodian_user_id

    def _status_exists(self, status_id: int) -> bool:
        return self.session.execute(
            select(StatusLabel.id).where(StatusLabel.id == status_id, StatusLabel.is_active)
        ).scalar_one_or_none() is not None

    @staticmethod
    def _seat_target(seat: LicenseSeat) -> AssignmentTarget:
        if seat.assigned_to_user is not None:
            return UserTarget(seat.assigned_to_user)
        if seat.asset_id is not None:
            return AssetTarget(seat.asset_id)
        return UNASSIGNED

    @staticmethod
    def _asset_snapshot(asset: Asset) -> AssignmentSnapshot:
        return AssignmentSnapshot(
            entity_type=EntityType.ASSET,
            entity_id=asset.id,
            target=target_from_columns(asset.assigned_type, asset.assigned_to),
            assigned_at=asset.assigned_at,
            expected_checkin=asset.expected_checkin,
            custodian_user_id=asset.custodian_user_id,
            location_id=asset.location_id,
            status_id=asset.status_id,
            checkout_counter=asset.checkout_counter,
            checkin_counter=asset.checkin_counter,
        )

    @classmethod
    def _seat_snapshot(cls, seat: LicenseSeat) -> AssignmentSnapshot:
        return AssignmentSnapshot(
            entity_type=EntityType.LICENSE_SEAT,
            entity_id=seat.id,
            target=cls._seat_target(seat),
            assigned_at=seat.assigned_at,
            custodian_user_id=seat.custodian_user_id,
            license_id=seat.license_id,
        )

    @staticmethod
    def _accessory_snapshot(
        accessory: Accessory, checkout: AccessoryCheckout, checked_out: int,
    ) -> AssignmentSnapshot:
        return AssignmentSnapshot(
            entity_type=EntityType.ACCESSORY,
            entity_id=accessory.id,
            target=UserTarget(checkout.assigned_to) if checkout.is_active else UNASSIGNED,
            assigned_at=checkout.created_at if checkout.is_active else None,
            checkout_id=checkout.id,
            available_qty=accessory.qty - checked_out,
        )
