"""
Tests for AssignmentWorkflow.

Invariants tested:
- Assign on an assigned entity fails (AlreadyAssignedError), state untouched
- Release(Assign(e, T)) restores e to Unassigned
- Counters move by exactly one per successful assign / release
- A seat is assigned through one channel only; never to a location
- Seats of non-reassignable licenses are never released
- Accessory checkouts never exceed the stocked quantity
- Business errors come back as rejected results; store failures raise
  InfrastructureError
"""

from datetime import date, timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from inventory_kernel.domain.assignment_target import (
    UNASSIGNED,
    AssetTarget,
    LocationTarget,
    UserTarget,
)
from inventory_kernel.domain.results import EntityType, OperationStatus
from inventory_kernel.exceptions import (
    AccessoryCheckoutNotFoundError,
    AccessoryNotFoundError,
    AlreadyAssignedError,
    AlreadyUnassignedError,
    AssetNotFoundError,
    InfrastructureError,
    InvalidTargetError,
    LicenseNotFoundError,
    NoAvailableAccessoryError,
    NoAvailableSeatsError,
    NotReassignableError,
    RequiredFieldError,
    SeatNotFoundError,
    ValidationError,
)
from inventory_kernel.invariants import KernelInvariant
from inventory_kernel.models.accessory import AccessoryCheckout
from inventory_kernel.models.asset import Asset
from inventory_kernel.models.license import LicenseSeat
from inventory_kernel.selectors.seat_selector import SeatSelector


def _first_seat(session, license_id) -> int:
    return SeatSelector(session).available_seat_ids(license_id, limit=1)[0]


class TestAssignAsset:
    def test_assign_to_user(self, session, workflow, make_asset, make_user, deterministic_clock, test_actor_id):
        asset = make_asset()
        user = make_user("Alice")

        result = workflow.assign_asset(asset.id, UserTarget(user.id), test_actor_id)

        assert result.is_success
        assert result.status == OperationStatus.SUCCEEDED
        snapshot = result.snapshot
        assert snapshot.entity_type == EntityType.ASSET
        assert snapshot.target == UserTarget(user.id)
        assert snapshot.assigned_at == deterministic_clock.now()
        assert snapshot.checkout_counter == 1

        row = session.get(Asset, asset.id)
        assert (row.assigned_type, row.assigned_to) == ("user", user.id)
        assert row.updated_by_id == test_actor_id

    def test_second_assign_fails_and_leaves_state(self, session, workflow, make_asset, make_user, test_actor_id):
        asset = make_asset()
        first, second = make_user(), make_user()
        workflow.assign_asset(asset.id, UserTarget(first.id), test_actor_id)

        result = workflow.assign_asset(asset.id, UserTarget(second.id), test_actor_id)

        assert not result.is_success
        assert result.error_code == "ALREADY_ASSIGNED"
        assert isinstance(result.error, AlreadyAssignedError)
        assert result.error.assigned_to == first.id
        row = session.get(Asset, asset.id)
        assert row.assigned_to == first.id
        assert row.checkout_counter == 1

    def test_explicit_dates(self, workflow, make_asset, make_user, deterministic_clock, test_actor_id):
        asset = make_asset()
        user = make_user()
        when = deterministic_clock.now() - timedelta(days=2)
        due = date(2024, 2, 1)

        result = workflow.assign_asset(
            asset.id, UserTarget(user.id), test_actor_id,
            assigned_at=when, expected_checkin=due,
        )

        assert result.snapshot.assigned_at == when
        assert result.snapshot.expected_checkin == due

    def test_checkin_before_assignment_rejected(self, workflow, make_asset, make_user, test_actor_id):
        asset = make_asset()

        result = workflow.assign_asset(
            asset.id, UserTarget(make_user().id), test_actor_id,
            expected_checkin=date(2023, 12, 31),
        )

        assert isinstance(result.error, ValidationError)
        assert result.error.field == "expected_checkin"

    def test_assign_to_user_clears_location(self, session, workflow, make_asset, make_user, make_location, test_actor_id):
        asset = make_asset(location_id=make_location().id)

        workflow.assign_asset(asset.id, UserTarget(make_user().id), test_actor_id)

        assert session.get(Asset, asset.id).location_id is None

    def test_assign_to_location_sets_location(self, workflow, make_asset, make_location, test_actor_id):
        asset = make_asset()
        warehouse = make_location("Warehouse")

        result = workflow.assign_asset(asset.id, LocationTarget(warehouse.id), test_actor_id)

        assert result.snapshot.target == LocationTarget(warehouse.id)
        assert result.snapshot.location_id == warehouse.id

    def test_assign_to_asset_freezes_custodian_user(
        self, session, workflow, make_asset, make_user, make_location, test_actor_id,
    ):
        office = make_location("Office")
        laptop = make_asset(name="Laptop", location_id=office.id)
        dock = make_asset(name="Dock")
        alice, bob = make_user("Alice"), make_user("Bob")
        workflow.assign_asset(laptop.id, UserTarget(alice.id), test_actor_id)
        # The laptop's location was cleared by the user assignment
        session.get(Asset, laptop.id).location_id = office.id
        session.flush()

        result = workflow.assign_asset(dock.id, AssetTarget(laptop.id), test_actor_id)

        assert result.is_success
        assert result.snapshot.target == AssetTarget(laptop.id)
        assert result.snapshot.custodian_user_id == alice.id
        assert result.snapshot.location_id == office.id

        # Frozen at assignment time: moving the laptop does not follow through
        workflow.release_asset(laptop.id, test_actor_id)
        workflow.assign_asset(laptop.id, UserTarget(bob.id), test_actor_id)
        assert session.get(Asset, dock.id).custodian_user_id == alice.id

    def test_custodian_user_reached_through_a_chain(self, workflow, make_asset, make_user, test_actor_id):
        alice = make_user("Alice")
        laptop, dock, cable = make_asset(), make_asset(), make_asset()
        workflow.assign_asset(laptop.id, UserTarget(alice.id), test_actor_id)
        workflow.assign_asset(dock.id, AssetTarget(laptop.id), test_actor_id)

        result = workflow.assign_asset(cable.id, AssetTarget(dock.id), test_actor_id)

        assert result.snapshot.custodian_user_id == alice.id

    def test_self_assignment_rejected(self, workflow, make_asset, test_actor_id):
        asset = make_asset()

        result = workflow.assign_asset(asset.id, AssetTarget(asset.id), test_actor_id)

        assert isinstance(result.error, InvalidTargetError)

    def test_cycle_rejected(self, workflow, make_asset, test_actor_id):
        laptop, dock = make_asset(), make_asset()
        workflow.assign_asset(dock.id, AssetTarget(laptop.id), test_actor_id)

        result = workflow.assign_asset(laptop.id, AssetTarget(dock.id), test_actor_id)

        assert isinstance(result.error, InvalidTargetError)
        assert "cycle" in result.error.reason

    @pytest.mark.parametrize("kind", ["user", "location", "asset"])
    def test_unknown_target_rejected(self, session, workflow, make_asset, test_actor_id, kind):
        asset = make_asset()
        target = {"user": UserTarget, "location": LocationTarget, "asset": AssetTarget}[kind](999_999)

        result = workflow.assign_asset(asset.id, target, test_actor_id)

        assert isinstance(result.error, InvalidTargetError)
        assert result.error.target_kind == kind
        assert session.get(Asset, asset.id).checkout_counter == 0

    def test_deleted_user_is_not_a_target(self, session, workflow, make_asset, make_user, deterministic_clock, test_actor_id):
        user = make_user()
        user.deleted_at = deterministic_clock.now()
        session.flush()

        result = workflow.assign_asset(make_asset().id, UserTarget(user.id), test_actor_id)

        assert isinstance(result.error, InvalidTargetError)

    def test_unassigned_target_rejected(self, workflow, make_asset, test_actor_id):
        result = workflow.assign_asset(make_asset().id, UNASSIGNED, test_actor_id)

        assert isinstance(result.error, RequiredFieldError)
        assert result.error.field == "target"

    def test_missing_asset_rejected(self, workflow, make_user, test_actor_id):
        result = workflow.assign_asset(999_999, UserTarget(make_user().id), test_actor_id)

        assert isinstance(result.error, AssetNotFoundError)
        assert result.entity_id == 999_999

    def test_missing_actor_rejected(self, session, workflow, make_asset, make_user):
        asset = make_asset()

        result = workflow.assign_asset(asset.id, UserTarget(make_user().id), None)

        assert isinstance(result.error, RequiredFieldError)
        assert not session.get(Asset, asset.id).is_assigned


class TestReleaseAsset:
    def test_release_is_inverse_of_assign(self, session, workflow, make_asset, make_user, test_actor_id):
        asset = make_asset()
        workflow.assign_asset(
            asset.id, UserTarget(make_user().id), test_actor_id,
            expected_checkin=date(2024, 3, 1),
        )

        result = workflow.release_asset(asset.id, test_actor_id)

        assert result.is_success
        assert result.snapshot.target == UNASSIGNED
        assert not result.snapshot.is_assigned
        row = session.get(Asset, asset.id)
        assert row.assigned_type is None
        assert row.assigned_to is None
        assert row.assigned_at is None
        assert row.expected_checkin is None
        assert row.custodian_user_id is None
        assert (row.checkout_counter, row.checkin_counter) == (1, 1)

    def test_release_applies_status_and_location(
        self, workflow, make_asset, make_user, make_location, make_status, test_actor_id,
    ):
        asset = make_asset()
        workflow.assign_asset(asset.id, UserTarget(make_user().id), test_actor_id)
        repair = make_status("In repair", deployable=False)
        depot = make_location("Depot")

        result = workflow.release_asset(
            asset.id, test_actor_id, new_status_id=repair.id, new_location_id=depot.id,
        )

        assert result.snapshot.status_id == repair.id
        assert result.snapshot.location_id == depot.id

    def test_release_unassigned_fails(self, workflow, make_asset, test_actor_id):
        asset = make_asset()

        result = workflow.release_asset(asset.id, test_actor_id)

        assert isinstance(result.error, AlreadyUnassignedError)
        assert result.error_code == "ALREADY_UNASSIGNED"

    def test_unknown_status_rejected_before_release(self, session, workflow, make_asset, make_user, test_actor_id):
        asset = make_asset()
        workflow.assign_asset(asset.id, UserTarget(make_user().id), test_actor_id)

        result = workflow.release_asset(asset.id, test_actor_id, new_status_id=999_999)

        assert result.error.field == "status_id"
        row = session.get(Asset, asset.id)
        assert row.is_assigned
        assert row.checkin_counter == 0

    def test_counters_over_many_cycles(self, session, workflow, make_asset, make_user, make_location, test_actor_id):
        asset = make_asset()
        user = make_user()
        location = make_location()

        for target in [UserTarget(user.id), LocationTarget(location.id), UserTarget(user.id)]:
            assert workflow.assign_asset(asset.id, target, test_actor_id).is_success
            assert workflow.release_asset(asset.id, test_actor_id).is_success

        row = session.get(Asset, asset.id)
        assert (row.checkout_counter, row.checkin_counter) == (3, 3)


class TestAssignSeat:
    def test_assign_seat_to_user(self, session, workflow, make_license, make_user, test_actor_id):
        license_id = make_license(seats=2)
        seat_id = _first_seat(session, license_id)
        user = make_user()

        result = workflow.assign_seat(seat_id, UserTarget(user.id), test_actor_id)

        assert result.is_success
        assert result.snapshot.entity_type == EntityType.LICENSE_SEAT
        assert result.snapshot.license_id == license_id
        seat = session.get(LicenseSeat, seat_id)
        assert seat.assigned_to_user == user.id
        assert seat.asset_id is None

    def test_assign_seat_to_asset(self, session, workflow, make_license, make_asset, make_user, test_actor_id):
        license_id = make_license(seats=1)
        seat_id = _first_seat(session, license_id)
        alice = make_user("Alice")
        laptop = make_asset()
        workflow.assign_asset(laptop.id, UserTarget(alice.id), test_actor_id)

        result = workflow.assign_seat(seat_id, AssetTarget(laptop.id), test_actor_id)

        assert result.snapshot.target == AssetTarget(laptop.id)
        assert result.snapshot.custodian_user_id == alice.id
        seat = session.get(LicenseSeat, seat_id)
        # Single channel: the custodian user is informational only
        assert seat.asset_id == laptop.id
        assert seat.assigned_to_user is None

    def test_location_is_not_a_seat_target(self, session, workflow, make_license, make_location, test_actor_id):
        license_id = make_license(seats=1)
        seat_id = _first_seat(session, license_id)

        result = workflow.assign_seat(seat_id, LocationTarget(make_location().id), test_actor_id)

        assert isinstance(result.error, InvalidTargetError)
        assert session.get(LicenseSeat, seat_id).is_available

    def test_assigned_seat_cannot_be_reassigned(self, session, workflow, make_license, make_user, make_asset, test_actor_id):
        license_id = make_license(seats=1)
        seat_id = _first_seat(session, license_id)
        user = make_user()
        workflow.assign_seat(seat_id, UserTarget(user.id), test_actor_id)

        result = workflow.assign_seat(seat_id, AssetTarget(make_asset().id), test_actor_id)

        assert isinstance(result.error, AlreadyAssignedError)
        seat = session.get(LicenseSeat, seat_id)
        assert seat.assigned_to_user == user.id
        assert seat.asset_id is None

    def test_retired_seat_not_found(self, session, workflow, seat_pool, make_license, make_user, test_actor_id):
        license_id = make_license(seats=1)
        seat_id = _first_seat(session, license_id)
        seat_pool.reconcile(license_id, 1, 0, test_actor_id)

        result = workflow.assign_seat(seat_id, UserTarget(make_user().id), test_actor_id)

        assert isinstance(result.error, SeatNotFoundError)

    def test_next_available_picks_lowest_seat(self, session, workflow, make_license, make_user, test_actor_id):
        license_id = make_license(seats=3)
        seat_ids = SeatSelector(session).available_seat_ids(license_id)

        first = workflow.assign_next_available_seat(license_id, UserTarget(make_user().id), test_actor_id)
        second = workflow.assign_next_available_seat(license_id, UserTarget(make_user().id), test_actor_id)

        assert [first.entity_id, second.entity_id] == seat_ids[:2]

    def test_next_available_with_full_license(self, workflow, make_license, assign_seats, make_user, test_actor_id):
        license_id = make_license(seats=2)
        assign_seats(license_id, 2)

        result = workflow.assign_next_available_seat(license_id, UserTarget(make_user().id), test_actor_id)

        assert isinstance(result.error, NoAvailableSeatsError)
        assert result.error.license_id == license_id
        assert result.entity_type == EntityType.LICENSE_SEAT

    def test_next_available_on_deleted_license(self, workflow, license_service, make_license, make_user, test_actor_id):
        license_id = make_license(seats=2)
        license_service.delete_license(license_id, test_actor_id)

        result = workflow.assign_next_available_seat(license_id, UserTarget(make_user().id), test_actor_id)

        assert isinstance(result.error, LicenseNotFoundError)


class TestReleaseSeat:
    def test_release_seat(self, session, workflow, make_license, assign_seats, test_actor_id):
        license_id = make_license(seats=1)
        (seat_id,) = assign_seats(license_id, 1)

        result = workflow.release_seat(seat_id, test_actor_id)

        assert result.is_success
        assert session.get(LicenseSeat, seat_id).is_available
        assert SeatSelector(session).counts(license_id).available == 1

    def test_not_reassignable_license_keeps_seat(self, session, workflow, make_license, make_user, test_actor_id):
        license_id = make_license(seats=1, reassignable=False)
        seat_id = _first_seat(session, license_id)
        user = make_user()
        workflow.assign_seat(seat_id, UserTarget(user.id), test_actor_id)

        result = workflow.release_seat(seat_id, test_actor_id)

        assert not result.is_success
        assert isinstance(result.error, NotReassignableError)
        assert result.error.license_id == license_id
        assert session.get(LicenseSeat, seat_id).assigned_to_user == user.id

    def test_release_free_seat_fails_first(self, session, workflow, make_license, test_actor_id):
        license_id = make_license(seats=1, reassignable=False)

        result = workflow.release_seat(_first_seat(session, license_id), test_actor_id)

        assert isinstance(result.error, AlreadyUnassignedError)


class TestAccessoryCheckout:
    def test_check_out_one_unit(
        self, session, workflow, make_accessory, make_user, test_actor_id, deterministic_clock,
    ):
        accessory = make_accessory(qty=3)
        user = make_user("Alice")

        result = workflow.assign_accessory(accessory.id, UserTarget(user.id), test_actor_id, note="Desk 4")

        assert result.is_success
        snapshot = result.snapshot
        assert snapshot.entity_type == EntityType.ACCESSORY
        assert snapshot.entity_id == accessory.id
        assert snapshot.target == UserTarget(user.id)
        assert snapshot.available_qty == 2
        checkout = session.get(AccessoryCheckout, snapshot.checkout_id)
        assert checkout.assigned_to == user.id
        assert checkout.note == "Desk 4"
        assert checkout.created_by_id == test_actor_id
        assert checkout.created_at == deterministic_clock.now()

    def test_same_user_may_hold_several_units(self, workflow, make_accessory, make_user, test_actor_id):
        accessory = make_accessory(qty=2)
        user = make_user()

        first = workflow.assign_accessory(accessory.id, UserTarget(user.id), test_actor_id)
        second = workflow.assign_accessory(accessory.id, UserTarget(user.id), test_actor_id)

        assert first.is_success and second.is_success
        assert first.snapshot.checkout_id != second.snapshot.checkout_id
        assert second.snapshot.available_qty == 0

    def test_refused_when_every_unit_is_out(
        self, session, workflow, make_accessory, make_user, test_actor_id, captured_logs,
    ):
        accessory = make_accessory(qty=1)
        workflow.assign_accessory(accessory.id, UserTarget(make_user().id), test_actor_id)

        result = workflow.assign_accessory(accessory.id, UserTarget(make_user().id), test_actor_id)

        assert result.status == OperationStatus.REJECTED
        assert isinstance(result.error, NoAvailableAccessoryError)
        assert result.error.checked_out == 1
        active = session.execute(
            select(func.count(AccessoryCheckout.id)).where(
                AccessoryCheckout.accessory_id == accessory.id, AccessoryCheckout.is_active,
            )
        ).scalar_one()
        assert active == 1
        (record,) = [r for r in captured_logs() if r["message"] == "accessory_assign_rejected"]
        assert record["invariant"] == KernelInvariant.ACCESSORY_CAPACITY.value

    def test_zero_quantity_never_checked_out(self, workflow, make_accessory, make_user, test_actor_id):
        accessory = make_accessory(qty=0)

        result = workflow.assign_accessory(accessory.id, UserTarget(make_user().id), test_actor_id)

        assert isinstance(result.error, NoAvailableAccessoryError)

    @pytest.mark.parametrize("target_kind", ["location", "asset"])
    def test_only_users_may_hold_units(
        self, workflow, make_accessory, make_location, make_asset, test_actor_id, target_kind,
    ):
        accessory = make_accessory()
        target = LocationTarget(make_location().id) if target_kind == "location" else AssetTarget(make_asset().id)

        result = workflow.assign_accessory(accessory.id, target, test_actor_id)

        assert isinstance(result.error, InvalidTargetError)

    def test_unknown_user_rejected(self, workflow, make_accessory, test_actor_id):
        result = workflow.assign_accessory(make_accessory().id, UserTarget(999_999), test_actor_id)

        assert isinstance(result.error, InvalidTargetError)

    def test_unknown_accessory_rejected(self, workflow, make_user, test_actor_id):
        result = workflow.assign_accessory(999_999, UserTarget(make_user().id), test_actor_id)

        assert isinstance(result.error, AccessoryNotFoundError)

    def test_return_soft_deletes_checkout(
        self, session, workflow, make_accessory, make_user, test_actor_id, deterministic_clock,
    ):
        accessory = make_accessory(qty=2)
        checked_out = workflow.assign_accessory(accessory.id, UserTarget(make_user().id), test_actor_id)
        checkout_id = checked_out.snapshot.checkout_id

        result = workflow.release_accessory(checkout_id, test_actor_id)

        assert result.is_success
        assert result.snapshot.target == UNASSIGNED
        assert result.snapshot.available_qty == 2
        checkout = session.get(AccessoryCheckout, checkout_id)
        assert checkout.deleted_at == deterministic_clock.now()
        assert checkout.updated_by_id == test_actor_id

    def test_double_return_rejected(self, workflow, make_accessory, make_user, test_actor_id):
        accessory = make_accessory()
        checked_out = workflow.assign_accessory(accessory.id, UserTarget(make_user().id), test_actor_id)
        workflow.release_accessory(checked_out.snapshot.checkout_id, test_actor_id)

        result = workflow.release_accessory(checked_out.snapshot.checkout_id, test_actor_id)

        assert isinstance(result.error, AlreadyUnassignedError)

    def test_unknown_checkout_rejected(self, workflow, test_actor_id, captured_logs):
        result = workflow.release_accessory(999_999, test_actor_id)

        assert isinstance(result.error, AccessoryCheckoutNotFoundError)
        (record,) = [r for r in captured_logs() if r["message"] == "accessory_release_rejected"]
        assert record["checkout_id"] == 999_999

    def test_generic_dispatch(self, workflow, make_accessory, make_user, test_actor_id):
        accessory = make_accessory(qty=1)

        assigned = workflow.assign("accessory", accessory.id, UserTarget(make_user().id), test_actor_id)
        released = workflow.release(EntityType.ACCESSORY, accessory.id, test_actor_id)

        assert assigned.is_success
        assert assigned.snapshot.available_qty == 0
        assert released.status == OperationStatus.REJECTED
        assert released.error.field == "entity_type"

    def test_generic_dispatch_takes_no_dates(self, workflow, make_accessory, make_user, test_actor_id):
        result = workflow.assign(
            EntityType.ACCESSORY, make_accessory().id, UserTarget(make_user().id), test_actor_id,
            expected_checkin=date(2024, 2, 1),
        )

        assert isinstance(result.error, ValidationError)


class TestGenericDispatch:
    def test_assign_and_release_by_entity_type(self, session, workflow, make_asset, make_license, make_user, test_actor_id):
        asset = make_asset()
        license_id = make_license(seats=1)
        seat_id = _first_seat(session, license_id)
        user = make_user()

        assert workflow.assign("asset", asset.id, UserTarget(user.id), test_actor_id).is_success
        assert workflow.assign(EntityType.LICENSE_SEAT, seat_id, UserTarget(user.id), test_actor_id).is_success
        assert workflow.release("asset", asset.id, test_actor_id).is_success
        assert workflow.release("license_seat", seat_id, test_actor_id).is_success

    def test_licenses_are_not_assignable(self, workflow, make_license, make_user, test_actor_id):
        license_id = make_license()

        result = workflow.assign("license", license_id, UserTarget(make_user().id), test_actor_id)

        assert result.status == OperationStatus.REJECTED
        assert result.error.field == "entity_type"

    @pytest.mark.parametrize("entity_type", ["widget", "", "ASSET"])
    def test_unknown_entity_type_rejected_on_assign(self, session, workflow, make_asset, make_user, test_actor_id, entity_type):
        asset = make_asset()

        result = workflow.assign(entity_type, asset.id, UserTarget(make_user().id), test_actor_id)

        assert result.status == OperationStatus.REJECTED
        assert result.entity_type is None
        assert result.entity_id == asset.id
        assert isinstance(result.error, ValidationError)
        assert result.error.field == "entity_type"
        assert not session.get(Asset, asset.id).is_assigned

    def test_unknown_entity_type_rejected_on_release(self, workflow, make_asset, test_actor_id, captured_logs):
        asset = make_asset()

        result = workflow.release("gadget", asset.id, test_actor_id)

        assert result.error_code == "VALIDATION_ERROR"
        assert result.error.field == "entity_type"
        (record,) = [r for r in captured_logs() if r["message"] == "entity_type_rejected"]
        assert record["requested_type"] == "gadget"

    def test_seat_release_takes_no_status(self, session, workflow, make_license, assign_seats, make_status, test_actor_id):
        license_id = make_license(seats=1)
        (seat_id,) = assign_seats(license_id, 1)

        result = workflow.release("license_seat", seat_id, test_actor_id, new_status_id=make_status().id)

        assert isinstance(result.error, ValidationError)
        assert session.get(LicenseSeat, seat_id).is_assigned


class TestLoggingAndFailures:
    def test_success_logged_with_context(self, workflow, make_asset, make_user, test_actor_id, captured_logs):
        asset = make_asset()
        user = make_user()

        workflow.assign_asset(asset.id, UserTarget(user.id), test_actor_id)

        (record,) = [r for r in captured_logs() if r["message"] == "asset_assigned"]
        assert record["entity_type"] == "asset"
        assert record["entity_id"] == str(asset.id)
        assert record["actor_id"] == str(test_actor_id)
        assert record["target_type"] == "user"
        assert record["target_id"] == user.id

    def test_rejection_logged_with_invariant(self, workflow, make_license, make_user, session, test_actor_id, captured_logs):
        license_id = make_license(seats=1, reassignable=False)
        seat_id = _first_seat(session, license_id)
        workflow.assign_seat(seat_id, UserTarget(make_user().id), test_actor_id)

        workflow.release_seat(seat_id, test_actor_id)

        (record,) = [r for r in captured_logs() if r["message"] == "seat_release_rejected"]
        assert record["level"] == "WARNING"
        assert record["error_code"] == "NOT_REASSIGNABLE"
        assert record["invariant"] == KernelInvariant.REASSIGNABLE_POLICY.value

    def test_store_failure_raises_infrastructure_error(
        self, session, workflow, make_asset, make_user, test_actor_id, monkeypatch,
    ):
        asset = make_asset()
        user = make_user()

        def _fail(*args, **kwargs):
            raise OperationalError("UPDATE assets", {}, Exception("database is locked"))

        monkeypatch.setattr(session, "flush", _fail)

        with pytest.raises(InfrastructureError) as exc_info:
            workflow.assign_asset(asset.id, UserTarget(user.id), test_actor_id)

        assert exc_info.value.code == "INFRASTRUCTURE_FAILURE"
        assert exc_info.value.operation == "asset_assign"
