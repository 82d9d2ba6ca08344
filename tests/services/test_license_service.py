"""
Tests for LicenseService.

Covers:
- Creation with its seat rows
- Seat count edits reconciled in the same unit of work
- Deletion guarded by assigned seats
- Copy without the serial key
"""

import logging

import pytest
from sqlalchemy import func, select

from inventory_kernel.domain.results import OperationStatus
from inventory_kernel.exceptions import (
    InsufficientAvailableSeatsError,
    InvalidSeatCountError,
    LicenseHasAssignedSeatsError,
    LicenseNotFoundError,
    RequiredFieldError,
    ValidationError,
)
from inventory_kernel.models.license import License, LicenseSeat
from inventory_kernel.selectors.seat_selector import SeatSelector


class TestCreateLicense:
    def test_create_with_seats(self, session, license_service, test_actor_id, deterministic_clock):
        result = license_service.create_license(
            "  Office Suite  ", test_actor_id, seats=3, serial="ABCD-1234", reassignable=False,
        )

        assert result.is_success
        assert result.seats == 3
        assert result.reconcile.is_success
        assert len(result.reconcile.created_seat_ids) == 3
        license = session.get(License, result.license_id)
        assert license.name == "Office Suite"
        assert license.reassignable is False
        assert license.created_by_id == test_actor_id
        assert license.created_at == deterministic_clock.now()
        assert SeatSelector(session).counts(result.license_id).available == 3

    def test_zero_seats(self, session, license_service, test_actor_id):
        result = license_service.create_license("Trial", test_actor_id, seats=0)

        assert result.is_success
        assert SeatSelector(session).counts(result.license_id).total == 0

    def test_blank_name_rejected(self, session, license_service, test_actor_id):
        result = license_service.create_license("   ", test_actor_id)

        assert isinstance(result.error, RequiredFieldError)
        assert session.execute(select(func.count(License.id))).scalar_one() == 0

    def test_negative_seats_rejected(self, license_service, test_actor_id):
        result = license_service.create_license("Suite", test_actor_id, seats=-2)

        assert isinstance(result.error, InvalidSeatCountError)
        assert result.error.seats == -2

    def test_unknown_field_rejected(self, license_service, test_actor_id):
        result = license_service.create_license("Suite", test_actor_id, deleted_at=None)

        assert isinstance(result.error, ValidationError)
        assert result.error.field == "deleted_at"

    def test_create_logs_reconcile_at_info(self, license_service, test_actor_id, captured_logs):
        assert logging.getLogger("inventory_kernel").isEnabledFor(logging.INFO)

        result = license_service.create_license("Logged Suite", test_actor_id, seats=3)

        assert result.is_success
        reconciled = [r for r in captured_logs() if r["message"] == "seats_reconciled"]
        assert len(reconciled) == 1
        assert reconciled[0]["created_seats"] == 3
        assert reconciled[0]["entity_id"] == str(result.license_id)


class TestUpdateLicense:
    def test_grow_seats(self, session, license_service, make_license, assign_seats, test_actor_id):
        license_id = make_license(seats=5)
        assign_seats(license_id, 2)

        result = license_service.update_license(license_id, test_actor_id, seats=7)

        assert result.is_success
        assert result.reconcile.delta == 2
        info = license_service.get_license(license_id)
        assert info.seats == 7
        assert info.available_seats == 5
        assert info.assigned_seats == 2

    def test_shrink_rejected_leaves_license_untouched(
        self, session, license_service, make_license, assign_seats, test_actor_id,
    ):
        license_id = make_license(seats=3)
        assign_seats(license_id, 2)

        result = license_service.update_license(license_id, test_actor_id, seats=0, name="Renamed")

        assert result.status == OperationStatus.REJECTED
        assert isinstance(result.error, InsufficientAvailableSeatsError)
        assert result.reconcile.error is result.error
        license = session.get(License, license_id)
        assert license.seats == 3
        assert license.name == "Office Suite"
        assert SeatSelector(session).counts(license_id).total == 3

    def test_rename_without_seat_change(self, session, license_service, make_license, test_actor_id):
        license_id = make_license(seats=2)

        result = license_service.update_license(license_id, test_actor_id, name="Office Suite 2024")

        assert result.is_success
        assert result.reconcile is None
        assert session.get(License, license_id).name == "Office Suite 2024"

    def test_reconcile_starts_from_actual_rows(self, session, license_service, make_license, test_actor_id):
        license_id = make_license(seats=2)
        # Drift: an extra row that the declared count does not know about
        session.add(LicenseSeat(license_id=license_id, created_by_id=test_actor_id))
        session.flush()

        result = license_service.update_license(license_id, test_actor_id, seats=2)

        assert result.is_success
        assert result.reconcile.previous_seats == 3
        assert SeatSelector(session).counts(license_id).total == 2

    def test_seats_field_not_writable_directly_as_unknown(self, license_service, make_license, test_actor_id):
        license_id = make_license()

        result = license_service.update_license(license_id, test_actor_id, created_by_id=99)

        assert isinstance(result.error, ValidationError)

    def test_missing_license(self, license_service, test_actor_id):
        result = license_service.update_license(999_999, test_actor_id, seats=2)

        assert isinstance(result.error, LicenseNotFoundError)

    def test_update_logged(self, license_service, make_license, test_actor_id, captured_logs):
        license_id = make_license(seats=1)

        license_service.update_license(license_id, test_actor_id, seats=4)

        (record,) = [r for r in captured_logs() if r["message"] == "license_updated"]
        assert record["seats"] == 4
        assert record["entity_id"] == str(license_id)


class TestDeleteLicense:
    def test_delete_soft_deletes_license_and_seats(self, session, license_service, make_license, test_actor_id):
        license_id = make_license(seats=3)

        result = license_service.delete_license(license_id, test_actor_id)

        assert result.is_success
        license = session.get(License, license_id)
        assert license is not None
        assert not license.is_active
        rows = session.execute(
            select(LicenseSeat).where(LicenseSeat.license_id == license_id)
        ).scalars().all()
        assert len(rows) == 3
        assert all(not seat.is_active for seat in rows)

    def test_delete_with_assigned_seat_rejected(self, session, license_service, make_license, assign_seats, test_actor_id):
        license_id = make_license(seats=3)
        assign_seats(license_id, 1)

        result = license_service.delete_license(license_id, test_actor_id)

        assert isinstance(result.error, LicenseHasAssignedSeatsError)
        assert result.error_code == "LICENSE_HAS_ASSIGNED_SEATS"
        assert session.get(License, license_id).is_active
        assert SeatSelector(session).counts(license_id).total == 3

    def test_deleted_license_not_found(self, license_service, make_license, test_actor_id):
        license_id = make_license()
        license_service.delete_license(license_id, test_actor_id)

        with pytest.raises(LicenseNotFoundError):
            license_service.get_license(license_id)
        assert license_id not in [info.id for info in license_service.list_licenses()]


class TestCopyLicense:
    def test_copy_without_serial(self, session, license_service, make_license, test_actor_id):
        license_id = make_license(
            "Design Suite", seats=4, serial="SECRET-KEY", manufacturer_id=3, notes="Team plan",
        )

        result = license_service.copy_license(license_id, test_actor_id)

        assert result.is_success
        assert result.license_id != license_id
        copy = license_service.get_license(result.license_id)
        assert copy.name == "Design Suite"
        assert copy.serial is None
        assert copy.manufacturer_id == 3
        assert copy.notes == "Team plan"
        assert copy.seats == 4
        assert copy.available_seats == 4

    def test_copy_with_new_name(self, license_service, make_license, test_actor_id):
        license_id = make_license("Design Suite")

        result = license_service.copy_license(license_id, test_actor_id, name="Design Suite (EU)")

        assert license_service.get_license(result.license_id).name == "Design Suite (EU)"
