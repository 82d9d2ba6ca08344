"""
Race tests for assignment and seat reconciliation.

Two sessions on the suite's engine stand in for two concurrent requests.
The second session reads the row first, then the first session commits
its change, then the second session acts on its stale view.  The row
lock's re-read must see the committed state and reject the late caller.

These tests commit, so they do not use the rolled-back ``session``
fixture; every table is emptied at teardown instead.

Run with: pytest tests/concurrency/test_assign_race.py -v
Skip with: pytest -m "not slow_locks"
"""

import pytest
from sqlalchemy.orm import Session

import inventory_kernel.models  # noqa: F401  (every table in the metadata)
from inventory_kernel.db.base import Base
from inventory_kernel.domain.assignment_target import AssetTarget, UserTarget
from inventory_kernel.domain.results import OperationStatus
from inventory_kernel.exceptions import (
    AlreadyAssignedError,
    InsufficientAvailableSeatsError,
    NoAvailableSeatsError,
    SeatCountMismatchError,
)
from inventory_kernel.models.asset import Asset
from inventory_kernel.models.license import License, LicenseSeat
from inventory_kernel.models.reference import User
from inventory_kernel.selectors.seat_selector import SeatSelector
from inventory_kernel.services.asset_service import AssetService
from inventory_kernel.services.assignment_workflow import AssignmentWorkflow
from inventory_kernel.services.license_service import LicenseService
from inventory_kernel.services.seat_pool import SeatPoolManager

pytestmark = pytest.mark.slow_locks

ACTOR = 1


@pytest.fixture
def open_session(db_tables, db_engine):
    """Open independent sessions; committed rows are deleted at teardown."""
    sessions: list[Session] = []

    def _open() -> Session:
        sess = Session(bind=db_engine, expire_on_commit=False)
        sessions.append(sess)
        return sess

    yield _open

    for sess in sessions:
        sess.rollback()
        sess.close()
    with db_engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


def _users(sess: Session, *names: str) -> list[int]:
    users = [User(name=name) for name in names]
    sess.add_all(users)
    sess.flush()
    return [user.id for user in users]


class TestAssetRace:
    def test_late_assign_sees_committed_assignment(self, open_session):
        seed = open_session()
        alice, bob = _users(seed, "Alice", "Bob")
        asset_id = AssetService(seed).create_asset("RACE-1", ACTOR).id
        seed.commit()

        first, second = open_session(), open_session()
        stale = second.get(Asset, asset_id)
        assert not stale.is_assigned

        won = AssignmentWorkflow(first).assign_asset(asset_id, UserTarget(alice), ACTOR)
        first.commit()
        lost = AssignmentWorkflow(second).assign_asset(asset_id, UserTarget(bob), ACTOR)
        second.rollback()

        assert won.is_success
        assert lost.status == OperationStatus.REJECTED
        assert isinstance(lost.error, AlreadyAssignedError)
        assert lost.error.assigned_to == alice

        check = open_session()
        asset = check.get(Asset, asset_id)
        assert asset.assigned_to == alice
        assert asset.checkout_counter == 1

    def test_late_assign_to_asset_target_rejected(self, open_session):
        seed = open_session()
        (alice,) = _users(seed, "Alice")
        assets = AssetService(seed)
        laptop = assets.create_asset("RACE-2", ACTOR).id
        dock = assets.create_asset("RACE-3", ACTOR).id
        seed.commit()

        first, second = open_session(), open_session()
        second.get(Asset, laptop)

        AssignmentWorkflow(first).assign_asset(laptop, UserTarget(alice), ACTOR)
        first.commit()
        lost = AssignmentWorkflow(second).assign_asset(laptop, AssetTarget(dock), ACTOR)

        assert lost.error_code == "ALREADY_ASSIGNED"


class TestSeatRace:
    def test_late_assign_of_same_seat_rejected(self, open_session):
        seed = open_session()
        alice, bob = _users(seed, "Alice", "Bob")
        license_id = LicenseService(seed).create_license("Race Suite", ACTOR, seats=1).license_id
        seed.commit()
        (seat_id,) = SeatSelector(seed).available_seat_ids(license_id)

        first, second = open_session(), open_session()
        assert second.get(LicenseSeat, seat_id).is_available

        won = AssignmentWorkflow(first).assign_seat(seat_id, UserTarget(alice), ACTOR)
        first.commit()
        lost = AssignmentWorkflow(second).assign_seat(seat_id, UserTarget(bob), ACTOR)
        second.rollback()

        assert won.is_success
        assert isinstance(lost.error, AlreadyAssignedError)
        seat = open_session().get(LicenseSeat, seat_id)
        assert seat.assigned_to_user == alice

    def test_next_available_after_committed_shrink(self, open_session):
        seed = open_session()
        alice, bob = _users(seed, "Alice", "Bob")
        license_id = LicenseService(seed).create_license("Race Suite", ACTOR, seats=2).license_id
        AssignmentWorkflow(seed).assign_next_available_seat(license_id, UserTarget(alice), ACTOR)
        seed.commit()

        shrinker, assigner = open_session(), open_session()
        assert len(SeatSelector(assigner).available_seat_ids(license_id)) == 1

        shrunk = LicenseService(shrinker).update_license(license_id, ACTOR, seats=1)
        shrinker.commit()
        lost = AssignmentWorkflow(assigner).assign_next_available_seat(license_id, UserTarget(bob), ACTOR)
        assigner.rollback()

        assert shrunk.is_success
        assert isinstance(lost.error, NoAvailableSeatsError)
        counts = SeatSelector(open_session()).counts(license_id)
        assert counts.total == 1
        assert counts.assigned == 1

    def test_shrink_after_committed_next_available(self, open_session):
        seed = open_session()
        alice, bob = _users(seed, "Alice", "Bob")
        license_id = LicenseService(seed).create_license("Race Suite", ACTOR, seats=2).license_id
        AssignmentWorkflow(seed).assign_next_available_seat(license_id, UserTarget(alice), ACTOR)
        seed.commit()

        shrinker, assigner = open_session(), open_session()
        assert SeatSelector(shrinker).counts(license_id).available == 1

        won = AssignmentWorkflow(assigner).assign_next_available_seat(license_id, UserTarget(bob), ACTOR)
        assigner.commit()
        lost = LicenseService(shrinker).update_license(license_id, ACTOR, seats=1)
        shrinker.rollback()

        assert won.is_success
        assert isinstance(lost.error, InsufficientAvailableSeatsError)
        check = open_session()
        assert check.get(License, license_id).seats == 2
        counts = SeatSelector(check).counts(license_id)
        assert counts.total == 2
        assert counts.assigned == 2

    def test_reconcile_from_stale_count_rejected(self, open_session):
        seed = open_session()
        license_id = LicenseService(seed).create_license("Race Suite", ACTOR, seats=2).license_id
        seed.commit()

        first, second = open_session(), open_session()
        seen = SeatSelector(second).counts(license_id).total

        SeatPoolManager(first).reconcile(license_id, 2, 4, ACTOR)
        first.commit()
        lost = SeatPoolManager(second).reconcile(license_id, seen, 1, ACTOR)
        second.rollback()

        assert isinstance(lost.error, SeatCountMismatchError)
        assert lost.error.actual == 4
        check = open_session()
        assert check.get(License, license_id).seats == 4
        assert SeatSelector(check).counts(license_id).total == 4
