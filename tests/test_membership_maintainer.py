import pytest
from sqlalchemy import func
from sqlalchemy.exc import OperationalError

from barangay_records.exceptions import ConsistencyMaintenanceFailure
from barangay_records.models import Household, Resident
from barangay_records.models.enums import ResidentMutation
from barangay_records.services.membership_service import (
    HouseholdMembershipMaintainer,
    ResidentMutationEvent,
)
from barangay_records.services.household_service import HouseholdService
from barangay_records.services.resident_service import ResidentService


def active_count(db, code):
    return (
        db.query(func.count(Resident.id))
        .filter(Resident.household_code == code, Resident.is_active == True)
        .scalar()
    )


def stored_count(db, code):
    return db.query(Household.total_members).filter(Household.code == code).scalar()


def assert_invariant(db):
    for household in db.query(Household).all():
        assert household.total_members == active_count(db, household.code)


@pytest.mark.parametrize(
    "operation, old, new, expected",
    [
        (ResidentMutation.INSERT, None, "A", ["A"]),
        (ResidentMutation.REACTIVATE, None, "A", ["A"]),
        (ResidentMutation.DELETE, "A", None, ["A"]),
        (ResidentMutation.DEACTIVATE, "A", None, ["A"]),
        (ResidentMutation.UPDATE, "A", "B", ["A", "B"]),
        (ResidentMutation.UPDATE, "A", "A", ["A"]),
        (ResidentMutation.INSERT, None, None, []),
        (ResidentMutation.UPDATE, None, "B", ["B"]),
    ],
)
def test_affected_household_codes(operation, old, new, expected):
    event = ResidentMutationEvent(operation, "r1", old, new)
    assert event.affected_household_codes() == expected


def test_count_tracks_active_residents(db, profiles, make_household, make_resident):
    household = make_household(profiles["admin_x"])
    assert household.total_members == 0

    for _ in range(3):
        make_resident(profiles["user_x"], household_code=household.code)

    assert stored_count(db, household.code) == 3
    assert_invariant(db)


def test_recompute_is_idempotent(db, profiles, make_household, make_resident):
    household = make_household(profiles["admin_x"])
    make_resident(profiles["user_x"], household_code=household.code)
    make_resident(profiles["user_x"], household_code=household.code)

    maintainer = HouseholdMembershipMaintainer(db)
    first = maintainer.recompute(household.code)
    second = maintainer.recompute(household.code)

    assert first == second == 2


def test_recompute_all_repairs_drift(db, profiles, make_household, make_resident):
    household = make_household(profiles["admin_x"])
    make_resident(profiles["user_x"], household_code=household.code)

    db.query(Household).filter(Household.code == household.code).update(
        {"total_members": 7}
    )
    db.commit()

    corrected = HouseholdMembershipMaintainer(db).recompute_all()
    db.commit()

    assert corrected == {household.code: 1}
    assert stored_count(db, household.code) == 1


def test_reassignment_moves_one_member(
    db, profiles, scope_for, make_household, make_resident
):
    household_a = make_household(profiles["admin_x"])
    household_b = make_household(profiles["admin_x"])
    movers = [
        make_resident(profiles["user_x"], household_code=household_a.code)
        for _ in range(3)
    ]
    for _ in range(5):
        make_resident(profiles["user_x"], household_code=household_b.code)

    assert stored_count(db, household_a.code) == 3
    assert stored_count(db, household_b.code) == 5

    ResidentService(db, scope_for(profiles["user_x"])).reassign_household(
        movers[0].id, household_b.code
    )

    assert stored_count(db, household_a.code) == 2
    assert stored_count(db, household_b.code) == 6
    assert_invariant(db)


def test_failed_recount_rolls_back_reassignment(
    db, profiles, scope_for, make_household, make_resident
):
    household_a = make_household(profiles["admin_x"])
    household_b = make_household(profiles["admin_x"])
    mover = make_resident(profiles["user_x"], household_code=household_a.code)
    for _ in range(2):
        make_resident(profiles["user_x"], household_code=household_a.code)
    for _ in range(5):
        make_resident(profiles["user_x"], household_code=household_b.code)

    service = ResidentService(db, scope_for(profiles["user_x"]))
    original_recount = service.maintainer._recount
    calls = []

    def flaky_recount(code):
        calls.append(code)
        if len(calls) == 2:
            raise OperationalError("UPDATE households", {}, Exception("lock timeout"))
        return original_recount(code)

    service.maintainer._recount = flaky_recount

    with pytest.raises(ConsistencyMaintenanceFailure):
        service.reassign_household(mover.id, household_b.code)

    assert stored_count(db, household_a.code) == 3
    assert stored_count(db, household_b.code) == 5
    assert (
        db.query(Resident.household_code).filter(Resident.id == mover.id).scalar()
        == household_a.code
    )


def test_deactivate_reactivate_toggle(
    db, profiles, scope_for, make_household, make_resident
):
    household = make_household(profiles["admin_x"])
    resident = make_resident(profiles["user_x"], household_code=household.code)
    make_resident(profiles["user_x"], household_code=household.code)
    service = ResidentService(db, scope_for(profiles["user_x"]))

    service.deactivate_resident(resident.id)
    assert stored_count(db, household.code) == 1

    # Second deactivation is a no-op
    service.deactivate_resident(resident.id)
    assert stored_count(db, household.code) == 1

    service.reactivate_resident(resident.id)
    assert stored_count(db, household.code) == 2

    service.reactivate_resident(resident.id)
    assert stored_count(db, household.code) == 2


def test_household_lifecycle_scenario(
    db, profiles, scope_for, make_household, make_resident
):
    hh_001 = make_household(profiles["admin_x"])
    hh_002 = make_household(profiles["admin_x"])
    r1 = make_resident(profiles["user_x"], household_code=hh_001.code, first_name="R1")
    r2 = make_resident(profiles["user_x"], household_code=hh_001.code, first_name="R2")
    service = ResidentService(db, scope_for(profiles["user_x"]))

    assert stored_count(db, hh_001.code) == 2

    service.deactivate_resident(r1.id)
    assert stored_count(db, hh_001.code) == 1

    service.reassign_household(r2.id, hh_002.code)
    assert stored_count(db, hh_001.code) == 0
    assert stored_count(db, hh_002.code) == 1

    service.reactivate_resident(r1.id, household_code=hh_001.code)
    assert stored_count(db, hh_001.code) == 1
    assert_invariant(db)


def test_reactivation_into_other_household_recounts_both(
    db, profiles, scope_for, make_household, make_resident
):
    household_a = make_household(profiles["admin_x"])
    household_b = make_household(profiles["admin_x"])
    resident = make_resident(profiles["user_x"], household_code=household_a.code)
    service = ResidentService(db, scope_for(profiles["user_x"]))

    service.deactivate_resident(resident.id)
    service.reactivate_resident(resident.id, household_code=household_b.code)

    assert stored_count(db, household_a.code) == 0
    assert stored_count(db, household_b.code) == 1


def test_hard_delete_recounts_prior_household(
    db, profiles, scope_for, make_household, make_resident
):
    household = make_household(profiles["admin_x"])
    resident = make_resident(profiles["user_x"], household_code=household.code)
    make_resident(profiles["user_x"], household_code=household.code)

    ResidentService(db, scope_for(profiles["admin_x"])).delete_resident(resident.id)

    assert stored_count(db, household.code) == 1
    assert db.get(Resident, resident.id) is None


def test_head_move_locks_both_households_in_code_order_first(
    db, profiles, scope_for, make_household, make_resident
):
    household_a = make_household(profiles["admin_x"])
    household_b = make_household(profiles["admin_x"])
    head = make_resident(profiles["user_x"], household_code=household_b.code)
    scope = scope_for(profiles["user_x"])
    HouseholdService(db, scope).set_household_head(household_b.code, head.id)

    service = ResidentService(db, scope)
    steps = []
    original_lock = service.maintainer._lock
    original_release = service._release_head

    def recording_lock(code):
        steps.append(code)
        return original_lock(code)

    def recording_release(resident_id, household):
        steps.append("release")
        return original_release(resident_id, household)

    service.maintainer._lock = recording_lock
    service._release_head = recording_release

    service.reassign_household(head.id, household_a.code)

    # Moving from the higher code to the lower one still locks the lower first
    assert steps[:3] == [household_a.code, household_b.code, "release"]
    assert db.get(Household, household_b.code).household_head_id is None
    assert stored_count(db, household_a.code) == 1
    assert stored_count(db, household_b.code) == 0


def test_lock_households_skips_missing_codes(db, profiles, make_household):
    household = make_household(profiles["admin_x"])

    locked = HouseholdMembershipMaintainer(db).lock_households(
        [None, household.code, "012801001-0000-0000-9999", household.code]
    )

    assert list(locked) == [household.code]
