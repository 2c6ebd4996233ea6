from types import SimpleNamespace

import pytest

from barangay_records.exceptions import (
    AuthorizationError,
    BusinessRuleViolationError,
    RecordNotFoundError,
)
from barangay_records.models import UserProfile
from barangay_records.models.enums import UserRole
from barangay_records.services.user_service import UserService

from .conftest import BARANGAY_Z


def supabase_user(user_id, barangay_code=None, **metadata):
    if barangay_code:
        metadata["barangay_code"] = barangay_code
    return SimpleNamespace(
        id=user_id,
        email=f"{user_id}@example.ph",
        user_metadata=metadata,
        email_confirmed_at="2025-01-01T00:00:00Z",
    )


def test_first_profile_in_barangay_becomes_admin(db):
    service = UserService(db)

    first = service.get_or_create_from_supabase(
        supabase_user("u-1", BARANGAY_Z, first_name="Liza", last_name="Soberano")
    )
    second = service.get_or_create_from_supabase(supabase_user("u-2", BARANGAY_Z))

    assert first.role == UserRole.BARANGAY_ADMIN.value
    assert first.full_name == "Liza Soberano"
    assert first.city_municipality_code == "015518000"
    assert first.email_verified is True
    assert second.role == UserRole.BARANGAY_USER.value


def test_existing_profile_is_reused(db):
    service = UserService(db)
    created = service.get_or_create_from_supabase(supabase_user("u-1", BARANGAY_Z))

    again = service.get_or_create_from_supabase(supabase_user("u-1", BARANGAY_Z))

    assert again.id == created.id
    assert again.last_login is not None
    assert db.query(UserProfile).count() == 1


def test_unknown_barangay_gives_read_only_profile(db):
    profile = UserService(db).get_or_create_from_supabase(
        supabase_user("u-1", "999999999")
    )

    assert profile.role == UserRole.READ_ONLY.value
    assert profile.barangay_code is None


def test_only_super_admin_grants_higher_roles(db, profiles, scope_for):
    service = UserService(db)

    with pytest.raises(AuthorizationError):
        service.update_role(
            scope_for(profiles["admin_x"]), profiles["user_x"].id, UserRole.CITY_ADMIN
        )

    updated = service.update_role(
        scope_for(profiles["super"]), profiles["user_x"].id, UserRole.CITY_ADMIN
    )
    assert updated.role == UserRole.CITY_ADMIN.value


def test_barangay_admin_promotes_within_barangay(db, profiles, scope_for):
    service = UserService(db)
    scope = scope_for(profiles["admin_x"])

    updated = service.update_role(scope, profiles["readonly_x"].id, UserRole.BARANGAY_USER)
    assert updated.role == UserRole.BARANGAY_USER.value

    with pytest.raises(AuthorizationError):
        service.update_role(scope, profiles["user_y"].id, UserRole.READ_ONLY)
    with pytest.raises(AuthorizationError):
        service.update_role(scope, profiles["super"].id, UserRole.READ_ONLY)


def test_last_barangay_admin_cannot_be_demoted(db, profiles, scope_for):
    service = UserService(db)
    super_scope = scope_for(profiles["super"])

    with pytest.raises(BusinessRuleViolationError):
        service.update_role(super_scope, profiles["admin_x"].id, UserRole.BARANGAY_USER)

    service.update_role(super_scope, profiles["user_x"].id, UserRole.BARANGAY_ADMIN)
    demoted = service.update_role(
        super_scope, profiles["admin_x"].id, UserRole.BARANGAY_USER
    )
    assert demoted.role == UserRole.BARANGAY_USER.value


def test_cannot_change_own_role(db, profiles, scope_for):
    with pytest.raises(BusinessRuleViolationError):
        UserService(db).update_role(
            scope_for(profiles["super"]), profiles["super"].id, UserRole.READ_ONLY
        )


def test_set_active(db, profiles, scope_for):
    service = UserService(db)
    scope = scope_for(profiles["admin_x"])

    deactivated = service.set_active(scope, profiles["user_x"].id, False)
    assert deactivated.is_active is False

    with pytest.raises(BusinessRuleViolationError):
        service.set_active(scope, profiles["admin_x"].id, False)
    with pytest.raises(RecordNotFoundError):
        service.set_active(scope, "missing", True)


def test_list_profiles_scoped(db, profiles, scope_for):
    service = UserService(db)

    own = service.list_profiles(scope_for(profiles["admin_x"]))
    active_only = service.list_profiles(
        scope_for(profiles["admin_x"]), include_inactive=False
    )

    assert {p["id"] for p in own} == {"admin-x", "user-x", "readonly-x", "inactive-x"}
    assert "inactive-x" not in {p["id"] for p in active_only}
