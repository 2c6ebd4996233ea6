from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import Any, Dict, List
import logging

from ..database import retry_on_disconnect
from ..exceptions import (
    AuthorizationError,
    BusinessRuleViolationError,
    RecordNotFoundError,
)
from ..models.enums import UserRole
from ..models.user_profile import UserProfile
from ..utils.date_helpers import DateHelpers
from .access_scope import BarangayScope
from .geography_service import hierarchy_codes_for

logger = logging.getLogger(__name__)

# Roles only a super admin may hand out
RESTRICTED_ROLES = {
    UserRole.SUPER_ADMIN.value,
    UserRole.REGION_ADMIN.value,
    UserRole.PROVINCE_ADMIN.value,
    UserRole.CITY_ADMIN.value,
}


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def get_or_create_from_supabase(self, supabase_user) -> UserProfile:
        """Local profile for an authenticated Supabase user.

        New profiles take their barangay from the signup metadata; the first
        profile registered in a barangay becomes its barangay_admin.
        """
        profile = UserProfile.find_by_supabase_id(self.db, supabase_user.id)
        if profile:
            profile.last_login = DateHelpers.utcnow()
            self.db.commit()
            return profile

        metadata = getattr(supabase_user, "user_metadata", None) or {}
        barangay_code = metadata.get("barangay_code")

        hierarchy = hierarchy_codes_for(self.db, barangay_code) if barangay_code else None
        if barangay_code and not hierarchy:
            logger.warning(
                f"Signup for {supabase_user.email} names unknown barangay {barangay_code}"
            )
            barangay_code = None

        role = UserRole.READ_ONLY.value
        if barangay_code:
            has_admin = (
                self.db.query(UserProfile.id)
                .filter(
                    UserProfile.barangay_code == barangay_code,
                    UserProfile.role == UserRole.BARANGAY_ADMIN.value,
                    UserProfile.is_active == True,
                )
                .first()
            )
            role = (
                UserRole.BARANGAY_USER.value if has_admin else UserRole.BARANGAY_ADMIN.value
            )

        try:
            profile = UserProfile(
                id=supabase_user.id,
                email=supabase_user.email,
                first_name=metadata.get("first_name", ""),
                last_name=metadata.get("last_name", ""),
                mobile_number=metadata.get("mobile_number"),
                role=role,
                barangay_code=barangay_code,
                city_municipality_code=(
                    hierarchy["city_municipality_code"] if hierarchy else None
                ),
                province_code=hierarchy["province_code"] if hierarchy else None,
                region_code=hierarchy["region_code"] if hierarchy else None,
                is_active=True,
                email_verified=bool(getattr(supabase_user, "email_confirmed_at", None)),
                last_login=DateHelpers.utcnow(),
            )
            self.db.add(profile)
            self.db.commit()
            self.db.refresh(profile)
        except SQLAlchemyError:
            self.db.rollback()
            raise

        logger.info(
            f"Created profile {profile.id} as {profile.role} for barangay {barangay_code}"
        )
        return profile

    @retry_on_disconnect
    def list_profiles(
        self, scope: BarangayScope, include_inactive: bool = True
    ) -> List[Dict[str, Any]]:
        query = scope.apply(self.db.query(UserProfile), UserProfile)
        if not include_inactive:
            query = query.filter(UserProfile.is_active == True)
        profiles = query.order_by(UserProfile.last_name, UserProfile.first_name).all()
        return [profile.to_dict() for profile in profiles]

    def update_role(
        self, scope: BarangayScope, profile_id: str, role: UserRole
    ) -> UserProfile:
        target = self._get_profile_or_raise(profile_id)
        scope.ensure_can_manage_profile(target)

        role_value = getattr(role, "value", role)
        if role_value not in {r.value for r in UserRole}:
            raise BusinessRuleViolationError(f"Invalid role: {role_value}")

        if role_value in RESTRICTED_ROLES and not scope.is_super_admin:
            raise AuthorizationError(f"Only a super admin can grant {role_value}")

        if target.id == scope.profile.id and role_value != target.role:
            raise BusinessRuleViolationError("Cannot change your own role")

        if (
            target.role == UserRole.BARANGAY_ADMIN.value
            and role_value != UserRole.BARANGAY_ADMIN.value
            and self._is_last_admin(target)
        ):
            raise BusinessRuleViolationError(
                "Cannot demote the last active barangay admin"
            )

        return self._save(target, role=role_value)

    def set_active(
        self, scope: BarangayScope, profile_id: str, is_active: bool
    ) -> UserProfile:
        target = self._get_profile_or_raise(profile_id)
        scope.ensure_can_manage_profile(target)

        if target.id == scope.profile.id and not is_active:
            raise BusinessRuleViolationError("Cannot deactivate your own profile")

        return self._save(target, is_active=is_active)

    def _save(self, profile: UserProfile, **changes) -> UserProfile:
        try:
            for field, value in changes.items():
                setattr(profile, field, value)
            self.db.commit()
            self.db.refresh(profile)
            logger.info(f"Profile {profile.id} updated: {changes}")
            return profile
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def _is_last_admin(self, profile: UserProfile) -> bool:
        remaining = (
            self.db.query(UserProfile.id)
            .filter(
                UserProfile.barangay_code == profile.barangay_code,
                UserProfile.role == UserRole.BARANGAY_ADMIN.value,
                UserProfile.is_active == True,
                UserProfile.id != profile.id,
            )
            .count()
        )
        return remaining == 0

    def _get_profile_or_raise(self, profile_id: str) -> UserProfile:
        profile = UserProfile.find_by_supabase_id(self.db, profile_id)
        if not profile:
            raise RecordNotFoundError(f"User profile {profile_id} not found")
        return profile
