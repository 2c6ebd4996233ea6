from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from ..database import get_db, get_supabase
from ..models.enums import UserRole
from ..models.user_profile import UserProfile
from ..services.access_scope import BarangayScope
from ..services.user_service import UserService
from supabase import Client
import logging

security = HTTPBearer()
logger = logging.getLogger(__name__)


# Auth Helper Functions
async def get_current_profile(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
    supabase: Client = Depends(get_supabase),
) -> UserProfile:
    """Profile for the Supabase token, loaded fresh on every request"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        auth_response = supabase.auth.get_user(credentials.credentials)
    except Exception as e:
        logger.error(f"Authentication error: {e}")
        raise credentials_exception

    if not auth_response or not auth_response.user:
        raise credentials_exception

    # Inactive profiles are returned too; the scope turns them away
    return UserService(db).get_or_create_from_supabase(auth_response.user)


async def get_barangay_scope(
    profile: UserProfile = Depends(get_current_profile),
    db: Session = Depends(get_db),
) -> BarangayScope:
    return BarangayScope(profile, db)


async def require_barangay_admin(
    scope: BarangayScope = Depends(get_barangay_scope),
) -> BarangayScope:
    """Active barangay_admin or super_admin"""
    allowed = {UserRole.BARANGAY_ADMIN.value, UserRole.SUPER_ADMIN.value}
    if not scope.is_active or scope.role not in allowed:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin permissions required",
        )
    return scope


async def require_super_admin(
    scope: BarangayScope = Depends(get_barangay_scope),
) -> BarangayScope:
    if not scope.is_super_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Super admin permissions required",
        )
    return scope
