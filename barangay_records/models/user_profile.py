from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.sql import func
from ..database import Base
from .enums import UserRole


class UserProfile(Base):
    """Local profile for a Supabase auth user, carrying the barangay assignment"""

    __tablename__ = "user_profiles"

    # Supabase auth.users id
    id = Column(String(36), primary_key=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    mobile_number = Column(String(20))

    role = Column(String(30), nullable=False, default=UserRole.BARANGAY_USER.value)

    # Geographic assignment
    barangay_code = Column(String(10), ForeignKey("psgc_barangays.code"))
    city_municipality_code = Column(
        String(10), ForeignKey("psgc_cities_municipalities.code")
    )
    province_code = Column(String(10), ForeignKey("psgc_provinces.code"))
    region_code = Column(String(10), ForeignKey("psgc_regions.code"))

    # Status
    is_active = Column(Boolean, default=True, nullable=False)
    email_verified = Column(Boolean, default=False)
    last_login = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        Index("idx_user_profiles_barangay_code", "barangay_code"),
        Index("idx_user_profiles_role_active", "role", "is_active"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN.value

    @classmethod
    def find_by_supabase_id(cls, db_session, supabase_id: str):
        """Find profile by Supabase ID (active or not)"""
        return db_session.query(cls).filter(cls.id == supabase_id).first()

    def to_dict(self):
        """Convert profile to dictionary for API responses"""
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "mobile_number": self.mobile_number,
            "role": self.role,
            "barangay_code": self.barangay_code,
            "city_municipality_code": self.city_municipality_code,
            "province_code": self.province_code,
            "region_code": self.region_code,
            "is_active": self.is_active,
            "email_verified": self.email_verified,
            "last_login": self.last_login.isoformat() if self.last_login else None,
        }
