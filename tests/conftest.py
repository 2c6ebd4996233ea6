import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["ENABLE_BACKGROUND_TASKS"] = "false"

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from barangay_records import models
from barangay_records.database import Base, enable_sqlite_foreign_keys, get_db
from barangay_records.dependencies.permissions import get_current_profile
from barangay_records.models.enums import UserRole
from barangay_records.schemas.household import HouseholdCreate
from barangay_records.schemas.resident import ResidentCreate
from barangay_records.services.access_scope import BarangayScope
from barangay_records.services.geography_service import hierarchy_codes_for
from barangay_records.services.household_service import HouseholdService
from barangay_records.services.resident_service import ResidentService
from barangay_records.utils import background_tasks

# Two barangays in one city, one in another province, one in an independent city
BARANGAY_X = "012801001"
BARANGAY_Y = "012801002"
BARANGAY_Z = "015518001"
BARANGAY_QC = "137404001"
CITY_XY = "012801000"


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    # In-memory database disappears with its last connection
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    _seed_reference_data(session)
    yield session
    session.close()


def _seed_reference_data(session):
    session.add_all(
        [
            models.Region(code="010000000", name="Region I (Ilocos Region)"),
            models.Region(code="130000000", name="National Capital Region"),
            models.Province(code="012800000", name="Ilocos Norte", region_code="010000000"),
            models.Province(code="015500000", name="Pangasinan", region_code="010000000"),
        ]
    )
    session.flush()
    session.add_all(
        [
            models.CityMunicipality(
                code=CITY_XY,
                name="Adams",
                province_code="012800000",
                region_code="010000000",
                type="Municipality",
            ),
            models.CityMunicipality(
                code="015518000",
                name="Dagupan",
                province_code="015500000",
                region_code="010000000",
                type="City",
                is_city=True,
            ),
            models.CityMunicipality(
                code="137404000",
                name="Quezon City",
                province_code=None,
                region_code="130000000",
                type="City",
                is_city=True,
                is_independent=True,
            ),
        ]
    )
    session.flush()
    session.add_all(
        [
            models.Barangay(code=BARANGAY_X, name="Adams", city_municipality_code=CITY_XY),
            models.Barangay(code=BARANGAY_Y, name="Bacarra", city_municipality_code=CITY_XY),
            models.Barangay(code=BARANGAY_Z, name="Bonuan Gueset", city_municipality_code="015518000"),
            models.Barangay(code=BARANGAY_QC, name="Bagong Pag-asa", city_municipality_code="137404000"),
            models.PsocMajorGroup(code="2", title="Professionals"),
        ]
    )
    session.flush()
    session.add(models.PsocUnitGroup(code="2211", title="Medical doctors", major_code="2"))
    session.commit()


def make_profile(db, profile_id, role, barangay_code=None, is_active=True, **codes):
    hierarchy = hierarchy_codes_for(db, barangay_code) if barangay_code else {}
    profile = models.UserProfile(
        id=profile_id,
        email=f"{profile_id}@example.ph",
        first_name=profile_id.title(),
        last_name="Tester",
        role=role.value,
        barangay_code=barangay_code,
        city_municipality_code=codes.get(
            "city_municipality_code", hierarchy.get("city_municipality_code")
        ),
        province_code=codes.get("province_code", hierarchy.get("province_code")),
        region_code=codes.get("region_code", hierarchy.get("region_code")),
        is_active=is_active,
    )
    db.add(profile)
    db.commit()
    return profile


@pytest.fixture
def profiles(db):
    return {
        "super": make_profile(db, "super", UserRole.SUPER_ADMIN),
        "admin_x": make_profile(db, "admin-x", UserRole.BARANGAY_ADMIN, BARANGAY_X),
        "user_x": make_profile(db, "user-x", UserRole.BARANGAY_USER, BARANGAY_X),
        "readonly_x": make_profile(db, "readonly-x", UserRole.READ_ONLY, BARANGAY_X),
        "inactive_x": make_profile(
            db, "inactive-x", UserRole.BARANGAY_USER, BARANGAY_X, is_active=False
        ),
        "admin_y": make_profile(db, "admin-y", UserRole.BARANGAY_ADMIN, BARANGAY_Y),
        "user_y": make_profile(db, "user-y", UserRole.BARANGAY_USER, BARANGAY_Y),
        "city_admin": make_profile(
            db,
            "city-admin",
            UserRole.CITY_ADMIN,
            city_municipality_code=CITY_XY,
            province_code="012800000",
            region_code="010000000",
        ),
    }


@pytest.fixture
def scope_for(db):
    def build(profile):
        return BarangayScope(profile, db)

    return build


@pytest.fixture
def refresh_calls(monkeypatch):
    """Capture on-demand dashboard refresh requests instead of starting threads"""
    calls = []
    monkeypatch.setattr(background_tasks, "request_summary_refresh", calls.append)
    return calls


@pytest.fixture
def make_household(db, scope_for):
    def create(profile, **fields):
        return HouseholdService(db, scope_for(profile)).create_household(
            HouseholdCreate(**fields)
        )

    return create


@pytest.fixture
def make_resident(db, scope_for):
    def create(profile, household_code=None, **fields):
        data = {
            "first_name": "Juan",
            "last_name": "Dela Cruz",
            "birthdate": date(1990, 5, 17),
            "sex": "male",
        }
        data.update(fields)
        return ResidentService(db, scope_for(profile)).create_resident(
            ResidentCreate(household_code=household_code, **data)
        )

    return create


@pytest.fixture
def client(db, refresh_calls):
    from barangay_records.main import app

    current = {"profile": None}

    def override_get_db():
        yield db

    def override_get_current_profile():
        return current["profile"]

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_profile] = override_get_current_profile

    test_client = TestClient(app)

    def as_profile(profile):
        current["profile"] = profile
        return test_client

    yield as_profile

    app.dependency_overrides.clear()
