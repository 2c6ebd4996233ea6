from barangay_records.models import Household

from .conftest import BARANGAY_X, BARANGAY_Y


def test_create_household_returns_201(client, profiles):
    response = client(profiles["admin_x"]).post(
        "/api/households/", json={"street_name": "Rizal St", "house_number": "12"}
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["household"]["code"] == f"{BARANGAY_X}-0000-0000-0001"
    assert body["data"]["household"]["total_members"] == 0


def test_create_in_other_barangay_is_forbidden(client, profiles):
    response = client(profiles["user_x"]).post(
        "/api/households/", json={"barangay_code": BARANGAY_Y}
    )

    assert response.status_code == 403
    assert response.json()["detail"]["code"] == "AUTHZ_ERROR"


def test_household_outside_scope_is_not_found(client, profiles, make_household):
    household = make_household(profiles["admin_y"])

    response = client(profiles["user_x"]).get(f"/api/households/{household.code}")

    assert response.status_code == 404


def test_unknown_household_on_resident_create_is_422_with_field(client, profiles):
    response = client(profiles["user_x"]).post(
        "/api/residents/",
        json={
            "first_name": "Juan",
            "last_name": "Dela Cruz",
            "birthdate": "1990-05-17",
            "sex": "male",
            "household_code": f"{BARANGAY_X}-0000-0000-0404",
        },
    )

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["code"] == "REFERENTIAL_INTEGRITY"
    assert detail["field"] == "household_code"


def test_resident_lifecycle_updates_member_count(db, client, profiles, make_household):
    household = make_household(profiles["admin_x"])
    api = client(profiles["user_x"])

    created = api.post(
        "/api/residents/",
        json={
            "first_name": "Ana",
            "last_name": "Reyes",
            "birthdate": "1985-02-14",
            "sex": "female",
            "household_code": household.code,
        },
    )
    assert created.status_code == 201
    resident_id = created.json()["data"]["resident"]["id"]

    members = api.get(f"/api/households/{household.code}/members").json()
    assert members["data"]["active_count"] == 1

    assert api.post(f"/api/residents/{resident_id}/deactivate").status_code == 200
    db.expire_all()
    assert db.get(Household, household.code).total_members == 0

    assert api.post(f"/api/residents/{resident_id}/reactivate").status_code == 200
    db.expire_all()
    assert db.get(Household, household.code).total_members == 1


def test_delete_referenced_household_is_422(client, profiles, make_household, make_resident):
    household = make_household(profiles["admin_x"])
    make_resident(profiles["user_x"], household_code=household.code)

    response = client(profiles["admin_x"]).delete(f"/api/households/{household.code}")

    assert response.status_code == 422
    assert response.json()["detail"]["field"] == "household_code"


def test_reusing_deleted_code_is_409(client, profiles, make_household):
    household = make_household(profiles["admin_x"])
    api = client(profiles["admin_x"])

    assert api.delete(f"/api/households/{household.code}").status_code == 200
    response = api.post("/api/households/", json={"code": household.code})

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "CONFLICT"


def test_delete_requires_admin(client, profiles, make_household):
    household = make_household(profiles["admin_x"])

    response = client(profiles["user_x"]).delete(f"/api/households/{household.code}")

    assert response.status_code == 403


def test_recount_all_requires_super_admin(client, profiles):
    assert client(profiles["admin_x"]).post("/api/households/recount").status_code == 403

    response = client(profiles["super"]).post("/api/households/recount")
    assert response.status_code == 200
    assert response.json()["data"]["corrected_count"] == 0


def test_dashboard_endpoint(client, profiles, make_household, make_resident, refresh_calls):
    household = make_household(profiles["admin_x"])
    make_resident(profiles["user_x"], household_code=household.code)

    response = client(profiles["user_x"]).get("/api/dashboard/")

    assert response.status_code == 200
    dashboard = response.json()["data"]["dashboard"]
    assert dashboard["barangay_code"] == BARANGAY_X
    assert dashboard["counts"]["total_residents"] == 1
    assert dashboard["source"] == "live"
    assert refresh_calls == [BARANGAY_X]


def test_dashboard_refresh_endpoint(client, profiles, refresh_calls):
    api = client(profiles["admin_x"])

    assert api.post(f"/api/dashboard/{BARANGAY_X}/refresh").status_code == 200
    assert api.post(f"/api/dashboard/{BARANGAY_Y}/refresh").status_code == 404

    cached = api.get("/api/dashboard/").json()["data"]["dashboard"]
    assert cached["source"] == "cache"
    assert cached["stale"] is False


def test_current_user_endpoint(client, profiles):
    response = client(profiles["user_x"]).get("/api/users/me")

    assert response.status_code == 200
    assert response.json()["data"]["profile"]["id"] == "user-x"


def test_role_change_endpoint(client, profiles):
    response = client(profiles["admin_x"]).put(
        f"/api/users/{profiles['readonly_x'].id}/role", json={"role": "barangay_user"}
    )

    assert response.status_code == 200
    assert response.json()["data"]["profile"]["role"] == "barangay_user"


def test_barangay_search_endpoint(client, profiles):
    response = client(profiles["user_x"]).get("/api/geography/barangays", params={"q": "Ba"})

    assert response.status_code == 200
    names = [b["name"] for b in response.json()["data"]["barangays"]]
    assert names[:2] == ["Bacarra", "Bagong Pag-asa"]


def test_health(client, profiles):
    response = client(profiles["user_x"]).get("/health")

    assert response.status_code == 200
    assert "scheduler" in response.json()


def test_update_in_other_barangay_is_403(client, profiles, make_household, make_resident):
    household = make_household(profiles["admin_y"])
    resident = make_resident(profiles["user_y"], household_code=household.code)
    api = client(profiles["user_x"])

    assert api.get(f"/api/residents/{resident.id}").status_code == 404

    response = api.put(f"/api/residents/{resident.id}", json={"last_name": "Santos"})
    assert response.status_code == 403
    assert response.json()["detail"]["code"] == "AUTHZ_ERROR"

    response = api.put(f"/api/households/{household.code}", json={"street_name": "Luna St"})
    assert response.status_code == 403


def test_migration_info_endpoints(client, profiles, make_resident):
    resident = make_resident(profiles["user_x"])
    api = client(profiles["user_x"])

    empty = api.get(f"/api/residents/{resident.id}/migration")
    assert empty.status_code == 200
    assert empty.json()["data"]["migration_info"] is None

    saved = api.put(
        f"/api/residents/{resident.id}/migration",
        json={"previous_province_code": "015500000", "reason_for_leaving": "Work"},
    )
    assert saved.status_code == 200
    info = saved.json()["data"]["migration_info"]
    assert info["previous_region_code"] == "010000000"

    unknown = api.put(
        f"/api/residents/{resident.id}/migration",
        json={"previous_region_code": "990000000"},
    )
    assert unknown.status_code == 422
    assert unknown.json()["detail"]["field"] == "previous_region_code"


def test_relationship_endpoints(client, profiles, make_resident):
    parent = make_resident(profiles["user_x"], first_name="Jose")
    child = make_resident(profiles["user_x"], first_name="Pedro")
    api = client(profiles["user_x"])

    created = api.post(
        f"/api/residents/{child.id}/relationships",
        json={"related_resident_id": parent.id, "relationship_type": "parent"},
    )
    assert created.status_code == 201
    relationship_id = created.json()["data"]["relationship"]["id"]

    duplicate = api.post(
        f"/api/residents/{parent.id}/relationships",
        json={"related_resident_id": child.id, "relationship_type": "child"},
    )
    assert duplicate.status_code == 409

    listed = api.get(f"/api/residents/{parent.id}/relationships").json()
    assert listed["data"]["relationships"][0]["relationship_type"] == "child"

    deleted = api.delete(f"/api/residents/{parent.id}/relationships/{relationship_id}")
    assert deleted.status_code == 200
    assert api.get(f"/api/residents/{child.id}/relationships").json()["data"][
        "relationships"
    ] == []
