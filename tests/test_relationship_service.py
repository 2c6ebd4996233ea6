from datetime import date

import pytest
from pydantic import ValidationError

from barangay_records.exceptions import (
    AuthorizationError,
    BusinessRuleViolationError,
    RecordNotFoundError,
    ReferentialIntegrityError,
)
from barangay_records.models import AuditLog, ResidentRelationship
from barangay_records.models.enums import RelationshipType
from barangay_records.schemas.resident import RelationshipCreate
from barangay_records.services.relationship_service import RelationshipService
from barangay_records.services.resident_service import ResidentService


@pytest.fixture
def family(profiles, make_household, make_resident):
    household = make_household(profiles["admin_x"])
    return {
        name: make_resident(
            profiles["user_x"], household_code=household.code, first_name=name
        )
        for name in ("Jose", "Maria", "Pedro")
    }


def test_relationship_is_listed_from_both_sides(db, profiles, scope_for, family):
    service = RelationshipService(db, scope_for(profiles["user_x"]))

    # Jose is Pedro's parent
    service.add_relationship(
        family["Pedro"].id,
        RelationshipCreate(
            related_resident_id=family["Jose"].id, relationship_type="parent"
        ),
    )

    from_pedro = service.list_relationships(family["Pedro"].id)
    from_jose = service.list_relationships(family["Jose"].id)

    assert [(r["related_resident_id"], r["relationship_type"]) for r in from_pedro] == [
        (family["Jose"].id, "parent")
    ]
    assert [(r["related_resident_id"], r["relationship_type"]) for r in from_jose] == [
        (family["Pedro"].id, "child")
    ]
    assert service.list_relationships(family["Maria"].id) == []


def test_one_sided_relationship_hidden_from_other_resident(
    db, profiles, scope_for, family
):
    service = RelationshipService(db, scope_for(profiles["user_x"]))
    service.add_relationship(
        family["Pedro"].id,
        RelationshipCreate(
            related_resident_id=family["Maria"].id,
            relationship_type="guardian",
            is_reciprocal=False,
        ),
    )

    assert len(service.list_relationships(family["Pedro"].id)) == 1
    assert service.list_relationships(family["Maria"].id) == []


def test_same_tie_cannot_be_recorded_twice(db, profiles, scope_for, family):
    service = RelationshipService(db, scope_for(profiles["user_x"]))
    service.add_relationship(
        family["Jose"].id,
        RelationshipCreate(
            related_resident_id=family["Maria"].id, relationship_type="spouse"
        ),
    )

    with pytest.raises(BusinessRuleViolationError):
        service.add_relationship(
            family["Jose"].id,
            RelationshipCreate(
                related_resident_id=family["Maria"].id, relationship_type="spouse"
            ),
        )
    # Stated from the other side it is still the same tie
    with pytest.raises(BusinessRuleViolationError):
        service.add_relationship(
            family["Maria"].id,
            RelationshipCreate(
                related_resident_id=family["Jose"].id, relationship_type="spouse"
            ),
        )

    assert db.query(ResidentRelationship).count() == 1


def test_resident_cannot_be_related_to_themself(db, profiles, scope_for, family):
    service = RelationshipService(db, scope_for(profiles["user_x"]))

    with pytest.raises(ValueError):
        service.add_relationship(
            family["Jose"].id,
            RelationshipCreate(
                related_resident_id=family["Jose"].id, relationship_type="other"
            ),
        )


def test_related_resident_must_exist_in_same_barangay(
    db, profiles, scope_for, family, make_resident
):
    service = RelationshipService(db, scope_for(profiles["super"]))
    outsider = make_resident(profiles["user_y"])

    with pytest.raises(ReferentialIntegrityError) as excinfo:
        service.add_relationship(
            family["Jose"].id,
            RelationshipCreate(related_resident_id="missing", relationship_type="sibling"),
        )
    assert excinfo.value.field == "related_resident_id"

    with pytest.raises(ReferentialIntegrityError):
        service.add_relationship(
            family["Jose"].id,
            RelationshipCreate(related_resident_id=outsider.id, relationship_type="sibling"),
        )


def test_other_barangay_cannot_touch_relationships(
    db, profiles, scope_for, family
):
    service = RelationshipService(db, scope_for(profiles["user_y"]))

    with pytest.raises(RecordNotFoundError):
        service.list_relationships(family["Jose"].id)
    with pytest.raises(AuthorizationError):
        service.add_relationship(
            family["Jose"].id,
            RelationshipCreate(
                related_resident_id=family["Maria"].id, relationship_type="spouse"
            ),
        )


def test_delete_relationship_is_audited(db, profiles, scope_for, family):
    service = RelationshipService(db, scope_for(profiles["user_x"]))
    relationship = service.add_relationship(
        family["Jose"].id,
        RelationshipCreate(related_resident_id=family["Pedro"].id, relationship_type="child"),
    )
    relationship_id = relationship.id

    with pytest.raises(RecordNotFoundError):
        service.delete_relationship(family["Maria"].id, relationship_id)

    service.delete_relationship(family["Pedro"].id, relationship_id)

    assert db.get(ResidentRelationship, relationship_id) is None
    operations = [
        row.operation
        for row in db.query(AuditLog)
        .filter(
            AuditLog.table_name == "resident_relationships",
            AuditLog.record_id == relationship_id,
        )
        .order_by(AuditLog.id)
    ]
    assert operations == ["INSERT", "DELETE"]


def test_deleting_resident_removes_their_relationships(db, profiles, scope_for, family):
    RelationshipService(db, scope_for(profiles["user_x"])).add_relationship(
        family["Jose"].id,
        RelationshipCreate(related_resident_id=family["Maria"].id, relationship_type="spouse"),
    )

    ResidentService(db, scope_for(profiles["admin_x"])).delete_resident(family["Maria"].id)

    assert db.query(ResidentRelationship).count() == 0


@pytest.mark.parametrize(
    "relationship_type, inverse",
    [
        (RelationshipType.PARENT, RelationshipType.CHILD),
        (RelationshipType.WARD, RelationshipType.GUARDIAN),
        (RelationshipType.SPOUSE, RelationshipType.SPOUSE),
        (RelationshipType.OTHER, RelationshipType.OTHER),
    ],
)
def test_relationship_inverse(relationship_type, inverse):
    assert relationship_type.inverse is inverse


def test_relationship_schema_rejects_reversed_dates():
    with pytest.raises(ValidationError):
        RelationshipCreate(
            related_resident_id="r1",
            relationship_type="spouse",
            start_date=date(2020, 1, 1),
            end_date=date(2019, 1, 1),
        )
