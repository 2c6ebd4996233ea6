from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import Any, Dict, List
import logging

from ..database import retry_on_disconnect
from ..exceptions import (
    BusinessRuleViolationError,
    RecordNotFoundError,
    RecordsServiceError,
    ReferentialIntegrityError,
)
from ..models.enums import AuditOperation, RelationshipType
from ..models.resident import Resident
from ..models.resident_relationship import ResidentRelationship
from ..schemas.resident import RelationshipCreate
from .access_scope import (
    BarangayScope,
    ResidentRelationshipRepository,
    ResidentRepository,
)
from .audit_service import AuditService, snapshot

logger = logging.getLogger(__name__)


class RelationshipService:
    def __init__(self, db: Session, scope: BarangayScope):
        self.db = db
        self.scope = scope
        self.residents = ResidentRepository(db, scope)
        self.relationships = ResidentRelationshipRepository(db, scope)
        self.audit = AuditService(db)

    @retry_on_disconnect
    def list_relationships(self, resident_id: str) -> List[Dict[str, Any]]:
        if not self.residents.get(resident_id):
            raise RecordNotFoundError(f"Resident {resident_id} not found")
        return [
            relationship.to_dict(viewer_id=resident_id)
            for relationship in self.relationships.for_resident(resident_id)
        ]

    def add_relationship(
        self, resident_id: str, relationship_data: RelationshipCreate
    ) -> ResidentRelationship:
        """Record that the related resident is `relationship_type` to this one"""
        resident = self._get_resident_for_write(resident_id)
        related_id = relationship_data.related_resident_id

        if related_id == resident.id:
            raise ValueError("A resident cannot be related to themself")

        related = self.residents.get_for_write(related_id)
        if not related:
            raise ReferentialIntegrityError(
                f"Unknown resident {related_id}", field="related_resident_id"
            )
        if related.barangay_code != resident.barangay_code:
            raise ReferentialIntegrityError(
                f"Resident {related_id} is in a different barangay",
                field="related_resident_id",
            )

        relationship_type = relationship_data.relationship_type
        self._check_not_recorded(resident.id, related.id, relationship_type)

        try:
            relationship = ResidentRelationship(
                resident_a_id=resident.id,
                resident_b_id=related.id,
                barangay_code=resident.barangay_code,
                relationship_type=relationship_type.value,
                relationship_description=relationship_data.relationship_description,
                is_reciprocal=relationship_data.is_reciprocal,
                start_date=relationship_data.start_date,
                end_date=relationship_data.end_date,
                created_by=self.scope.profile.id,
                updated_by=self.scope.profile.id,
            )
            self.db.add(relationship)
            self.db.flush()

            self.audit.record(
                "resident_relationships",
                relationship.id,
                AuditOperation.INSERT,
                resident.barangay_code,
                user_id=self.scope.profile.id,
                new_values=snapshot(relationship),
            )

            self.db.commit()
            self.db.refresh(relationship)
            logger.info(
                f"Relationship {relationship_type.value} recorded between "
                f"{resident.id} and {related.id}"
            )
            return relationship

        except RecordsServiceError:
            self.db.rollback()
            raise
        except IntegrityError as e:
            self.db.rollback()
            raise BusinessRuleViolationError(
                f"Relationship already recorded: {str(e.orig)}"
            ) from e
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def delete_relationship(self, resident_id: str, relationship_id: str) -> None:
        self._get_resident_for_write(resident_id)

        relationship = self.relationships.get_for_write(relationship_id)
        if not relationship or not relationship.involves(resident_id):
            raise RecordNotFoundError(
                f"Relationship {relationship_id} not found for resident {resident_id}"
            )

        try:
            old_values = snapshot(relationship)
            self.db.delete(relationship)
            self.db.flush()

            self.audit.record(
                "resident_relationships",
                relationship_id,
                AuditOperation.DELETE,
                old_values["barangay_code"],
                user_id=self.scope.profile.id,
                old_values=old_values,
            )

            self.db.commit()

        except SQLAlchemyError:
            self.db.rollback()
            raise

    def _get_resident_for_write(self, resident_id: str) -> Resident:
        resident = self.residents.get_for_write(resident_id)
        if not resident:
            raise RecordNotFoundError(f"Resident {resident_id} not found")
        return resident

    def _check_not_recorded(
        self, resident_id: str, related_id: str, relationship_type: RelationshipType
    ) -> None:
        # B being A's parent is the same tie as A being B's child
        existing = self.relationships.find(
            resident_id, related_id, relationship_type.value
        ) or self.relationships.find(
            related_id, resident_id, relationship_type.inverse.value
        )
        if existing:
            raise BusinessRuleViolationError(
                f"Relationship {relationship_type.value} between {resident_id} and "
                f"{related_id} is already recorded"
            )
