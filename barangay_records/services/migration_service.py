from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import Any, Dict, Optional
import logging

from ..database import retry_on_disconnect
from ..exceptions import (
    RecordNotFoundError,
    RecordsServiceError,
    ReferentialIntegrityError,
)
from ..models.enums import AuditOperation
from ..models.geography import CityMunicipality, Province, Region
from ..models.migrant_information import MigrantInformation
from ..models.resident import Resident
from ..schemas.resident import MigrationInfoUpdate
from .access_scope import (
    BarangayScope,
    MigrantInformationRepository,
    ResidentRepository,
)
from .audit_service import AuditService, snapshot
from .geography_service import hierarchy_codes_for

logger = logging.getLogger(__name__)


class MigrationInfoService:
    """Previous-residence details of migrant residents"""

    def __init__(self, db: Session, scope: BarangayScope):
        self.db = db
        self.scope = scope
        self.residents = ResidentRepository(db, scope)
        self.records = MigrantInformationRepository(db, scope)
        self.audit = AuditService(db)

    @retry_on_disconnect
    def get_migration_info(self, resident_id: str) -> Optional[MigrantInformation]:
        if not self.residents.get(resident_id):
            raise RecordNotFoundError(f"Resident {resident_id} not found")
        return self.records.get(resident_id)

    def update_migration_info(
        self, resident_id: str, migration_data: MigrationInfoUpdate
    ) -> MigrantInformation:
        """Create or replace the record; the resident is flagged as a migrant"""
        resident = self.residents.get_for_write(resident_id)
        if not resident:
            raise RecordNotFoundError(f"Resident {resident_id} not found")

        values = self._resolve_previous_location(migration_data.model_dump())

        try:
            record = self.records.get_for_write(resident_id)
            old_values = snapshot(record) if record else None

            if record is None:
                record = MigrantInformation(
                    resident_id=resident.id,
                    barangay_code=resident.barangay_code,
                    created_by=self.scope.profile.id,
                )
                self.db.add(record)

            for field, value in values.items():
                setattr(record, field, value)
            record.updated_by = self.scope.profile.id

            self._flag_migrant(resident)
            self.db.flush()

            self.audit.record(
                "migrant_information",
                record.id,
                AuditOperation.UPDATE if old_values else AuditOperation.INSERT,
                resident.barangay_code,
                user_id=self.scope.profile.id,
                old_values=old_values,
                new_values=snapshot(record),
            )

            self.db.commit()
            self.db.refresh(record)
            logger.info(f"Migration information saved for resident {resident.id}")
            return record

        except RecordsServiceError:
            self.db.rollback()
            raise
        except IntegrityError as e:
            self.db.rollback()
            raise ReferentialIntegrityError(
                f"Migration information rejected: {str(e.orig)}"
            ) from e
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def _flag_migrant(self, resident: Resident) -> None:
        if resident.is_migrant:
            return
        old_values = snapshot(resident)
        resident.is_migrant = True
        resident.updated_by = self.scope.profile.id
        self.db.flush()
        self.audit.record(
            "residents",
            resident.id,
            AuditOperation.UPDATE,
            resident.barangay_code,
            user_id=self.scope.profile.id,
            old_values=old_values,
            new_values=snapshot(resident),
        )

    def _resolve_previous_location(self, values: Dict[str, Any]) -> Dict[str, Any]:
        """Check the previous PSGC codes and fill the levels above the most specific one"""
        derived = {}

        if values["previous_barangay_code"]:
            hierarchy = hierarchy_codes_for(self.db, values["previous_barangay_code"])
            if not hierarchy:
                raise ReferentialIntegrityError(
                    f"Unknown barangay code {values['previous_barangay_code']}",
                    field="previous_barangay_code",
                )
            derived = {
                "previous_city_municipality_code": hierarchy["city_municipality_code"],
                "previous_province_code": hierarchy["province_code"],
                "previous_region_code": hierarchy["region_code"],
            }
        elif values["previous_city_municipality_code"]:
            city = self.db.get(CityMunicipality, values["previous_city_municipality_code"])
            if not city:
                raise ReferentialIntegrityError(
                    f"Unknown city/municipality code "
                    f"{values['previous_city_municipality_code']}",
                    field="previous_city_municipality_code",
                )
            derived = {
                "previous_province_code": city.province_code,
                "previous_region_code": city.region_code,
            }
        elif values["previous_province_code"]:
            province = self.db.get(Province, values["previous_province_code"])
            if not province:
                raise ReferentialIntegrityError(
                    f"Unknown province code {values['previous_province_code']}",
                    field="previous_province_code",
                )
            derived = {"previous_region_code": province.region_code}

        for field, value in derived.items():
            given = values[field]
            if given and value and given != value:
                raise ReferentialIntegrityError(
                    f"{field} {given} does not contain the previous location",
                    field=field,
                )
            values[field] = given or value

        if values["previous_region_code"] and not self.db.get(
            Region, values["previous_region_code"]
        ):
            raise ReferentialIntegrityError(
                f"Unknown region code {values['previous_region_code']}",
                field="previous_region_code",
            )
        return values
