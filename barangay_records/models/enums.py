from enum import Enum


class UserRole(str, Enum):
    SUPER_ADMIN = "super_admin"
    REGION_ADMIN = "region_admin"
    PROVINCE_ADMIN = "province_admin"
    CITY_ADMIN = "city_admin"
    BARANGAY_ADMIN = "barangay_admin"
    BARANGAY_USER = "barangay_user"
    READ_ONLY = "read_only"


class ResidentMutation(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    DEACTIVATE = "deactivate"
    REACTIVATE = "reactivate"


class AuditOperation(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class Sex(str, Enum):
    MALE = "male"
    FEMALE = "female"


class CivilStatus(str, Enum):
    SINGLE = "single"
    MARRIED = "married"
    DIVORCED = "divorced"
    SEPARATED = "separated"
    WIDOWED = "widowed"
    OTHERS = "others"


class EducationLevel(str, Enum):
    ELEMENTARY = "elementary"
    HIGH_SCHOOL = "high_school"
    COLLEGE = "college"
    POST_GRADUATE = "post_graduate"
    VOCATIONAL = "vocational"


class EmploymentStatus(str, Enum):
    EMPLOYED = "employed"
    UNEMPLOYED = "unemployed"
    UNDEREMPLOYED = "underemployed"
    SELF_EMPLOYED = "self_employed"
    STUDENT = "student"
    RETIRED = "retired"
    HOMEMAKER = "homemaker"
    UNABLE_TO_WORK = "unable_to_work"
    LOOKING_FOR_WORK = "looking_for_work"
    NOT_IN_LABOR_FORCE = "not_in_labor_force"


class HouseholdType(str, Enum):
    NUCLEAR = "nuclear"
    SINGLE_PARENT = "single_parent"
    EXTENDED = "extended"
    CHILDLESS = "childless"
    ONE_PERSON = "one_person"
    NON_FAMILY = "non_family"
    OTHER = "other"


class TenureStatus(str, Enum):
    OWNED = "owned"
    OWNED_WITH_MORTGAGE = "owned_with_mortgage"
    RENTED = "rented"
    OCCUPIED_FOR_FREE = "occupied_for_free"
    OCCUPIED_WITHOUT_CONSENT = "occupied_without_consent"
    OTHERS = "others"


class IncomeClass(str, Enum):
    RICH = "rich"
    HIGH_INCOME = "high_income"
    UPPER_MIDDLE_INCOME = "upper_middle_income"
    MIDDLE_INCOME = "middle_income"
    LOWER_MIDDLE_INCOME = "lower_middle_income"
    LOW_INCOME = "low_income"
    POOR = "poor"
    NOT_DETERMINED = "not_determined"


class FamilyPosition(str, Enum):
    FATHER = "father"
    MOTHER = "mother"
    SON = "son"
    DAUGHTER = "daughter"
    GRANDMOTHER = "grandmother"
    GRANDFATHER = "grandfather"
    FATHER_IN_LAW = "father_in_law"
    MOTHER_IN_LAW = "mother_in_law"
    BROTHER_IN_LAW = "brother_in_law"
    SISTER_IN_LAW = "sister_in_law"
    SPOUSE = "spouse"
    SIBLING = "sibling"
    GUARDIAN = "guardian"
    WARD = "ward"
    OTHER = "other"


class RelationshipType(str, Enum):
    SPOUSE = "spouse"
    PARENT = "parent"
    CHILD = "child"
    SIBLING = "sibling"
    GUARDIAN = "guardian"
    WARD = "ward"
    OTHER = "other"

    @property
    def inverse(self) -> "RelationshipType":
        """The same relationship seen from the other resident"""
        return _RELATIONSHIP_INVERSES.get(self, self)


_RELATIONSHIP_INVERSES = {
    RelationshipType.PARENT: RelationshipType.CHILD,
    RelationshipType.CHILD: RelationshipType.PARENT,
    RelationshipType.GUARDIAN: RelationshipType.WARD,
    RelationshipType.WARD: RelationshipType.GUARDIAN,
}
