class ResponseMessages:
    """Standard API response messages"""

    SUCCESS = "Success"
    CREATED = "Created successfully"
    UPDATED = "Updated successfully"
    DELETED = "Deleted successfully"


# Application Constants
class AppConstants:
    # Pagination
    DEFAULT_PAGE_SIZE = 20
    MAX_PAGE_SIZE = 100

    # Household codes: RRPPMMBBB-SSSS-TTTT-HHHH
    HOUSEHOLD_CODE_SUBDIVISION = "0000"
    HOUSEHOLD_CODE_STREET = "0000"
    HOUSEHOLD_NUMBER_WIDTH = 4

    # Demographics
    SENIOR_CITIZEN_AGE = 60
    OSC_MIN_AGE = 6
    OSC_MAX_AGE = 14
    OSY_MIN_AGE = 15
    OSY_MAX_AGE = 24
    MAX_RESIDENT_AGE = 150

    # Search
    SEARCH_RESULTS_LIMIT = 50
    BARANGAY_SEARCH_LIMIT = 20


# Monthly household income floors (PHP), highest first
class IncomeBrackets:
    RICH = 219140
    HIGH_INCOME = 131484
    UPPER_MIDDLE_INCOME = 76669
    MIDDLE_INCOME = 43828
    LOWER_MIDDLE_INCOME = 21914
    LOW_INCOME = 10957


# Dashboard age brackets: (column, min age, max age or None)
AGE_BRACKETS = (
    ("age_0_5", 0, 5),
    ("age_6_14", 6, 14),
    ("age_15_24", 15, 24),
    ("age_25_59", 25, 59),
    ("age_60_plus", 60, None),
)


class Messages:
    DASHBOARD_STALE = "Dashboard statistics may be out of date"
    DASHBOARD_LIVE = "Dashboard computed from live records"
    HOUSEHOLD_RECOUNTED = "Household member count recomputed"
    RESIDENT_DEACTIVATED = "Resident deactivated"
    RESIDENT_REACTIVATED = "Resident reactivated"
    REFRESH_REQUESTED = "Dashboard refresh requested"


class ErrorCodes:
    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTHORIZATION_ERROR = "AUTHZ_ERROR"
    NOT_FOUND_ERROR = "NOT_FOUND"
    REFERENTIAL_INTEGRITY_ERROR = "REFERENTIAL_INTEGRITY"
    CONFLICT_ERROR = "CONFLICT"
    CONSISTENCY_ERROR = "CONSISTENCY_ERROR"
    DATABASE_UNAVAILABLE = "DATABASE_UNAVAILABLE"
    SERVER_ERROR = "SERVER_ERROR"
