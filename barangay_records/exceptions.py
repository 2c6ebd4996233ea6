from typing import Optional


class RecordsServiceError(Exception):
    """Base exception for household/resident record errors"""

    pass


class ReferentialIntegrityError(RecordsServiceError):
    """A write would point at a row that does not exist or does not fit"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class AuthorizationError(RecordsServiceError):
    """Barangay mismatch, inactive profile or insufficient role"""

    pass


class ConsistencyMaintenanceFailure(RecordsServiceError):
    """Household member count could not be recomputed"""

    pass


class RecordNotFoundError(RecordsServiceError):
    """Row does not exist or is not visible to the caller"""

    pass


class BusinessRuleViolationError(RecordsServiceError):
    """Business rule violation"""

    pass


class DatabaseUnavailableError(RecordsServiceError):
    """Database could not be reached after bounded retries"""

    pass


class StaleCacheWarning(UserWarning):
    """Dashboard data older than the freshness threshold was served"""

    pass
