from fastapi import HTTPException, status
from typing import Callable, Any
from functools import wraps
import logging

from ..exceptions import (
    AuthorizationError,
    BusinessRuleViolationError,
    ConsistencyMaintenanceFailure,
    DatabaseUnavailableError,
    RecordNotFoundError,
    RecordsServiceError,
    ReferentialIntegrityError,
)
from .constants import ErrorCodes, ResponseMessages

logger = logging.getLogger(__name__)


def handle_service_errors(func: Callable) -> Callable:
    """Decorator to standardize service error handling in routers"""

    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)

        except HTTPException:
            raise

        # Permission/Access Errors -> 403 Forbidden
        except AuthorizationError as e:
            logger.warning(f"Authorization denied: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"message": str(e), "code": ErrorCodes.AUTHORIZATION_ERROR},
            )

        except RecordNotFoundError as e:
            logger.warning(f"Resource not found: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"message": str(e), "code": ErrorCodes.NOT_FOUND_ERROR},
            )

        # Foreign key style violations -> 422 with the offending field
        except ReferentialIntegrityError as e:
            logger.warning(f"Referential integrity violation: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={
                    "message": str(e),
                    "code": ErrorCodes.REFERENTIAL_INTEGRITY_ERROR,
                    "field": e.field,
                },
            )

        # Business Rule Violations -> 409 Conflict
        except BusinessRuleViolationError as e:
            logger.warning(f"Business rule violation: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"message": str(e), "code": ErrorCodes.CONFLICT_ERROR},
            )

        except ConsistencyMaintenanceFailure as e:
            logger.error(f"Consistency maintenance failed: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail={"message": str(e), "code": ErrorCodes.CONSISTENCY_ERROR},
            )

        except DatabaseUnavailableError as e:
            logger.error(f"Database unavailable: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail={
                    "message": "Service temporarily unavailable",
                    "code": ErrorCodes.DATABASE_UNAVAILABLE,
                },
            )

        except RecordsServiceError as e:
            logger.warning(f"Service error: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"message": str(e), "code": ErrorCodes.VALIDATION_ERROR},
            )

        # Validation Errors -> 400 Bad Request
        except ValueError as e:
            logger.warning(f"Validation error: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"message": str(e), "code": ErrorCodes.VALIDATION_ERROR},
            )

        # Unexpected errors -> 500 Internal Server Error
        except Exception as e:
            logger.error(
                f"Unexpected error in {func.__name__}: {str(e)}", exc_info=True
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail={
                    "message": "An unexpected error occurred",
                    "code": ErrorCodes.SERVER_ERROR,
                },
            )

    return wrapper


class RouterResponse:
    """Helper class for creating standardized API responses"""

    @staticmethod
    def success(data: Any = None, message: str = ResponseMessages.SUCCESS) -> dict:
        """Create success response"""
        response = {"success": True, "message": message}
        if data is not None:
            response["data"] = data
        return response

    @staticmethod
    def created(data: Any, message: str = ResponseMessages.CREATED) -> dict:
        """Create resource creation response"""
        return {"success": True, "message": message, "data": data}

    @staticmethod
    def updated(
        data: Any = None, message: str = ResponseMessages.UPDATED
    ) -> dict:
        """Create resource update response"""
        response = {"success": True, "message": message}
        if data is not None:
            response["data"] = data
        return response

    @staticmethod
    def deleted(message: str = ResponseMessages.DELETED) -> dict:
        """Create resource deletion response"""
        return {"success": True, "message": message}
