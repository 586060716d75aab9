from typing import Any, Dict, Optional


class ServiceErrorCode:
    """Standard error codes for services"""

    # Validation
    INVALID_INPUT = "INVALID_INPUT"

    # Registry
    UNKNOWN_USER = "UNKNOWN_USER"

    # System
    INTERNAL_ERROR = "INTERNAL_ERROR"
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"


class ServiceError(Exception):
    """
    Standardized service error for internal use.
    Gets converted to proper HTTP response by error handler.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "status_code": self.status_code,
            "details": self.details,
        }


class UnknownUserError(ServiceError):
    def __init__(self, user_id: str, message: Optional[str] = None):
        super().__init__(
            code=ServiceErrorCode.UNKNOWN_USER,
            message=message or f"User {user_id} is not registered",
            status_code=404,
            details={"user_id": user_id},
        )
        self.user_id = user_id


class InvalidInputError(ServiceError):
    def __init__(self, message: str = "Invalid input", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            code=ServiceErrorCode.INVALID_INPUT,
            message=message,
            status_code=422,
            details=details,
        )


class StorageUnavailableError(ServiceError):
    def __init__(
        self,
        message: str = "Storage backend unavailable",
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            code=ServiceErrorCode.STORAGE_UNAVAILABLE,
            message=message,
            status_code=503,
            details={"operation": operation} if operation else None,
            context=context,
        )
        self.operation = operation
