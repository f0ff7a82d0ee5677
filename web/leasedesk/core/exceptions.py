from typing import Any, Optional, Dict


class BaseError(Exception):
    """Base exception class for the application"""

    def __init__(
        self,
        message: str = "An error occurred",
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(BaseError):
    """Exception raised when an entity is not found"""

    def __init__(self, entity: str, id: Any):
        super().__init__(
            message=f"{entity} with id {id} not found",
            status_code=404,
            details={"entity": entity, "id": id}
        )


class ValidationError(BaseError):
    """Exception raised for malformed input"""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message=message,
            status_code=400,
            details=details
        )


class AuthenticationError(BaseError):
    """Exception raised for authentication errors"""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message=message, status_code=401)


class ForbiddenError(BaseError):
    """Actor lacks authorization for the attempted operation"""

    def __init__(self, message: str = "Access denied"):
        super().__init__(message=message, status_code=403)


class InvalidStateError(BaseError):
    """Request or apartment is not in a state that permits the transition"""

    def __init__(self, message: str, state: Optional[str] = None):
        details = {"state": state} if state else {}
        super().__init__(
            message=message,
            status_code=409,
            details=details
        )


class ConflictError(BaseError):
    """Exception raised when a concurrent mutation is detected"""

    def __init__(self, message: str):
        super().__init__(message=message, status_code=409)


class ExternalServiceError(BaseError):
    """Exception raised when an external service or the database times out"""

    def __init__(self, service: str, message: str):
        super().__init__(
            message=f"External service error: {message}",
            status_code=503,
            details={"service": service}
        )
