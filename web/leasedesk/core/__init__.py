from .base import BaseRepository, IRepository
from .exceptions import (
    BaseError,
    NotFoundError,
    ValidationError,
    AuthenticationError,
    ForbiddenError,
    InvalidStateError,
    ConflictError,
    ExternalServiceError
)
from .config import Settings, get_settings

__all__ = [
    # Base classes
    "BaseRepository",
    "IRepository",

    # Exceptions
    "BaseError",
    "NotFoundError",
    "ValidationError",
    "AuthenticationError",
    "ForbiddenError",
    "InvalidStateError",
    "ConflictError",
    "ExternalServiceError",

    # Config
    "Settings",
    "get_settings"
]
