from .apartment_repository import ApartmentRepository
from .lease_request_repository import LeaseRequestRepository
from .user_repository import UserRepository

__all__ = [
    "ApartmentRepository",
    "LeaseRequestRepository",
    "UserRepository",
]
