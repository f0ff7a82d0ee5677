from .lease_schemas import (
    CreateLeaseRequestIn,
    DecisionIn,
    LeaseRequestOut,
    LeaseRequestPage,
    ApartmentOut,
)

__all__ = [
    # Lease schemas
    "CreateLeaseRequestIn",
    "DecisionIn",
    "LeaseRequestOut",
    "LeaseRequestPage",

    # Public schemas
    "ApartmentOut",
]
