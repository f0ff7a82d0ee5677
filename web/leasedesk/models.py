from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    String, Integer, ForeignKey, Numeric, DateTime, Date, Boolean, Index
)
from sqlalchemy.orm import mapped_column, relationship, DeclarativeBase

from .roles import Role


def _utcnow() -> datetime:
    """Naive UTC timestamp (columns are stored without tz info)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase): ...


class LeaseType(str, Enum):
    rent = "rent"
    buy = "buy"


class LeaseStatus(str, Enum):
    pending_owner = "pending_owner"
    pending_manager = "pending_manager"
    approved = "approved"
    rejected = "rejected"
    cancelled = "cancelled"


PENDING_STATUSES = frozenset({LeaseStatus.pending_owner.value, LeaseStatus.pending_manager.value})


class Decision(str, Enum):
    approve = "approve"
    reject = "reject"


class ApartmentStatus(str, Enum):
    vacant = "vacant"
    occupied = "occupied"
    under_renovation = "under_renovation"
    for_rent = "for_rent"
    for_sale = "for_sale"


# ---------- Identities ----------
class User(Base):
    __tablename__ = "users"
    id            = mapped_column(Integer, primary_key=True)
    email         = mapped_column(String(100), unique=True, nullable=False)
    # Provisioned guest accounts have no password until they set one
    password_hash = mapped_column(String(255), nullable=True)
    role          = mapped_column(String(32), default=Role.user.value, nullable=False)
    first         = mapped_column(String(50), nullable=False)
    last          = mapped_column(String(50), nullable=False)
    phone         = mapped_column(String(20), nullable=True)
    is_active     = mapped_column(Boolean, default=True, nullable=False)
    created_at    = mapped_column(DateTime, default=_utcnow, nullable=False)
    updated_at    = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)


# ---------- Apartments ----------
class Apartment(Base):
    __tablename__ = "apartments"
    id                 = mapped_column(Integer, primary_key=True)
    apartment_number   = mapped_column(String(20), nullable=False)
    owner_id           = mapped_column(ForeignKey("users.id"), nullable=True, comment="Owner of the apartment")
    tenant_id          = mapped_column(ForeignKey("users.id"), nullable=True, comment="Current tenant/renter")
    monthly_rent       = mapped_column(Numeric(10, 2), nullable=True)
    sale_price         = mapped_column(Numeric(12, 2), nullable=True)
    is_listed_for_rent = mapped_column(Boolean, default=False, nullable=False)
    is_listed_for_sale = mapped_column(Boolean, default=False, nullable=False)
    status             = mapped_column(String(20), default=ApartmentStatus.vacant.value, nullable=False,
                                       comment="vacant | occupied | under_renovation | for_rent | for_sale")
    is_active          = mapped_column(Boolean, default=True, nullable=False)
    created_at         = mapped_column(DateTime, default=_utcnow, nullable=False)
    updated_at         = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    owner  = relationship("User", foreign_keys=[owner_id])
    tenant = relationship("User", foreign_keys=[tenant_id])

    __table_args__ = (
        Index("ix_apartments_owner_id", "owner_id"),
        Index("ix_apartments_tenant_id", "tenant_id"),
        Index("ix_apartments_status", "status"),
    )


# ---------- Lease / purchase requests ----------
class LeaseRequest(Base):
    __tablename__ = "lease_requests"
    id            = mapped_column(Integer, primary_key=True)
    apartment_id  = mapped_column(ForeignKey("apartments.id"), nullable=False)
    # NULL requester means the request was made by a guest without an account
    requester_id  = mapped_column(ForeignKey("users.id"), nullable=True)
    type          = mapped_column(String(8), nullable=False, comment="rent | buy")
    status        = mapped_column(String(20), nullable=False,
                                  comment="pending_owner | pending_manager | approved | rejected | cancelled")
    start_date    = mapped_column(Date, nullable=True)
    end_date      = mapped_column(Date, nullable=True)
    monthly_rent  = mapped_column(Numeric(10, 2), nullable=True)
    total_price   = mapped_column(Numeric(12, 2), nullable=True)
    note          = mapped_column(String(500), nullable=True)
    contact_name  = mapped_column(String(100), nullable=True)
    contact_email = mapped_column(String(100), nullable=True)
    contact_phone = mapped_column(String(20), nullable=True)
    decision_by   = mapped_column(ForeignKey("users.id"), nullable=True)
    decision_at   = mapped_column(DateTime, nullable=True)
    created_at    = mapped_column(DateTime, default=_utcnow, nullable=False)
    updated_at    = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    apartment = relationship("Apartment")
    requester = relationship("User", foreign_keys=[requester_id])
    approver  = relationship("User", foreign_keys=[decision_by])

    __table_args__ = (
        Index("ix_lease_requests_apartment_id", "apartment_id"),
        Index("ix_lease_requests_requester_id", "requester_id"),
        Index("ix_lease_requests_status", "status"),
        Index("ix_lease_requests_type", "type"),
    )
