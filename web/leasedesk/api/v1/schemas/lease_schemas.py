from typing import Optional, List
from datetime import datetime, date
from decimal import Decimal
from pydantic import BaseModel, Field


class CreateLeaseRequestIn(BaseModel):
    """Schema for a rent or buy request.

    Contact fields are required for guests and default to the caller's
    profile otherwise.
    """
    apartment_id: int
    type: str = Field("rent", description="rent | buy")
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    monthly_rent: Optional[Decimal] = None
    total_price: Optional[Decimal] = None
    note: Optional[str] = None
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None


class DecisionIn(BaseModel):
    """Schema for owner and manager decisions"""
    decision: str = Field(..., description="approve | reject")


class LeaseRequestOut(BaseModel):
    """Schema for lease request responses"""
    id: int
    apartment_id: int
    requester_id: Optional[int]
    type: str
    status: str
    start_date: Optional[date]
    end_date: Optional[date]
    monthly_rent: Optional[Decimal]
    total_price: Optional[Decimal]
    note: Optional[str]
    contact_name: Optional[str]
    contact_email: Optional[str]
    contact_phone: Optional[str]
    decision_by: Optional[int]
    decision_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True,
    }


class LeaseRequestPage(BaseModel):
    """Schema for a page of lease requests"""
    items: List[LeaseRequestOut]
    page: int
    limit: int
    total_items: int
    total_pages: int

    model_config = {
        "from_attributes": True,
    }


class ApartmentOut(BaseModel):
    """Schema for apartments open to new requests"""
    id: int
    apartment_number: str
    status: str
    monthly_rent: Optional[Decimal]
    sale_price: Optional[Decimal]
    is_listed_for_rent: bool
    is_listed_for_sale: bool

    model_config = {
        "from_attributes": True,
    }
