"""Public endpoints."""

from __future__ import annotations

from typing import List
from fastapi import APIRouter, Query

from ....deps import LeaseEngineDep
from ..schemas.lease_schemas import ApartmentOut

router = APIRouter()


@router.get("/apartments", response_model=List[ApartmentOut])
async def list_available_apartments(
    engine: LeaseEngineDep,
    listing: str = Query("rent", description="rent | buy"),
    page: int = Query(1),
    limit: int = Query(20),
):
    """Apartments that can currently be requested for rent or purchase."""
    apartments = await engine.list_eligible_apartments(listing, page=page, limit=limit)
    return [ApartmentOut.model_validate(a) for a in apartments]
