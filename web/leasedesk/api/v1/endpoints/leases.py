"""Lease / purchase request endpoints."""

from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
import logging

from ....deps import LeaseEngineDep
from ....rate_limit import decision_limit, limiter
from ....roles import LEASE_DECIDER_ROLES
from ....security import CurrentActor, OptionalActor, role_required
from ....services.lease_service import Actor, LeaseRequestFilters
from ..schemas.lease_schemas import (
    CreateLeaseRequestIn,
    DecisionIn,
    LeaseRequestOut,
    LeaseRequestPage,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=LeaseRequestOut, status_code=201)
async def create_lease_request(
    payload: CreateLeaseRequestIn,
    engine: LeaseEngineDep,
    actor: OptionalActor,
):
    """Request to rent or buy an apartment; guests may call this without a token."""
    lease = await engine.create_request(actor, payload)
    return LeaseRequestOut.model_validate(lease)


@router.get("", response_model=LeaseRequestPage)
async def list_lease_requests(
    engine: LeaseEngineDep,
    actor: CurrentActor,
    status: Optional[str] = Query(None, description="pending | pending_owner | pending_manager | approved | rejected | cancelled"),
    type: Optional[str] = Query(None, description="rent | buy"),
    apartment_id: Optional[int] = Query(None),
    requester_id: Optional[int] = Query(None),
    q: Optional[str] = Query(None, max_length=200, description="Words to look for in the note"),
    page: int = Query(1),
    limit: int = Query(20),
):
    """List lease requests. Non-staff callers only see their own."""
    result = await engine.list_requests(
        actor,
        LeaseRequestFilters(
            status=status,
            type=type,
            apartment_id=apartment_id,
            requester_id=requester_id,
            q=q,
            page=page,
            limit=limit,
        ),
    )
    return LeaseRequestPage.model_validate(result)


@router.patch("/{request_id}/owner-decision", response_model=LeaseRequestOut)
async def owner_decision(
    request_id: int,
    payload: DecisionIn,
    engine: LeaseEngineDep,
    actor: CurrentActor,
):
    """Apartment owner forwards a rent request to management or rejects it."""
    lease = await engine.owner_decision(actor, request_id, payload.decision)
    return LeaseRequestOut.model_validate(lease)


@router.patch("/{request_id}/decision", response_model=LeaseRequestOut)
@limiter.limit(decision_limit)
async def decide_lease_request(
    request: Request,
    request_id: int,
    payload: DecisionIn,
    engine: LeaseEngineDep,
    actor: Actor = Depends(role_required(LEASE_DECIDER_ROLES)),
):
    """Final approve/reject by an admin or building manager."""
    lease = await engine.decide_lease_request(actor, request_id, payload.decision)
    return LeaseRequestOut.model_validate(lease)


@router.patch("/{request_id}/cancel", response_model=LeaseRequestOut)
async def cancel_lease_request(
    request_id: int,
    engine: LeaseEngineDep,
    actor: CurrentActor,
):
    """Withdraw a request that is still waiting for a decision."""
    lease = await engine.cancel_lease_request(actor, request_id)
    return LeaseRequestOut.model_validate(lease)
