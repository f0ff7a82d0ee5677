"""Lease / purchase request workflow.

A request is created as ``pending_owner`` (rent of an apartment whose owner
is someone else) or ``pending_manager``. The owner can hand a request on to
the manager stage or reject it; a manager (or admin) then rejects it or
approves it. Approval is one transaction: the request is marked approved,
the requester account is resolved (provisioned for guests), upgraded to
resident, and the apartment is handed over.
"""
from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Any, List, Optional, Tuple

from sqlalchemy.exc import OperationalError

from leasedesk.api.v1.schemas.lease_schemas import CreateLeaseRequestIn
from leasedesk.core.config import Settings
from leasedesk.core.exceptions import (
    ConflictError,
    ExternalServiceError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from leasedesk.core.unit_of_work import SessionFactory, UnitOfWork, get_uow
from leasedesk.models import (
    Apartment,
    ApartmentStatus,
    Decision,
    LeaseRequest,
    LeaseStatus,
    LeaseType,
    PENDING_STATUSES,
    _utcnow,
)
from leasedesk.roles import (
    Role,
    can_cancel_any_lease_request,
    can_create_lease_request,
    can_decide_lease_request,
    can_view_all_lease_requests,
    to_role_str,
)
from leasedesk.services.contact import validate_contact
from leasedesk.services.notification_service import (
    GUEST_REQUEST_CREATED,
    OWNER_DECIDED,
    REQUEST_CANCELLED,
    REQUEST_DECIDED,
    ROLE_UPGRADED,
    LeaseEvent,
    NotificationDispatcher,
)
from leasedesk.services.requester_service import RequesterResolver

logger = logging.getLogger(__name__)

NOTE_MAX_LENGTH = 500


@dataclass(frozen=True)
class Actor:
    """The authenticated caller. ``None`` is used for guests."""
    id: int
    role: Optional[str]
    email: Optional[str] = None
    first: Optional[str] = None
    last: Optional[str] = None
    phone: Optional[str] = None

    @property
    def full_name(self) -> Optional[str]:
        name = f"{self.first or ''} {self.last or ''}".strip()
        return name or None


@dataclass
class LeaseRequestFilters:
    status: Optional[str] = None
    type: Optional[str] = None
    apartment_id: Optional[int] = None
    requester_id: Optional[int] = None
    q: Optional[str] = None
    page: int = 1
    limit: int = 20


@dataclass
class Page:
    items: List[Any]
    page: int
    limit: int
    total_items: int
    total_pages: int


def initial_status(lease_type: LeaseType, owner_id: Optional[int], requester_id: Optional[int]) -> LeaseStatus:
    """Rent requests wait for the owner when someone else owns the apartment."""
    if lease_type is LeaseType.rent and owner_id is not None and owner_id != requester_id:
        return LeaseStatus.pending_owner
    return LeaseStatus.pending_manager


def occupancy_changes(lease_type: LeaseType, requester_id: int) -> Dict[str, Any]:
    """Apartment fields written when a request of *lease_type* is approved."""
    if lease_type is LeaseType.rent:
        return {
            "tenant_id": requester_id,
            "status": ApartmentStatus.occupied.value,
            "is_listed_for_rent": False,
        }
    return {
        "owner_id": requester_id,
        "tenant_id": None,
        "status": ApartmentStatus.occupied.value,
        "is_listed_for_sale": False,
        "is_listed_for_rent": False,
    }


def parse_lease_type(value: "str | LeaseType") -> LeaseType:
    try:
        return LeaseType(value)
    except ValueError:
        raise ValidationError("type must be rent or buy", field="type")


def parse_decision(value: "str | Decision") -> Decision:
    try:
        return Decision(value)
    except ValueError:
        raise ValidationError("decision must be approve or reject", field="decision")


def parse_status_filter(value: Optional[str]) -> Optional[List[str]]:
    """``pending`` selects both pending stages."""
    if not value:
        return None
    if value == "pending":
        return sorted(PENDING_STATUSES)
    try:
        return [LeaseStatus(value).value]
    except ValueError:
        raise ValidationError(f"Unknown status: {value}", field="status")


class LeaseWorkflowEngine:
    """Creates lease requests and drives them through their approval gates.

    Every operation opens its own unit of work from *session_factory*;
    the engine itself keeps no state between calls.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        notifier: NotificationDispatcher,
        settings: Settings,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._session_factory = session_factory
        self._notifier = notifier
        self._settings = settings
        self._clock = clock

    # ------------------------------------------------------------------
    #  Creation
    # ------------------------------------------------------------------

    async def create_request(self, actor: Optional[Actor], payload: CreateLeaseRequestIn) -> LeaseRequest:
        """Create a request for an apartment listed for rent or sale.

        Raises:
            ForbiddenError: staff, residents and owners cannot create requests
            ValidationError: malformed type, contact fields, note, dates or prices
            NotFoundError: apartment missing or inactive
            InvalidStateError: apartment occupied or not listed for this type
        """
        is_guest = actor is None
        if not can_create_lease_request(None if is_guest else actor.role, is_guest=is_guest):
            raise ForbiddenError("Only guests and registered users can request to rent or buy")

        lease_type = parse_lease_type(payload.type)
        contact = validate_contact(
            payload.contact_name,
            payload.contact_email,
            payload.contact_phone,
            region=self._settings.PHONE_DEFAULT_REGION,
            required=is_guest,
        )
        contact_name, contact_email, contact_phone = contact.name, contact.email, contact.phone
        if not is_guest:
            contact_name = contact_name or actor.full_name
            contact_email = contact_email or actor.email
            contact_phone = contact_phone or actor.phone

        self._validate_terms(lease_type, payload)

        async with get_uow(self._session_factory) as uow:
            apartment = await uow.apartments.get_active(payload.apartment_id)
            if not apartment:
                raise NotFoundError("Apartment", payload.apartment_id)
            self._check_listing(apartment, lease_type)

            requester_id = None if is_guest else actor.id
            status = initial_status(lease_type, apartment.owner_id, requester_id)

            if lease_type is LeaseType.rent:
                monthly_rent = payload.monthly_rent if payload.monthly_rent is not None else apartment.monthly_rent
                total_price = None
            else:
                monthly_rent = None
                total_price = payload.total_price if payload.total_price is not None else apartment.sale_price

            lease = await uow.lease_requests.create(obj_in={
                "apartment_id": apartment.id,
                "requester_id": requester_id,
                "type": lease_type.value,
                "status": status.value,
                "start_date": payload.start_date,
                "end_date": payload.end_date,
                "monthly_rent": monthly_rent,
                "total_price": total_price,
                "note": payload.note,
                "contact_name": contact_name,
                "contact_email": contact_email,
                "contact_phone": contact_phone,
            })
            await uow.commit()

        logger.info(
            "Lease request %s created: type=%s apartment=%s requester=%s status=%s",
            lease.id, lease.type, lease.apartment_id, requester_id or "guest", lease.status,
        )

        if is_guest:
            self._notifier.publish(LeaseEvent(
                kind=GUEST_REQUEST_CREATED,
                request_id=lease.id,
                apartment_id=lease.apartment_id,
                payload={
                    "type": lease.type,
                    "status": lease.status,
                    "contact_name": lease.contact_name,
                    "contact_email": lease.contact_email,
                    "contact_phone": lease.contact_phone,
                },
            ))
        return lease

    @staticmethod
    def _validate_terms(lease_type: LeaseType, payload: CreateLeaseRequestIn) -> None:
        if payload.note is not None and len(payload.note) > NOTE_MAX_LENGTH:
            raise ValidationError(f"Note must be at most {NOTE_MAX_LENGTH} characters", field="note")
        if payload.start_date and payload.end_date and payload.start_date > payload.end_date:
            raise ValidationError("startDate must not be after endDate", field="end_date")
        for name in ("monthly_rent", "total_price"):
            amount = getattr(payload, name)
            if amount is not None and amount < 0:
                raise ValidationError(f"{name} must be positive", field=name)
        if lease_type is LeaseType.rent and payload.total_price is not None:
            raise ValidationError("totalPrice does not apply to rent requests", field="total_price")
        if lease_type is LeaseType.buy and payload.monthly_rent is not None:
            raise ValidationError("monthlyRent does not apply to buy requests", field="monthly_rent")

    @staticmethod
    def _check_listing(apartment: Apartment, lease_type: LeaseType) -> None:
        if apartment.status == ApartmentStatus.occupied.value:
            raise InvalidStateError("Apartment already occupied", state=apartment.status)
        if lease_type is LeaseType.rent and not apartment.is_listed_for_rent:
            raise InvalidStateError("Apartment is not listed for rent", state=apartment.status)
        if lease_type is LeaseType.buy and not apartment.is_listed_for_sale:
            raise InvalidStateError("Apartment is not listed for sale", state=apartment.status)

    # ------------------------------------------------------------------
    #  Queries
    # ------------------------------------------------------------------

    async def list_requests(self, actor: Optional[Actor], filters: LeaseRequestFilters) -> Page:
        """Page of requests, newest first.

        Admins and building managers see everything; everybody else only
        sees their own requests whatever ``requester_id`` they pass.
        """
        if actor is None:
            raise ForbiddenError("Authentication required to list lease requests")

        max_limit = self._settings.LEASE_LIST_MAX_LIMIT
        if filters.page < 1:
            raise ValidationError("page must be at least 1", field="page")
        if not 1 <= filters.limit <= max_limit:
            raise ValidationError(f"limit must be between 1 and {max_limit}", field="limit")

        statuses = parse_status_filter(filters.status)
        lease_type = parse_lease_type(filters.type).value if filters.type else None
        requester_id = filters.requester_id if can_view_all_lease_requests(actor.role) else actor.id
        tokens = filters.q.split() if filters.q else []

        async with get_uow(self._session_factory) as uow:
            items, total = await uow.lease_requests.search(
                statuses=statuses,
                type=lease_type,
                apartment_id=filters.apartment_id,
                requester_id=requester_id,
                note_tokens=tokens,
                skip=(filters.page - 1) * filters.limit,
                limit=filters.limit,
            )

        return Page(
            items=items,
            page=filters.page,
            limit=filters.limit,
            total_items=total,
            total_pages=math.ceil(total / filters.limit),
        )

    async def list_eligible_apartments(self, listing: str, *, page: int = 1, limit: int = 20) -> List[Apartment]:
        """Apartments a new request of type *listing* could target"""
        lease_type = parse_lease_type(listing)
        if page < 1 or not 1 <= limit <= self._settings.LEASE_LIST_MAX_LIMIT:
            raise ValidationError("Invalid pagination parameters", field="page")
        async with get_uow(self._session_factory) as uow:
            return await uow.apartments.list_eligible_for_listing(
                lease_type, skip=(page - 1) * limit, limit=limit
            )

    # ------------------------------------------------------------------
    #  Owner gate
    # ------------------------------------------------------------------

    async def owner_decision(self, actor: Optional[Actor], request_id: int, decision: str) -> LeaseRequest:
        """Apartment owner passes a rent request on to the manager or rejects it."""
        decision = parse_decision(decision)
        if actor is None:
            raise ForbiddenError("Only apartment owner can decide")

        async def authorize(uow: UnitOfWork, lease: LeaseRequest) -> None:
            apartment = await uow.apartments.get(lease.apartment_id)
            if apartment is None or apartment.owner_id != actor.id:
                raise ForbiddenError("Only apartment owner can decide")

        if decision is Decision.reject:
            values = {
                "status": LeaseStatus.rejected.value,
                "decision_by": actor.id,
                "decision_at": self._clock(),
            }
        else:
            values = {"status": LeaseStatus.pending_manager.value}

        lease = await self._transition(
            request_id,
            from_statuses=(LeaseStatus.pending_owner.value,),
            values=values,
            not_ready="Request not waiting for owner",
            authorize=authorize,
        )
        logger.info(
            "Owner %s %sd lease request %s -> %s", actor.id, decision.value, request_id, lease.status
        )
        self._publish_status(OWNER_DECIDED, lease, decision=decision.value, actor_id=actor.id)
        return lease

    # ------------------------------------------------------------------
    #  Manager gate
    # ------------------------------------------------------------------

    async def decide_lease_request(self, actor: Optional[Actor], request_id: int, decision: str) -> LeaseRequest:
        """Final decision by an admin or building manager.

        Approval runs as a single transaction bounded by
        ``LEASE_COMMIT_TIMEOUT_SECONDS``; on any failure nothing is written.

        Raises:
            ForbiddenError: actor is not admin/building manager
            NotFoundError: request missing
            InvalidStateError: request not pending manager, apartment
                already occupied, or no requester information
            ConflictError: a concurrent transaction got there first
            ExternalServiceError: the commit timed out and was rolled back
        """
        decision = parse_decision(decision)
        if actor is None or not can_decide_lease_request(actor.role):
            raise ForbiddenError("Only admins and building managers can decide lease requests")

        if decision is Decision.reject:
            lease = await self._transition(
                request_id,
                from_statuses=(LeaseStatus.pending_manager.value,),
                values={
                    "status": LeaseStatus.rejected.value,
                    "decision_by": actor.id,
                    "decision_at": self._clock(),
                },
                not_ready="Request is not ready for manager decision",
            )
            logger.info("Manager %s rejected lease request %s", actor.id, request_id)
            self._publish_status(REQUEST_DECIDED, lease, decision=decision.value, actor_id=actor.id)
            return lease

        timeout = self._settings.LEASE_COMMIT_TIMEOUT_SECONDS
        try:
            lease, events = await asyncio.wait_for(self._approve(actor, request_id), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Approval of lease request %s timed out after %ss; rolled back", request_id, timeout)
            raise ExternalServiceError("database", f"Approval of request {request_id} timed out")

        logger.info(
            "Manager %s approved lease request %s (requester %s)", actor.id, request_id, lease.requester_id
        )
        for event in events:
            self._notifier.publish(event)
        self._publish_status(REQUEST_DECIDED, lease, decision=decision.value, actor_id=actor.id)
        return lease

    async def _approve(self, actor: Actor, request_id: int) -> Tuple[LeaseRequest, List[LeaseEvent]]:
        events: List[LeaseEvent] = []
        try:
            async with get_uow(self._session_factory) as uow:
                lease = await uow.lease_requests.get_for_update(request_id)
                if lease is None:
                    raise NotFoundError("Lease request", request_id)
                if lease.status != LeaseStatus.pending_manager.value:
                    raise InvalidStateError("Request is not ready for manager decision", state=lease.status)

                approved = await uow.lease_requests.transition(
                    request_id,
                    from_statuses=(LeaseStatus.pending_manager.value,),
                    values={
                        "status": LeaseStatus.approved.value,
                        "decision_by": actor.id,
                        "decision_at": self._clock(),
                    },
                )
                if not approved:
                    raise ConflictError(f"Lease request {request_id} was decided concurrently")

                original_requester_id = lease.requester_id
                if original_requester_id is not None:
                    requester = await uow.users.get(original_requester_id)
                    if requester is None:
                        raise InvalidStateError("Cannot approve request: missing requester info")
                else:
                    resolved = await RequesterResolver(uow).resolve_or_create_requester(
                        lease.contact_email, lease.contact_name, lease.contact_phone
                    )
                    requester = resolved.user

                apartment = await uow.apartments.get_active(lease.apartment_id)
                if apartment is None:
                    raise NotFoundError("Apartment", lease.apartment_id)

                old_role = await uow.users.get_role(requester.id)
                if old_role != Role.resident.value:
                    await uow.users.set_role(requester.id, Role.resident)
                    events.append(LeaseEvent(
                        kind=ROLE_UPGRADED,
                        request_id=lease.id,
                        apartment_id=apartment.id,
                        payload={
                            "user_id": requester.id,
                            "old_role": old_role,
                            "new_role": to_role_str(Role.resident),
                            "apartment_number": apartment.apartment_number,
                        },
                    ))

                handed_over = await uow.apartments.update_occupancy(
                    apartment.id, occupancy_changes(LeaseType(lease.type), requester.id)
                )
                if not handed_over:
                    raise InvalidStateError("Apartment already occupied", state=ApartmentStatus.occupied.value)

                if original_requester_id != requester.id:
                    await uow.lease_requests.set_requester(lease.id, requester.id)

                await uow.commit()
        except OperationalError as exc:
            logger.warning("Approval of lease request %s hit a lock conflict: %s", request_id, exc)
            raise ConflictError(f"Lease request {request_id} is being decided concurrently; retry") from exc

        return lease, events

    # ------------------------------------------------------------------
    #  Cancellation
    # ------------------------------------------------------------------

    async def cancel_lease_request(self, actor: Optional[Actor], request_id: int) -> LeaseRequest:
        """Requester (or an admin) withdraws a request still pending a decision."""
        if actor is None:
            raise ForbiddenError("Not allowed to cancel this request")

        async def authorize(uow: UnitOfWork, lease: LeaseRequest) -> None:
            is_requester = lease.requester_id is not None and lease.requester_id == actor.id
            if not is_requester and not can_cancel_any_lease_request(actor.role):
                raise ForbiddenError("Not allowed to cancel this request")

        lease = await self._transition(
            request_id,
            from_statuses=tuple(sorted(PENDING_STATUSES)),
            values={"status": LeaseStatus.cancelled.value},
            not_ready="Only pending requests can be cancelled",
            authorize=authorize,
            authorize_first=True,
        )
        logger.info("Lease request %s cancelled by %s", request_id, actor.id)
        self._publish_status(REQUEST_CANCELLED, lease, actor_id=actor.id)
        return lease

    # ------------------------------------------------------------------
    #  Helpers
    # ------------------------------------------------------------------

    async def _transition(
        self,
        request_id: int,
        *,
        from_statuses: Tuple[str, ...],
        values: Dict[str, Any],
        not_ready: str,
        authorize: Optional[Callable[[UnitOfWork, LeaseRequest], Any]] = None,
        authorize_first: bool = False,
    ) -> LeaseRequest:
        """Lock the request, check it, and move it on in one short transaction."""
        try:
            async with get_uow(self._session_factory) as uow:
                lease = await uow.lease_requests.get_for_update(request_id)
                if lease is None:
                    raise NotFoundError("Lease request", request_id)

                if authorize and authorize_first:
                    await authorize(uow, lease)
                if lease.status not in from_statuses:
                    raise InvalidStateError(not_ready, state=lease.status)
                if authorize and not authorize_first:
                    await authorize(uow, lease)

                moved = await uow.lease_requests.transition(
                    request_id, from_statuses=from_statuses, values=values
                )
                if not moved:
                    raise ConflictError(f"Lease request {request_id} was modified concurrently")
                await uow.commit()
        except OperationalError as exc:
            logger.warning("Transition of lease request %s hit a lock conflict: %s", request_id, exc)
            raise ConflictError(f"Lease request {request_id} is being modified concurrently; retry") from exc
        return lease

    def _publish_status(self, kind: str, lease: LeaseRequest, **extra: Any) -> None:
        self._notifier.publish(LeaseEvent(
            kind=kind,
            request_id=lease.id,
            apartment_id=lease.apartment_id,
            payload={"status": lease.status, **extra},
        ))
