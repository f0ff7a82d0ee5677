from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError

from leasedesk.core.exceptions import ConflictError, InvalidStateError
from leasedesk.core.unit_of_work import UnitOfWork
from leasedesk.models import User
from leasedesk.roles import Role
from leasedesk.services.contact import split_contact_name

logger = logging.getLogger(__name__)

# Role given to accounts provisioned for approved guests
STARTER_ROLE = Role.resident


@dataclass(frozen=True)
class ResolvedRequester:
    user: User
    created: bool


class RequesterResolver:
    """Find or provision the account behind a guest request.

    Runs inside the caller's unit of work; nothing here commits.
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def resolve_or_create_requester(
        self,
        contact_email: Optional[str],
        contact_name: Optional[str] = None,
        contact_phone: Optional[str] = None,
    ) -> ResolvedRequester:
        """Return the account for *contact_email*, creating it when missing.

        Creation is idempotent per email: the unique index on users.email
        rejects a concurrent duplicate, in which case the account created by
        the other transaction is re-read once and reused.

        Raises:
            InvalidStateError: no email to identify the requester by
            ConflictError: the duplicate was reported but cannot be read back
        """
        if not contact_email or not contact_email.strip():
            raise InvalidStateError("Cannot approve request: missing requester info")

        email = contact_email.strip().lower()
        existing = await self.uow.users.get_by_email(email)
        if existing:
            logger.info("Guest email %s matches existing user %s", email, existing.id)
            return ResolvedRequester(user=existing, created=False)

        first, last = split_contact_name(contact_name)
        try:
            async with self.uow.savepoint():
                user = await self.uow.users.create(obj_in={
                    "email": email,
                    "first": first,
                    "last": last,
                    "phone": contact_phone,
                    "role": STARTER_ROLE,
                    "is_active": True,
                })
        except IntegrityError:
            logger.warning("Concurrent account creation for %s; re-reading", email)
            existing = await self.uow.users.get_by_email(email)
            if existing:
                return ResolvedRequester(user=existing, created=False)
            raise ConflictError(f"Could not provision an account for {email}; retry the approval")

        logger.info("Provisioned user %s for guest %s", user.id, email)
        return ResolvedRequester(user=user, created=True)
