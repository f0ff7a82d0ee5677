from typing import Optional, List, Iterable, Tuple, Dict, Any
from sqlalchemy import select, update, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from leasedesk.core import BaseRepository
from leasedesk.models import LeaseRequest, _utcnow


class LeaseRequestRepository(BaseRepository[LeaseRequest]):
    """Lease/purchase request store"""

    def __init__(self, session: AsyncSession):
        super().__init__(LeaseRequest, session)

    async def get_for_update(self, request_id: int) -> Optional[LeaseRequest]:
        """Get request and lock its row until the transaction ends.

        The identity map is bypassed so the status read is the one seen
        under the lock, not a copy loaded earlier in the session.
        """
        query = (
            select(LeaseRequest)
            .where(LeaseRequest.id == request_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def transition(
        self,
        request_id: int,
        *,
        from_statuses: Iterable[str],
        values: Dict[str, Any]
    ) -> bool:
        """Apply *values* only while the request is still in one of *from_statuses*.

        Returns False when the guard did not match, i.e. a concurrent call
        already moved the request on.
        """
        stmt = (
            update(LeaseRequest)
            .where(
                LeaseRequest.id == request_id,
                LeaseRequest.status.in_(list(from_statuses)),
            )
            .values(**values, updated_at=_utcnow())
            .execution_options(synchronize_session="evaluate")
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def set_requester(self, request_id: int, requester_id: int) -> None:
        """Back-fill the requester once a guest has been linked to an account"""
        stmt = (
            update(LeaseRequest)
            .where(LeaseRequest.id == request_id)
            .values(requester_id=requester_id, updated_at=_utcnow())
            .execution_options(synchronize_session="evaluate")
        )
        await self.session.execute(stmt)

    async def search(
        self,
        *,
        statuses: Optional[Iterable[str]] = None,
        type: Optional[str] = None,
        apartment_id: Optional[int] = None,
        requester_id: Optional[int] = None,
        note_tokens: Optional[List[str]] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[LeaseRequest], int]:
        """Filtered page of requests, newest first, plus the total match count"""
        conditions = []
        if statuses:
            conditions.append(LeaseRequest.status.in_(list(statuses)))
        if type:
            conditions.append(LeaseRequest.type == type)
        if apartment_id is not None:
            conditions.append(LeaseRequest.apartment_id == apartment_id)
        if requester_id is not None:
            conditions.append(LeaseRequest.requester_id == requester_id)
        # every token must appear somewhere in the note, matched literally
        for token in note_tokens or []:
            conditions.append(LeaseRequest.note.icontains(token, autoescape=True))

        where = and_(*conditions) if conditions else None

        count_query = select(func.count()).select_from(LeaseRequest)
        query = select(LeaseRequest)
        if where is not None:
            count_query = count_query.where(where)
            query = query.where(where)

        query = (
            query
            .order_by(LeaseRequest.created_at.desc(), LeaseRequest.id.desc())
            .offset(skip)
            .limit(limit)
        )

        total = (await self.session.execute(count_query)).scalar() or 0
        result = await self.session.execute(query)
        return list(result.scalars().all()), total
