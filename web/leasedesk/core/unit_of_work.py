from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Callable

from sqlalchemy.ext.asyncio import AsyncSession, AsyncSessionTransaction

from leasedesk.infrastructure.repositories import (
    ApartmentRepository,
    LeaseRequestRepository,
    UserRepository,
)


class UnitOfWork:
    """Unit of work for managing repository instances and transactions.

    All three directories share one session, so everything done through a
    single unit of work commits or rolls back together.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.apartments = ApartmentRepository(session)
        self.users = UserRepository(session)
        self.lease_requests = LeaseRequestRepository(session)

    async def __aenter__(self) -> UnitOfWork:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            await self.rollback()

    def savepoint(self) -> AsyncSessionTransaction:
        """Nested transaction; rolling it back keeps the outer one usable."""
        return self.session.begin_nested()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()


SessionFactory = Callable[[], AsyncSession]


@asynccontextmanager
async def get_uow(session_factory: SessionFactory) -> AsyncGenerator[UnitOfWork, None]:
    """Open a session and yield a unit of work bound to it.

    Anything that escapes the block, cancellation by a timeout included,
    rolls the transaction back before the session is closed.
    """
    async with session_factory() as session:
        uow = UnitOfWork(session)
        try:
            yield uow
        except BaseException:
            await uow.rollback()
            raise
