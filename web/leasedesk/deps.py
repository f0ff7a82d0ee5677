from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from leasedesk.core import Settings, get_settings
from leasedesk.infrastructure import AsyncSessionFactory, get_session
from leasedesk.services.lease_service import LeaseWorkflowEngine
from leasedesk.services.notification_service import (
    NotificationDispatcher,
    build_notification_sink,
)

# Type alias for dependency injection
SessionDep = Annotated[AsyncSession, Depends(get_session)]
SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Factory for callers that manage their own short transactions"""
    return AsyncSessionFactory


SessionFactoryDep = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]


@lru_cache()
def get_notifier() -> NotificationDispatcher:
    """Process-wide dispatcher; drained on shutdown."""
    return NotificationDispatcher(build_notification_sink(get_settings()))


def get_lease_engine(
    settings: SettingsDep,
    session_factory: SessionFactoryDep,
    notifier: Annotated[NotificationDispatcher, Depends(get_notifier)],
) -> LeaseWorkflowEngine:
    return LeaseWorkflowEngine(session_factory, notifier, settings)


LeaseEngineDep = Annotated[LeaseWorkflowEngine, Depends(get_lease_engine)]
