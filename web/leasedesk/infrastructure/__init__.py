from .database import (
    engine,
    AsyncSessionFactory,
    get_session,
    build_engine,
    build_session_factory,
)

__all__ = [
    "engine",
    "AsyncSessionFactory",
    "get_session",
    "build_engine",
    "build_session_factory",
]
