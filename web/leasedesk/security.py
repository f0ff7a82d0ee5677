from __future__ import annotations

import time
from typing import Annotated, Callable, Iterable

from fastapi import Depends, Request
from jose import JWTError, jwt

from .core import AuthenticationError, ForbiddenError, get_settings
from .deps import SessionFactoryDep
from .models import User
from .roles import Role, to_role_str
from .services.lease_service import Actor

# ---------------------------------------------------------------------------
#  Basic JWT helpers
# ---------------------------------------------------------------------------
# Tokens are issued by the account service; this one only verifies them.
DEFAULT_EXP_SECONDS = 900


def _now() -> int:
    return int(time.time())


def create_token(sub: int | str, *, expires_in: int = DEFAULT_EXP_SECONDS, **extra_claims) -> str:
    """Return a signed JWT for user *sub*.

    Used by tests and local tooling; the role is never trusted from the
    token, it is always read from the user record.
    """
    settings = get_settings()
    payload = {"sub": str(sub), "exp": _now() + expires_in}
    payload.update(extra_claims)
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict:
    """Verify *token* and return its payload."""
    settings = get_settings()
    try:
        payload: dict = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as exc:
        raise AuthenticationError("Invalid token") from exc
    return payload


# ---------------------------------------------------------------------------
#  Dependencies
# ---------------------------------------------------------------------------
async def _extract_token(req: Request) -> str | None:
    """Return JWT from Authorization header *or* access_token cookie."""
    auth: str | None = req.headers.get("Authorization")
    if auth and auth.startswith("Bearer "):
        return auth.split(" ", 1)[1]
    return req.cookies.get("access_token")


async def current_user(req: Request) -> dict:
    """FastAPI dependency returning the JWT payload or raises 401."""
    token = await _extract_token(req)
    if not token:
        raise AuthenticationError("Missing credentials")
    return decode_token(token)


async def optional_user(req: Request) -> dict | None:
    """Like *current_user* but anonymous callers get ``None``.

    A token that is present but invalid is still rejected.
    """
    token = await _extract_token(req)
    if not token:
        return None
    return decode_token(token)


async def _load_actor(session_factory, payload: dict) -> Actor:
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token subject")

    # Own short session: the read must not keep a transaction open while
    # the workflow engine writes.
    async with session_factory() as sess:
        user = await sess.get(User, user_id)
    if user is None or not user.is_active:
        raise AuthenticationError("Unknown or inactive user")

    return Actor(
        id=user.id,
        role=user.role,
        email=user.email,
        first=user.first,
        last=user.last,
        phone=user.phone,
    )


async def current_actor(
    session_factory: SessionFactoryDep,
    payload: Annotated[dict, Depends(current_user)],
) -> Actor:
    """Authenticated caller with the role currently stored for them."""
    return await _load_actor(session_factory, payload)


async def optional_actor(
    session_factory: SessionFactoryDep,
    payload: Annotated[dict | None, Depends(optional_user)],
) -> Actor | None:
    """Authenticated caller, or ``None`` for guests."""
    if payload is None:
        return None
    return await _load_actor(session_factory, payload)


def role_required(*allowed: "str | Role | Iterable[str | Role]") -> Callable:
    """Return a dependency that checks the caller's role is within *allowed*.

    Usage:
        @router.get("/admin", dependencies=[Depends(role_required("admin"))])
        async def admin_only():
            ...
    """
    # Flatten iterables (allow role_required([Role.admin, Role.building_manager]))
    if len(allowed) == 1 and isinstance(allowed[0], (list, tuple, set, frozenset)):
        allowed = tuple(allowed[0])
    allowed_set = {to_role_str(a) for a in allowed}

    async def _dep(actor: Annotated[Actor, Depends(current_actor)]) -> Actor:
        if actor.role not in allowed_set:
            raise ForbiddenError("Forbidden")
        return actor

    return _dep


CurrentActor = Annotated[Actor, Depends(current_actor)]
OptionalActor = Annotated[Actor | None, Depends(optional_actor)]
