from slowapi import Limiter
from slowapi.util import get_remote_address

from .core import get_settings

# Shared by the app (default limits) and the routes that need a tighter one.
limiter = Limiter(key_func=get_remote_address, default_limits=[get_settings().RATE_LIMIT_DEFAULT])


def decision_limit() -> str:
    """Per-client limit for final lease decisions, read on every request."""
    return get_settings().RATE_LIMIT_DECISION
