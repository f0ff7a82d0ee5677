from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Enumerates every role recognised by the platform.

    Using an Enum avoids typos when referring to roles across the code-base
    while still being JSON-serialisable (inherits from *str*).
    """

    admin = "admin"
    building_manager = "building_manager"
    resident = "resident"
    owner = "owner"
    user = "user"
    guest = "guest"
    security = "security"
    technician = "technician"
    accountant = "accountant"


STAFF_ROLES = frozenset({
    Role.admin,
    Role.building_manager,
    Role.security,
    Role.technician,
    Role.accountant,
})

# Roles assumed to already hold an apartment
APARTMENT_HOLDER_ROLES = frozenset({Role.resident, Role.owner})

LEASE_DECIDER_ROLES = frozenset({Role.admin, Role.building_manager})


def parse_role(value: "str | Role | None") -> Role | None:
    """Return the Role for *value*, or None when absent or unknown."""
    if value is None:
        return None
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value))
    except ValueError:
        return None


def to_role_str(value: "str | Role") -> str:
    """Return the *string* value of a Role or raw str."""
    if isinstance(value, Role):
        return value.value
    return str(value)


def is_staff_role(role: "str | Role | None") -> bool:
    return parse_role(role) in STAFF_ROLES


def holds_apartment(role: "str | Role | None") -> bool:
    return parse_role(role) in APARTMENT_HOLDER_ROLES


def can_create_lease_request(role: "str | Role | None", *, is_guest: bool = False) -> bool:
    """Guests and unprivileged accounts may ask to rent or buy.

    Staff never request apartments, and residents/owners already hold one.
    """
    if is_guest:
        return True
    return not is_staff_role(role) and not holds_apartment(role)


def can_decide_lease_request(role: "str | Role | None") -> bool:
    return parse_role(role) in LEASE_DECIDER_ROLES


def can_view_all_lease_requests(role: "str | Role | None") -> bool:
    return parse_role(role) in LEASE_DECIDER_ROLES


def can_cancel_any_lease_request(role: "str | Role | None") -> bool:
    return parse_role(role) is Role.admin
