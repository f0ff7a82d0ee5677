"""Role predicates used for lease authorization."""

import pytest

from leasedesk.roles import (
    Role,
    can_cancel_any_lease_request,
    can_create_lease_request,
    can_decide_lease_request,
    can_view_all_lease_requests,
    holds_apartment,
    is_staff_role,
    parse_role,
)


STAFF = ["admin", "building_manager", "security", "technician", "accountant"]


class TestParseRole:

    def test_known_role_strings(self):
        assert parse_role("building_manager") is Role.building_manager
        assert parse_role(Role.owner) is Role.owner

    def test_unknown_or_missing_roles_are_none(self):
        assert parse_role("landlord") is None
        assert parse_role(None) is None


class TestCreatePermission:

    @pytest.mark.parametrize("role", STAFF)
    def test_staff_cannot_create(self, role):
        assert is_staff_role(role)
        assert not can_create_lease_request(role)

    @pytest.mark.parametrize("role", ["resident", "owner"])
    def test_apartment_holders_cannot_create(self, role):
        assert holds_apartment(role)
        assert not can_create_lease_request(role)

    @pytest.mark.parametrize("role", ["user", "guest"])
    def test_unprivileged_roles_can_create(self, role):
        assert can_create_lease_request(role)

    def test_anonymous_guest_can_create(self):
        assert can_create_lease_request(None, is_guest=True)

    def test_unknown_role_is_treated_as_unprivileged(self):
        assert can_create_lease_request("landlord")


class TestDecisionPermissions:

    @pytest.mark.parametrize("role", ["admin", "building_manager"])
    def test_deciders(self, role):
        assert can_decide_lease_request(role)
        assert can_view_all_lease_requests(role)

    @pytest.mark.parametrize("role", ["security", "technician", "accountant", "owner", "resident", "user", None])
    def test_non_deciders(self, role):
        assert not can_decide_lease_request(role)
        assert not can_view_all_lease_requests(role)

    def test_only_admin_cancels_any_request(self):
        assert can_cancel_any_lease_request("admin")
        assert not can_cancel_any_lease_request("building_manager")
