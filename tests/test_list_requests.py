"""Listing and searching lease requests."""

import pytest

from leasedesk.core import ForbiddenError, ValidationError
from leasedesk.api.v1.schemas import CreateLeaseRequestIn
from leasedesk.services.lease_service import LeaseRequestFilters


@pytest.fixture
async def seeded(lease_engine, make_user, make_apartment, guest_contact):
    """Three requests: two by alice (rent + buy), one by a guest."""
    owner = await make_user("owner")
    alice = await make_user("user")
    bob = await make_user("user")
    rent_id = await make_apartment(owner_id=owner.id)
    sale_id = await make_apartment(for_rent=False, for_sale=True)

    rent = await lease_engine.create_request(alice, CreateLeaseRequestIn(
        apartment_id=rent_id, note="Quiet family with a small dog"
    ))
    buy = await lease_engine.create_request(alice, CreateLeaseRequestIn(
        apartment_id=sale_id, type="buy", note="Cash buyer, flexible dates"
    ))
    guest = await lease_engine.create_request(None, CreateLeaseRequestIn(
        apartment_id=rent_id, note="Student, small budget", **guest_contact
    ))
    return {"owner": owner, "alice": alice, "bob": bob, "rent": rent, "buy": buy, "guest": guest}


class TestVisibility:

    async def test_manager_sees_everything_newest_first(self, lease_engine, make_user, seeded):
        manager = await make_user("building_manager")

        page = await lease_engine.list_requests(manager, LeaseRequestFilters())

        assert [r.id for r in page.items] == [seeded["guest"].id, seeded["buy"].id, seeded["rent"].id]
        assert page.total_items == 3
        assert page.total_pages == 1

    async def test_user_sees_only_own(self, lease_engine, seeded):
        page = await lease_engine.list_requests(seeded["alice"], LeaseRequestFilters())
        assert {r.id for r in page.items} == {seeded["rent"].id, seeded["buy"].id}

    async def test_requester_filter_is_overridden_for_users(self, lease_engine, seeded):
        page = await lease_engine.list_requests(
            seeded["bob"], LeaseRequestFilters(requester_id=seeded["alice"].id)
        )
        assert page.items == []
        assert page.total_items == 0

    async def test_guest_cannot_list(self, lease_engine, seeded):
        with pytest.raises(ForbiddenError):
            await lease_engine.list_requests(None, LeaseRequestFilters())


class TestFilters:

    @pytest.fixture
    async def admin(self, make_user):
        return await make_user("admin")

    async def test_by_type(self, lease_engine, admin, seeded):
        page = await lease_engine.list_requests(admin, LeaseRequestFilters(type="buy"))
        assert [r.id for r in page.items] == [seeded["buy"].id]

    async def test_pending_matches_both_stages(self, lease_engine, admin, seeded):
        page = await lease_engine.list_requests(admin, LeaseRequestFilters(status="pending"))
        assert page.total_items == 3

        page = await lease_engine.list_requests(admin, LeaseRequestFilters(status="pending_owner"))
        assert {r.id for r in page.items} == {seeded["rent"].id, seeded["guest"].id}

    async def test_by_apartment_and_requester(self, lease_engine, admin, seeded):
        page = await lease_engine.list_requests(admin, LeaseRequestFilters(
            apartment_id=seeded["rent"].apartment_id, requester_id=seeded["alice"].id
        ))
        assert [r.id for r in page.items] == [seeded["rent"].id]

    async def test_note_tokens_must_all_match(self, lease_engine, admin, seeded):
        page = await lease_engine.list_requests(admin, LeaseRequestFilters(q="SMALL"))
        assert {r.id for r in page.items} == {seeded["rent"].id, seeded["guest"].id}

        page = await lease_engine.list_requests(admin, LeaseRequestFilters(q="small dog"))
        assert [r.id for r in page.items] == [seeded["rent"].id]

    async def test_note_wildcards_match_literally(self, lease_engine, admin, make_user, make_apartment):
        renter = await make_user("user")
        parking = await lease_engine.create_request(renter, CreateLeaseRequestIn(
            apartment_id=await make_apartment(), note="need parking"
        ))
        discount = await lease_engine.create_request(renter, CreateLeaseRequestIn(
            apartment_id=await make_apartment(), note="asking 10% off, unit_b preferred"
        ))

        for q in ("%", "p_rking", "need%parking"):
            page = await lease_engine.list_requests(admin, LeaseRequestFilters(q=q))
            assert parking.id not in {r.id for r in page.items}, q

        page = await lease_engine.list_requests(admin, LeaseRequestFilters(q="10%"))
        assert [r.id for r in page.items] == [discount.id]

        page = await lease_engine.list_requests(admin, LeaseRequestFilters(q="unit_b"))
        assert [r.id for r in page.items] == [discount.id]

    async def test_pagination(self, lease_engine, admin, seeded):
        page = await lease_engine.list_requests(admin, LeaseRequestFilters(page=2, limit=2))
        assert [r.id for r in page.items] == [seeded["rent"].id]
        assert page.total_pages == 2

    @pytest.mark.parametrize("filters", [
        LeaseRequestFilters(page=0),
        LeaseRequestFilters(limit=0),
        LeaseRequestFilters(limit=101),
        LeaseRequestFilters(status="pending_review"),
        LeaseRequestFilters(type="lease"),
    ])
    async def test_invalid_filters(self, lease_engine, admin, filters):
        with pytest.raises(ValidationError):
            await lease_engine.list_requests(admin, filters)


class TestEligibleApartments:

    async def test_only_listed_unoccupied_active(self, lease_engine, make_apartment):
        listed = await make_apartment(for_rent=True)
        await make_apartment(for_rent=False, for_sale=True)
        await make_apartment(for_rent=True, status="occupied")
        await make_apartment(for_rent=True, is_active=False)

        apartments = await lease_engine.list_eligible_apartments("rent")

        assert [a.id for a in apartments] == [listed]

    async def test_unknown_listing(self, lease_engine):
        with pytest.raises(ValidationError):
            await lease_engine.list_eligible_apartments("lease")
