"""Available-listing projection and business postings."""

import pytest

from donation_ledger.core.exceptions import AlreadyUnavailableError, InvalidParticipantError
from donation_ledger.models.listing import Listing, ListingDraft, ListingFilter
from donation_ledger.services import listings as listings_service
from donation_ledger.services import purchases as purchases_service
from tests.helpers import approved_listing, business_listing

pytestmark = pytest.mark.asyncio


async def test_business_posts_listing(store, business):
    listing = await business_listing(store, business, price=20, credits=5)
    assert listing.business_id == business.user_id
    assert listing.owner_id == business.user_id
    assert listing.is_paid
    assert listing.is_available


async def test_only_business_posts(store, donor):
    with pytest.raises(InvalidParticipantError):
        await listings_service.create_listing(store, donor, ListingDraft(title="Lamp", credits=1))


async def test_list_available_insertion_order_and_newest_first(store, business, donor, admin):
    first = await business_listing(store, business, credits=1)
    second = await approved_listing(store, donor, admin)
    third = await business_listing(store, business, price=5, credits=2)

    ids = [item.id for item in listings_service.list_available(store)]
    assert ids == [first.id, second.id, third.id]
    newest = listings_service.list_available(store, ListingFilter(newest_first=True))
    assert [item.id for item in newest] == [third.id, second.id, first.id]


async def test_list_available_is_restartable_snapshot(store, business, beneficiary):
    a = await business_listing(store, business, credits=0)
    view = listings_service.list_available(store)
    assert [i.id for i in view] == [a.id]

    b = await business_listing(store, business, credits=0)
    await purchases_service.purchase(store, beneficiary, a.id)

    # Same snapshot on every pass
    assert [i.id for i in view] == [a.id]
    assert [i.id for i in view] == [a.id]
    # A fresh projection reflects the purchase
    assert [i.id for i in listings_service.list_available(store)] == [b.id]


async def test_filters(store, business, donor, admin):
    free = await business_listing(store, business, credits=3)
    paid = await business_listing(store, business, price=25, credits=3)
    cheap = await business_listing(store, business, price=5, credits=3)
    donated = await approved_listing(store, donor, admin)

    def ids(**kw):
        return {item.id for item in listings_service.list_available(store, ListingFilter(**kw))}

    assert ids(free_only=True) == {free.id, donated.id}
    assert ids(min_price=10) == {paid.id}
    assert ids(max_price=10) == {free.id, cheap.id, donated.id}
    assert ids(owner_id=donor.user_id) == {donated.id}
    assert ids(category="clothing") == {donated.id}


async def test_owner_listings_include_unavailable(store, business, beneficiary):
    listing = await business_listing(store, business, credits=0)
    await purchases_service.purchase(store, beneficiary, listing.id)
    owned = listings_service.list_listings(store, owner_id=business.user_id)
    assert [(i.id, i.is_available) for i in owned] == [(listing.id, False)]


async def test_listing_needs_exactly_one_source():
    with pytest.raises(ValueError):
        Listing(title="x", credits=1)
    with pytest.raises(ValueError):
        Listing(title="x", credits=1, business_id="b", donor_id="d")


async def test_admin_corrects_available_listing_credits(store, admin, business, beneficiary):
    listing = await business_listing(store, business, credits=5)
    updated = await listings_service.set_listing_credits(store, admin, listing.id, 8)
    assert updated.credits == 8
    assert store.audit_log()[-1].event_type == "listing_credits_updated"

    entry = await purchases_service.purchase(store, beneficiary, listing.id)
    assert entry.amount == 8


async def test_acquired_listing_credits_are_frozen(store, admin, business, beneficiary):
    listing = await business_listing(store, business, credits=5)
    await purchases_service.purchase(store, beneficiary, listing.id)
    with pytest.raises(AlreadyUnavailableError):
        await listings_service.set_listing_credits(store, admin, listing.id, 1)
    assert store.get_listing(listing.id).credits == 5


async def test_only_admin_corrects_credits(store, business):
    listing = await business_listing(store, business, credits=5)
    with pytest.raises(InvalidParticipantError):
        await listings_service.set_listing_credits(store, business, listing.id, 50)
    assert store.get_listing(listing.id).credits == 5
