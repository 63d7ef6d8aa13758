"""Shared builders for store and API tests."""

import asyncio

from donation_ledger.core.exceptions import PaymentFailedError
from donation_ledger.models.donation import DonationDraft, ReviewDecision
from donation_ledger.models.listing import Listing, ListingDraft
from donation_ledger.models.user import Actor
from donation_ledger.services import listings as listings_service
from donation_ledger.services import verification as verification_service
from donation_ledger.services.payments import PaymentReceipt
from donation_ledger.services.store import DonationStore


class StubPaymentGateway:
    """Deterministic payment capability: always succeeds or always fails after ``delay``."""

    def __init__(self, succeed: bool = True, delay: float = 0.0):
        self.succeed = succeed
        self.delay = delay
        self.calls: list[dict] = []

    async def charge(self, *, buyer_id: str, listing_id: str, amount: float) -> PaymentReceipt:
        self.calls.append({"buyer_id": buyer_id, "listing_id": listing_id, "amount": amount})
        if self.delay:
            await asyncio.sleep(self.delay)
        if not self.succeed:
            raise PaymentFailedError("Card declined", details={"listing_id": listing_id})
        return PaymentReceipt(buyer_id=buyer_id, listing_id=listing_id, amount=amount)


def headers_for(actor: Actor) -> dict[str, str]:
    return {"X-User-Id": actor.user_id, "X-User-Role": actor.role.value}


async def approved_listing(store: DonationStore, donor: Actor, admin: Actor, value: int = 10) -> Listing:
    """Submit and approve a donation; return the listing it produced."""
    donation = await verification_service.submit_donation(
        store, donor, DonationDraft(title="Winter Jacket - Size M", category="clothing", value=value)
    )
    await verification_service.review_donation(store, admin, donation.id, ReviewDecision.APPROVE)
    return next(item for item in store.listings() if item.donation_id == donation.id)


async def business_listing(
    store: DonationStore, business: Actor, price: float | None = None, credits: int = 5
) -> Listing:
    return await listings_service.create_listing(
        store, business, ListingDraft(title="Kitchen Supplies Bundle", price=price, credits=credits)
    )
