"""Marketplace listings: available-item projection and business postings."""

from typing import Iterator

from donation_ledger.core.exceptions import AlreadyUnavailableError, InvalidAmountError
from donation_ledger.core.logging import get_logger
from donation_ledger.core.security import require_admin, require_role
from donation_ledger.models.listing import Listing, ListingDraft, ListingFilter
from donation_ledger.models.user import Actor, Role
from donation_ledger.services.store import DonationStore

log = get_logger(__name__)


class AvailableListings:
    """Lazy, restartable view over the available listings of one store snapshot.

    Each iteration re-applies the filter to the same snapshot, so iterating
    twice yields the same sequence even if the store has moved on.
    """

    def __init__(self, snapshot: tuple[Listing, ...], listing_filter: ListingFilter, version: int):
        self._snapshot = snapshot
        self.filter = listing_filter
        self.version = version

    def __iter__(self) -> Iterator[Listing]:
        items = reversed(self._snapshot) if self.filter.newest_first else iter(self._snapshot)
        for listing in items:
            if listing.is_available and self.filter.matches(listing):
                yield listing


def list_available(store: DonationStore, listing_filter: ListingFilter | None = None) -> AvailableListings:
    """Available listings in insertion order (or newest first when the filter asks)."""
    return AvailableListings(store.listings(), listing_filter or ListingFilter(), store.version)


def list_listings(store: DonationStore, owner_id: str | None = None) -> list[Listing]:
    """Every listing, available or not; used by owner dashboards."""
    return [listing for listing in store.listings() if owner_id is None or listing.owner_id == owner_id]


async def create_listing(store: DonationStore, actor: Actor, draft: ListingDraft) -> Listing:
    """A business posts an item directly (a sale when price > 0, otherwise a give-away)."""
    require_role(actor, Role.BUSINESS)
    listing = Listing(
        business_id=actor.user_id,
        title=draft.title,
        description=draft.description,
        category=draft.category,
        cloth_type=draft.cloth_type,
        size=draft.size,
        color=draft.color,
        images=tuple(draft.images),
        price=draft.price,
        credits=draft.credits,
        location=draft.location,
    )
    async with store.transaction("listing_created", actor_id=actor.user_id) as uow:
        uow.put_listing(listing)
        uow.entity_id = listing.id
        uow.audit("listing_created", "listing", listing.id, price=listing.price, credits=listing.credits)
    log.info("listing_created", listing_id=listing.id, business_id=actor.user_id, price=listing.price)
    return listing


async def set_listing_credits(store: DonationStore, actor: Actor, listing_id: str, credits: int) -> Listing:
    """
    Admin: correct the credits a listing is worth.
    Only available listings can change; the listing lock keeps the change from
    landing between a buyer's payment and commit.
    """
    require_admin(actor)
    if credits < 0:
        raise InvalidAmountError("Listing credits cannot be negative", details={"credits": credits})
    async with store.listing_lock(listing_id):
        async with store.transaction("listing_credits_updated", actor_id=actor.user_id) as uow:
            listing = store.get_listing(listing_id)
            if not listing.is_available:
                raise AlreadyUnavailableError(details={"listing_id": listing_id, "acquired_by": listing.acquired_by})
            updated = uow.put_listing(listing.model_copy(update={"credits": credits}))
            uow.entity_id = updated.id
            uow.audit("listing_credits_updated", "listing", updated.id, previous=listing.credits, credits=credits)
    log.info("listing_credits_updated", listing_id=listing_id, credits=credits, admin_id=actor.user_id)
    return updated
