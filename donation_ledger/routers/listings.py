from fastapi import APIRouter, Depends, Query

from donation_ledger.deps import get_current_actor
from donation_ledger.models.common import Category
from donation_ledger.models.listing import ListingDraft, ListingFilter
from donation_ledger.models.user import Actor
from donation_ledger.services import listings as listings_service
from donation_ledger.services import purchases as purchases_service
from donation_ledger.services.store import DonationStore, get_store

router = APIRouter()


@router.get("")
async def list_available(
    owner_id: str | None = Query(None),
    category: Category | None = Query(None),
    min_price: float | None = Query(None, ge=0),
    max_price: float | None = Query(None, ge=0),
    free_only: bool = Query(False),
    newest_first: bool = Query(False),
    store: DonationStore = Depends(get_store),
):
    """Marketplace feed: available listings only. Open to guests."""
    view = listings_service.list_available(
        store,
        ListingFilter(
            owner_id=owner_id,
            category=category,
            min_price=min_price,
            max_price=max_price,
            free_only=free_only,
            newest_first=newest_first,
        ),
    )
    return {"listings": [item.model_dump(mode="json") for item in view], "version": view.version}


@router.post("", status_code=201)
async def create_listing(
    body: ListingDraft,
    actor: Actor = Depends(get_current_actor),
    store: DonationStore = Depends(get_store),
):
    """Business: post an item directly."""
    listing = await listings_service.create_listing(store, actor, body)
    return listing.model_dump(mode="json")


@router.get("/owned")
async def owned_listings(
    actor: Actor = Depends(get_current_actor),
    store: DonationStore = Depends(get_store),
):
    """Caller's own listings, including ones already acquired."""
    items = listings_service.list_listings(store, owner_id=actor.user_id)
    return {"listings": [item.model_dump(mode="json") for item in items]}


@router.get("/{listing_id}")
async def get_listing(listing_id: str, store: DonationStore = Depends(get_store)):
    return store.get_listing(listing_id).model_dump(mode="json")


@router.post("/{listing_id}/purchase")
async def purchase_listing(
    listing_id: str,
    actor: Actor = Depends(get_current_actor),
    store: DonationStore = Depends(get_store),
):
    """Buy or collect a listing. PaymentFailed (402) is safe to retry."""
    entry = await purchases_service.purchase(store, actor, listing_id)
    return {
        "transaction": entry.model_dump(mode="json"),
        "listing": store.get_listing(listing_id).model_dump(mode="json"),
    }


@router.post("/{listing_id}/claim")
async def claim_listing(
    listing_id: str,
    actor: Actor = Depends(get_current_actor),
    store: DonationStore = Depends(get_store),
):
    """Beneficiary: redeem a listing with credits."""
    entry = await purchases_service.claim(store, actor, listing_id)
    return {
        "transaction": entry.model_dump(mode="json"),
        "balance": store.balance_of(actor.user_id),
    }
