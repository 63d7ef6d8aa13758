from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from donation_ledger.core.pagination import slice_page
from donation_ledger.deps import require_admin
from donation_ledger.models.user import Actor
from donation_ledger.services import credits as credits_service
from donation_ledger.services import listings as listings_service
from donation_ledger.services import stats as stats_service
from donation_ledger.services import verification as verification_service
from donation_ledger.services.store import DonationStore, get_store

router = APIRouter()


class AdjustCreditsRequest(BaseModel):
    user_id: str = Field(min_length=1)
    amount: int
    reason: str = Field(min_length=1, max_length=500)


class DonationValueRequest(BaseModel):
    value: int = Field(ge=0)


class ListingCreditsRequest(BaseModel):
    credits: int = Field(ge=0)


@router.post("/credits/adjust")
async def admin_adjust_credits(
    body: AdjustCreditsRequest,
    actor: Actor = Depends(require_admin),
    store: DonationStore = Depends(get_store),
):
    """Admin: compensating credit entry for a user."""
    entry = await credits_service.adjust_credits(store, actor, body.user_id, body.amount, body.reason)
    return {"transaction": entry.model_dump(mode="json"), "balance": store.balance_of(body.user_id)}


@router.get("/reconcile")
async def admin_reconcile(
    actor: Actor = Depends(require_admin),
    store: DonationStore = Depends(get_store),
):
    """Admin: recompute balances from the ledger; lists any account whose chain disagrees."""
    mismatches = store.ledger.reconcile()
    return {
        "ok": not mismatches,
        "mismatches": mismatches,
        "balances": {a: store.balance_of(a) for a in store.ledger.accounts()},
    }


@router.get("/stats")
async def admin_stats(
    actor: Actor = Depends(require_admin),
    store: DonationStore = Depends(get_store),
):
    stats = stats_service.system_stats(store)
    return {**stats.model_dump(), "formatted": stats_service.formatted_stats(stats)}


@router.get("/audit")
async def admin_audit(
    actor: Actor = Depends(require_admin),
    store: DonationStore = Depends(get_store),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    """Admin: audit trail, newest first."""
    page = slice_page(list(reversed(store.audit_log())), limit, offset)
    return {
        "entries": [e.model_dump(mode="json") for e in page.items],
        "limit": page.limit,
        "offset": page.offset,
        "total": page.total,
    }


@router.patch("/donations/{donation_id}/value")
async def admin_set_donation_value(
    donation_id: str,
    body: DonationValueRequest,
    actor: Actor = Depends(require_admin),
    store: DonationStore = Depends(get_store),
):
    """Admin: correct the value of a donation awaiting review."""
    donation = await verification_service.set_donation_value(store, actor, donation_id, body.value)
    return donation.model_dump(mode="json")


@router.patch("/listings/{listing_id}/credits")
async def admin_set_listing_credits(
    listing_id: str,
    body: ListingCreditsRequest,
    actor: Actor = Depends(require_admin),
    store: DonationStore = Depends(get_store),
):
    """Admin: correct the credits of a listing that is still available."""
    listing = await listings_service.set_listing_credits(store, actor, listing_id, body.credits)
    return listing.model_dump(mode="json")
