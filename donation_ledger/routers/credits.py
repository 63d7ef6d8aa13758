from fastapi import APIRouter, Depends, Query

from donation_ledger.deps import get_current_actor
from donation_ledger.models.user import Actor
from donation_ledger.services import credits as credits_service
from donation_ledger.services.store import DonationStore, get_store

router = APIRouter()


@router.get("/balance")
async def credits_balance(
    actor: Actor = Depends(get_current_actor),
    store: DonationStore = Depends(get_store),
):
    """Return current credit balance."""
    return {"balance": credits_service.get_balance(store, actor.user_id)}


@router.get("/ledger")
async def credits_ledger(
    actor: Actor = Depends(get_current_actor),
    store: DonationStore = Depends(get_store),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    """Return ledger entries for current user (newest first)."""
    page = credits_service.get_ledger_page(store, actor.user_id, limit=limit, offset=offset)
    return {
        "entries": [e.model_dump(mode="json") for e in page.items],
        "limit": page.limit,
        "offset": page.offset,
        "total": page.total,
    }


@router.post("/welcome")
async def welcome_credits(
    actor: Actor = Depends(get_current_actor),
    store: DonationStore = Depends(get_store),
):
    """Grant the one-time welcome bonuses; repeat calls are no-ops."""
    granted = await credits_service.grant_welcome_credits(store, actor.user_id)
    return {
        "granted": [e.model_dump(mode="json") for e in granted],
        "balance": credits_service.get_balance(store, actor.user_id),
    }
