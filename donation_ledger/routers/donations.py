from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from donation_ledger.core.exceptions import ForbiddenError
from donation_ledger.deps import get_current_actor
from donation_ledger.models.common import Category
from donation_ledger.models.donation import DonationDraft, DonationStatus, ReviewDecision
from donation_ledger.models.user import Actor, Role
from donation_ledger.services import verification as verification_service
from donation_ledger.services.store import DonationStore, get_store

router = APIRouter()


class ReviewRequest(BaseModel):
    decision: ReviewDecision
    notes: str | None = None
    category: Category | None = None  # reclassify before approving


@router.post("", status_code=201)
async def submit_donation(
    body: DonationDraft,
    actor: Actor = Depends(get_current_actor),
    store: DonationStore = Depends(get_store),
):
    """Donor: submit an item for verification."""
    donation = await verification_service.submit_donation(store, actor, body)
    return donation.model_dump(mode="json")


@router.get("")
async def list_donations(
    donor_id: str | None = Query(None),
    status: DonationStatus | None = Query(None),
    actor: Actor = Depends(get_current_actor),
    store: DonationStore = Depends(get_store),
):
    """Admins see every donation; other callers only their own (newest first)."""
    if actor.role is not Role.ADMIN:
        donor_id = actor.user_id
    donations = verification_service.list_donations(store, donor_id=donor_id, status=status)
    return {"donations": [d.model_dump(mode="json") for d in donations]}


@router.get("/{donation_id}")
async def get_donation(
    donation_id: str,
    actor: Actor = Depends(get_current_actor),
    store: DonationStore = Depends(get_store),
):
    donation = store.get_donation(donation_id)
    if actor.role is not Role.ADMIN and donation.donor_id != actor.user_id:
        raise ForbiddenError("Not your donation")
    return donation.model_dump(mode="json")


@router.post("/{donation_id}/review")
async def review_donation(
    donation_id: str,
    body: ReviewRequest,
    actor: Actor = Depends(get_current_actor),
    store: DonationStore = Depends(get_store),
):
    """Admin: approve (optionally reclassifying) or reject an uploaded donation."""
    donation = await verification_service.review_donation(
        store, actor, donation_id, body.decision, notes=body.notes, category=body.category
    )
    return donation.model_dump(mode="json")
