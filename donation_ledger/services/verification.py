"""Donation submission and admin review: uploaded -> approved | rejected."""

from donation_ledger.core.exceptions import BadRequestError, InvalidAmountError, InvalidStateError
from donation_ledger.core.logging import get_logger
from donation_ledger.core.security import require_admin, require_role
from donation_ledger.models.common import Category, utcnow
from donation_ledger.models.donation import Donation, DonationDraft, DonationStatus, ReviewDecision
from donation_ledger.models.listing import Listing
from donation_ledger.models.notification import Notification
from donation_ledger.models.user import Actor, Role
from donation_ledger.services.classification import classify, estimate_credit_value
from donation_ledger.services.store import DonationStore

log = get_logger(__name__)


async def submit_donation(store: DonationStore, actor: Actor, draft: DonationDraft) -> Donation:
    """Create an uploaded donation; fill advisory AI confidence and value when absent."""
    require_role(actor, Role.DONOR)
    confidence = draft.ai_confidence
    if confidence is None:
        confidence = classify(draft.title, draft.description).confidence
    value = draft.value if draft.value is not None else estimate_credit_value(draft.category, draft.condition)
    donation = Donation(
        donor_id=actor.user_id,
        title=draft.title,
        description=draft.description,
        category=draft.category,
        cloth_type=draft.cloth_type,
        size=draft.size,
        color=draft.color,
        images=tuple(draft.images),
        value=value,
        ai_confidence=confidence,
    )
    async with store.transaction("donation_submitted", actor_id=actor.user_id) as uow:
        uow.put_donation(donation)
        uow.entity_id = donation.id
        uow.audit("donation_submitted", "donation", donation.id, value=value)
    log.info("donation_submitted", donation_id=donation.id, donor_id=actor.user_id, value=value)
    return donation


async def review_donation(
    store: DonationStore,
    actor: Actor,
    donation_id: str,
    decision: ReviewDecision,
    notes: str | None = None,
    category: Category | None = None,
) -> Donation:
    """
    Apply an admin decision to an uploaded donation.
    Approve creates exactly one available Listing (credits = value); an optional
    category reclassifies the item first. Reject creates nothing and notifies the donor.
    A donation already approved or rejected fails with InvalidStateError.
    """
    require_admin(actor)
    try:
        decision = ReviewDecision(decision)
    except ValueError:
        raise BadRequestError(
            "Unknown review decision",
            details={"decision": str(decision), "allowed": [d.value for d in ReviewDecision]},
        ) from None
    event_type = "donation_approved" if decision is ReviewDecision.APPROVE else "donation_rejected"
    async with store.transaction(event_type, actor_id=actor.user_id) as uow:
        donation = store.get_donation(donation_id)
        if donation.status is not DonationStatus.UPLOADED:
            raise InvalidStateError(
                f"Donation already {donation.status.value}",
                details={"donation_id": donation_id, "status": donation.status.value},
            )
        now = utcnow()
        changes: dict = {"reviewed_by": actor.user_id, "reviewed_at": now, "updated_at": now}
        if decision is ReviewDecision.APPROVE:
            changes["status"] = DonationStatus.APPROVED
            changes["admin_notes"] = notes or "Approved by admin"
            if category and category != donation.category:
                changes["category"] = category
                changes["admin_notes"] = notes or f"Reclassified to {category} and approved"
            reviewed = uow.put_donation(donation.model_copy(update=changes))
            listing = uow.put_listing(
                Listing(
                    donor_id=reviewed.donor_id,
                    donation_id=reviewed.id,
                    title=reviewed.title,
                    description=reviewed.description,
                    category=reviewed.category,
                    cloth_type=reviewed.cloth_type,
                    size=reviewed.size,
                    color=reviewed.color,
                    images=reviewed.images,
                    credits=reviewed.value,
                )
            )
            uow.audit("donation_approved", "donation", reviewed.id, listing_id=listing.id, credits=listing.credits)
            uow.notify(
                Notification(
                    user_id=reviewed.donor_id,
                    type="donation_approved",
                    title="Donation approved",
                    message=f"'{reviewed.title}' is now listed in the marketplace.",
                    entity_id=reviewed.id,
                )
            )
        else:
            changes["status"] = DonationStatus.REJECTED
            changes["admin_notes"] = f"REJECTED: {notes or 'Does not meet guidelines'}"
            reviewed = uow.put_donation(donation.model_copy(update=changes))
            uow.audit("donation_rejected", "donation", reviewed.id, reason=reviewed.admin_notes)
            uow.notify(
                Notification(
                    user_id=reviewed.donor_id,
                    type="donation_rejected",
                    title="Donation not accepted",
                    message=reviewed.admin_notes,
                    entity_id=reviewed.id,
                )
            )
        uow.entity_id = reviewed.id
    log.info(
        "donation_reviewed",
        donation_id=donation_id,
        decision=decision.value,
        admin_id=actor.user_id,
        ai_confidence=reviewed.ai_confidence,
    )
    return reviewed


def list_donations(
    store: DonationStore,
    donor_id: str | None = None,
    status: DonationStatus | None = None,
) -> list[Donation]:
    """Newest first."""
    return [
        d for d in reversed(store.donations())
        if (donor_id is None or d.donor_id == donor_id) and (status is None or d.status is status)
    ]


async def set_donation_value(store: DonationStore, actor: Actor, donation_id: str, value: int) -> Donation:
    """Admin: correct the credit value of a donation still awaiting review."""
    require_admin(actor)
    if value < 0:
        raise InvalidAmountError("Donation value cannot be negative", details={"value": value})
    async with store.transaction("donation_value_updated", actor_id=actor.user_id) as uow:
        donation = store.get_donation(donation_id)
        if donation.status is not DonationStatus.UPLOADED:
            raise InvalidStateError(
                f"Donation already {donation.status.value}",
                details={"donation_id": donation_id, "status": donation.status.value},
            )
        updated = uow.put_donation(donation.model_copy(update={"value": value, "updated_at": utcnow()}))
        uow.entity_id = updated.id
        uow.audit("donation_value_updated", "donation", updated.id, previous=donation.value, value=value)
    log.info("donation_value_updated", donation_id=donation_id, value=value, admin_id=actor.user_id)
    return updated
