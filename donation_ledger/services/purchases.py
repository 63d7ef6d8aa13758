"""Purchase and collection: the one operation that spans listing, ledger and balances.

Both operations hold the listing's lock from validation to commit, so of two
concurrent buyers exactly one wins and the other sees AlreadyUnavailableError.
Payment for priced listings is awaited before the commit; if it fails or the
caller is cancelled, nothing has been written.
"""

from donation_ledger.core.exceptions import AlreadyUnavailableError, InvalidParticipantError, PaymentFailedError
from donation_ledger.core.logging import get_logger
from donation_ledger.core.security import require_buyer, require_role
from donation_ledger.models.credit_ledger import CreditTransaction, TransactionKind, TransactionRequest
from donation_ledger.models.listing import Listing
from donation_ledger.models.notification import Notification
from donation_ledger.models.user import Actor, Role
from donation_ledger.services.payments import PaymentReceipt
from donation_ledger.services.store import DonationStore, UnitOfWork

log = get_logger(__name__)


def _acquirable(store: DonationStore, actor: Actor, listing_id: str) -> Listing:
    listing = store.get_listing(listing_id)
    if not listing.is_available:
        raise AlreadyUnavailableError(details={"listing_id": listing_id, "acquired_by": listing.acquired_by})
    if listing.owner_id == actor.user_id:
        raise InvalidParticipantError("Cannot acquire your own listing", details={"listing_id": listing_id})
    return listing


def _mark_acquired(uow: UnitOfWork, listing: Listing, entry: CreditTransaction) -> Listing:
    return uow.put_listing(
        listing.model_copy(
            update={"is_available": False, "acquired_by": uow.actor_id, "acquired_at": entry.created_at}
        )
    )


async def purchase(store: DonationStore, actor: Actor, listing_id: str) -> CreditTransaction:
    """
    Buy (price > 0) or collect (free) a listing.
    Commits together: listing flipped unavailable and one ledger entry crediting
    the lister with listing.credits, linked to the buyer and the listing.
    """
    require_buyer(actor)
    async with store.listing_lock(listing_id):
        listing = _acquirable(store, actor, listing_id)
        receipt: PaymentReceipt | None = None
        if listing.is_paid:
            try:
                receipt = await store.payments.charge(
                    buyer_id=actor.user_id, listing_id=listing.id, amount=float(listing.price)
                )
            except PaymentFailedError as e:
                log.warning("purchase_failed", listing_id=listing_id, buyer_id=actor.user_id, reason=e.message)
                raise

        async with store.transaction("listing_purchased", actor_id=actor.user_id) as uow:
            listing = _acquirable(store, actor, listing_id)
            verb = "Purchased" if receipt else "Collected"
            entry = uow.append(
                TransactionRequest(
                    account_id=listing.owner_id,
                    amount=listing.credits,
                    kind=TransactionKind.EARNED,
                    description=f"{verb}: {listing.title}",
                    listing_id=listing.id,
                    donation_id=listing.donation_id,
                    counterparty_id=actor.user_id,
                    payment_reference=receipt.reference if receipt else None,
                )
            )
            _mark_acquired(uow, listing, entry)
            uow.entity_id = listing.id
            uow.audit(
                "listing_purchased" if receipt else "listing_collected",
                "listing",
                listing.id,
                transaction_id=entry.id,
                credits=listing.credits,
                price=listing.price,
            )
            uow.notify(
                Notification(
                    user_id=listing.owner_id,
                    type="item_acquired",
                    title=f"Item {verb.lower()}",
                    message=f"'{listing.title}' was {verb.lower()}; {listing.credits} credits added.",
                    entity_id=listing.id,
                )
            )
    log.info(
        "listing_purchased",
        listing_id=listing_id,
        buyer_id=actor.user_id,
        owner_id=entry.account_id,
        credits=entry.amount,
        paid=receipt is not None,
    )
    return entry


async def claim(store: DonationStore, actor: Actor, listing_id: str) -> CreditTransaction:
    """
    A beneficiary redeems a listing with credits.
    Commits together: listing flipped unavailable and one ``spent`` debit of
    listing.credits on the beneficiary. Insufficient credits -> InvalidAmountError.
    """
    require_role(actor, Role.BENEFICIARY)
    async with store.listing_lock(listing_id):
        async with store.transaction("listing_claimed", actor_id=actor.user_id) as uow:
            listing = _acquirable(store, actor, listing_id)
            entry = uow.append(
                TransactionRequest(
                    account_id=actor.user_id,
                    amount=-listing.credits,
                    kind=TransactionKind.SPENT,
                    description=f"Claimed: {listing.title}",
                    listing_id=listing.id,
                    donation_id=listing.donation_id,
                    counterparty_id=listing.owner_id,
                )
            )
            _mark_acquired(uow, listing, entry)
            uow.entity_id = listing.id
            uow.audit("listing_claimed", "listing", listing.id, transaction_id=entry.id, credits=listing.credits)
    log.info("listing_claimed", listing_id=listing_id, beneficiary_id=actor.user_id, credits=listing.credits)
    return entry
