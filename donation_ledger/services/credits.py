"""Credit issuance and admin corrections; every change is a ledger entry."""

from donation_ledger.core.config import get_settings
from donation_ledger.core.exceptions import InvalidAmountError
from donation_ledger.core.logging import get_logger
from donation_ledger.core.pagination import Page, slice_page
from donation_ledger.core.security import require_admin
from donation_ledger.models.credit_ledger import CreditTransaction, TransactionKind, TransactionRequest
from donation_ledger.models.notification import Notification
from donation_ledger.models.user import Actor
from donation_ledger.services.store import DonationStore

log = get_logger(__name__)


def get_balance(store: DonationStore, user_id: str) -> int:
    """Return current balance for user (0 if no entries)."""
    return store.balance_of(user_id)


def get_ledger_page(store: DonationStore, user_id: str, limit: int = 50, offset: int = 0) -> Page[CreditTransaction]:
    """Ledger entries for a user, newest first."""
    return slice_page(store.ledger.entries_for(user_id), limit, offset)


async def grant_welcome_credits(store: DonationStore, user_id: str) -> list[CreditTransaction]:
    """
    Issue the welcome and community participation bonuses once per user.
    Returns the entries appended by this call (empty when already granted).
    """
    s = get_settings()
    grants = [
        ("welcome", s.welcome_bonus_credits, "Welcome bonus credits"),
        ("participation", s.participation_bonus_credits, "Community participation bonus"),
    ]
    appended: list[CreditTransaction] = []
    async with store.transaction("credits_granted") as uow:
        for key, amount, description in grants:
            before = len(store.ledger)
            entry = uow.append(
                TransactionRequest(
                    account_id=user_id,
                    amount=amount,
                    kind=TransactionKind.EARNED,
                    description=description,
                    idempotency_key=f"{key}:{user_id}",
                )
            )
            if len(store.ledger) > before:
                appended.append(entry)
        if appended:
            uow.entity_id = user_id
            uow.audit("credits_granted", "user", user_id, amount=sum(e.amount for e in appended))
    if appended:
        log.info("welcome_credits_granted", user_id=user_id, amount=sum(e.amount for e in appended))
    return appended


async def adjust_credits(
    store: DonationStore,
    actor: Actor,
    user_id: str,
    amount: int,
    reason: str,
) -> CreditTransaction:
    """Admin correction as a compensating entry; never edits an existing one."""
    require_admin(actor)
    if amount == 0:
        raise InvalidAmountError("Adjustment amount must be non-zero")
    async with store.transaction("credits_adjusted", actor_id=actor.user_id) as uow:
        entry = uow.append(
            TransactionRequest(
                account_id=user_id,
                amount=amount,
                kind=TransactionKind.ADJUSTED,
                description=reason,
                counterparty_id=actor.user_id,
            )
        )
        uow.entity_id = entry.id
        uow.audit("credits_adjusted", "user", user_id, amount=amount, reason=reason, transaction_id=entry.id)
        uow.notify(
            Notification(
                user_id=user_id,
                type="credits_adjusted",
                title="Credits updated",
                message=f"{amount:+d} credits: {reason}",
                entity_id=entry.id,
            )
        )
    log.info("credits_adjusted", user_id=user_id, amount=amount, admin_id=actor.user_id, balance_after=entry.balance_after)
    return entry
