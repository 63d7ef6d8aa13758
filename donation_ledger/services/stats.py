"""Dashboard statistics derived from the store."""

from pydantic import BaseModel

from donation_ledger.models.credit_ledger import TransactionKind
from donation_ledger.models.donation import DonationStatus
from donation_ledger.services.store import DonationStore


class SystemStats(BaseModel):
    version: int
    total_donations: int
    pending_donations: int
    total_items: int  # donations plus business-posted listings
    available_listings: int
    # Listings purchased, collected or claimed. Counted from listings rather than
    # from spent transactions, so free collections and paid purchases count too.
    total_allocations: int
    verified_rate: float | None  # percent of reviewed donations approved; None before any review
    credits_issued: int
    credits_spent: int


def _format_count(n: int) -> str:
    if n >= 1000:
        return f"{n // 100 / 10}k+"
    return f"{n}+"


def system_stats(store: DonationStore) -> SystemStats:
    donations = store.donations()
    listings = store.listings()
    transactions = store.transactions()

    reviewed = [d for d in donations if d.status is not DonationStatus.UPLOADED]
    approved = sum(1 for d in reviewed if d.status is DonationStatus.APPROVED)
    return SystemStats(
        version=store.version,
        total_donations=len(donations),
        pending_donations=len(donations) - len(reviewed),
        total_items=len(donations) + sum(1 for item in listings if item.business_id),
        available_listings=sum(1 for item in listings if item.is_available),
        total_allocations=sum(1 for item in listings if not item.is_available),
        verified_rate=round(approved / len(reviewed) * 100, 1) if reviewed else None,
        credits_issued=sum(t.amount for t in transactions if t.amount > 0),
        credits_spent=-sum(t.amount for t in transactions if t.kind is TransactionKind.SPENT),
    )


def formatted_stats(stats: SystemStats) -> dict[str, str]:
    """Short labels for the landing page chips."""
    return {
        "donations": _format_count(stats.total_items),
        "allocations": _format_count(stats.total_allocations),
        "verified_rate": f"{round(stats.verified_rate)}%" if stats.verified_rate is not None else "n/a",
    }
