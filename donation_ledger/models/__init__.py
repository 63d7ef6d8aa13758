from donation_ledger.models.user import Actor, Role
from donation_ledger.models.donation import Donation, DonationDraft, DonationStatus, ReviewDecision
from donation_ledger.models.listing import Listing, ListingDraft, ListingFilter
from donation_ledger.models.credit_ledger import CreditTransaction, TransactionKind, TransactionRequest
from donation_ledger.models.audit_log import AuditEntry
from donation_ledger.models.notification import Notification
from donation_ledger.models.events import StoreEvent

__all__ = [
    "Actor",
    "Role",
    "Donation",
    "DonationDraft",
    "DonationStatus",
    "ReviewDecision",
    "Listing",
    "ListingDraft",
    "ListingFilter",
    "CreditTransaction",
    "TransactionKind",
    "TransactionRequest",
    "AuditEntry",
    "Notification",
    "StoreEvent",
]
