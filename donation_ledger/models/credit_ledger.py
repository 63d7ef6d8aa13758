from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from donation_ledger.models.common import new_id, utcnow


class TransactionKind(str, Enum):
    EARNED = "earned"
    SPENT = "spent"
    ADJUSTED = "adjusted"


class TransactionRequest(BaseModel):
    """An entry to append; the ledger assigns id, balance_after and created_at."""

    account_id: str
    amount: int  # positive = credit, negative = debit
    kind: TransactionKind
    description: str = ""
    listing_id: str | None = None
    donation_id: str | None = None
    counterparty_id: str | None = None
    payment_reference: str | None = None
    idempotency_key: str | None = None


class CreditTransaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    account_id: str
    amount: int
    kind: TransactionKind
    balance_after: int
    description: str = ""
    listing_id: str | None = None
    donation_id: str | None = None
    counterparty_id: str | None = None  # buyer on acquisitions, admin on adjustments
    payment_reference: str | None = None
    idempotency_key: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
