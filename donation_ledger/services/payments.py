"""Simulated payment confirmation for priced listings."""

import asyncio
import random
from datetime import datetime
from typing import Protocol

from pydantic import BaseModel, Field

from donation_ledger.core.config import get_settings
from donation_ledger.core.exceptions import PaymentFailedError
from donation_ledger.core.logging import get_logger
from donation_ledger.models.common import new_id, utcnow

log = get_logger(__name__)


class PaymentReceipt(BaseModel):
    reference: str = Field(default_factory=lambda: f"pay_{new_id()}")
    buyer_id: str
    listing_id: str
    amount: float
    paid_at: datetime = Field(default_factory=utcnow)


class PaymentGateway(Protocol):
    async def charge(self, *, buyer_id: str, listing_id: str, amount: float) -> PaymentReceipt:
        """Confirm payment or raise PaymentFailedError. Must be safe to cancel."""
        ...


class SimulatedPaymentGateway:
    """Bounded-delay stand-in for a real provider; fails with ``failure_rate`` probability."""

    def __init__(self, delay_seconds: float = 2.0, failure_rate: float = 0.0, rng: random.Random | None = None):
        self.delay_seconds = delay_seconds
        self.failure_rate = failure_rate
        self._rng = rng or random.Random()

    @classmethod
    def from_settings(cls) -> "SimulatedPaymentGateway":
        s = get_settings()
        return cls(delay_seconds=s.payment_delay_seconds, failure_rate=s.payment_failure_rate)

    async def charge(self, *, buyer_id: str, listing_id: str, amount: float) -> PaymentReceipt:
        if amount <= 0:
            raise PaymentFailedError("Nothing to charge", details={"amount": amount})
        await asyncio.sleep(self.delay_seconds)
        if self._rng.random() < self.failure_rate:
            log.warning("payment_declined", buyer_id=buyer_id, listing_id=listing_id, amount=amount)
            raise PaymentFailedError("Payment was declined", details={"listing_id": listing_id})
        receipt = PaymentReceipt(buyer_id=buyer_id, listing_id=listing_id, amount=amount)
        log.info("payment_confirmed", reference=receipt.reference, listing_id=listing_id, amount=amount)
        return receipt
