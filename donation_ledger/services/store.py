"""Single owner of donation, listing and ledger state.

Every mutation runs inside :meth:`DonationStore.transaction`, which holds the
store-wide lock, snapshots the collections and either commits all effects
(bumping the version and publishing one :class:`StoreEvent`) or restores the
snapshot. Transaction bodies never await, so a reader on the event loop sees
either the whole commit or none of it.
"""

import asyncio
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any, AsyncIterator

from donation_ledger.core.config import get_settings
from donation_ledger.core.exceptions import NotFoundError
from donation_ledger.core.logging import get_logger
from donation_ledger.models.audit_log import AuditEntry
from donation_ledger.models.credit_ledger import CreditTransaction, TransactionRequest
from donation_ledger.models.donation import Donation
from donation_ledger.models.events import StoreEvent
from donation_ledger.models.listing import Listing
from donation_ledger.models.notification import Notification
from donation_ledger.services.ledger import TransactionLedger
from donation_ledger.services.notifications import InMemoryNotifier, Notifier
from donation_ledger.services.payments import PaymentGateway, SimulatedPaymentGateway

log = get_logger(__name__)

_CLOSED = object()


class Subscription:
    """Push-based stream of committed store events.

    The queue is bounded; when a slow consumer falls behind the oldest event
    is dropped and counted in ``dropped``.
    """

    def __init__(self, store: "DonationStore", maxsize: int):
        self._store = store
        self._queue: asyncio.Queue = asyncio.Queue()
        self._maxsize = maxsize
        self.closed = False
        self.dropped = 0

    def _push(self, item: Any) -> None:
        while self._queue.qsize() >= self._maxsize:
            self._queue.get_nowait()
            self.dropped += 1
        self._queue.put_nowait(item)

    def pending(self) -> int:
        return self._queue.qsize()

    async def get(self) -> StoreEvent | None:
        """Next event, or None once the subscription is closed."""
        if self.closed and self._queue.empty():
            return None
        item = await self._queue.get()
        return None if item is _CLOSED else item

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._store._subscribers.discard(self)
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> StoreEvent:
        event = await self.get()
        if event is None:
            raise StopAsyncIteration
        return event


class UnitOfWork:
    """Mutation handle passed to a transaction body. All methods are synchronous."""

    def __init__(self, store: "DonationStore", actor_id: str | None):
        self._store = store
        self.actor_id = actor_id
        self.touched: set[str] = set()
        self.entity_id: str | None = None
        self.notifications: list[Notification] = []

    def put_donation(self, donation: Donation) -> Donation:
        self._store._donations[donation.id] = donation
        self.touched.add("donations")
        return donation

    def put_listing(self, listing: Listing) -> Listing:
        self._store._listings[listing.id] = listing
        self.touched.add("listings")
        return listing

    def append(self, request: TransactionRequest) -> CreditTransaction:
        entry, created = self._store.ledger.append(request)
        if created:
            self.touched.add("transactions")
        return entry

    def audit(self, event_type: str, entity_type: str, entity_id: str | None = None, **metadata: Any) -> None:
        self._store._audit.append(
            AuditEntry(
                user_id=self.actor_id,
                event_type=event_type,
                entity_type=entity_type,
                entity_id=entity_id,
                metadata=metadata,
            )
        )

    def notify(self, notification: Notification) -> None:
        """Queued; delivered only if the transaction commits."""
        self.notifications.append(notification)


class _ListingLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.users = 0


class DonationStore:
    def __init__(
        self,
        payments: PaymentGateway | None = None,
        notifier: Notifier | None = None,
        subscriber_queue_size: int = 100,
    ):
        self.payments: PaymentGateway = payments or SimulatedPaymentGateway()
        self.notifier: Notifier = notifier or InMemoryNotifier()
        self.ledger = TransactionLedger()
        self._donations: dict[str, Donation] = {}
        self._listings: dict[str, Listing] = {}
        self._audit: list[AuditEntry] = []
        self._lock = asyncio.Lock()
        self._listing_locks: dict[str, _ListingLock] = {}
        self._subscribers: set[Subscription] = set()
        self._subscriber_queue_size = subscriber_queue_size
        self._version = 0

    @property
    def version(self) -> int:
        return self._version

    # Reads

    def get_donation(self, donation_id: str) -> Donation:
        donation = self._donations.get(donation_id)
        if not donation:
            raise NotFoundError("Donation not found", details={"donation_id": donation_id})
        return donation

    def get_listing(self, listing_id: str) -> Listing:
        listing = self._listings.get(listing_id)
        if not listing:
            raise NotFoundError("Listing not found", details={"listing_id": listing_id})
        return listing

    def donations(self) -> tuple[Donation, ...]:
        return tuple(self._donations.values())

    def listings(self) -> tuple[Listing, ...]:
        return tuple(self._listings.values())

    def transactions(self) -> tuple[CreditTransaction, ...]:
        return self.ledger.entries()

    def audit_log(self) -> tuple[AuditEntry, ...]:
        return tuple(self._audit)

    def balance_of(self, user_id: str) -> int:
        return self.ledger.balance_of(user_id)

    # Writes

    @asynccontextmanager
    async def listing_lock(self, listing_id: str) -> AsyncIterator[None]:
        """
        Held across validation, payment and commit of one acquisition.
        Unknown ids raise NotFoundError before any lock is created; the lock is
        dropped once its last holder or waiter leaves.
        """
        self.get_listing(listing_id)
        held = self._listing_locks.get(listing_id)
        if held is None:
            held = self._listing_locks[listing_id] = _ListingLock()
        held.users += 1
        try:
            async with held.lock:
                yield
        finally:
            held.users -= 1
            if not held.users:
                del self._listing_locks[listing_id]

    @asynccontextmanager
    async def transaction(self, event_type: str, actor_id: str | None = None) -> AsyncIterator[UnitOfWork]:
        async with self._lock:
            donations = dict(self._donations)
            listings = dict(self._listings)
            ledger_mark = self.ledger.mark()
            audit_mark = len(self._audit)
            uow = UnitOfWork(self, actor_id)
            try:
                yield uow
            except BaseException:
                self._donations = donations
                self._listings = listings
                self.ledger.truncate(ledger_mark)
                del self._audit[audit_mark:]
                log.debug("transaction_rolled_back", event_type=event_type, actor_id=actor_id)
                raise
            if not uow.touched:
                return
            self._version += 1
            event = StoreEvent(
                version=self._version,
                type=event_type,
                entity_id=uow.entity_id,
                collections=tuple(sorted(uow.touched)),
            )
        self._deliver(uow.notifications)
        self._publish(event)

    async def append_transaction(self, request: TransactionRequest, actor_id: str | None = None) -> CreditTransaction:
        """Append one ledger entry as its own commit."""
        async with self.transaction("transaction_appended", actor_id=actor_id) as uow:
            entry = uow.append(request)
            uow.entity_id = entry.id
            if "transactions" in uow.touched:
                uow.audit("transaction_appended", "transaction", entry.id, account_id=entry.account_id, amount=entry.amount)
        return entry

    # Subscriptions

    def subscribe(self) -> Subscription:
        sub = Subscription(self, self._subscriber_queue_size)
        self._subscribers.add(sub)
        return sub

    def _publish(self, event: StoreEvent) -> None:
        for sub in list(self._subscribers):
            sub._push(event)

    def _deliver(self, notifications: list[Notification]) -> None:
        for n in notifications:
            try:
                self.notifier.notify(n)
            except Exception:
                # State is already committed; delivery is the collaborator's concern.
                log.exception("notification_failed", user_id=n.user_id, type=n.type)


@lru_cache
def get_store() -> DonationStore:
    settings = get_settings()
    return DonationStore(
        payments=SimulatedPaymentGateway.from_settings(),
        notifier=InMemoryNotifier(),
        subscriber_queue_size=settings.subscriber_queue_size,
    )
