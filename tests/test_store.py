"""Store-level guarantees: rollback, versioning, subscriptions, audit."""

import asyncio

import pytest

from donation_ledger.core.exceptions import NotFoundError
from donation_ledger.models.credit_ledger import TransactionKind, TransactionRequest
from donation_ledger.models.donation import DonationDraft, ReviewDecision
from donation_ledger.models.user import Actor, Role
from donation_ledger.services import purchases as purchases_service
from donation_ledger.services import verification as verification_service
from donation_ledger.services.store import DonationStore
from tests.helpers import StubPaymentGateway, business_listing

pytestmark = pytest.mark.asyncio


async def test_failed_transaction_restores_every_collection(store, business):
    listing = await business_listing(store, business, credits=5)
    sub = store.subscribe()
    version, entries, audit = store.version, len(store.transactions()), len(store.audit_log())

    with pytest.raises(RuntimeError):
        async with store.transaction("broken") as uow:
            uow.append(TransactionRequest(account_id=business.user_id, amount=5, kind=TransactionKind.EARNED))
            uow.put_listing(listing.model_copy(update={"is_available": False}))
            uow.audit("broken", "listing", listing.id)
            raise RuntimeError("boom")

    assert store.get_listing(listing.id).is_available
    assert len(store.transactions()) == entries
    assert store.balance_of(business.user_id) == 0
    assert len(store.audit_log()) == audit
    assert store.version == version
    assert sub.pending() == 0


async def test_version_advances_once_per_commit(store, donor):
    assert store.version == 0
    await verification_service.submit_donation(store, donor, DonationDraft(title="Jacket", value=1))
    await verification_service.submit_donation(store, donor, DonationDraft(title="Boots", value=1))
    assert store.version == 2


async def test_subscribers_receive_committed_events(store, donor, admin, beneficiary):
    sub = store.subscribe()
    donation = await verification_service.submit_donation(store, donor, DonationDraft(title="Jacket", value=3))
    event = await asyncio.wait_for(sub.get(), timeout=1)
    assert event.type == "donation_submitted"
    assert event.entity_id == donation.id
    assert event.collections == ("donations",)

    await verification_service.review_donation(store, admin, donation.id, ReviewDecision.APPROVE)
    event = await asyncio.wait_for(sub.get(), timeout=1)
    assert event.type == "donation_approved"
    assert event.collections == ("donations", "listings")

    listing = store.listings()[0]
    await purchases_service.purchase(store, beneficiary, listing.id)
    event = await asyncio.wait_for(sub.get(), timeout=1)
    assert event.type == "listing_purchased"
    assert event.collections == ("listings", "transactions")
    assert event.version == store.version


async def test_slow_subscriber_drops_oldest():
    store = DonationStore(payments=StubPaymentGateway(), subscriber_queue_size=2)
    sub = store.subscribe()
    for i in range(3):
        await store.append_transaction(
            TransactionRequest(account_id="u1", amount=1, kind=TransactionKind.EARNED, description=str(i))
        )
    assert sub.pending() == 2
    assert sub.dropped == 1
    assert (await sub.get()).version == 2


async def test_closed_subscription_ends_iteration(store):
    sub = store.subscribe()
    await store.append_transaction(TransactionRequest(account_id="u1", amount=1, kind=TransactionKind.EARNED))
    sub.close()
    received = [event async for event in sub]
    assert [e.version for e in received] == [1]
    # Closed subscriptions get nothing new
    await store.append_transaction(TransactionRequest(account_id="u1", amount=1, kind=TransactionKind.EARNED))
    assert await sub.get() is None


async def test_idempotent_append_publishes_nothing(store):
    req = TransactionRequest(account_id="u1", amount=5, kind=TransactionKind.EARNED, idempotency_key="k1")
    first = await store.append_transaction(req)
    sub = store.subscribe()
    again = await store.append_transaction(req)
    assert again.id == first.id
    assert store.version == 1
    assert sub.pending() == 0


async def test_every_commit_is_audited(store, donor, admin):
    donation = await verification_service.submit_donation(store, donor, DonationDraft(title="Jacket", value=2))
    await verification_service.review_donation(store, admin, donation.id, ReviewDecision.REJECT)
    events = [(a.event_type, a.user_id) for a in store.audit_log()]
    assert events == [("donation_submitted", donor.user_id), ("donation_rejected", admin.user_id)]


async def test_unknown_listing_ids_leave_no_locks(store, beneficiary):
    for i in range(50):
        with pytest.raises(NotFoundError):
            await purchases_service.purchase(store, beneficiary, f"missing-{i}")
        with pytest.raises(NotFoundError):
            await purchases_service.claim(store, beneficiary, f"missing-{i}")
    assert store._listing_locks == {}


async def test_listing_lock_released_after_contention(store, payments, business):
    payments.delay = 0.01
    listing = await business_listing(store, business, price=5, credits=1)
    buyers = [Actor(user_id=f"buyer-{i}", role=Role.BUSINESS) for i in range(3)]
    await asyncio.gather(
        *(purchases_service.purchase(store, b, listing.id) for b in buyers), return_exceptions=True
    )
    assert store._listing_locks == {}
