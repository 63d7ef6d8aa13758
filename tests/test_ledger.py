"""Unit tests for the append-only ledger."""

import pytest

from donation_ledger.core.exceptions import InvalidAmountError
from donation_ledger.models.credit_ledger import TransactionKind, TransactionRequest
from donation_ledger.services.ledger import TransactionLedger


def _req(account: str, amount: int, kind: TransactionKind = TransactionKind.EARNED, **kw) -> TransactionRequest:
    return TransactionRequest(account_id=account, amount=amount, kind=kind, **kw)


def test_balance_is_fold_of_entries():
    ledger = TransactionLedger()
    ledger.append(_req("u1", 50))
    ledger.append(_req("u1", 30))
    ledger.append(_req("u1", -15, TransactionKind.SPENT))
    ledger.append(_req("u2", 7))
    assert ledger.balance_of("u1") == 65
    assert ledger.balance_of("u2") == 7
    assert ledger.balance_of("nobody") == 0
    assert [e.balance_after for e in ledger.entries_for("u1", newest_first=False)] == [50, 80, 65]


def test_debit_below_zero_rejected_and_nothing_appended():
    ledger = TransactionLedger()
    ledger.append(_req("u1", 10))
    with pytest.raises(InvalidAmountError) as exc:
        ledger.append(_req("u1", -11, TransactionKind.SPENT))
    assert exc.value.details["balance"] == 10
    assert len(ledger) == 1
    assert ledger.balance_of("u1") == 10


def test_issuance_has_no_upper_bound():
    ledger = TransactionLedger()
    entry, created = ledger.append(_req("u1", 10**9))
    assert created
    assert entry.balance_after == 10**9


def test_idempotency_key_returns_existing_entry():
    ledger = TransactionLedger()
    first, created = ledger.append(_req("u1", 100, idempotency_key="bonus"))
    again, created_again = ledger.append(_req("u1", 100, idempotency_key="bonus"))
    assert created and not created_again
    assert again.id == first.id
    assert ledger.balance_of("u1") == 100
    # Same key on another account is independent
    _, other = ledger.append(_req("u2", 100, idempotency_key="bonus"))
    assert other


def test_truncate_undoes_appends_after_mark():
    ledger = TransactionLedger()
    ledger.append(_req("u1", 5))
    mark = ledger.mark()
    ledger.append(_req("u1", 5, idempotency_key="k"))
    ledger.append(_req("u2", 3))
    ledger.truncate(mark)
    assert len(ledger) == 1
    assert ledger.balance_of("u1") == 5
    assert ledger.balance_of("u2") == 0
    assert ledger.find_by_key("u1", "k") is None


def test_reconcile_clean_ledger():
    ledger = TransactionLedger()
    ledger.append(_req("u1", 20))
    ledger.append(_req("u1", -5, TransactionKind.SPENT))
    ledger.append(_req("u1", 3, TransactionKind.ADJUSTED))
    assert ledger.reconcile() == {}
    assert ledger.accounts() == ["u1"]


def test_referencing_listing():
    ledger = TransactionLedger()
    ledger.append(_req("u1", 5, listing_id="L1"))
    ledger.append(_req("u2", 5, listing_id="L2"))
    assert [e.account_id for e in ledger.referencing_listing("L1")] == ["u1"]
