"""Append-only credit ledger; the single source of truth for balances."""

from collections import defaultdict

from donation_ledger.core.exceptions import InvalidAmountError
from donation_ledger.models.credit_ledger import CreditTransaction, TransactionRequest


class TransactionLedger:
    """In-memory append-only ledger.

    Entries are never updated or deleted; corrections are compensating
    ``adjusted`` entries. The owning store serializes writers and uses
    :meth:`mark` / :meth:`truncate` to undo appends of a failed commit.
    """

    def __init__(self) -> None:
        self._entries: list[CreditTransaction] = []
        self._by_account: dict[str, list[CreditTransaction]] = defaultdict(list)
        self._by_key: dict[tuple[str, str], CreditTransaction] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def balance_of(self, account_id: str) -> int:
        """Fold of every entry for the account (0 if none)."""
        return sum(e.amount for e in self._by_account.get(account_id, ()))

    def find_by_key(self, account_id: str, idempotency_key: str) -> CreditTransaction | None:
        return self._by_key.get((account_id, idempotency_key))

    def append(self, request: TransactionRequest) -> tuple[CreditTransaction, bool]:
        """
        Validate and append one entry.
        Returns (entry, created). A repeated idempotency key for the same account
        returns the existing entry with created=False and appends nothing.
        """
        if request.idempotency_key:
            existing = self.find_by_key(request.account_id, request.idempotency_key)
            if existing:
                return existing, False

        current = self.balance_of(request.account_id)
        balance_after = current + request.amount
        if request.amount < 0 and balance_after < 0:
            raise InvalidAmountError(
                "Insufficient credits",
                details={"account_id": request.account_id, "balance": current, "amount": request.amount},
            )

        entry = CreditTransaction(**request.model_dump(), balance_after=balance_after)
        self._entries.append(entry)
        self._by_account[entry.account_id].append(entry)
        if entry.idempotency_key:
            self._by_key[(entry.account_id, entry.idempotency_key)] = entry
        return entry, True

    def entries(self) -> tuple[CreditTransaction, ...]:
        return tuple(self._entries)

    def entries_for(self, account_id: str, newest_first: bool = True) -> list[CreditTransaction]:
        out = list(self._by_account.get(account_id, ()))
        if newest_first:
            out.reverse()
        return out

    def accounts(self) -> list[str]:
        return [a for a, entries in self._by_account.items() if entries]

    def referencing_listing(self, listing_id: str) -> list[CreditTransaction]:
        return [e for e in self._entries if e.listing_id == listing_id]

    def mark(self) -> int:
        return len(self._entries)

    def truncate(self, mark: int) -> None:
        """Drop entries appended after ``mark``; only used to undo an uncommitted append."""
        for entry in self._entries[mark:]:
            self._by_account[entry.account_id].remove(entry)
            if entry.idempotency_key:
                self._by_key.pop((entry.account_id, entry.idempotency_key), None)
        del self._entries[mark:]

    def reconcile(self) -> dict[str, dict[str, int]]:
        """
        Recompute every account's running balance and compare it with the
        recorded balance_after chain. Returns {account_id: {...}} for mismatches.
        """
        mismatches: dict[str, dict[str, int]] = {}
        for account_id, entries in self._by_account.items():
            running = 0
            for entry in entries:
                running += entry.amount
                if entry.balance_after != running:
                    mismatches[account_id] = {
                        "expected": running,
                        "recorded": entry.balance_after,
                        "balance": self.balance_of(account_id),
                    }
                    break
        return mismatches
