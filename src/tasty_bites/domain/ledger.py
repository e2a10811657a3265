"""
Prepaid balance ledger.

The balance is never stored independently of the history: every change
(including the opening balance) is an entry, and the balance is the running
sum of their deltas. Debits that would overdraw the account are refused
rather than clamped.
"""

import logging
import threading
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal

from tasty_bites.domain.errors import InvalidArgumentError
from tasty_bites.domain.models import LedgerEntry, to_money, utcnow

logger = logging.getLogger(__name__)


class BalanceLedger:
    """Balance plus an append-only history of ledger entries.

    credit/debit are serialized with a lock so several orders for the same
    customer can settle against one ledger without interleaving.
    """

    def __init__(
        self,
        opening_balance: Decimal | int = 0,
        reason: str = "Opening balance",
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._balance = Decimal("0")
        self._entries: list[LedgerEntry] = []
        opening = to_money(opening_balance)
        if opening < 0:
            raise InvalidArgumentError(f"Opening balance cannot be negative: {opening}")
        if opening > 0:
            self.credit(opening, reason)

    @property
    def balance(self) -> Decimal:
        return self._balance

    def credit(self, amount: Decimal | int | float, reason: str = "Top-up") -> LedgerEntry:
        """Add funds. Always succeeds for a positive amount."""
        value = self._positive(amount)
        with self._lock:
            entry = self._append(value, reason)
        logger.info("Credited %s (%s); balance now %s", value, reason, entry.balance)
        return entry

    def debit(self, amount: Decimal | int | float, reason: str = "Payment") -> bool:
        """Withdraw funds if the balance covers them.

        Returns False, leaving the ledger untouched, when it does not.
        """
        value = self._positive(amount)
        with self._lock:
            if self._balance < value:
                logger.warning("Debit of %s refused; balance is %s", value, self._balance)
                return False
            entry = self._append(-value, reason)
        logger.info("Debited %s (%s); balance now %s", value, reason, entry.balance)
        return True

    def history(self) -> tuple[LedgerEntry, ...]:
        """Entries in insertion order."""
        return tuple(self._entries)

    def replay(self) -> Decimal:
        """Recompute the balance from the history (consistency check)."""
        return sum((entry.delta for entry in self._entries), Decimal("0"))

    # ── internals ───────────────────────────────────────────────

    @staticmethod
    def _positive(amount: Decimal | int | float) -> Decimal:
        value = to_money(amount)
        if value <= 0:
            raise InvalidArgumentError(f"Amount must be positive, got {value}")
        return value

    def _append(self, delta: Decimal, reason: str) -> LedgerEntry:
        # Caller holds self._lock
        new_balance = self._balance + delta
        entry = LedgerEntry(timestamp=self._clock(), delta=delta, balance=new_balance, reason=reason)
        self._entries.append(entry)
        self._balance = new_balance
        return entry
