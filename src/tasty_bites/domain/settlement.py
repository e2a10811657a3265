"""
The settlement contract shared by every payment method.

A `PaymentStrategy` settles an amount exactly once and reports the outcome
as a resolved Payment. The Order builds a `SettlementContext` for each
attempt and only puts the customer's ledger into it when the strategy asks
for it (`requires_ledger`), so card or cash strategies never see the balance.
"""

import itertools
import uuid
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Protocol

from tasty_bites.domain.errors import InvalidArgumentError
from tasty_bites.domain.ledger import BalanceLedger
from tasty_bites.domain.models import Payment, PaymentMethod, utcnow


class PaymentIdGenerator:
    """Produces a unique identifier for every settlement attempt.

    Random tokens by default; `sequential()` gives predictable ids for tests.
    """

    def __init__(self, prefix: str = "PAY", tokens: Iterator[str] | None = None) -> None:
        self.prefix = prefix
        self._tokens = tokens

    @classmethod
    def sequential(cls, start: int = 1, prefix: str = "PAY") -> "PaymentIdGenerator":
        return cls(prefix, (f"{n:06d}" for n in itertools.count(start)))

    def next_id(self) -> str:
        token = next(self._tokens) if self._tokens is not None else uuid.uuid4().hex[:12].upper()
        return f"{self.prefix}{token}"


@dataclass(frozen=True)
class SettlementContext:
    """Everything one settlement attempt may use."""

    payment_ids: PaymentIdGenerator
    clock: Callable[[], datetime] = utcnow
    ledger: BalanceLedger | None = None
    reference: str = ""  # Free text for ledger entries, e.g. "Order #1001"
    opened: list[Payment] = field(default_factory=list, compare=False)

    def open_payment(self, amount: Decimal, method: PaymentMethod) -> Payment:
        """Start a PENDING payment record for this attempt."""
        if amount <= 0:
            raise InvalidArgumentError(f"Settlement amount must be positive, got {amount}")
        payment = Payment(
            payment_id=self.payment_ids.next_id(),
            amount=amount,
            method=method,
            timestamp=self.clock(),
        )
        self.opened.append(payment)
        return payment


class PaymentStrategy(Protocol):
    """Interface for one way of settling an order total."""

    method: PaymentMethod
    requires_ledger: bool

    async def settle(self, amount: Decimal, context: SettlementContext) -> Payment: ...
