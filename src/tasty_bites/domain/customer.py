"""Customer identity and the prepaid ledger it owns."""

import uuid
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal

from tasty_bites.domain.ledger import BalanceLedger
from tasty_bites.domain.models import CustomerDetails, utcnow

WELCOME_BONUS_REASON = "Welcome bonus"


class Customer:
    """A registered customer. Exclusively owns one BalanceLedger."""

    def __init__(self, customer_id: str, details: CustomerDetails, ledger: BalanceLedger) -> None:
        self.customer_id = customer_id
        self.details = details
        self.ledger = ledger

    @classmethod
    def register(
        cls,
        name: str,
        contact: str,
        address: str,
        starting_balance: Decimal | int = Decimal("500"),
        clock: Callable[[], datetime] = utcnow,
    ) -> "Customer":
        """Create a customer whose ledger opens with the welcome bonus."""
        details = CustomerDetails(name=name, contact=contact, address=address)
        ledger = BalanceLedger(starting_balance, reason=WELCOME_BONUS_REASON, clock=clock)
        return cls(customer_id=uuid.uuid4().hex, details=details, ledger=ledger)

    @property
    def name(self) -> str:
        return self.details.name

    @property
    def contact(self) -> str:
        return self.details.contact

    @property
    def address(self) -> str:
        return self.details.address

    def __repr__(self) -> str:
        return f"Customer(id={self.customer_id!r}, name={self.name!r})"
