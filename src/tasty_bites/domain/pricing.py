"""
Delivery pricing strategies (Strategy pattern).

An Order holds a reference to a `DeliveryPolicy` (a Protocol) and asks it
for the delivery fee on a given subtotal. To add a new scheme (e.g. distance
based fees), implement the protocol and pass it to the Order.

Policies must be pure: the same subtotal always yields the same fee, because
the order total is recomputed at checkout and on every receipt.
"""

from decimal import Decimal
from typing import Protocol


class DeliveryPolicy(Protocol):
    """Interface for computing the delivery fee on an order subtotal.

    Any class with `fee(subtotal) -> Decimal`, `is_free(subtotal) -> bool`
    and a `threshold` attribute satisfies this protocol (structural
    subtyping). `threshold` is the subtotal above which delivery is free, or
    None if it never is; receipts print it.
    """

    threshold: Decimal | None

    def fee(self, subtotal: Decimal) -> Decimal: ...

    def is_free(self, subtotal: Decimal) -> bool: ...


class ThresholdDeliveryPolicy:
    """Flat fee, waived once the subtotal is strictly above a threshold.

    This is a step function, not a proportional fee:
        - subtotal 300: fee 50, total 350
        - subtotal 500: fee 50, total 550 (threshold itself is not free)
        - subtotal 600: fee 0,  total 600
    """

    def __init__(self, threshold: Decimal = Decimal("500"), fee: Decimal = Decimal("50")) -> None:
        self.threshold = threshold
        self.flat_fee = fee

    def is_free(self, subtotal: Decimal) -> bool:
        return subtotal > self.threshold

    def fee(self, subtotal: Decimal) -> Decimal:
        return Decimal("0") if self.is_free(subtotal) else self.flat_fee
