"""
Exceptions raised by the ordering domain.

Only caller mistakes are exceptions. A declined card, an insufficient
balance or a gateway timeout is a normal outcome and comes back as a FAILED
Payment instead.
"""


class TastyBitesError(Exception):
    """Base class for all domain errors."""


class InvalidArgumentError(TastyBitesError, ValueError):
    """A non-positive amount/quantity, a missing payment detail or an unknown lookup key."""


class OrderStateError(TastyBitesError):
    """The operation is not allowed in the order's current state."""


class EmptyOrderError(OrderStateError):
    """Checkout was attempted on an order with no items."""
