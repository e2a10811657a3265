"""
Order aggregate: cart, totals and settlement.

Lifecycle:
    PENDING --checkout succeeds--> CONFIRMED   (terminal)
    PENDING --checkout fails-----> PENDING     (retry with a new attempt)

The Order is the only path from a payment strategy to the customer's
ledger: it decides per attempt whether the strategy gets the ledger, and no
strategy keeps a reference once `settle` returns.
"""

import asyncio
import itertools
import logging
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal

from tasty_bites.domain.customer import Customer
from tasty_bites.domain.errors import EmptyOrderError, InvalidArgumentError, OrderStateError
from tasty_bites.domain.models import (
    CartLine,
    MenuItem,
    OrderStatus,
    Payment,
    Receipt,
    ReceiptLine,
    utcnow,
)
from tasty_bites.domain.pricing import DeliveryPolicy, ThresholdDeliveryPolicy
from tasty_bites.domain.settlement import PaymentIdGenerator, PaymentStrategy, SettlementContext

logger = logging.getLogger(__name__)


class OrderSequence:
    """Monotonic order-number generator; the first number is start + 1."""

    def __init__(self, start: int = 1000) -> None:
        self._counter = itertools.count(start + 1)

    def next_id(self) -> int:
        return next(self._counter)


class Order:
    def __init__(
        self,
        order_id: int,
        customer: Customer,
        delivery: DeliveryPolicy | None = None,
        payment_ids: PaymentIdGenerator | None = None,
        clock: Callable[[], datetime] = utcnow,
        restaurant: str = "Tasty Bites",
    ) -> None:
        self.order_id = order_id
        self.customer = customer
        self.restaurant = restaurant
        self.delivery: DeliveryPolicy = delivery or ThresholdDeliveryPolicy()
        self._payment_ids = payment_ids or PaymentIdGenerator()
        self._clock = clock
        self.created_at = clock()
        self._lines: dict[str, CartLine] = {}  # keyed by item name, insertion-ordered
        self._status = OrderStatus.PENDING
        self._last_payment: Payment | None = None
        self._settling = False

    @classmethod
    def open(cls, customer: Customer, sequence: OrderSequence, **kwargs) -> "Order":
        """Create an order with the next number from `sequence`."""
        return cls(sequence.next_id(), customer, **kwargs)

    # ── State ────────────────────────────────────────────────────

    @property
    def status(self) -> OrderStatus:
        return self._status

    @property
    def lines(self) -> tuple[CartLine, ...]:
        return tuple(self._lines.values())

    @property
    def last_payment(self) -> Payment | None:
        """Most recent settlement attempt, successful or not."""
        return self._last_payment

    def is_empty(self) -> bool:
        return not self._lines

    # ── Cart ─────────────────────────────────────────────────────

    def add_item(self, item: MenuItem, quantity: int) -> CartLine:
        """Add to the cart, merging with an existing line for the same item."""
        if quantity <= 0:
            raise InvalidArgumentError(f"Quantity must be positive, got {quantity}")
        if self._status is OrderStatus.CONFIRMED:
            raise OrderStateError(f"Order #{self.order_id} is already confirmed")
        if self._settling:
            raise OrderStateError(f"Order #{self.order_id} cannot change while a payment is in flight")

        existing = self._lines.get(item.name)
        if existing is None:
            line = CartLine(item=item, quantity=quantity)
        else:
            line = existing.model_copy(update={"quantity": existing.quantity + quantity})
        self._lines[item.name] = line
        logger.debug("Order #%s: %s x %d", self.order_id, item.name, line.quantity)
        return line

    # ── Totals ───────────────────────────────────────────────────

    def subtotal(self) -> Decimal:
        return sum((line.line_total for line in self._lines.values()), Decimal("0"))

    def delivery_fee(self) -> Decimal:
        return self.delivery.fee(self.subtotal())

    def total(self) -> Decimal:
        subtotal = self.subtotal()
        return subtotal + self.delivery.fee(subtotal)

    # ── Checkout ─────────────────────────────────────────────────

    async def checkout(self, strategy: PaymentStrategy) -> bool:
        """Settle the current total with `strategy`.

        Returns True and confirms the order on success. On failure the order
        stays PENDING and the failed attempt is kept only as `last_payment`.
        If the await is cancelled, the attempt is recorded as FAILED and the
        `CancelledError` propagates.
        """
        if self.is_empty():
            raise EmptyOrderError(f"Order #{self.order_id} has no items")
        if self._status is OrderStatus.CONFIRMED:
            raise OrderStateError(f"Order #{self.order_id} is already confirmed")
        if self._settling:
            raise OrderStateError(f"Order #{self.order_id} already has a settlement in flight")

        amount = self.total()
        context = SettlementContext(
            payment_ids=self._payment_ids,
            clock=self._clock,
            ledger=self.customer.ledger if strategy.requires_ledger else None,
            reference=f"Order #{self.order_id}",
        )
        logger.info("Order #%s: settling %s via %s", self.order_id, amount, strategy.method.value)

        self._settling = True
        try:
            payment = await strategy.settle(amount, context)
        except asyncio.CancelledError:
            # A cancelled attempt counts as a failed one; the order stays PENDING.
            if context.opened:
                self._last_payment = context.opened[-1].resolve(False)
            logger.warning("Order #%s: settlement via %s cancelled", self.order_id, strategy.method.value)
            raise
        finally:
            self._settling = False

        self._last_payment = payment
        if payment.succeeded:
            self._status = OrderStatus.CONFIRMED
            logger.info("Order #%s confirmed by payment %s", self.order_id, payment.payment_id)
            return True
        logger.warning("Order #%s: payment %s failed", self.order_id, payment.payment_id)
        return False

    # ── Receipt ──────────────────────────────────────────────────

    def receipt(self) -> Receipt:
        subtotal = self.subtotal()
        fee = self.delivery.fee(subtotal)
        confirmed = self._status is OrderStatus.CONFIRMED
        return Receipt(
            restaurant=self.restaurant,
            order_id=self.order_id,
            created_at=self.created_at,
            status=self._status,
            customer_name=self.customer.name,
            customer_contact=self.customer.contact,
            delivery_address=self.customer.address,
            lines=[
                ReceiptLine(
                    name=line.item.name,
                    quantity=line.quantity,
                    unit_price=line.item.price,
                    line_total=line.line_total,
                )
                for line in self._lines.values()
            ],
            subtotal=subtotal,
            delivery_fee=fee,
            free_delivery=self.delivery.is_free(subtotal),
            free_delivery_threshold=self.delivery.threshold,
            total=subtotal + fee,
            payment=self._last_payment if confirmed else None,
        )
