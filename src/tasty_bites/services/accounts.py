"""
In-memory customer and order directory.

Activities are stateless functions, so the customers (with their ledgers)
and the orders they open live here, inside the worker process. Nothing
survives a worker restart.

Every state-changing call takes an optional `request_id`. A repeated call
with the same id returns the first call's result instead of registering,
crediting or opening again, so a retried activity has no extra effect.
"""

import logging
from decimal import Decimal

from tasty_bites.config import Settings
from tasty_bites.domain.catalog import Catalog
from tasty_bites.domain.customer import Customer
from tasty_bites.domain.errors import InvalidArgumentError
from tasty_bites.domain.models import CartSelection, CustomerDetails, Statement
from tasty_bites.domain.order import Order, OrderSequence
from tasty_bites.domain.pricing import ThresholdDeliveryPolicy
from tasty_bites.domain.settlement import PaymentIdGenerator

logger = logging.getLogger(__name__)


class CustomerDirectory:
    """Registers customers and opens orders against a catalog."""

    def __init__(
        self,
        settings: Settings,
        catalog: Catalog,
        sequence: OrderSequence | None = None,
        payment_ids: PaymentIdGenerator | None = None,
    ) -> None:
        self.settings = settings
        self.catalog = catalog
        self.sequence = sequence or OrderSequence(settings.order_id_start)
        self.payment_ids = payment_ids or PaymentIdGenerator()
        self.delivery = ThresholdDeliveryPolicy(settings.free_delivery_threshold, settings.delivery_fee)
        self._customers: dict[str, Customer] = {}
        self._orders: dict[int, Order] = {}
        self._registrations: dict[str, str] = {}  # request id -> customer id
        self._top_ups: set[str] = set()
        self._opened: dict[str, int] = {}  # request id -> order id

    def register(self, details: CustomerDetails, request_id: str | None = None) -> Customer:
        if request_id is not None and request_id in self._registrations:
            logger.info("Registration %s already done; reusing customer", request_id)
            return self.customer(self._registrations[request_id])

        customer = Customer.register(
            details.name,
            details.contact,
            details.address,
            starting_balance=self.settings.starting_balance,
        )
        self._customers[customer.customer_id] = customer
        if request_id is not None:
            self._registrations[request_id] = customer.customer_id
        logger.info(
            "Registered %s (%s) with welcome bonus Rs. %s",
            customer.name,
            customer.customer_id,
            customer.ledger.balance,
        )
        return customer

    def customer(self, customer_id: str) -> Customer:
        try:
            return self._customers[customer_id]
        except KeyError:
            raise InvalidArgumentError(f"Unknown customer {customer_id!r}") from None

    def statement(self, customer_id: str) -> Statement:
        customer = self.customer(customer_id)
        return Statement(
            customer_id=customer.customer_id,
            customer_name=customer.name,
            balance=customer.ledger.balance,
            entries=list(customer.ledger.history()),
        )

    def top_up(self, customer_id: str, amount: Decimal, request_id: str | None = None) -> Decimal:
        ledger = self.customer(customer_id).ledger
        if request_id is not None and request_id in self._top_ups:
            logger.info("Top-up %s already applied; balance is %s", request_id, ledger.balance)
            return ledger.balance
        ledger.credit(amount, "Top-up")
        if request_id is not None:
            self._top_ups.add(request_id)
        return ledger.balance

    def open_order(self, customer_id: str, items: list[CartSelection], request_id: str | None = None) -> Order:
        """Open a new order and fill its cart from menu numbers.

        Menu numbers are checked before an order number is used up.
        """
        if request_id is not None and request_id in self._opened:
            logger.info("Order request %s already opened #%s", request_id, self._opened[request_id])
            return self.order(self._opened[request_id])

        customer = self.customer(customer_id)
        picks = [(self.catalog.item_by_index(s.item_number), s.quantity) for s in items]
        order = Order.open(
            customer,
            self.sequence,
            delivery=self.delivery,
            payment_ids=self.payment_ids,
            restaurant=self.catalog.name,
        )
        for item, quantity in picks:
            order.add_item(item, quantity)
        self._orders[order.order_id] = order
        if request_id is not None:
            self._opened[request_id] = order.order_id
        logger.info("Opened order #%s for %s: total Rs. %s", order.order_id, order.customer.name, order.total())
        return order

    def order(self, order_id: int) -> Order:
        try:
            return self._orders[order_id]
        except KeyError:
            raise InvalidArgumentError(f"Unknown order #{order_id}") from None
