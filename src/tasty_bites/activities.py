"""
Temporal activities — thin wrappers delegating to the service layer.

Activities are where side-effects happen: registering customers, moving
money on a ledger, talking to (simulated) payment gateways, sending
receipts. Each accepts a single Pydantic model and returns one, serialized
by the pydantic_data_converter.

Domain errors (unknown customer, empty order, bad payment details) are
raised as-is; the workflow marks them non-retryable so Temporal does not
keep replaying a mistake. A declined payment is not an error: it comes back
as a CheckoutOutcome with confirmed=False.

Registration, top-up and order opening may be retried by Temporal, so they
pass a request id built from the workflow run and activity id. Retries of
one activity share that id, and the directory applies it only once.
"""

import logging

from temporalio import activity

from tasty_bites.domain.models import (
    CheckoutInput,
    CheckoutOutcome,
    CustomerDetails,
    CustomerRef,
    OpenOrderInput,
    OrderSummary,
    Receipt,
    ReceiptInput,
    Statement,
    StatementInput,
    TopUpInput,
)
from tasty_bites.services.factory import ServiceFactory

logger = logging.getLogger(__name__)


def _request_id() -> str:
    info = activity.info()
    return f"{info.workflow_run_id}/{info.activity_id}"


@activity.defn
async def register_customer(input: CustomerDetails) -> CustomerRef:
    """Register a customer and open their ledger with the welcome bonus."""
    customer = ServiceFactory.get_directory().register(input, request_id=_request_id())
    return CustomerRef(customer_id=customer.customer_id, balance=customer.ledger.balance)


@activity.defn
async def top_up_balance(input: TopUpInput) -> CustomerRef:
    logger.info("Activity top_up_balance started for customer %s", input.customer_id)
    balance = ServiceFactory.get_directory().top_up(input.customer_id, input.amount, request_id=_request_id())
    return CustomerRef(customer_id=input.customer_id, balance=balance)


@activity.defn
async def open_order(input: OpenOrderInput) -> OrderSummary:
    """Open an order and fill its cart from menu numbers."""
    order = ServiceFactory.get_directory().open_order(input.customer_id, input.items, request_id=_request_id())
    return OrderSummary(
        order_id=order.order_id,
        subtotal=order.subtotal(),
        delivery_fee=order.delivery_fee(),
        total=order.total(),
    )


@activity.defn
async def checkout_order(input: CheckoutInput) -> CheckoutOutcome:
    """Make one settlement attempt with the selected payment method.

    Must not be retried automatically: every call is a new attempt with a
    new payment id, and a retried balance debit would charge twice.
    """
    logger.info("Activity checkout_order started for order %s (%s)", input.order_id, input.selection.method.value)
    order = ServiceFactory.get_directory().order(input.order_id)
    strategy = ServiceFactory.create_strategy(input.selection)
    confirmed = await order.checkout(strategy)
    logger.info("Activity checkout_order completed for order %s: confirmed=%s", input.order_id, confirmed)
    return CheckoutOutcome(order_id=order.order_id, confirmed=confirmed, payment=order.last_payment)


@activity.defn
async def send_receipt(input: ReceiptInput) -> Receipt:
    """Send the receipt via NotificationService and return what was sent."""
    receipt = ServiceFactory.get_directory().order(input.order_id).receipt()
    await ServiceFactory.get_notification_service().send_receipt(receipt)
    return receipt


@activity.defn
async def send_statement(input: StatementInput) -> Statement:
    """Send the closing balance and ledger history, and return them."""
    statement = ServiceFactory.get_directory().statement(input.customer_id)
    await ServiceFactory.get_notification_service().send_statement(statement)
    return statement
