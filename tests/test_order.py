"""
Tests for the Order aggregate: cart, totals, checkout and receipt.
"""

import asyncio
from decimal import Decimal

import pytest

from conftest import RecordingStrategy, fixed_clock, menu_item
from tasty_bites.domain.customer import Customer
from tasty_bites.domain.errors import EmptyOrderError, InvalidArgumentError, OrderStateError
from tasty_bites.domain.models import OrderStatus, PaymentMethod, PaymentStatus
from tasty_bites.domain.order import Order, OrderSequence
from tasty_bites.domain.pricing import ThresholdDeliveryPolicy
from tasty_bites.services.payment import (
    BalancePayment,
    CardPayment,
    CashOnDeliveryPayment,
    MobilePayment,
)


def approving_strategies():
    return [
        BalancePayment(),
        CardPayment("4111111111111111", "Asha Rai", success_rate=1.0, processing_delay=0),
        MobilePayment("asha@bank", success_rate=1.0, processing_delay=0),
        CashOnDeliveryPayment(),
    ]


# ── Order numbers ────────────────────────────────────────────────────


def test_order_sequence_starts_after_configured_start():
    sequence = OrderSequence(1000)
    assert [sequence.next_id() for _ in range(3)] == [1001, 1002, 1003]


def test_open_uses_sequence(customer):
    sequence = OrderSequence(41)
    first = Order.open(customer, sequence)
    assert first.order_id == 42
    assert first.status is OrderStatus.PENDING


# ── Cart ─────────────────────────────────────────────────────────────


@pytest.mark.parametrize("q1, q2", [(1, 1), (2, 3), (1, 99)])
def test_adding_same_item_merges_quantities(make_order, q1, q2):
    order = make_order()
    momo = menu_item("Chicken Momo", "150")

    order.add_item(momo, q1)
    line = order.add_item(momo, q2)

    assert len(order.lines) == 1
    assert line.quantity == q1 + q2
    assert order.lines[0].quantity == q1 + q2


def test_lines_keep_insertion_order(make_order):
    order = make_order()
    order.add_item(menu_item("Coke", "60"), 1)
    order.add_item(menu_item("Lassi", "80"), 1)
    order.add_item(menu_item("Coke", "60"), 2)

    assert [(line.item.name, line.quantity) for line in order.lines] == [("Coke", 3), ("Lassi", 1)]


@pytest.mark.parametrize("quantity", [0, -1])
def test_non_positive_quantity_rejected(make_order, quantity):
    order = make_order()
    with pytest.raises(InvalidArgumentError):
        order.add_item(menu_item("Coke", "60"), quantity)
    assert order.is_empty()


# ── Totals ───────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "price, quantity, expected_total",
    [
        ("150", 2, Decimal("350")),      # below threshold: fee applies
        ("250", 2, Decimal("550")),      # exactly 500: fee still applies
        ("500.01", 1, Decimal("500.01")),  # just above threshold: free
        ("300", 2, Decimal("600")),      # well above threshold: free
    ],
)
def test_total_is_a_step_function_of_subtotal(make_order, price, quantity, expected_total):
    order = make_order()
    order.add_item(menu_item("Dish", price), quantity)

    subtotal = Decimal(price) * quantity
    assert order.subtotal() == subtotal
    assert order.total() == expected_total
    assert order.delivery_fee() == expected_total - subtotal


def test_empty_order_totals(make_order):
    order = make_order()
    assert order.subtotal() == Decimal("0")
    assert order.total() == Decimal("50")


def test_custom_delivery_policy(customer):
    order = Order(1, customer, delivery=ThresholdDeliveryPolicy(Decimal("100"), Decimal("20")))
    order.add_item(menu_item("Coke", "60"), 1)
    assert order.total() == Decimal("80")
    order.add_item(menu_item("Coke", "60"), 1)
    assert order.total() == Decimal("120")


class AlwaysChargedDelivery:
    threshold = None

    def is_free(self, subtotal):
        return False

    def fee(self, subtotal):
        return Decimal("30")


def test_receipt_uses_policy_threshold(customer):
    order = Order(1, customer, delivery=AlwaysChargedDelivery())
    order.add_item(menu_item("Chicken Pizza", "350"), 3)

    receipt = order.receipt()

    assert receipt.free_delivery is False
    assert receipt.free_delivery_threshold is None
    assert receipt.total == Decimal("1080")


def test_receipt_reports_threshold_of_default_policy(make_order):
    order = make_order()
    order.add_item(menu_item("Coke", "60"), 1)
    assert order.receipt().free_delivery_threshold == Decimal("500")


# ── Checkout scenarios ───────────────────────────────────────────────


@pytest.mark.asyncio
async def test_checkout_of_empty_order_is_rejected_before_settlement(make_order):
    order = make_order()
    strategy = RecordingStrategy()

    with pytest.raises(EmptyOrderError):
        await order.checkout(strategy)

    assert strategy.calls == []
    assert order.status is OrderStatus.PENDING
    assert order.last_payment is None


@pytest.mark.asyncio
async def test_balance_checkout_below_free_delivery(make_order, customer):
    order = make_order()
    order.add_item(menu_item("Chicken Momo", "150"), 2)
    assert order.subtotal() == Decimal("300")
    assert order.total() == Decimal("350")

    assert await order.checkout(BalancePayment()) is True

    assert customer.ledger.balance == Decimal("150")
    assert order.status is OrderStatus.CONFIRMED
    assert order.last_payment.amount == Decimal("350")
    assert order.last_payment.status is PaymentStatus.SUCCESS
    assert order.last_payment.method is PaymentMethod.BALANCE
    assert "Order #1001" in customer.ledger.history()[-1].reason


@pytest.mark.asyncio
@pytest.mark.parametrize("strategy", approving_strategies(), ids=lambda s: s.method.value)
async def test_free_delivery_total_regardless_of_method(make_order, strategy):
    rich = Customer.register("Bikash", "98111", "Baneshwor", starting_balance=1000, clock=fixed_clock)
    order = make_order(rich)
    order.add_item(menu_item("Chicken Pizza", "300"), 2)

    assert order.total() == Decimal("600")
    assert await order.checkout(strategy) is True
    assert order.last_payment.amount == Decimal("600")


@pytest.mark.asyncio
async def test_insufficient_balance_leaves_everything_unchanged(make_order):
    poor = Customer.register("Chandra", "98222", "Thamel", starting_balance=100, clock=fixed_clock)
    order = make_order(poor)
    order.add_item(menu_item("Chicken Momo", "150"), 2)

    assert await order.checkout(BalancePayment()) is False

    assert poor.ledger.balance == Decimal("100")
    assert len(poor.ledger.history()) == 1
    assert order.status is OrderStatus.PENDING
    assert order.last_payment.status is PaymentStatus.FAILED


@pytest.mark.asyncio
async def test_cash_on_delivery_never_touches_ledger(make_order, customer):
    order = make_order()
    order.add_item(menu_item("Chicken Pizza", "350"), 3)
    before = customer.ledger.history()

    assert await order.checkout(CashOnDeliveryPayment()) is True

    assert customer.ledger.history() == before
    assert customer.ledger.balance == Decimal("500")
    assert order.status is OrderStatus.CONFIRMED


@pytest.mark.asyncio
async def test_ledger_only_handed_to_strategies_that_need_it(make_order):
    order = make_order()
    order.add_item(menu_item("Coke", "60"), 1)
    no_ledger = RecordingStrategy(succeed=False, requires_ledger=False)
    with_ledger = RecordingStrategy(succeed=True, requires_ledger=True)

    await order.checkout(no_ledger)
    await order.checkout(with_ledger)

    assert no_ledger.calls[0][1].ledger is None
    assert with_ledger.calls[0][1].ledger is order.customer.ledger


@pytest.mark.asyncio
async def test_confirmed_order_cannot_be_charged_twice(make_order, customer):
    order = make_order()
    order.add_item(menu_item("Chicken Momo", "150"), 2)
    await order.checkout(BalancePayment())

    with pytest.raises(OrderStateError):
        await order.checkout(BalancePayment())

    assert customer.ledger.balance == Decimal("150")
    assert order.status is OrderStatus.CONFIRMED


@pytest.mark.asyncio
async def test_confirmed_order_rejects_new_items(make_order):
    order = make_order()
    order.add_item(menu_item("Coke", "60"), 1)
    await order.checkout(CashOnDeliveryPayment())

    with pytest.raises(OrderStateError):
        order.add_item(menu_item("Coke", "60"), 1)


@pytest.mark.asyncio
async def test_failed_attempt_can_be_retried_with_another_method(make_order):
    order = make_order()
    order.add_item(menu_item("Chicken Momo", "150"), 2)
    declining_card = CardPayment("4111111111111111", "Asha Rai", success_rate=0.0, processing_delay=0)

    assert await order.checkout(declining_card) is False
    failed = order.last_payment
    assert await order.checkout(CashOnDeliveryPayment()) is True

    assert order.last_payment.payment_id != failed.payment_id
    assert order.last_payment.status is PaymentStatus.SUCCESS
    assert failed.status is PaymentStatus.FAILED


@pytest.mark.asyncio
async def test_concurrent_checkout_on_same_order_rejected(make_order):
    order = make_order()
    order.add_item(menu_item("Coke", "60"), 1)
    slow = CardPayment("4111111111111111", "Asha Rai", success_rate=1.0, processing_delay=0.05)

    first = asyncio.create_task(order.checkout(slow))
    await asyncio.sleep(0)
    with pytest.raises(OrderStateError):
        await order.checkout(CashOnDeliveryPayment())
    with pytest.raises(OrderStateError):
        order.add_item(menu_item("Lassi", "80"), 1)

    assert await first is True
    assert order.last_payment.method is PaymentMethod.CARD


@pytest.mark.asyncio
async def test_cancelled_card_checkout_is_recorded_as_failed(make_order, customer):
    order = make_order()
    order.add_item(menu_item("Chicken Momo", "150"), 2)
    slow = CardPayment("4111111111111111", "Asha Rai", success_rate=1.0, processing_delay=5)

    task = asyncio.create_task(order.checkout(slow))
    await asyncio.sleep(0.01)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert order.status is OrderStatus.PENDING
    assert order.last_payment.status is PaymentStatus.FAILED
    assert order.last_payment.method is PaymentMethod.CARD
    assert order.last_payment.amount == Decimal("350")
    assert customer.ledger.balance == Decimal("500")
    assert order.receipt().payment is None


@pytest.mark.asyncio
async def test_order_can_be_paid_after_cancelled_attempt(make_order):
    order = make_order()
    order.add_item(menu_item("Coke", "60"), 1)
    slow = MobilePayment("asha@bank", success_rate=1.0, processing_delay=5)

    task = asyncio.create_task(order.checkout(slow))
    await asyncio.sleep(0.01)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    cancelled = order.last_payment

    assert await order.checkout(CashOnDeliveryPayment()) is True
    assert order.last_payment.payment_id != cancelled.payment_id
    assert order.status is OrderStatus.CONFIRMED


# ── Receipt ──────────────────────────────────────────────────────────


def test_receipt_of_pending_order_has_no_payment(make_order, customer):
    order = make_order()
    order.add_item(menu_item("Chicken Momo", "150"), 2)

    receipt = order.receipt()

    assert receipt.order_id == 1001
    assert receipt.status is OrderStatus.PENDING
    assert receipt.customer_name == customer.name
    assert receipt.delivery_address == customer.address
    assert receipt.subtotal == Decimal("300")
    assert receipt.delivery_fee == Decimal("50")
    assert receipt.free_delivery is False
    assert receipt.total == Decimal("350")
    assert receipt.payment is None
    assert receipt.lines[0].line_total == Decimal("300")


@pytest.mark.asyncio
async def test_receipt_after_failed_attempt_has_no_payment(make_order):
    poor = Customer.register("Chandra", "98222", "Thamel", starting_balance=0, clock=fixed_clock)
    order = make_order(poor)
    order.add_item(menu_item("Coke", "60"), 1)
    await order.checkout(BalancePayment())

    assert order.receipt().payment is None


@pytest.mark.asyncio
async def test_receipt_of_confirmed_order(make_order):
    order = make_order()
    order.add_item(menu_item("Chicken Pizza", "350"), 2)
    await order.checkout(CashOnDeliveryPayment())

    receipt = order.receipt()

    assert receipt.status is OrderStatus.CONFIRMED
    assert receipt.free_delivery is True
    assert receipt.delivery_fee == Decimal("0")
    assert receipt.total == Decimal("700")
    assert receipt.payment == order.last_payment
    assert receipt.created_at == fixed_clock()


def test_receipt_boundary_matches_total(make_order):
    order = make_order()
    order.add_item(menu_item("Dish", "250"), 2)

    receipt = order.receipt()
    assert receipt.free_delivery is False
    assert receipt.total == order.total() == Decimal("550")
