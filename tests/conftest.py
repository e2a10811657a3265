"""
Pytest configuration and shared fixtures.
"""

import random
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from tasty_bites.config import Settings
from tasty_bites.domain.catalog import default_catalog
from tasty_bites.domain.customer import Customer
from tasty_bites.domain.models import MenuItem, Payment, PaymentMethod
from tasty_bites.domain.order import Order
from tasty_bites.domain.settlement import PaymentIdGenerator, SettlementContext
from tasty_bites.services.factory import ServiceFactory

FIXED_NOW = datetime(2024, 5, 17, 12, 30, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW


def menu_item(name: str, price: str, category: str = "Test") -> MenuItem:
    return MenuItem(name=name, price=Decimal(price), category=category)


class RecordingStrategy:
    """Test double: records every settle call and succeeds (or fails) on demand."""

    def __init__(self, succeed: bool = True, requires_ledger: bool = False) -> None:
        self.method = PaymentMethod.CASH_ON_DELIVERY
        self.requires_ledger = requires_ledger
        self.succeed = succeed
        self.calls: list[tuple[Decimal, SettlementContext]] = []

    async def settle(self, amount: Decimal, context: SettlementContext) -> Payment:
        self.calls.append((amount, context))
        return context.open_payment(amount, self.method).resolve(self.succeed)


@pytest.fixture
def test_settings() -> Settings:
    """Deterministic, instant gateways."""
    return Settings(
        card_success_rate=1.0,
        card_processing_delay=0.0,
        mobile_success_rate=1.0,
        mobile_processing_delay=0.0,
    )


@pytest.fixture
def catalog():
    return default_catalog()


@pytest.fixture
def customer() -> Customer:
    return Customer.register("Asha", "9800000000", "Lakeside 4, Pokhara", starting_balance=Decimal("500"), clock=fixed_clock)


@pytest.fixture
def payment_ids() -> PaymentIdGenerator:
    return PaymentIdGenerator.sequential()


@pytest.fixture
def context(payment_ids) -> SettlementContext:
    return SettlementContext(payment_ids=payment_ids, clock=fixed_clock)


@pytest.fixture
def make_order(customer, payment_ids):
    """Build orders with sequential ids for `customer` (or another one)."""
    counter = iter(range(1001, 2000))

    def _make(owner: Customer | None = None) -> Order:
        return Order(next(counter), owner or customer, payment_ids=payment_ids, clock=fixed_clock)

    return _make


@pytest.fixture
def factory(test_settings):
    """ServiceFactory wired to instant, always-approving gateways."""
    ServiceFactory.configure(test_settings, rng=random.Random(0))
    yield ServiceFactory
    ServiceFactory.configure()
