"""
Payment strategies.

Part of the **service layer** that encapsulates external operations behind
the `PaymentStrategy` interface. In a real system the card and mobile
strategies would call Stripe, a bank switch, etc. Here they simulate the
gateway round-trip with an awaited sleep and a configurable success rate.

Randomness is confined to this module and injectable (`rng`), so tests can
force deterministic outcomes with a seeded `random.Random` or a success
rate of 0.0 / 1.0.
"""

import asyncio
import logging
import random
from decimal import Decimal

from tasty_bites.domain.errors import InvalidArgumentError
from tasty_bites.domain.models import Payment, PaymentMethod
from tasty_bites.domain.settlement import SettlementContext

logger = logging.getLogger(__name__)


def _require(value: str | None, label: str) -> str:
    if value is None or not value.strip():
        raise InvalidArgumentError(f"{label} is required")
    return value.strip()


def mask_card(card_number: str) -> str:
    return "****" + card_number[-4:]


class BalancePayment:
    """Pays from the customer's prepaid balance.

    Succeeds iff the ledger accepts the debit; an insufficient balance is a
    FAILED payment with the ledger untouched.
    """

    method = PaymentMethod.BALANCE
    requires_ledger = True

    async def settle(self, amount: Decimal, context: SettlementContext) -> Payment:
        if context.ledger is None:
            raise InvalidArgumentError("Balance payment needs the customer's ledger")
        payment = context.open_payment(amount, self.method)
        reason = f"Payment {payment.payment_id}"
        if context.reference:
            reason = f"{reason} for {context.reference}"

        debited = context.ledger.debit(amount, reason)
        if debited:
            logger.info("Balance payment %s succeeded; remaining %s", payment.payment_id, context.ledger.balance)
        else:
            logger.warning(
                "Balance payment %s failed: balance %s, required %s",
                payment.payment_id,
                context.ledger.balance,
                amount,
            )
        return payment.resolve(debited)


class SimulatedGatewayPayment:
    """Base for strategies that wait on a (simulated) external authorization.

    The wait is bounded by `timeout`; running out of time is reported as a
    FAILED payment, never as an exception. Cancellation propagates, and the
    Order records the attempt as FAILED. These strategies never touch the
    ledger, so nothing is locked while waiting.
    """

    method: PaymentMethod
    requires_ledger = False

    def __init__(
        self,
        success_rate: float,
        processing_delay: float,
        timeout: float = 10.0,
        rng: random.Random | None = None,
    ) -> None:
        if not 0.0 <= success_rate <= 1.0:
            raise InvalidArgumentError(f"success_rate must be within [0, 1], got {success_rate}")
        self.success_rate = success_rate
        self.processing_delay = processing_delay
        self.timeout = timeout
        self._rng = rng or random.Random()

    @property
    def label(self) -> str:
        return self.method.value.lower()

    async def _authorize(self) -> bool:
        await asyncio.sleep(self.processing_delay)  # Simulate network round-trip
        return self._rng.random() < self.success_rate

    async def settle(self, amount: Decimal, context: SettlementContext) -> Payment:
        payment = context.open_payment(amount, self.method)
        logger.info("Processing %s payment %s for %s", self.label, payment.payment_id, amount)
        try:
            approved = await asyncio.wait_for(self._authorize(), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("%s payment %s timed out after %.1fs", self.label, payment.payment_id, self.timeout)
            return payment.resolve(False)
        except asyncio.CancelledError:
            logger.warning("%s payment %s cancelled while waiting for authorization", self.label, payment.payment_id)
            raise

        if approved:
            logger.info("%s payment %s approved", self.label, payment.payment_id)
        else:
            logger.warning("%s payment %s declined", self.label, payment.payment_id)
        return payment.resolve(approved)


class CardPayment(SimulatedGatewayPayment):
    """Credit/debit card. Approves ~95% of the time by default."""

    method = PaymentMethod.CARD

    def __init__(
        self,
        card_number: str | None,
        card_holder: str | None,
        success_rate: float = 0.95,
        processing_delay: float = 2.0,
        timeout: float = 10.0,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(success_rate, processing_delay, timeout, rng)
        self.card_number = _require(card_number, "Card number")
        self.card_holder = _require(card_holder, "Card holder name")

    async def settle(self, amount: Decimal, context: SettlementContext) -> Payment:
        logger.info("Charging card %s (%s)", mask_card(self.card_number), self.card_holder)
        return await super().settle(amount, context)


class MobilePayment(SimulatedGatewayPayment):
    """Mobile transfer to a payer id. Approves ~90% of the time by default."""

    method = PaymentMethod.MOBILE

    def __init__(
        self,
        mobile_id: str | None,
        success_rate: float = 0.90,
        processing_delay: float = 1.5,
        timeout: float = 10.0,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(success_rate, processing_delay, timeout, rng)
        self.mobile_id = _require(mobile_id, "Mobile transfer id")

    async def settle(self, amount: Decimal, context: SettlementContext) -> Payment:
        logger.info("Requesting transfer from %s", self.mobile_id)
        return await super().settle(amount, context)


class CashOnDeliveryPayment:
    """Always succeeds; the courier collects the amount at the door."""

    method = PaymentMethod.CASH_ON_DELIVERY
    requires_ledger = False

    async def settle(self, amount: Decimal, context: SettlementContext) -> Payment:
        payment = context.open_payment(amount, self.method)
        logger.info("Cash on delivery selected; collect Rs. %s at the door", amount)
        return payment.resolve(True)
