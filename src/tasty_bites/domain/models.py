"""
Domain models for the food ordering and checkout flow.

All value types use Pydantic v2 BaseModel. Most of them are frozen: a menu
item, a ledger entry or a resolved payment never changes once created. The
same models double as Temporal workflow/activity payloads, which travel as
JSON through the pydantic_data_converter configured on the client and worker.

Money is always ``Decimal``. Enums inherit from (str, Enum) so they
serialize as plain strings.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from tasty_bites.domain.errors import InvalidArgumentError


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Coerce a numeric value to Decimal without binary-float artefacts.

    Raises InvalidArgumentError for anything that is not a finite number.
    """
    try:
        money = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidArgumentError(f"Not a money amount: {value!r}") from exc
    if not money.is_finite():
        raise InvalidArgumentError(f"Money amount must be finite, got {value!r}")
    return money


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PaymentMethod(str, Enum):
    """Supported ways of settling an order."""

    BALANCE = "BALANCE"                    # Prepaid balance debit
    CARD = "CARD"                          # Credit/debit card (simulated gateway)
    MOBILE = "MOBILE"                      # Mobile transfer (simulated gateway)
    CASH_ON_DELIVERY = "CASH_ON_DELIVERY"  # Collected by the courier


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class OrderStatus(str, Enum):
    """Lifecycle of an order. CONFIRMED is terminal."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"


# ── Catalog & cart ───────────────────────────────────────────────────


class MenuItem(BaseModel):
    """A dish on the menu. Name is unique within a catalog."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    price: Decimal = Field(..., gt=0)
    category: str

    def __str__(self) -> str:
        return f"{self.name} ({self.category}) - Rs. {self.price:.2f}"


class CartLine(BaseModel):
    """One distinct menu item and its aggregated quantity."""

    model_config = ConfigDict(frozen=True)

    item: MenuItem
    quantity: int = Field(..., gt=0)

    @property
    def line_total(self) -> Decimal:
        return self.item.price * self.quantity


# ── Ledger & payments ────────────────────────────────────────────────


class LedgerEntry(BaseModel):
    """One balance change: signed delta plus the balance it produced."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    delta: Decimal
    balance: Decimal = Field(..., ge=0)
    reason: str = ""


class Payment(BaseModel):
    """Record of a single settlement attempt.

    Created PENDING by a payment strategy and replaced by a resolved copy
    (SUCCESS or FAILED) once the attempt completes.
    """

    model_config = ConfigDict(frozen=True)

    payment_id: str
    amount: Decimal = Field(..., gt=0)
    method: PaymentMethod
    status: PaymentStatus = PaymentStatus.PENDING
    timestamp: datetime

    @property
    def succeeded(self) -> bool:
        return self.status is PaymentStatus.SUCCESS

    def resolve(self, succeeded: bool) -> "Payment":
        status = PaymentStatus.SUCCESS if succeeded else PaymentStatus.FAILED
        return self.model_copy(update={"status": status})


# ── Receipt projection ───────────────────────────────────────────────


class ReceiptLine(BaseModel):
    name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class Receipt(BaseModel):
    """Read-only summary of an order, ready for rendering."""

    restaurant: str
    order_id: int
    created_at: datetime
    status: OrderStatus
    customer_name: str
    customer_contact: str
    delivery_address: str
    lines: list[ReceiptLine]
    subtotal: Decimal
    delivery_fee: Decimal
    free_delivery: bool
    free_delivery_threshold: Decimal | None = None
    total: Decimal
    payment: Payment | None = None  # Present only once the order is confirmed
    estimated_delivery: str = "30-45 minutes"


class Statement(BaseModel):
    """A customer's balance and ledger history, oldest entry first."""

    customer_id: str
    customer_name: str
    balance: Decimal
    entries: list[LedgerEntry] = Field(default_factory=list)


# ── Workflow input / output ──────────────────────────────────────────


class CustomerDetails(BaseModel):
    """Identity collected once per session by the front end."""

    name: str = Field(..., min_length=1)
    contact: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)


class CartSelection(BaseModel):
    """A menu item by its 1-based menu number, plus quantity."""

    item_number: int = Field(..., ge=1)
    quantity: int = Field(..., gt=0)


class PaymentSelection(BaseModel):
    """Chosen payment method and the details that method needs.

    Details are only checked for presence; card numbers and mobile ids are
    never validated against any network.
    """

    method: PaymentMethod
    card_number: str | None = None
    card_holder: str | None = None
    mobile_id: str | None = None


class PlaceOrderRequest(BaseModel):
    """Input to PlaceOrderWorkflow."""

    customer: CustomerDetails
    items: list[CartSelection] = Field(..., min_length=1)
    # Tried in order until one settles; each is a fresh settlement attempt
    payments: list[PaymentSelection] = Field(..., min_length=1)
    top_up: Decimal | None = Field(default=None, gt=0)


class WorkflowOutcome(str, Enum):
    CONFIRMED = "CONFIRMED"   # Settled and receipt sent
    DECLINED = "DECLINED"     # Every payment selection failed
    CANCELLED = "CANCELLED"   # cancel_order signal received before settlement
    FAILED = "FAILED"         # An activity raised after exhausting retries


class OrderState(BaseModel):
    """Mutable progress tracked inside the workflow; exposed via query."""

    customer_id: str | None = None
    topped_up: bool = False
    order_id: int | None = None
    attempts: int = 0
    confirmed: bool = False
    receipt_sent: bool = False
    cancelled: bool = False


class PlaceOrderResult(BaseModel):
    """Final result returned by the workflow to the client."""

    outcome: WorkflowOutcome
    customer_id: str | None = None
    order_id: int | None = None
    total: Decimal | None = None
    attempts: list[Payment] = Field(default_factory=list)
    receipt: Receipt | None = None
    statement: Statement | None = None  # Closing balance and history, once the customer exists


# ── Activity payload models ──────────────────────────────────────────


class CustomerRef(BaseModel):
    customer_id: str
    balance: Decimal


class TopUpInput(BaseModel):
    customer_id: str
    amount: Decimal = Field(..., gt=0)


class OpenOrderInput(BaseModel):
    customer_id: str
    items: list[CartSelection] = Field(..., min_length=1)


class OrderSummary(BaseModel):
    order_id: int
    subtotal: Decimal
    delivery_fee: Decimal
    total: Decimal


class CheckoutInput(BaseModel):
    order_id: int
    selection: PaymentSelection


class CheckoutOutcome(BaseModel):
    order_id: int
    confirmed: bool
    payment: Payment


class ReceiptInput(BaseModel):
    order_id: int


class StatementInput(BaseModel):
    customer_id: str
