"""
CLI client — places an order through PlaceOrderWorkflow.

Usage:
    # Show the menu:
    python -m tasty_bites.client --menu

    # Two Chicken Momo (#1), pay from balance:
    python -m tasty_bites.client --name Asha --phone 98000 --address "Lakeside 4" \\
        --item 1:2 --pay balance

    # Top up first, try the card and fall back to cash on delivery:
    python -m tasty_bites.client --name Asha --phone 98000 --address "Lakeside 4" \\
        --item 8:2 --item 9:1 --top-up 200 \\
        --pay card --card-number 4111111111111111 --card-holder "Asha Rai" --pay cod

    # Pay by card and show the wallet's transaction history afterwards:
    python -m tasty_bites.client ... --pay card --card-number 4111111111111111 \\
        --card-holder "Asha Rai" --statement

    # Start, query status, and cancel after 1 second:
    python -m tasty_bites.client ... --query --cancel-after 1.0
"""

import argparse
import asyncio
import logging
import uuid
from decimal import Decimal, InvalidOperation

from temporalio.client import Client
from temporalio.contrib.pydantic import pydantic_data_converter

from tasty_bites.config import get_settings
from tasty_bites.domain.catalog import default_catalog
from tasty_bites.domain.models import (
    CartSelection,
    CustomerDetails,
    PaymentMethod,
    PaymentSelection,
    PlaceOrderRequest,
    PlaceOrderResult,
)
from tasty_bites.services.notify import render_receipt, render_statement
from tasty_bites.workflows import PlaceOrderWorkflow

METHOD_CHOICES = {
    "balance": PaymentMethod.BALANCE,
    "card": PaymentMethod.CARD,
    "mobile": PaymentMethod.MOBILE,
    "cod": PaymentMethod.CASH_ON_DELIVERY,
}


def parse_item(value: str) -> CartSelection:
    """Parse ``NUMBER[:QUANTITY]`` into a cart selection."""
    number, _, quantity = value.partition(":")
    try:
        return CartSelection(item_number=int(number), quantity=int(quantity or 1))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid item {value!r}: expected NUMBER[:QUANTITY]") from exc


def parse_amount(value: str) -> Decimal:
    try:
        amount = Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"invalid amount {value!r}") from exc
    if amount <= 0:
        raise argparse.ArgumentTypeError("amount must be positive")
    return amount


def build_request(args: argparse.Namespace) -> PlaceOrderRequest:
    payments = [
        PaymentSelection(
            method=METHOD_CHOICES[name],
            card_number=args.card_number,
            card_holder=args.card_holder,
            mobile_id=args.mobile_id,
        )
        for name in args.pay
    ]
    return PlaceOrderRequest(
        customer=CustomerDetails(name=args.name, contact=args.phone, address=args.address),
        items=args.item,
        payments=payments,
        top_up=args.top_up,
    )


def print_menu() -> None:
    catalog = default_catalog(get_settings().restaurant_name)
    numbers = {item.name: n for n, item in enumerate(catalog, start=1)}
    print(f"{catalog.name} menu")
    for category, items in catalog.items_by_category().items():
        print(f"\n--- {category.upper()} ---")
        for item in items:
            print(f"{numbers[item.name]}. {item}")


def format_result(result: PlaceOrderResult, with_statement: bool = False) -> str:
    out = [f"Outcome: {result.outcome.value}"]
    out += [f"  {p.payment_id} {p.method.value}: {p.status.value}" for p in result.attempts]
    if result.receipt is not None:
        out.append(render_receipt(result.receipt))
    if with_statement and result.statement is not None:
        out += [
            f"Transaction history for {result.statement.customer_name}",
            render_statement(result.statement.entries),
            f"Current balance: Rs. {result.statement.balance:.2f}",
        ]
    return "\n".join(out)


async def run_client(args: argparse.Namespace) -> None:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    logger = logging.getLogger(__name__)

    client = await Client.connect(settings.temporal_address, data_converter=pydantic_data_converter)

    req = build_request(args)
    workflow_id = f"order-{uuid.uuid4().hex[:8]}"
    logger.info("Starting workflow %s", workflow_id)

    handle = await client.start_workflow(
        PlaceOrderWorkflow.run,
        req,
        id=workflow_id,
        task_queue=settings.task_queue,
    )

    if args.query:
        status = await handle.query(PlaceOrderWorkflow.get_status)
        logger.info("Query result: %s", status)

    if args.cancel_after is not None:
        await asyncio.sleep(args.cancel_after)
        logger.info("Sending cancel signal to %s", workflow_id)
        await handle.signal(PlaceOrderWorkflow.cancel_order)

    result = await handle.result()
    if args.json:
        print(result.model_dump_json(indent=2))
        return

    print(format_result(result, with_statement=args.statement))


def main() -> None:
    parser = argparse.ArgumentParser(description="Order food via Temporal")
    parser.add_argument("--menu", action="store_true", help="Print the menu and exit")
    parser.add_argument("--name", help="Customer name")
    parser.add_argument("--phone", help="Customer phone number")
    parser.add_argument("--address", help="Delivery address")
    parser.add_argument("--item", type=parse_item, action="append", help="Menu number[:quantity], repeatable")
    parser.add_argument("--top-up", type=parse_amount, default=None, help="Amount to add to the balance first")
    parser.add_argument(
        "--pay",
        choices=sorted(METHOD_CHOICES),
        action="append",
        help="Payment method, repeat to give fallbacks in order",
    )
    parser.add_argument("--card-number", default=None)
    parser.add_argument("--card-holder", default=None)
    parser.add_argument("--mobile-id", default=None, help="Mobile transfer id")
    parser.add_argument("--query", action="store_true", help="Query workflow status once after starting")
    parser.add_argument("--cancel-after", type=float, default=None, help="Seconds to wait before sending cancel signal")
    parser.add_argument("--statement", action="store_true", help="Print the balance and transaction history afterwards")
    parser.add_argument("--json", action="store_true", help="Print the raw workflow result as JSON")
    args = parser.parse_args()

    if args.menu:
        print_menu()
        return
    missing = [flag for flag in ("name", "phone", "address", "item", "pay") if not getattr(args, flag)]
    if missing:
        parser.error("missing required options: " + ", ".join(f"--{flag}" for flag in missing))
    asyncio.run(run_client(args))


if __name__ == "__main__":
    main()
