"""
Notification service facade.

Renders an order receipt (or a balance statement) as plain text and
"sends" it by logging. In production this would integrate with an email or
SMS provider.
"""

import asyncio
import logging
from collections.abc import Iterable

from tasty_bites.domain.models import LedgerEntry, Receipt, Statement

logger = logging.getLogger(__name__)

WIDTH = 50


def render_receipt(receipt: Receipt) -> str:
    rule, heavy = "-" * WIDTH, "=" * WIDTH
    out = [
        heavy,
        f"{receipt.restaurant.upper()} - ORDER RECEIPT".center(WIDTH),
        heavy,
        f"Order ID: {receipt.order_id}",
        f"Date: {receipt.created_at:%d-%m-%Y %H:%M:%S}",
        f"Status: {receipt.status.value}",
        f"Customer: {receipt.customer_name}",
        f"Phone: {receipt.customer_contact}",
        f"Address: {receipt.delivery_address}",
        rule,
    ]
    out += [f"{line.name} x {line.quantity} = Rs. {line.line_total:.2f}" for line in receipt.lines]
    out += [rule, f"Subtotal: Rs. {receipt.subtotal:.2f}"]
    if receipt.free_delivery:
        out.append(f"Delivery Charge: FREE (Order > Rs. {receipt.free_delivery_threshold})")
    else:
        out.append(f"Delivery Charge: Rs. {receipt.delivery_fee:.2f}")
    out.append(f"TOTAL: Rs. {receipt.total:.2f}")
    if receipt.payment is not None:
        out += [
            rule,
            f"Payment ID: {receipt.payment.payment_id}",
            f"Payment Method: {receipt.payment.method.value}",
            f"Payment Status: {receipt.payment.status.value}",
            f"Payment Time: {receipt.payment.timestamp:%d-%m-%Y %H:%M:%S}",
        ]
    out += [heavy, f"Estimated Delivery Time: {receipt.estimated_delivery}", heavy]
    return "\n".join(out)


def render_statement(entries: Iterable[LedgerEntry]) -> str:
    rows = [f"[{e.timestamp:%d-%m-%Y %H:%M}] {e.delta:+.2f} | Balance: Rs. {e.balance:.2f} | {e.reason}" for e in entries]
    return "\n".join(rows) if rows else "No transactions found."


class NotificationService:
    """Simulates sending receipts and balance statements to the customer."""

    async def send_receipt(self, receipt: Receipt) -> bool:
        logger.info("Sending receipt for order %s", receipt.order_id)
        await asyncio.sleep(0.3)  # Simulate network latency
        logger.info("Receipt for order %s:\n%s", receipt.order_id, render_receipt(receipt))
        return True

    async def send_statement(self, statement: Statement) -> bool:
        logger.info("Sending balance statement to %s", statement.customer_name)
        await asyncio.sleep(0.1)
        logger.info(
            "Statement for %s (balance Rs. %.2f):\n%s",
            statement.customer_name,
            statement.balance,
            render_statement(statement.entries),
        )
        return True
