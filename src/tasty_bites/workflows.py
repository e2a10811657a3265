"""
Temporal workflow — PlaceOrderWorkflow.

Orchestrates one customer session end to end: register, optionally top up
the prepaid balance, open the order, try the requested payment methods one
after another until one settles, then send the receipt. Unless an activity
fails, the customer also gets a statement of their closing balance and
ledger history.

The workflow itself stays deterministic (no I/O, no randomness, no clock);
every side-effect happens in an activity. All business rules (totals,
delivery fee, balance checks) live in the domain layer that the activities
call, not here.
"""

from datetime import timedelta
from decimal import Decimal

from temporalio import workflow
from temporalio.common import RetryPolicy

# Pydantic and our own modules use constructs the sandbox would flag, so pass
# them through. They are only used for data modelling here.
with workflow.unsafe.imports_passed_through():
    from tasty_bites.activities import (
        checkout_order,
        open_order,
        register_customer,
        send_receipt,
        send_statement,
        top_up_balance,
    )
    from tasty_bites.domain.models import (
        CheckoutInput,
        OpenOrderInput,
        OrderState,
        Payment,
        PlaceOrderRequest,
        PlaceOrderResult,
        Receipt,
        ReceiptInput,
        Statement,
        StatementInput,
        TopUpInput,
        WorkflowOutcome,
    )

# Caller mistakes are not worth retrying
NON_RETRYABLE_ERRORS = ["InvalidArgumentError", "OrderStateError", "EmptyOrderError"]


@workflow.defn
class PlaceOrderWorkflow:
    """Runs a customer's order from registration to receipt.

    Execution flow:
        1. register_customer            → CustomerDirectory
        2. top_up_balance (optional)    → BalanceLedger.credit
        3. open_order                   → Order.add_item per selection
        4. checkout_order per payment   → Order.checkout (stops at first success)
        5. send_receipt                 → NotificationService
        6. send_statement               → closing balance and ledger history

    Supports:
        - **Signal** `cancel_order`: stops before the next settlement attempt.
        - **Query** `get_status`: progress snapshot.
    """

    def __init__(self) -> None:
        self.state = OrderState()
        self.attempts: list[Payment] = []
        self.total: Decimal | None = None
        self.statement: Statement | None = None

    @workflow.signal
    async def cancel_order(self) -> None:
        self.state.cancelled = True

    @workflow.query
    def get_status(self) -> dict:
        return {
            "customer_id": self.state.customer_id,
            "topped_up": self.state.topped_up,
            "order_id": self.state.order_id,
            "attempts": self.state.attempts,
            "confirmed": self.state.confirmed,
            "receipt_sent": self.state.receipt_sent,
            "cancelled": self.state.cancelled,
            "total": str(self.total) if self.total is not None else None,
        }

    def _result(self, outcome: WorkflowOutcome, receipt: Receipt | None = None) -> PlaceOrderResult:
        return PlaceOrderResult(
            outcome=outcome,
            customer_id=self.state.customer_id,
            order_id=self.state.order_id,
            total=self.total,
            attempts=list(self.attempts),
            receipt=receipt,
            statement=self.statement,
        )

    async def _send_statement(self, activity_opts: dict) -> None:
        self.statement = await workflow.execute_activity(
            send_statement,
            StatementInput(customer_id=self.state.customer_id),
            **activity_opts,
        )

    @workflow.run
    async def run(self, req: PlaceOrderRequest) -> PlaceOrderResult:
        # Bookkeeping activities may be retried; the ones that change state
        # are deduplicated by request id in the directory.
        activity_opts = {
            "start_to_close_timeout": timedelta(seconds=10),
            "retry_policy": RetryPolicy(
                maximum_attempts=3,
                initial_interval=timedelta(seconds=1),
                backoff_coefficient=2.0,
                non_retryable_error_types=NON_RETRYABLE_ERRORS,
            ),
        }
        # A settlement attempt runs exactly once; the next payment selection
        # is the retry.
        checkout_opts = {
            "start_to_close_timeout": timedelta(seconds=30),
            "retry_policy": RetryPolicy(maximum_attempts=1),
        }

        workflow.logger.info(
            "Placing order for %s: %d item(s), %d payment option(s)",
            req.customer.name,
            len(req.items),
            len(req.payments),
        )

        try:
            customer = await workflow.execute_activity(register_customer, req.customer, **activity_opts)
            self.state.customer_id = customer.customer_id

            if req.top_up is not None:
                await workflow.execute_activity(
                    top_up_balance,
                    TopUpInput(customer_id=customer.customer_id, amount=req.top_up),
                    **activity_opts,
                )
                self.state.topped_up = True

            summary = await workflow.execute_activity(
                open_order,
                OpenOrderInput(customer_id=customer.customer_id, items=req.items),
                **activity_opts,
            )
            self.state.order_id = summary.order_id
            self.total = summary.total

            for selection in req.payments:
                if self.state.cancelled:
                    await self._send_statement(activity_opts)
                    return self._result(WorkflowOutcome.CANCELLED)
                outcome = await workflow.execute_activity(
                    checkout_order,
                    CheckoutInput(order_id=summary.order_id, selection=selection),
                    **checkout_opts,
                )
                self.state.attempts += 1
                self.attempts.append(outcome.payment)
                if outcome.confirmed:
                    self.state.confirmed = True
                    break
                workflow.logger.info(
                    "Payment %s for order %s failed; trying next option",
                    outcome.payment.payment_id,
                    summary.order_id,
                )

            if not self.state.confirmed:
                workflow.logger.warning("Order %s: every payment option failed", summary.order_id)
                await self._send_statement(activity_opts)
                return self._result(WorkflowOutcome.DECLINED)

            receipt = await workflow.execute_activity(
                send_receipt,
                ReceiptInput(order_id=summary.order_id),
                **activity_opts,
            )
            self.state.receipt_sent = True
            await self._send_statement(activity_opts)

        except Exception:
            # Activity failed after its retries (or was non-retryable).
            workflow.logger.exception("Order for %s failed", req.customer.name)
            return self._result(WorkflowOutcome.FAILED)

        workflow.logger.info("Order %s confirmed", summary.order_id)
        return self._result(WorkflowOutcome.CONFIRMED, receipt)
