"""
Temporal worker — polls the order task queue.

Registers PlaceOrderWorkflow and its activities. Customers, ledgers and
orders are held in this process's memory (see services/accounts.py), so run
a single worker per task queue.

Run with:
    python -m tasty_bites.worker
"""

import asyncio
import logging

from temporalio.client import Client

# The same data_converter must be used on both the worker AND the client,
# otherwise Pydantic payloads fail to deserialize.
from temporalio.contrib.pydantic import pydantic_data_converter
from temporalio.worker import Worker

from tasty_bites.activities import (
    checkout_order,
    open_order,
    register_customer,
    send_receipt,
    send_statement,
    top_up_balance,
)
from tasty_bites.config import get_settings
from tasty_bites.workflows import PlaceOrderWorkflow


async def run_worker() -> None:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    logger = logging.getLogger(__name__)

    client = await Client.connect(settings.temporal_address, data_converter=pydantic_data_converter)
    logger.info("Connected to Temporal — starting worker on queue %r", settings.task_queue)

    worker = Worker(
        client,
        task_queue=settings.task_queue,
        workflows=[PlaceOrderWorkflow],
        activities=[
            register_customer,
            top_up_balance,
            open_order,
            checkout_order,
            send_receipt,
            send_statement,
        ],
    )
    await worker.run()


def main() -> None:
    asyncio.run(run_worker())


if __name__ == "__main__":
    main()
