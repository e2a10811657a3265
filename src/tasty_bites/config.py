"""
Runtime configuration for the ordering service.

Every tunable constant (welcome bonus, delivery rule, simulated gateway
behaviour, Temporal connection) lives here so tests and deployments can
override it without touching domain code. Values are read from environment
variables prefixed with ``TASTY_BITES_`` (or a local ``.env`` file), e.g.::

    TASTY_BITES_CARD_SUCCESS_RATE=1.0 python -m tasty_bites.worker
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    restaurant_name: str = Field(default="Tasty Bites", description="Restaurant shown on receipts")

    # Balance ledger
    starting_balance: Decimal = Field(default=Decimal("500"), ge=0, description="Welcome bonus on registration")

    # Delivery rule: the fee is waived only when subtotal is strictly above the threshold
    free_delivery_threshold: Decimal = Field(default=Decimal("500"), ge=0)
    delivery_fee: Decimal = Field(default=Decimal("50"), ge=0)

    # First order gets order_id_start + 1
    order_id_start: int = Field(default=1000, ge=0)

    # Simulated payment rails
    card_success_rate: float = Field(default=0.95, ge=0.0, le=1.0)
    card_processing_delay: float = Field(default=2.0, ge=0.0, description="Seconds")
    mobile_success_rate: float = Field(default=0.90, ge=0.0, le=1.0)
    mobile_processing_delay: float = Field(default=1.5, ge=0.0, description="Seconds")
    settlement_timeout: float = Field(default=10.0, gt=0.0, description="Upper bound for one settlement attempt")

    # Temporal
    temporal_address: str = Field(default="localhost:7233")
    task_queue: str = Field(default="food-orders")

    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_prefix="TASTY_BITES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings (cached after first load)."""
    return Settings()
