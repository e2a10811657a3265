"""
Simple factory for service singletons and payment strategies.

Activities call `ServiceFactory.get_*()` instead of building services
themselves. Payment strategies are *not* cached: `create_strategy` returns a
fresh instance per settlement attempt, configured from Settings.
"""

import random

from tasty_bites.config import Settings, get_settings
from tasty_bites.domain.catalog import default_catalog
from tasty_bites.domain.errors import InvalidArgumentError
from tasty_bites.domain.models import PaymentMethod, PaymentSelection
from tasty_bites.domain.settlement import PaymentStrategy
from tasty_bites.services.accounts import CustomerDirectory
from tasty_bites.services.notify import NotificationService
from tasty_bites.services.payment import (
    BalancePayment,
    CardPayment,
    CashOnDeliveryPayment,
    MobilePayment,
)


class ServiceFactory:
    """Lazily creates and caches service instances (class-level singletons)."""

    _settings: Settings | None = None
    _directory: CustomerDirectory | None = None
    _notification: NotificationService | None = None
    _rng: random.Random | None = None

    @classmethod
    def configure(cls, settings: Settings | None = None, rng: random.Random | None = None) -> None:
        """Drop cached services and rebuild them from `settings` on next use."""
        cls._settings = settings
        cls._rng = rng
        cls._directory = None
        cls._notification = None

    @classmethod
    def get_settings(cls) -> Settings:
        if cls._settings is None:
            cls._settings = get_settings()
        return cls._settings

    @classmethod
    def get_directory(cls) -> CustomerDirectory:
        if cls._directory is None:
            settings = cls.get_settings()
            cls._directory = CustomerDirectory(settings, default_catalog(settings.restaurant_name))
        return cls._directory

    @classmethod
    def get_notification_service(cls) -> NotificationService:
        if cls._notification is None:
            cls._notification = NotificationService()
        return cls._notification

    @classmethod
    def create_strategy(cls, selection: PaymentSelection) -> PaymentStrategy:
        settings = cls.get_settings()
        method = selection.method
        if method is PaymentMethod.BALANCE:
            return BalancePayment()
        if method is PaymentMethod.CARD:
            return CardPayment(
                selection.card_number,
                selection.card_holder,
                success_rate=settings.card_success_rate,
                processing_delay=settings.card_processing_delay,
                timeout=settings.settlement_timeout,
                rng=cls._rng,
            )
        if method is PaymentMethod.MOBILE:
            return MobilePayment(
                selection.mobile_id,
                success_rate=settings.mobile_success_rate,
                processing_delay=settings.mobile_processing_delay,
                timeout=settings.settlement_timeout,
                rng=cls._rng,
            )
        if method is PaymentMethod.CASH_ON_DELIVERY:
            return CashOnDeliveryPayment()
        raise InvalidArgumentError(f"Unsupported payment method {selection.method!r}")
