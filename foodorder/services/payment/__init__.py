"""
Payment Gateway Factory

Provides a single entry point for obtaining a payment gateway instance.
The rest of the application stays agnostic about which implementation is
being used, and receives it as a FastAPI dependency.

Usage:
    from foodorder.services.payment import get_payment_gateway

    # Returns MockPaymentGateway or StripePaymentGateway based on ENV_MODE
    gateway = get_payment_gateway()

Environment Switching:
    - ENV_MODE=development → MockPaymentGateway (no API calls)
    - ENV_MODE=staging → StripePaymentGateway (test keys)
    - ENV_MODE=production → StripePaymentGateway (live keys)
"""

import logging
from functools import lru_cache

from foodorder.core.config import get_settings
from foodorder.services.payment.base import (
    BasePaymentGateway,
    CheckoutSessionParams,
    CheckoutSessionResult,
    LineItem,
)
from foodorder.services.payment.mock import MockPaymentGateway
from foodorder.services.payment.stripe import StripePaymentGateway

logger = logging.getLogger(__name__)


@lru_cache()
def get_payment_gateway() -> BasePaymentGateway:
    """
    Get the configured payment gateway instance.

    The instance is cached so every request shares one client.

    Raises:
        ValueError: If real services are requested but Stripe is not configured
    """
    settings = get_settings()

    if settings.is_development:
        logger.info("Payment Gateway: Using MockPaymentGateway (development mode)")
        return MockPaymentGateway(
            webhook_secret=settings.stripe_webhook_secret,
            tolerance=settings.webhook_tolerance_seconds,
        )

    logger.info(
        f"Payment Gateway: Using StripePaymentGateway "
        f"({settings.env_mode.value} mode)"
    )
    return StripePaymentGateway()


def reset_payment_gateway() -> None:
    """
    Clear the cached gateway instance.

    The next call to get_payment_gateway() will create a new instance.
    """
    get_payment_gateway.cache_clear()
    logger.debug("Payment gateway cache cleared")


__all__ = [
    "get_payment_gateway",
    "reset_payment_gateway",
    "BasePaymentGateway",
    "CheckoutSessionParams",
    "CheckoutSessionResult",
    "LineItem",
    "MockPaymentGateway",
    "StripePaymentGateway",
]
