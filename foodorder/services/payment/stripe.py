"""
Stripe Payment Gateway Implementation

Production implementation using the official Stripe Python SDK.
Used when ENV_MODE=production or ENV_MODE=staging.

Requirements:
    - STRIPE_SECRET_KEY must be set in environment
    - STRIPE_WEBHOOK_SECRET for webhook verification

Security Notes:
    - Webhooks are only accepted with a valid signature
    - The signature is checked against the raw body, never a re-serialized one
"""

import json
import logging
from datetime import datetime
from typing import Optional

import stripe
from fastapi.concurrency import run_in_threadpool

from foodorder.core.config import get_settings
from foodorder.services.payment.base import (
    BasePaymentGateway,
    CheckoutSessionParams,
    CheckoutSessionResult,
)

logger = logging.getLogger(__name__)

STRIPE_API_VERSION = "2023-10-16"


class StripePaymentGateway(BasePaymentGateway):
    """
    Stripe Checkout gateway.

    The API key is passed per request instead of being assigned to the
    module-global ``stripe.api_key``.
    """

    def __init__(self):
        """
        Read Stripe credentials from settings.

        Raises:
            ValueError: If STRIPE_SECRET_KEY is not configured
        """
        settings = get_settings()

        if not settings.stripe_secret_key:
            raise ValueError(
                "STRIPE_SECRET_KEY is required outside development mode. "
                "Set it in your .env file or environment variables."
            )

        self._api_key = settings.stripe_secret_key
        self._webhook_secret = settings.stripe_webhook_secret
        self._tolerance = settings.webhook_tolerance_seconds

        logger.info(
            f"StripePaymentGateway initialized "
            f"(api_version={STRIPE_API_VERSION})"
        )

    @property
    def provider_name(self) -> str:
        return "stripe"

    @staticmethod
    def build_session_payload(params: CheckoutSessionParams) -> dict:
        """Translate our params into ``checkout.Session.create`` arguments."""
        return {
            "line_items": [
                {
                    "price_data": {
                        "currency": params.currency,
                        "unit_amount": item.unit_amount,
                        "product_data": {"name": item.name},
                    },
                    "quantity": item.quantity,
                }
                for item in params.line_items
            ],
            "shipping_options": [
                {
                    "shipping_rate_data": {
                        "display_name": params.shipping_display_name,
                        "type": "fixed_amount",
                        "fixed_amount": {
                            "amount": params.shipping_amount,
                            "currency": params.currency,
                        },
                    },
                },
            ],
            "mode": params.mode,
            "metadata": params.metadata,
            "success_url": params.success_url,
            "cancel_url": params.cancel_url,
        }

    async def create_checkout_session(
        self,
        params: CheckoutSessionParams,
    ) -> CheckoutSessionResult:
        start_time = datetime.now()

        logger.info(
            f"Stripe: Creating checkout session for order {params.order_id} "
            f"({len(params.line_items)} line items)"
        )

        try:
            session = await run_in_threadpool(
                stripe.checkout.Session.create,
                api_key=self._api_key,
                stripe_version=STRIPE_API_VERSION,
                **self.build_session_payload(params),
            )

            elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000

            logger.info(f"Stripe: Checkout session created - {session.id}")

            return CheckoutSessionResult(
                success=True,
                session_id=session.id,
                url=session.url,
                response_time_ms=elapsed_ms,
            )

        except stripe.AuthenticationError as e:
            logger.critical(f"Stripe: Authentication failed - {e}")

            return CheckoutSessionResult(
                success=False,
                error_message="Payment service configuration error",
                error_code="authentication_error",
            )

        except stripe.APIConnectionError as e:
            elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000
            logger.error(f"Stripe: Connection error - {e}")

            return CheckoutSessionResult(
                success=False,
                error_message="Payment service temporarily unavailable",
                error_code="connection_error",
                response_time_ms=elapsed_ms,
            )

        except stripe.StripeError as e:
            elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000
            logger.error(f"Stripe: Error - {e}")

            return CheckoutSessionResult(
                success=False,
                error_message=e.user_message or str(e),
                error_code=e.code or "stripe_error",
                response_time_ms=elapsed_ms,
            )

    async def verify_webhook(
        self,
        payload: bytes,
        signature: Optional[str],
    ) -> Optional[dict]:
        """
        Verify a ``Stripe-Signature`` header and parse the event.

        Returns:
            Parsed event dict if valid, None if verification fails
        """
        if not self._webhook_secret:
            logger.error("Stripe: Webhook secret not configured, rejecting event")
            return None

        if not signature:
            logger.warning("Stripe: Webhook received without signature header")
            return None

        try:
            stripe.WebhookSignature.verify_header(
                payload.decode("utf-8"),
                signature,
                self._webhook_secret,
                self._tolerance,
            )
        except (stripe.SignatureVerificationError, UnicodeDecodeError) as e:
            logger.warning(f"Stripe: Webhook signature invalid - {e}")
            return None

        try:
            event = json.loads(payload)
        except ValueError as e:
            logger.warning(f"Stripe: Webhook payload is not JSON - {e}")
            return None

        if not isinstance(event, dict):
            logger.warning("Stripe: Webhook payload is not an event object")
            return None

        logger.debug(f"Stripe: Webhook verified - {event.get('type')}")
        return event

    async def health_check(self) -> bool:
        """Make a lightweight API call to verify credentials and connectivity."""
        try:
            await run_in_threadpool(stripe.Account.retrieve, api_key=self._api_key)
            logger.debug("Stripe: Health check passed")
            return True

        except stripe.StripeError as e:
            logger.error(f"Stripe: Health check failed - {e}")
            return False
