"""
Mock Payment Gateway Implementation

Simulates Stripe Checkout without making real API calls.
Used in development mode (ENV_MODE=development) and by the test-suite to:
    - Exercise the complete checkout and webhook flow locally
    - Develop without a Stripe account or internet connectivity

Behavior:
    - Optional simulated latency and failure rate
    - Generates Stripe-like IDs (cs_mock_xxx) and hosted-page URLs
    - Signs and verifies webhooks with Stripe's ``t=...,v1=...`` scheme,
      so signed test events go through the same code path as real ones
"""

import asyncio
import hashlib
import hmac
import json
import logging
import random
import time
import uuid
from typing import Optional

from foodorder.services.payment.base import (
    BasePaymentGateway,
    CheckoutSessionParams,
    CheckoutSessionResult,
)

logger = logging.getLogger(__name__)

DEFAULT_MOCK_WEBHOOK_SECRET = "whsec_mock"


class MockPaymentGateway(BasePaymentGateway):
    """
    Mock implementation of the payment gateway.

    Every accepted session request is kept in ``sessions`` so callers can
    inspect exactly what would have been sent to the provider.

    Attributes:
        webhook_secret: Secret used to sign and verify webhook payloads
        failure_rate: Probability of a simulated provider failure (0.0-1.0)
        min_latency: Minimum simulated response time in seconds
        max_latency: Maximum simulated response time in seconds
        tolerance: Maximum accepted age of a webhook timestamp in seconds
    """

    CHECKOUT_BASE_URL = "https://checkout.mock.local/pay"

    def __init__(
        self,
        webhook_secret: Optional[str] = None,
        failure_rate: float = 0.0,
        min_latency: float = 0.0,
        max_latency: float = 0.0,
        tolerance: int = 300,
    ):
        self.webhook_secret = webhook_secret or DEFAULT_MOCK_WEBHOOK_SECRET
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency
        self.tolerance = tolerance
        self.sessions: list[CheckoutSessionParams] = []

        logger.info(
            f"MockPaymentGateway initialized "
            f"(failure_rate={failure_rate:.0%}, "
            f"latency={min_latency}-{max_latency}s)"
        )

    @property
    def provider_name(self) -> str:
        return "mock"

    def _generate_session_id(self) -> str:
        return f"cs_mock_{uuid.uuid4().hex[:24]}"

    async def _simulate_latency(self) -> float:
        """Sleep for a random latency; returns it in milliseconds."""
        latency = random.uniform(self.min_latency, self.max_latency)
        if latency > 0:
            await asyncio.sleep(latency)
        return latency * 1000

    def _should_fail(self) -> bool:
        return random.random() < self.failure_rate

    async def create_checkout_session(
        self,
        params: CheckoutSessionParams,
    ) -> CheckoutSessionResult:
        latency_ms = await self._simulate_latency()

        if self._should_fail():
            logger.debug(f"Mock: Checkout session failed for order {params.order_id}")
            return CheckoutSessionResult(
                success=False,
                error_message="An error occurred while creating the checkout session.",
                error_code="processing_error",
                response_time_ms=latency_ms,
            )

        self.sessions.append(params)
        session_id = self._generate_session_id()

        logger.info(
            f"Mock: Checkout session {session_id} for order {params.order_id} "
            f"- {params.total_amount} {params.currency}"
        )

        return CheckoutSessionResult(
            success=True,
            session_id=session_id,
            url=f"{self.CHECKOUT_BASE_URL}/{session_id}",
            response_time_ms=latency_ms,
            metadata=params.metadata,
        )

    def _compute_signature(self, timestamp: int, payload: bytes) -> str:
        signed = f"{timestamp}.".encode("utf-8") + payload
        return hmac.new(
            self.webhook_secret.encode("utf-8"), signed, hashlib.sha256
        ).hexdigest()

    def sign_payload(self, payload: bytes, timestamp: Optional[int] = None) -> str:
        """Build a ``Stripe-Signature`` style header for ``payload``."""
        timestamp = int(time.time()) if timestamp is None else timestamp
        return f"t={timestamp},v1={self._compute_signature(timestamp, payload)}"

    async def verify_webhook(
        self,
        payload: bytes,
        signature: Optional[str],
    ) -> Optional[dict]:
        if not signature:
            logger.warning("Mock: Webhook received without signature header")
            return None

        parts = {}
        for element in signature.split(","):
            key, _, value = element.strip().partition("=")
            parts.setdefault(key, []).append(value)

        try:
            timestamp = int(parts["t"][0])
        except (KeyError, ValueError):
            logger.warning("Mock: Webhook signature header has no timestamp")
            return None

        expected = self._compute_signature(timestamp, payload)
        if not any(hmac.compare_digest(expected, sig) for sig in parts.get("v1", [])):
            logger.warning("Mock: Webhook signature mismatch")
            return None

        if self.tolerance and timestamp < time.time() - self.tolerance:
            logger.warning("Mock: Webhook timestamp outside tolerance")
            return None

        try:
            event = json.loads(payload)
        except ValueError:
            logger.warning("Mock: Invalid webhook payload")
            return None

        if not isinstance(event, dict):
            logger.warning("Mock: Webhook payload is not an event object")
            return None
        return event

    async def health_check(self) -> bool:
        logger.debug("Mock: Health check passed")
        return True
