"""
Payment Gateway Abstract Base Class

Defines the interface contract for hosted-checkout payment providers.
Both MockPaymentGateway and StripePaymentGateway implement these methods, so
the order workflow behaves identically whichever one is injected.

Design Pattern: Strategy Pattern
    - Runtime switching between providers via ENV_MODE
    - Tests substitute the mock through FastAPI dependency overrides
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class LineItem:
    """
    One priced line of a checkout session.

    Attributes:
        name: Display name shown on the hosted checkout page
        unit_amount: Unit price in minor currency units
        quantity: Number of units
    """
    name: str
    unit_amount: int
    quantity: int

    @property
    def total_amount(self) -> int:
        return self.unit_amount * self.quantity


@dataclass
class CheckoutSessionParams:
    """
    Everything a provider needs to open a hosted checkout session.

    ``order_id`` and ``restaurant_id`` are sent as session metadata and come
    back in the completion webhook; they are the only link between the
    provider's callback and our order record.
    """
    line_items: list[LineItem]
    shipping_amount: int
    order_id: str
    restaurant_id: str
    success_url: str
    cancel_url: str
    currency: str = "dzd"
    mode: str = "payment"
    shipping_display_name: str = "Delivery"

    @property
    def metadata(self) -> dict[str, str]:
        return {"orderId": self.order_id, "restaurantId": self.restaurant_id}

    @property
    def total_amount(self) -> int:
        """Line items plus shipping, in minor units."""
        return sum(item.total_amount for item in self.line_items) + self.shipping_amount


@dataclass
class CheckoutSessionResult:
    """
    Standardized result from checkout session creation.

    Attributes:
        success: Whether the provider accepted the request
        session_id: Provider session identifier (Stripe format: cs_xxx)
        url: Hosted checkout page to redirect the customer to
        error_message: Error description if creation failed
        error_code: Machine-readable error code
        response_time_ms: Time taken by the provider call
    """
    success: bool
    session_id: Optional[str] = None
    url: Optional[str] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    response_time_ms: float = 0.0
    metadata: dict = field(default_factory=dict)


class BasePaymentGateway(ABC):
    """
    Abstract base class for payment gateways.

    Example:
        >>> gateway = get_payment_gateway()  # Mock or Stripe
        >>> result = await gateway.create_checkout_session(params)
        >>> if result.success:
        ...     print(result.url)
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of the payment provider ("mock", "stripe")."""
        pass

    @abstractmethod
    async def create_checkout_session(
        self,
        params: CheckoutSessionParams,
    ) -> CheckoutSessionResult:
        """
        Open a hosted one-time payment session.

        Provider failures are reported through the result, not raised.
        """
        pass

    @abstractmethod
    async def verify_webhook(
        self,
        payload: bytes,
        signature: Optional[str],
    ) -> Optional[dict]:
        """
        Verify and parse a webhook from the payment provider.

        Args:
            payload: Raw request body bytes, exactly as received
            signature: Signature header from the request

        Returns:
            dict: Parsed event if the signature is valid, None otherwise
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Verify connectivity to the payment provider."""
        pass
