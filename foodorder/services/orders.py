"""
Order Workflow

Turns a cart into a hosted checkout session, records the order, and moves
it through its lifecycle:

    placed ──(verified checkout.session.completed)──▶ paid ──(owner)──▶ ...

The payment gateway is injected, so the same workflow runs against Stripe
in production and the mock gateway in development and tests.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from foodorder.core.config import Settings, get_settings
from foodorder.core.exceptions import (
    GatewayError,
    InvalidReference,
    InvalidSignature,
    NotFound,
    Unauthorized,
)
from foodorder.models import Order, OrderStatus, Restaurant
from foodorder.schemas import CartItem, CheckoutSessionRequest
from foodorder.services.payment import (
    BasePaymentGateway,
    CheckoutSessionParams,
    LineItem,
)

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"


def to_minor_units(amount: int) -> int:
    """Major currency units → the minor units the gateway expects."""
    return amount * 100


def build_line_items(cart_items: list[CartItem], restaurant: Restaurant) -> list[LineItem]:
    """
    Price every cart line from the restaurant's menu.

    The line name comes from the menu, never from the cart.

    Raises:
        InvalidReference: on the first line whose menu item the restaurant
            does not have; no partial list is returned.
    """
    line_items = []
    for cart_item in cart_items:
        menu_item = restaurant.find_menu_item(cart_item.menu_item_id)
        if menu_item is None:
            raise InvalidReference(cart_item.menu_item_id)

        line_items.append(
            LineItem(
                name=menu_item["name"],
                unit_amount=to_minor_units(int(menu_item["price"])),
                quantity=int(cart_item.quantity),
            )
        )
    return line_items


class OrderWorkflow:
    """
    Checkout, payment confirmation and owner status updates.

    Attributes:
        db: Session for the current request
        gateway: Payment gateway used for checkout and webhook verification
        settings: Application settings (frontend URL, currency)
    """

    def __init__(
        self,
        db: AsyncSession,
        gateway: BasePaymentGateway,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.gateway = gateway
        self.settings = settings or get_settings()

    # =========================================================================
    # CHECKOUT
    # =========================================================================

    async def create_checkout_session(
        self,
        user_id: str,
        request: CheckoutSessionRequest,
    ) -> str:
        """
        Open a checkout session for ``request`` and persist the order.

        The order is only saved once the gateway has returned a checkout URL,
        so a failed checkout never leaves a ``placed`` order behind.

        Returns:
            The hosted checkout URL to redirect the customer to.

        Raises:
            NotFound: restaurant does not exist
            InvalidReference: a cart line is not on the restaurant's menu
            GatewayError: the gateway failed or returned no URL
        """
        restaurant = await self.db.get(Restaurant, request.restaurant_id)
        if restaurant is None:
            raise NotFound("Restaurant not found")

        order = Order(
            restaurant_id=restaurant.id,
            user_id=user_id,
            status=OrderStatus.PLACED,
            delivery_details=request.delivery_details.model_dump(),
            cart_items=[item.model_dump() for item in request.cart_items],
        )

        line_items = build_line_items(request.cart_items, restaurant)

        frontend_url = self.settings.frontend_url
        params = CheckoutSessionParams(
            line_items=line_items,
            shipping_amount=to_minor_units(restaurant.delivery_price),
            order_id=order.id,
            restaurant_id=restaurant.id,
            success_url=f"{frontend_url}/order-status?success=true",
            cancel_url=f"{frontend_url}/detail/{restaurant.id}?cancelled=true",
            currency=self.settings.stripe_currency,
        )

        result = await self.gateway.create_checkout_session(params)

        if not result.success or not result.url:
            logger.error(
                f"Checkout session failed for order {order.id}: "
                f"{result.error_code} {result.error_message}"
            )
            raise GatewayError(result.error_message)

        self.db.add(order)
        await self.db.commit()

        logger.info(
            f"Order {order.id} placed at restaurant {restaurant.id} "
            f"(session {result.session_id})"
        )
        return result.url

    # =========================================================================
    # PAYMENT CONFIRMATION
    # =========================================================================

    async def handle_webhook(
        self,
        payload: bytes,
        signature: Optional[str],
    ) -> Optional[Order]:
        """
        Apply a signed gateway event.

        Only ``checkout.session.completed`` changes state; other events are
        accepted and ignored. Re-delivery of a completion event re-assigns the
        same status and amount.

        Returns:
            The paid order, or None for ignored event types.

        Raises:
            InvalidSignature: signature missing or wrong
            NotFound: the event references an unknown order
        """
        event = await self.gateway.verify_webhook(payload, signature)
        if event is None:
            raise InvalidSignature()

        event_type = event.get("type")
        if event_type != CHECKOUT_COMPLETED:
            logger.debug(f"Webhook event ignored: {event_type}")
            return None

        session_object = (event.get("data") or {}).get("object") or {}
        order_id = (session_object.get("metadata") or {}).get("orderId")

        order = await self.db.get(Order, order_id) if order_id else None
        if order is None:
            logger.warning(f"Webhook references unknown order: {order_id}")
            raise NotFound("Order not found")

        order.total_amount = session_object.get("amount_total")
        order.status = OrderStatus.PAID
        await self.db.commit()

        logger.info(f"Order {order.id} paid ({order.total_amount})")
        return order

    # =========================================================================
    # QUERIES & OWNER UPDATES
    # =========================================================================

    async def list_user_orders(self, user_id: str) -> list[Order]:
        result = await self.db.execute(
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_restaurant_orders(self, owner_id: str) -> list[Order]:
        """Orders placed at the restaurant owned by ``owner_id``."""
        result = await self.db.execute(
            select(Restaurant).where(Restaurant.user_id == owner_id)
        )
        restaurant = result.scalars().first()
        if restaurant is None:
            raise NotFound("restaurant not found")

        result = await self.db.execute(
            select(Order)
            .where(Order.restaurant_id == restaurant.id)
            .order_by(Order.created_at.desc())
        )
        return list(result.scalars().all())

    async def update_order_status(
        self,
        order_id: str,
        status: OrderStatus,
        owner_id: str,
    ) -> Order:
        """
        Set ``status`` on an order of a restaurant owned by ``owner_id``.

        Raises:
            NotFound: order or its restaurant does not exist
            Unauthorized: caller does not own the order's restaurant
        """
        order = await self.db.get(Order, order_id)
        if order is None:
            raise NotFound("order not found")

        restaurant = await self.db.get(Restaurant, order.restaurant_id)
        if restaurant is None:
            raise NotFound("restaurant not found")

        if restaurant.user_id != owner_id:
            logger.warning(
                f"User {owner_id} tried to update order {order_id} "
                f"of restaurant {restaurant.id}"
            )
            raise Unauthorized()

        order.status = status
        await self.db.commit()

        logger.info(f"Order {order.id} status set to {status.value}")
        return order
