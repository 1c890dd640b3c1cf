"""
Customer order endpoints and the payment webhook.

The webhook reads the raw body: the gateway signs the exact bytes it sent,
so the payload must not be parsed before verification.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from foodorder.auth import get_current_user
from foodorder.database import get_db
from foodorder.models import User
from foodorder.schemas import (
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    ErrorResponse,
    OrderResponse,
)
from foodorder.services.orders import OrderWorkflow
from foodorder.services.payment import BasePaymentGateway, get_payment_gateway

router = APIRouter(prefix="/api/order", tags=["Orders"])


def get_order_workflow(
    db: AsyncSession = Depends(get_db),
    gateway: BasePaymentGateway = Depends(get_payment_gateway),
) -> OrderWorkflow:
    return OrderWorkflow(db, gateway)


@router.get("", response_model=list[OrderResponse])
async def get_my_orders(
    current_user: User = Depends(get_current_user),
    workflow: OrderWorkflow = Depends(get_order_workflow),
) -> list[OrderResponse]:
    orders = await workflow.list_user_orders(current_user.id)
    return [OrderResponse.model_validate(order) for order in orders]


@router.post(
    "/checkout/create-checkout-session",
    response_model=CheckoutSessionResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def create_checkout_session(
    body: CheckoutSessionRequest,
    current_user: User = Depends(get_current_user),
    workflow: OrderWorkflow = Depends(get_order_workflow),
) -> CheckoutSessionResponse:
    url = await workflow.create_checkout_session(current_user.id, body)
    return CheckoutSessionResponse(url=url)


@router.post(
    "/checkout/webhook",
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def payment_webhook(
    request: Request,
    workflow: OrderWorkflow = Depends(get_order_workflow),
    stripe_signature: Optional[str] = Header(None, alias="stripe-signature"),
) -> Response:
    payload = await request.body()
    await workflow.handle_webhook(payload, stripe_signature)
    return Response(status_code=200)
