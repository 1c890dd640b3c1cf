"""Owner endpoints: the caller's restaurant and the orders placed at it."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from foodorder.auth import get_current_user
from foodorder.database import get_db
from foodorder.models import User
from foodorder.routers.orders import get_order_workflow
from foodorder.schemas import (
    ErrorResponse,
    OrderResponse,
    OrderStatusUpdate,
    RestaurantRequest,
    RestaurantResponse,
)
from foodorder.services import restaurants
from foodorder.services.orders import OrderWorkflow

router = APIRouter(prefix="/api/my/restaurant", tags=["My Restaurant"])


@router.get(
    "",
    response_model=RestaurantResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_my_restaurant(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> RestaurantResponse:
    restaurant = await restaurants.get_my_restaurant(db, current_user.id)
    return RestaurantResponse.model_validate(restaurant)


@router.post(
    "",
    status_code=201,
    response_model=RestaurantResponse,
    responses={409: {"model": ErrorResponse}},
)
async def create_my_restaurant(
    body: RestaurantRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> RestaurantResponse:
    restaurant = await restaurants.create_my_restaurant(db, current_user.id, body)
    return RestaurantResponse.model_validate(restaurant)


@router.put(
    "",
    response_model=RestaurantResponse,
    responses={404: {"model": ErrorResponse}},
)
async def update_my_restaurant(
    body: RestaurantRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> RestaurantResponse:
    restaurant = await restaurants.update_my_restaurant(db, current_user.id, body)
    return RestaurantResponse.model_validate(restaurant)


@router.get("/order", response_model=list[OrderResponse])
async def get_my_restaurant_orders(
    current_user: User = Depends(get_current_user),
    workflow: OrderWorkflow = Depends(get_order_workflow),
) -> list[OrderResponse]:
    orders = await workflow.list_restaurant_orders(current_user.id)
    return [OrderResponse.model_validate(order) for order in orders]


@router.patch(
    "/order/{order_id}/status",
    response_model=OrderResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_order_status(
    order_id: str,
    body: OrderStatusUpdate,
    current_user: User = Depends(get_current_user),
    workflow: OrderWorkflow = Depends(get_order_workflow),
) -> OrderResponse:
    order = await workflow.update_order_status(order_id, body.status, current_user.id)
    return OrderResponse.model_validate(order)
