import asyncio

import pytest
from sqlalchemy import func, select

from conftest import auth_headers, make_client, make_session_maker, seed_restaurant, seed_user
from foodorder.core.exceptions import GatewayError, InvalidReference, NotFound
from foodorder.models import Order, OrderStatus
from foodorder.schemas import CheckoutSessionRequest
from foodorder.services.orders import OrderWorkflow, build_line_items
from foodorder.services.payment import CheckoutSessionResult, MockPaymentGateway


def _checkout_body(restaurant_id, cart=None):
    return {
        "restaurantId": restaurant_id,
        "cartItems": cart or [{"menuItemId": "m1", "name": "Pizza", "quantity": "2"}],
        "deliveryDetails": {
            "email": "lina@example.com",
            "name": "Lina",
            "addressLine1": "12 Rue Didouche",
            "city": "Algiers",
        },
    }


async def _order_count(session_maker):
    async with session_maker() as session:
        return await session.scalar(select(func.count(Order.id)))


class NoUrlGateway(MockPaymentGateway):
    async def create_checkout_session(self, params):
        self.sessions.append(params)
        return CheckoutSessionResult(success=True, session_id="cs_mock_nourl", url=None)


class ExplodingGateway(MockPaymentGateway):
    async def create_checkout_session(self, params):
        raise RuntimeError("connection reset")


def test_line_items_priced_from_menu():
    async def _run():
        async with make_session_maker() as session_maker:
            owner = await seed_user(session_maker)
            restaurant = await seed_restaurant(session_maker, owner)
            request = CheckoutSessionRequest.model_validate(_checkout_body(restaurant.id))
            return build_line_items(request.cart_items, restaurant)

    items = asyncio.run(_run())
    assert len(items) == 1
    assert items[0].name == "Margherita"
    assert items[0].unit_amount == 50000
    assert items[0].quantity == 2


def test_checkout_persists_placed_order_and_one_session(gateway):
    async def _run():
        async with make_session_maker() as session_maker:
            owner = await seed_user(session_maker)
            customer = await seed_user(session_maker, "auth0|customer")
            restaurant = await seed_restaurant(session_maker, owner)
            cart = [
                {"menuItemId": "m1", "name": "Pizza", "quantity": "2"},
                {"menuItemId": "m2", "name": "Dessert", "quantity": "1"},
            ]
            request = CheckoutSessionRequest.model_validate(_checkout_body(restaurant.id, cart))

            async with session_maker() as session:
                url = await OrderWorkflow(session, gateway).create_checkout_session(
                    customer.id, request
                )

            async with session_maker() as session:
                orders = (await session.execute(select(Order))).scalars().all()
            return url, orders, restaurant, customer

    url, orders, restaurant, customer = asyncio.run(_run())

    assert url.startswith(MockPaymentGateway.CHECKOUT_BASE_URL)
    assert len(orders) == 1
    assert len(gateway.sessions) == 1

    order = orders[0]
    params = gateway.sessions[0]
    assert order.status == OrderStatus.PLACED
    assert order.user_id == customer.id
    assert order.total_amount is None
    assert order.cart_items[0]["menu_item_id"] == "m1"
    assert order.delivery_details["address_line1"] == "12 Rue Didouche"
    assert params.metadata == {"orderId": order.id, "restaurantId": restaurant.id}
    assert params.shipping_amount == 30000
    assert [i.total_amount for i in params.line_items] == [100000, 25000]
    assert params.total_amount == 100000 + 25000 + 30000
    assert params.mode == "payment"
    assert params.success_url == "http://frontend.test/order-status?success=true"
    assert params.cancel_url == f"http://frontend.test/detail/{restaurant.id}?cancelled=true"


def test_unknown_menu_item_persists_nothing_and_skips_gateway(gateway):
    async def _run():
        async with make_session_maker() as session_maker:
            owner = await seed_user(session_maker)
            restaurant = await seed_restaurant(session_maker, owner)
            cart = [
                {"menuItemId": "m1", "name": "Pizza", "quantity": "1"},
                {"menuItemId": "ghost", "name": "Ghost", "quantity": "1"},
            ]
            request = CheckoutSessionRequest.model_validate(_checkout_body(restaurant.id, cart))

            async with session_maker() as session:
                with pytest.raises(InvalidReference) as excinfo:
                    await OrderWorkflow(session, gateway).create_checkout_session(
                        owner.id, request
                    )
            return excinfo.value, await _order_count(session_maker)

    error, count = asyncio.run(_run())
    assert error.menu_item_id == "ghost"
    assert "ghost" in error.message
    assert count == 0
    assert gateway.sessions == []


def test_unknown_restaurant(gateway):
    async def _run():
        async with make_session_maker() as session_maker:
            customer = await seed_user(session_maker)
            request = CheckoutSessionRequest.model_validate(_checkout_body("nope"))
            async with session_maker() as session:
                with pytest.raises(NotFound):
                    await OrderWorkflow(session, gateway).create_checkout_session(
                        customer.id, request
                    )

    asyncio.run(_run())
    assert gateway.sessions == []


@pytest.mark.parametrize(
    "failing_gateway",
    [MockPaymentGateway(failure_rate=1.0), NoUrlGateway()],
    ids=["gateway-failure", "no-url"],
)
def test_gateway_failure_persists_nothing(failing_gateway):
    async def _run():
        async with make_session_maker() as session_maker:
            owner = await seed_user(session_maker)
            restaurant = await seed_restaurant(session_maker, owner)
            request = CheckoutSessionRequest.model_validate(_checkout_body(restaurant.id))
            async with session_maker() as session:
                with pytest.raises(GatewayError):
                    await OrderWorkflow(session, failing_gateway).create_checkout_session(
                        owner.id, request
                    )
            return await _order_count(session_maker)

    assert asyncio.run(_run()) == 0


def test_checkout_endpoint_returns_url(gateway):
    async def _run():
        async with make_client(gateway) as (client, session_maker):
            owner = await seed_user(session_maker)
            await seed_user(session_maker, "auth0|customer")
            restaurant = await seed_restaurant(session_maker, owner)
            resp = await client.post(
                "/api/order/checkout/create-checkout-session",
                json=_checkout_body(restaurant.id),
                headers=auth_headers("auth0|customer"),
            )
            return resp, await _order_count(session_maker)

    resp, count = asyncio.run(_run())
    assert resp.status_code == 200
    assert resp.json()["url"].startswith(MockPaymentGateway.CHECKOUT_BASE_URL)
    assert count == 1


def test_checkout_endpoint_error_mapping(gateway):
    async def _run():
        async with make_client(gateway) as (client, session_maker):
            owner = await seed_user(session_maker)
            restaurant = await seed_restaurant(session_maker, owner)
            headers = auth_headers("auth0|owner")
            bad_item = await client.post(
                "/api/order/checkout/create-checkout-session",
                json=_checkout_body(restaurant.id, [{"menuItemId": "x", "name": "X", "quantity": "1"}]),
                headers=headers,
            )
            missing = await client.post(
                "/api/order/checkout/create-checkout-session",
                json=_checkout_body("missing"),
                headers=headers,
            )
            bad_quantity = await client.post(
                "/api/order/checkout/create-checkout-session",
                json=_checkout_body(restaurant.id, [{"menuItemId": "m1", "name": "P", "quantity": "two"}]),
                headers=headers,
            )
            return bad_item, missing, bad_quantity

    bad_item, missing, bad_quantity = asyncio.run(_run())
    assert bad_item.status_code == 400
    assert bad_item.json() == {"message": "Menu item not found: x"}
    assert missing.status_code == 404
    assert missing.json() == {"message": "Restaurant not found"}
    assert bad_quantity.status_code == 422


def test_checkout_gateway_exception_is_500_without_order():
    async def _run():
        async with make_client(ExplodingGateway()) as (client, session_maker):
            owner = await seed_user(session_maker)
            restaurant = await seed_restaurant(session_maker, owner)
            resp = await client.post(
                "/api/order/checkout/create-checkout-session",
                json=_checkout_body(restaurant.id),
                headers=auth_headers("auth0|owner"),
            )
            return resp, await _order_count(session_maker)

    resp, count = asyncio.run(_run())
    assert resp.status_code == 500
    assert resp.json() == {"message": "Something went wrong"}
    assert count == 0


def test_checkout_requires_registered_user(gateway):
    async def _run():
        async with make_client(gateway) as (client, session_maker):
            owner = await seed_user(session_maker)
            restaurant = await seed_restaurant(session_maker, owner)
            anonymous = await client.post(
                "/api/order/checkout/create-checkout-session",
                json=_checkout_body(restaurant.id),
            )
            stranger = await client.post(
                "/api/order/checkout/create-checkout-session",
                json=_checkout_body(restaurant.id),
                headers=auth_headers("auth0|stranger"),
            )
            return anonymous, stranger

    anonymous, stranger = asyncio.run(_run())
    assert anonymous.status_code == 401
    assert stranger.status_code == 401
    assert gateway.sessions == []
