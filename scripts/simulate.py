"""
Checkout Simulation Script

Fires concurrent checkouts at a development server, then confirms each
placed order with a signed ``checkout.session.completed`` event, the way the
payment provider would.

The server must run with ENV_MODE=development so it uses the mock gateway
and accepts HS256 tokens signed with JWT_SECRET. This script reads the same
settings to mint tokens and sign webhooks.

Run from project root: python scripts/simulate.py --orders 20
"""

import argparse
import asyncio
import json
import os
import random
import sys
import time
from typing import Any

import httpx

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from foodorder.auth import create_access_token
from foodorder.core.config import get_settings
from foodorder.services.payment import MockPaymentGateway

settings = get_settings()
API_BASE_URL = f"http://localhost:{settings.api_port}"

OWNER_ID = "auth0|simulation-owner"
CUSTOMER_ID = "auth0|simulation-customer"

RESTAURANT = {
    "restaurantName": "Simulation Kitchen",
    "city": "Algiers",
    "country": "Algeria",
    "deliveryPrice": 300,
    "estimatedDeliveryTime": 30,
    "cuisines": ["Italian", "Pizza"],
    "menuItems": [
        {"name": "Pizza Margherita", "price": 900},
        {"name": "Pepperoni Pizza", "price": 1100},
        {"name": "Caesar Salad", "price": 600},
        {"name": "Tiramisu", "price": 450},
    ],
}

DELIVERY = {
    "email": "customer@example.com",
    "name": "Sim Customer",
    "addressLine1": "12 Rue Didouche Mourad",
    "city": "Algiers",
}


def headers_for(subject: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject)}"}


async def ensure_user(client: httpx.AsyncClient, subject: str) -> None:
    response = await client.post(
        f"{API_BASE_URL}/api/my/user",
        json={"auth0Id": subject, "email": f"{subject.split('|')[1]}@example.com"},
        headers=headers_for(subject),
    )
    response.raise_for_status()


async def ensure_restaurant(client: httpx.AsyncClient) -> dict[str, Any]:
    """Return the owner's restaurant, creating it on first run."""
    headers = headers_for(OWNER_ID)
    response = await client.get(f"{API_BASE_URL}/api/my/restaurant", headers=headers)
    if response.status_code == 404:
        response = await client.post(
            f"{API_BASE_URL}/api/my/restaurant", json=RESTAURANT, headers=headers
        )
    response.raise_for_status()
    return response.json()


def random_cart(restaurant: dict[str, Any]) -> list[dict[str, Any]]:
    items = random.sample(restaurant["menuItems"], k=random.randint(1, 3))
    return [
        {"menuItemId": item["id"], "name": item["name"], "quantity": str(random.randint(1, 3))}
        for item in items
    ]


async def send_checkout(
    client: httpx.AsyncClient,
    restaurant: dict[str, Any],
    order_num: int,
) -> dict[str, Any]:
    start_time = time.time()
    try:
        response = await client.post(
            f"{API_BASE_URL}/api/order/checkout/create-checkout-session",
            json={
                "cartItems": random_cart(restaurant),
                "deliveryDetails": DELIVERY,
                "restaurantId": restaurant["id"],
            },
            headers=headers_for(CUSTOMER_ID),
            timeout=30.0,
        )
    except httpx.HTTPError as e:
        return {"order_num": order_num, "success": False, "error": str(e)[:100],
                "time": round(time.time() - start_time, 3)}

    elapsed = round(time.time() - start_time, 3)
    if response.status_code == 200:
        return {"order_num": order_num, "success": True, "url": response.json()["url"], "time": elapsed}
    return {"order_num": order_num, "success": False, "error": response.text[:100], "time": elapsed}


def completed_event(order: dict[str, Any], restaurant: dict[str, Any]) -> bytes:
    """Build the event body the provider sends once the customer has paid."""
    prices = {item["id"]: item["price"] for item in restaurant["menuItems"]}
    subtotal = sum(prices[item["menuItemId"]] * int(item["quantity"]) for item in order["cartItems"])
    amount_total = (subtotal + restaurant["deliveryPrice"]) * 100
    return json.dumps({
        "id": f"evt_sim_{order['id'][:12]}",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "amount_total": amount_total,
                "metadata": {"orderId": order["id"], "restaurantId": restaurant["id"]},
            }
        },
    }).encode()


async def confirm_placed_orders(
    client: httpx.AsyncClient,
    restaurant: dict[str, Any],
) -> tuple[int, int]:
    """Send a signed completion event for every placed order."""
    signer = MockPaymentGateway(webhook_secret=settings.stripe_webhook_secret)
    response = await client.get(f"{API_BASE_URL}/api/order", headers=headers_for(CUSTOMER_ID))
    response.raise_for_status()
    placed = [order for order in response.json() if order["status"] == "placed"]

    async def confirm(order):
        payload = completed_event(order, restaurant)
        result = await client.post(
            f"{API_BASE_URL}/api/order/checkout/webhook",
            content=payload,
            headers={"stripe-signature": signer.sign_payload(payload)},
        )
        return result.status_code == 200

    results = await asyncio.gather(*(confirm(order) for order in placed))
    return sum(results), len(placed)


async def run_simulation(num_orders: int) -> dict[str, Any]:
    print("=" * 70)
    print("CHECKOUT SIMULATION")
    print("=" * 70)
    print(f"Orders: {num_orders}")
    print(f"Target: {API_BASE_URL}")
    print("=" * 70)

    start_time = time.time()
    async with httpx.AsyncClient() as client:
        health = await client.get(f"{API_BASE_URL}/health")
        health.raise_for_status()
        print(f"\nHealth: {health.json().get('status')}")

        await ensure_user(client, OWNER_ID)
        await ensure_user(client, CUSTOMER_ID)
        restaurant = await ensure_restaurant(client)
        print(f"Restaurant: {restaurant['restaurantName']} ({restaurant['id']})")

        print("\nFiring checkouts...\n")
        results = await asyncio.gather(
            *(send_checkout(client, restaurant, i + 1) for i in range(num_orders))
        )

        print("Confirming payments...\n")
        confirmed, placed = await confirm_placed_orders(client, restaurant)

    total_time = round(time.time() - start_time, 2)
    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]

    print("=" * 70)
    print("RESULTS")
    print("=" * 70)
    print(f"Checkout sessions: {len(successful)}/{num_orders}")
    print(f"Payments confirmed: {confirmed}/{placed}")
    print(f"Total time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        print(f"Average checkout response: {avg_time}s")

    if failed:
        print("\nFailed checkouts (first 5):")
        for f in failed[:5]:
            print(f"   #{f['order_num']}: {f['error']}")
    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "confirmed": confirmed,
        "total_time": total_time,
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Checkout Simulation Script")
    parser.add_argument("--orders", type=int, default=20, help="Number of checkouts")
    args = parser.parse_args()

    if not settings.is_development:
        print("Refusing to run: ENV_MODE must be development")
        sys.exit(1)

    asyncio.run(run_simulation(args.orders))
