"""
API routers.

    - my_user: /api/my/user
    - my_restaurant: /api/my/restaurant
    - restaurants: /api/restaurant
    - orders: /api/order
"""

from foodorder.routers import my_restaurant, my_user, orders, restaurants

__all__ = ["my_restaurant", "my_user", "orders", "restaurants"]
