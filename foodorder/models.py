"""
SQLAlchemy Database Models

Users, their restaurants (with the menu embedded as JSON) and orders.
Embedded documents (menu items, cuisines, cart lines, delivery details) live
in JSON columns and are always replaced wholesale, never mutated in place.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, DateTime, Enum, ForeignKey, JSON, Text
from sqlalchemy.orm import relationship, validates

from foodorder.database import Base


def generate_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    PLACED = "placed"
    PAID = "paid"
    IN_PROGRESS = "inProgress"
    OUT_FOR_DELIVERY = "outForDelivery"
    DELIVERED = "delivered"


class User(Base):
    """
    Customer or restaurant owner profile.

    Keyed externally by the identity provider subject (``auth0_id``).
    """
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=generate_id)
    auth0_id = Column(String(255), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False)
    name = Column(String(100), nullable=True)
    address_line1 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)

    def __repr__(self):
        return f"<User {self.id} - {self.email}>"


class Restaurant(Base):
    """
    A restaurant profile owned by exactly one user.

    ``menu_items`` holds ``[{"id", "name", "price"}]`` with prices in major
    currency units.
    """
    __tablename__ = "restaurants"

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)

    restaurant_name = Column(String(100), nullable=False)
    city = Column(String(100), nullable=False, index=True)
    country = Column(String(100), nullable=False)
    delivery_price = Column(Integer, nullable=False)
    estimated_delivery_time = Column(Integer, nullable=False)
    cuisines = Column(JSON, nullable=False, default=list)
    # Lowercased cuisines, one per line, for SQL substring filters
    cuisine_index = Column(Text, nullable=False, default="")
    menu_items = Column(JSON, nullable=False, default=list)
    image_url = Column(String(500), nullable=True)
    last_updated = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    user = relationship("User", lazy="selectin")

    @validates("cuisines")
    def _index_cuisines(self, key, cuisines):
        self.cuisine_index = "\n".join(c.lower() for c in cuisines or [])
        return cuisines

    def find_menu_item(self, menu_item_id: str):
        """Return the embedded menu item with exactly this id, or None."""
        for item in self.menu_items or []:
            if str(item.get("id")) == str(menu_item_id):
                return item
        return None

    def __repr__(self):
        return f"<Restaurant {self.id} - {self.restaurant_name} ({self.city})>"


class Order(Base):
    """
    A customer order.

    Created in ``placed`` by checkout; ``total_amount`` (minor units) is only
    ever filled in from the payment provider's confirmation.
    """
    __tablename__ = "orders"

    # Assigned at construction so the id can travel in checkout metadata
    id = Column(String(32), primary_key=True, default=generate_id)

    restaurant_id = Column(String(32), ForeignKey("restaurants.id"), nullable=False, index=True)
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)

    status = Column(
        Enum(OrderStatus),
        default=OrderStatus.PLACED,
        nullable=False,
        index=True
    )
    delivery_details = Column(JSON, nullable=False)
    cart_items = Column(JSON, nullable=False)
    total_amount = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    restaurant = relationship("Restaurant", lazy="selectin")
    user = relationship("User", lazy="selectin")

    def __init__(self, **kwargs):
        kwargs.setdefault("id", generate_id())
        kwargs.setdefault("status", OrderStatus.PLACED)
        kwargs.setdefault("created_at", utcnow())
        super().__init__(**kwargs)

    def __repr__(self):
        return f"<Order {self.id} - {self.status.value}>"
