"""
Restaurant Store

Owner-side profile management and the public city search.

Search matches user input literally: city, cuisine and free-text filters are
case-insensitive substring matches, never regular expressions.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from foodorder.core.exceptions import Conflict, NotFound
from foodorder.models import Restaurant, generate_id, utcnow
from foodorder.schemas import MenuItem, RestaurantRequest

logger = logging.getLogger(__name__)

PAGE_SIZE = 10

SORT_COLUMNS = {
    "lastUpdated": Restaurant.last_updated,
    "deliveryPrice": Restaurant.delivery_price,
    "estimatedDeliveryTime": Restaurant.estimated_delivery_time,
}
DEFAULT_SORT = "lastUpdated"


@dataclass
class SearchResult:
    """One page of search hits plus pagination counters."""
    restaurants: list[Restaurant] = field(default_factory=list)
    total: int = 0
    page: int = 1
    city_matched: bool = True

    @property
    def pages(self) -> int:
        return math.ceil(self.total / PAGE_SIZE)


# =============================================================================
# OWNER OPERATIONS
# =============================================================================

def _menu_documents(menu_items: list[MenuItem]) -> list[dict]:
    """Serialize menu items, assigning ids to new entries."""
    return [
        {"id": item.id or generate_id(), "name": item.name, "price": item.price}
        for item in menu_items
    ]


async def find_owned_restaurant(db: AsyncSession, owner_id: str) -> Optional[Restaurant]:
    result = await db.execute(select(Restaurant).where(Restaurant.user_id == owner_id))
    return result.scalars().first()


async def get_my_restaurant(db: AsyncSession, owner_id: str) -> Restaurant:
    restaurant = await find_owned_restaurant(db, owner_id)
    if restaurant is None:
        raise NotFound("restaurant not found")
    return restaurant


async def create_my_restaurant(
    db: AsyncSession,
    owner_id: str,
    data: RestaurantRequest,
) -> Restaurant:
    """
    Create the owner's restaurant.

    Raises:
        Conflict: the owner already has one
    """
    if await find_owned_restaurant(db, owner_id) is not None:
        raise Conflict("User restaurant already exists")

    restaurant = Restaurant(
        user_id=owner_id,
        restaurant_name=data.restaurant_name,
        city=data.city,
        country=data.country,
        delivery_price=data.delivery_price,
        estimated_delivery_time=data.estimated_delivery_time,
        cuisines=list(data.cuisines),
        menu_items=_menu_documents(data.menu_items),
        image_url=data.image_url,
        last_updated=utcnow(),
    )
    db.add(restaurant)
    await db.commit()

    logger.info(f"Restaurant {restaurant.id} created for user {owner_id}")
    return restaurant


async def update_my_restaurant(
    db: AsyncSession,
    owner_id: str,
    data: RestaurantRequest,
) -> Restaurant:
    restaurant = await get_my_restaurant(db, owner_id)

    restaurant.restaurant_name = data.restaurant_name
    restaurant.city = data.city
    restaurant.country = data.country
    restaurant.delivery_price = data.delivery_price
    restaurant.estimated_delivery_time = data.estimated_delivery_time
    restaurant.cuisines = list(data.cuisines)
    restaurant.menu_items = _menu_documents(data.menu_items)
    restaurant.last_updated = utcnow()

    # Keep the current image unless a new one is supplied
    if data.image_url:
        restaurant.image_url = data.image_url

    await db.commit()
    return restaurant


# =============================================================================
# PUBLIC OPERATIONS
# =============================================================================

async def get_restaurant(db: AsyncSession, restaurant_id: str) -> Restaurant:
    restaurant = await db.get(Restaurant, restaurant_id)
    if restaurant is None:
        raise NotFound("restaurant not found")
    return restaurant


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _contains(column, needle: str):
    """Case-insensitive literal substring match."""
    return column.ilike(f"%{_escape_like(needle)}%", escape="\\")


def search_filters(city: str, search_query: str = "", cuisines: Optional[list[str]] = None) -> list:
    """
    WHERE clauses for a search.

    Every selected cuisine must match one of the restaurant's cuisines; the
    free-text query must match the name or any cuisine.
    """
    filters = [_contains(Restaurant.city, city)]
    for wanted in cuisines or []:
        filters.append(_contains(Restaurant.cuisine_index, wanted.lower()))
    if search_query:
        filters.append(
            or_(
                _contains(Restaurant.restaurant_name, search_query),
                _contains(Restaurant.cuisine_index, search_query.lower()),
            )
        )
    return filters


async def search_restaurants(
    db: AsyncSession,
    city: str,
    search_query: str = "",
    selected_cuisines: str = "",
    sort_option: str = DEFAULT_SORT,
    page: int = 1,
) -> SearchResult:
    """
    Search restaurants in ``city``.

    Args:
        city: Case-insensitive substring of the restaurant city
        search_query: Matched against name and cuisines
        selected_cuisines: Comma separated cuisines, all required
        sort_option: One of SORT_COLUMNS; unknown values use lastUpdated
        page: 1-based page number (PAGE_SIZE per page)
    """
    city_count = await db.scalar(
        select(func.count(Restaurant.id)).where(*search_filters(city))
    )
    if not city_count:
        return SearchResult(city_matched=False)

    cuisines = [c.strip() for c in selected_cuisines.split(",") if c.strip()]
    filters = search_filters(city, search_query.strip(), cuisines)

    total = await db.scalar(select(func.count(Restaurant.id)).where(*filters))

    sort_column = SORT_COLUMNS.get(sort_option, SORT_COLUMNS[DEFAULT_SORT])
    result = await db.execute(
        select(Restaurant)
        .where(*filters)
        .order_by(sort_column.asc(), Restaurant.id.asc())
        .offset((page - 1) * PAGE_SIZE)
        .limit(PAGE_SIZE)
    )

    return SearchResult(
        restaurants=list(result.scalars().all()),
        total=total or 0,
        page=page,
    )
