"""Public restaurant endpoints: detail and city search."""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from foodorder.database import get_db
from foodorder.schemas import (
    ErrorResponse,
    Pagination,
    RestaurantResponse,
    RestaurantSearchResponse,
)
from foodorder.services import restaurants

router = APIRouter(prefix="/api/restaurant", tags=["Restaurants"])


@router.get(
    "/search/{city}",
    response_model=RestaurantSearchResponse,
    responses={404: {"model": RestaurantSearchResponse}},
)
async def search_restaurants(
    city: str,
    search_query: str = Query("", alias="searchQuery"),
    selected_cuisines: str = Query("", alias="selectedCuisines"),
    sort_option: str = Query(restaurants.DEFAULT_SORT, alias="sortOption"),
    page: int = Query(1, ge=1),
    db: AsyncSession = Depends(get_db),
):
    result = await restaurants.search_restaurants(
        db,
        city,
        search_query=search_query,
        selected_cuisines=selected_cuisines,
        sort_option=sort_option,
        page=page,
    )

    if not result.city_matched:
        empty = RestaurantSearchResponse(
            data=[], pagination=Pagination(total=0, page=1, pages=1)
        )
        return JSONResponse(status_code=404, content=empty.model_dump(mode="json"))

    return RestaurantSearchResponse(
        data=[RestaurantResponse.model_validate(r) for r in result.restaurants],
        pagination=Pagination(total=result.total, page=result.page, pages=result.pages),
    )


@router.get(
    "/{restaurant_id}",
    response_model=RestaurantResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_restaurant(
    restaurant_id: str,
    db: AsyncSession = Depends(get_db),
) -> RestaurantResponse:
    restaurant = await restaurants.get_restaurant(db, restaurant_id)
    return RestaurantResponse.model_validate(restaurant)
