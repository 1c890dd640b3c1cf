"""User profile store."""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from foodorder.core.exceptions import NotFound
from foodorder.models import User
from foodorder.schemas import UserCreate, UserUpdate

logger = logging.getLogger(__name__)


async def get_user_by_auth0_id(db: AsyncSession, auth0_id: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.auth0_id == auth0_id))
    return result.scalars().first()


async def get_user(db: AsyncSession, user_id: str) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


async def create_user(db: AsyncSession, data: UserCreate) -> tuple[User, bool]:
    """
    Register a user on first login.

    Returns:
        (user, created) - ``created`` is False when the identity subject
        was already registered.
    """
    existing = await get_user_by_auth0_id(db, data.auth0_id)
    if existing is not None:
        return existing, False

    user = User(auth0_id=data.auth0_id, email=data.email, name=data.name)
    db.add(user)
    await db.commit()

    logger.info(f"User {user.id} registered")
    return user, True


async def update_user(db: AsyncSession, user_id: str, data: UserUpdate) -> User:
    user = await get_user(db, user_id)

    user.name = data.name
    user.address_line1 = data.address_line1
    user.city = data.city
    user.country = data.country

    await db.commit()
    return user
