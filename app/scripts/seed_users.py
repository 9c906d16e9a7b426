"""Seed the default administrator and student accounts.

Accounts whose email already exists are left untouched, so the script can be
run more than once.

Usage:
    python -m app.scripts.seed_users
"""

import asyncio

from app.database import AsyncSessionLocal
from app.models.enums import UserRole
from app.schemas.user_schema import UserCreate
from app.services.user_service import create_user, get_user_by_email
from app.utils.logger import configure_logger, get_logger

logger = get_logger(__name__)

DEFAULT_USERS = [
    UserCreate(
        name="Kim Gela Mondido",
        email="kim@admin.com",
        password="12345678",
        role=UserRole.ADMIN,
    ),
    UserCreate(
        name="Kim Mondido",
        email="kim@student.com",
        password="123456789",
        role=UserRole.STUDENT,
    ),
]


async def seed_users(users: list[UserCreate] = DEFAULT_USERS) -> int:
    """Create any missing default accounts and return how many were created."""
    created = 0
    async with AsyncSessionLocal() as db:
        for user in users:
            if await get_user_by_email(db, user.email) is not None:
                logger.info("User already exists, skipping", email=user.email)
                continue
            await create_user(db, user)
            created += 1
    logger.info("Seeding finished", created=created)
    return created


if __name__ == "__main__":
    configure_logger()
    asyncio.run(seed_users())
