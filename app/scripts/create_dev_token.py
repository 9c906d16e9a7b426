"""Print a bearer token for a local account.

Usage:
    python -m app.scripts.create_dev_token kim@admin.com
"""

import asyncio
import sys

from app.database import AsyncSessionLocal
from app.services.auth import create_access_token
from app.services.user_service import get_user_by_email


async def dev_token(email: str) -> str:
    async with AsyncSessionLocal() as db:
        user = await get_user_by_email(db, email)
    if user is None:
        raise SystemExit(f"No user with email {email}; run app.scripts.seed_users first")
    return create_access_token(user)


if __name__ == "__main__":
    email = sys.argv[1] if len(sys.argv) > 1 else "kim@admin.com"
    token = asyncio.run(dev_token(email))
    print(f"Authorization: Bearer {token}")
