"""
Seed Admin User

Creates the initial admin account for Plastic Clever Schools.
Credentials are read from the environment; nothing is hard-coded.

Usage:
    SEED_ADMIN_EMAIL=admin@example.org SEED_ADMIN_PASSWORD=... \
        python scripts/seed_admin.py
"""

import asyncio
import os
import sys

from plastic_clever.core.database import async_session_maker, engine
from plastic_clever.core.security import hash_password
from plastic_clever.models import School  # noqa: F401 - needed for relationship resolution
from plastic_clever.modules.users.models import UserRole
from plastic_clever.modules.users.repository import UserRepository


async def seed_admin() -> int:
    """Create the admin user if it doesn't exist."""
    email = os.environ.get("SEED_ADMIN_EMAIL")
    password = os.environ.get("SEED_ADMIN_PASSWORD")
    first_name = os.environ.get("SEED_ADMIN_FIRST_NAME", "Platform")
    last_name = os.environ.get("SEED_ADMIN_LAST_NAME", "Admin")

    if not email or not password:
        print("SEED_ADMIN_EMAIL and SEED_ADMIN_PASSWORD must be set")
        return 1

    async with async_session_maker() as db:
        existing_user = await UserRepository.get_by_email(db, email)
        if existing_user:
            print(f"Admin already exists: {email}")
            print(f"  ID: {existing_user.id}")
            print(f"  Role: {existing_user.role.value}")
            return 0

        admin_user = await UserRepository.create(
            db,
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            role=UserRole.ADMIN,
        )
        await db.commit()
        await db.refresh(admin_user)

        print("Admin created successfully!")
        print(f"  Email: {email}")
        print(f"  Name: {first_name} {last_name}")
        print(f"  ID: {admin_user.id}")

    await engine.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(seed_admin()))
