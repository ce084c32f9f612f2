"""
Database seeding script for initial users.

Creates one user per fleet role for development.
Run from the repository root after the database is set up:

    python -m fleetops.seed_users
"""

import asyncio

from sqlalchemy import select

from fleetops.app.db.session import AsyncSessionLocal
from fleetops.app.models.user import User
from fleetops.app.models.enums import UserRole
from fleetops.app.core.security import get_password_hash


SEED_USERS = [
    ("manager@fleetops.com", "Fleet Manager", UserRole.MANAGER, "manager123"),
    ("dispatcher@fleetops.com", "Dispatcher", UserRole.DISPATCHER, "dispatcher123"),
    ("safety@fleetops.com", "Safety Officer", UserRole.SAFETY_OFFICER, "safety123"),
    ("finance@fleetops.com", "Finance Analyst", UserRole.FINANCE_ANALYST, "finance123"),
]


async def seed_users():
    """Seed one active user for each role, skipping emails that already exist."""
    async with AsyncSessionLocal() as db:
        print("Starting user seeding...")

        created = []
        for email, name, role, password in SEED_USERS:
            result = await db.execute(select(User).where(User.email == email))
            if result.scalar_one_or_none():
                print(f"  {role.value} user {email} already exists, skipping")
                continue

            db.add(User(
                email=email,
                name=name,
                hashed_password=get_password_hash(password),
                role=role,
                is_active=True
            ))
            created.append((role, email, password))

        await db.commit()

        print(f"\nUser seeding completed ({len(created)} created)")
        for role, email, password in created:
            print(f"  - {role.value:<16} {email} / {password}")


if __name__ == "__main__":
    asyncio.run(seed_users())
