"""
Database seeding script for the first accounts.

Self sign-up is disabled, so somebody has to create the first SuperAdmin.
Run this script once after the database is set up:

    SEED_SUPERADMIN_EMAIL=ops@example.com SEED_SUPERADMIN_PASSWORD=... python tracking_backend/seed_users.py
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from tracking_backend.app.core.config import settings
from tracking_backend.app.db.session import AsyncSessionLocal, engine, Base
from tracking_backend.app.models.user import User
from tracking_backend.app.models.enums import UserRole
from tracking_backend.app.core.security import get_password_hash
from sqlalchemy import select

# Register remaining tables for create_all
from tracking_backend.app.models import audit_log, location, shipment, shipment_event  # noqa: F401

DEFAULT_ACCOUNTS = [
    (
        settings.seed_superadmin_email,
        settings.seed_superadmin_password,
        "Super Admin",
        UserRole.SUPERADMIN,
    ),
    (
        settings.seed_admin_email,
        settings.seed_admin_password,
        "Operations Admin",
        UserRole.ADMIN,
    ),
]


async def seed_users():
    """
    Seed initial staff accounts.

    Creates (when missing):
    - 1 SUPERADMIN user
    - 1 ADMIN user
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting user seeding...")

        created = []
        for email, password, full_name, role in DEFAULT_ACCOUNTS:
            result = await db.execute(select(User).where(User.email == email.lower()))
            if result.scalar_one_or_none():
                print(f"ℹ️  {role.value} {email} already exists, skipping")
                continue

            db.add(User(
                email=email.lower(),
                full_name=full_name,
                hashed_password=get_password_hash(password),
                role=role,
                is_active=True
            ))
            created.append((role.value, email))

        await db.commit()

        for role, email in created:
            print(f"✅ Created {role} user ({email})")
        print("\n🎉 User seeding completed!")
        print("\nNote: further accounts are created via POST /v1/admin/users")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_users())
