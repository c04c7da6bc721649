"""
Database seeding script for initial data.

Creates the first ADMIN login plus a sample company and a few categories.
Run this script after the database is set up but before first use.
"""

import asyncio

from sqlalchemy import select

from finance_backend.app.core.security import get_password_hash
from finance_backend.app.db.session import Database
from finance_backend.app.models.category import Category
from finance_backend.app.models.company import Company
from finance_backend.app.models.enums import UserRole
from finance_backend.app.models.finance_enums import CategoryType
from finance_backend.app.models.user import User

DEFAULT_CATEGORIES = [
    ("Transportasi", CategoryType.EXPENSE),
    ("Konsumsi", CategoryType.EXPENSE),
    ("Operasional", CategoryType.EXPENSE),
    ("Penjualan", CategoryType.INCOME),
]


async def seed(database: Database):
    """
    Seed initial data.

    Creates:
    - 1 ADMIN user
    - 1 company
    - default income and expense categories
    """
    async with database.session() as db:
        print("Starting seeding...")

        # Check if ADMIN already exists
        result = await db.execute(select(User).where(User.username == "admin"))
        if result.scalar_one_or_none():
            print("ADMIN user already exists, skipping seeding")
            return

        db.add(User(
            username="admin",
            hashed_password=get_password_hash("admin123"),
            role=UserRole.ADMIN,
            is_active=True
        ))
        print("Created ADMIN user (username: admin, password: admin123)")

        company = Company(name="PT Contoh Sejahtera")
        db.add(company)
        await db.flush()
        print(f"Created company '{company.name}' (id: {company.id})")

        for name, category_type in DEFAULT_CATEGORIES:
            db.add(Category(name=name, type=category_type))
        print(f"Created {len(DEFAULT_CATEGORIES)} shared categories")

        await db.commit()
        print("\nSeeding completed successfully!")
        print("Employees and their logins are created via POST /v1/employees")


async def main():
    database = Database.from_settings()
    try:
        await database.create_all()
        await seed(database)
    finally:
        await database.dispose()


if __name__ == "__main__":
    asyncio.run(main())
