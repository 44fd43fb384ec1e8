"""
Seed demo data (admin user, a category, a supplier, products and opening stock).

Run:
  python -m warehouse.scripts.seed_demo_data
"""

from __future__ import annotations

import asyncio
import logging
import os

from fastapi_users.password import PasswordHelper
from sqlalchemy import select

from warehouse.core.config import Settings
from warehouse.db.category import Category
from warehouse.db.database import create_db_and_tables, create_engine, create_session_maker
from warehouse.db.product import Product
from warehouse.db.supplier import Supplier
from warehouse.db.users import ROLE_ADMIN, User
from warehouse.services import WarehouseService

logger = logging.getLogger(__name__)

password_helper = PasswordHelper()

DEMO_PRODUCTS = [
    # sku, name, unit, opening quantity, purchase price
    ("BOLT-M8", "Bolt M8x40", "pcs", 500, 0.12),
    ("OIL-5L", "Machine oil 5L", "l", 40, 18.5),
]


async def get_or_create_user(session, email: str, password: str, role: str) -> User:
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user:
        return user

    user = User(
        email=email,
        hashed_password=password_helper.hash(password),
        role=role,
        is_active=True,
        is_superuser=role == ROLE_ADMIN,
        is_verified=True,
    )
    session.add(user)
    await session.flush()
    return user


async def get_or_create(session, model, **fields):
    result = await session.execute(select(model).filter_by(**fields))
    obj = result.scalars().first()
    if obj:
        return obj, False
    obj = model(**fields)
    session.add(obj)
    await session.flush()
    return obj, True


async def seed(settings: Settings) -> None:
    engine = create_engine(settings)
    session_maker = create_session_maker(engine)
    await create_db_and_tables(engine)

    try:
        async with session_maker() as db:
            await get_or_create_user(
                db,
                os.getenv("SEED_ADMIN_EMAIL", "admin@example.com"),
                os.getenv("SEED_ADMIN_PASSWORD", "admin-password"),
                ROLE_ADMIN,
            )
            category, _ = await get_or_create(db, Category, name="Consumables")
            supplier, _ = await get_or_create(db, Supplier, name="Acme Supply")

            opening = []
            for sku, name, unit, qty, price in DEMO_PRODUCTS:
                product, _ = await get_or_create(
                    db, Product, sku=sku, name=name, unit=unit, category_id=category.id, supplier_id=supplier.id
                )
                opening.append((product.id, qty, price))
            await db.commit()

        # Opening stock goes through the ledger like any other receipt. Products that
        # already have movements keep them, so a rerun only fills the gaps.
        warehouse = WarehouseService(session_maker, settings)
        stocked = 0
        for product_id, qty, price in opening:
            if await warehouse.movements(product_id=product_id):
                continue
            await warehouse.receipt(product_id, supplier.id, qty, price=price)
            stocked += 1

        logger.info("Opening stock written for %d product(s)", stocked)
    finally:
        await engine.dispose()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed(Settings.from_env()))


if __name__ == "__main__":
    main()
