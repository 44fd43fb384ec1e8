from __future__ import annotations

import pytest
from sqlalchemy import func, select

from warehouse.core.exceptions import BackendError
from warehouse.db.database import create_engine, create_session_maker
from warehouse.db.product import Product
from warehouse.db.users import User
from warehouse.scripts.seed_demo_data import DEMO_PRODUCTS, seed
from warehouse.services import WarehouseService


@pytest.mark.asyncio
async def test_seed_is_idempotent(settings, monkeypatch):
    monkeypatch.setenv("SEED_ADMIN_EMAIL", "root@example.com")

    await seed(settings)
    await seed(settings)

    engine = create_engine(settings)
    session_maker = create_session_maker(engine)
    try:
        async with session_maker() as s:
            admin = (await s.execute(select(User).where(User.email == "root@example.com"))).scalar_one()
            assert admin.role == "admin"
            assert admin.is_superuser
            assert (await s.execute(select(func.count()).select_from(Product))).scalar_one() == len(DEMO_PRODUCTS)
            products = {p.sku: p.id for p in (await s.execute(select(Product))).scalars()}

        warehouse = WarehouseService(session_maker, settings)
        for sku, _name, _unit, qty, _price in DEMO_PRODUCTS:
            assert await warehouse.inventory_of(products[sku]) == qty
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_seed_rerun_stocks_products_left_without_receipts(settings, monkeypatch):
    receipt = WarehouseService.receipt
    calls = []

    async def failing_second_receipt(self, product_id, *args, **kwargs):
        calls.append(product_id)
        if len(calls) == 2:
            raise BackendError(operation="receipt")
        return await receipt(self, product_id, *args, **kwargs)

    monkeypatch.setattr(WarehouseService, "receipt", failing_second_receipt)
    with pytest.raises(BackendError):
        await seed(settings)

    monkeypatch.setattr(WarehouseService, "receipt", receipt)
    await seed(settings)

    engine = create_engine(settings)
    session_maker = create_session_maker(engine)
    try:
        async with session_maker() as s:
            products = {p.sku: p.id for p in (await s.execute(select(Product))).scalars()}

        warehouse = WarehouseService(session_maker, settings)
        for sku, _name, _unit, qty, _price in DEMO_PRODUCTS:
            assert await warehouse.inventory_of(products[sku]) == qty
            assert len(await warehouse.movements(product_id=products[sku])) == 1
    finally:
        await engine.dispose()
