from __future__ import annotations

import asyncio
from dataclasses import replace

import pytest
from sqlalchemy import func, select, text

from warehouse.core.exceptions import BackendError, Conflict, NotFound, OperationTimeout
from warehouse.db.category import Category
from warehouse.db.product import Product
from warehouse.services import ServiceBase


@pytest.fixture
def service(session_maker, settings):
    return ServiceBase(session_maker, replace(settings, db_operation_timeout=0.2))


async def _categories(session_maker) -> int:
    async with session_maker() as s:
        return (await s.execute(select(func.count()).select_from(Category))).scalar_one()


@pytest.mark.asyncio
async def test_commits_on_success(service, session_maker):
    async def _add(session, name):
        session.add(Category(name=name))
        return name

    assert await service._run(_add, "Tools") == "Tools"
    assert await _categories(session_maker) == 1


@pytest.mark.asyncio
async def test_rolls_back_on_error(service, session_maker):
    async def _add_then_fail(session):
        session.add(Category(name="Tools"))
        await session.flush()
        raise NotFound("gone")

    with pytest.raises(NotFound):
        await service._run(_add_then_fail)
    assert await _categories(session_maker) == 0


@pytest.mark.asyncio
async def test_deadline_raises_timeout(service, session_maker):
    async def _slow(session):
        session.add(Category(name="Tools"))
        await session.flush()
        await asyncio.sleep(5)

    with pytest.raises(OperationTimeout) as exc:
        await service._run(_slow)
    assert exc.value.status_code == 504
    assert isinstance(exc.value, BackendError)
    assert await _categories(session_maker) == 0


@pytest.mark.asyncio
async def test_integrity_error_maps_to_conflict(service, product):
    async def _duplicate(session):
        session.add(Product(sku=product.sku, name="Twin", category_id=product.category_id))
        await session.flush()

    with pytest.raises(Conflict):
        await service._run(_duplicate)


@pytest.mark.asyncio
async def test_driver_error_maps_to_backend_error(service):
    async def _broken(session):
        await session.execute(text("SELECT * FROM no_such_table"))

    with pytest.raises(BackendError) as exc:
        await service._run(_broken)
    assert exc.value.status_code == 500
