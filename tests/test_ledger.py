from __future__ import annotations

import uuid

import pytest

from warehouse.core.exceptions import ValidationError
from warehouse.db.inventory import MOVEMENT_RECEIPT, MOVEMENT_RESERVE, MOVEMENT_WRITE_OFF
from warehouse.services import InventoryQuery, StockLedger

ledger = StockLedger()
query = InventoryQuery()


@pytest.mark.asyncio
async def test_inventory_is_signed_sum_of_movements(session_maker, product, other_product):
    async with session_maker() as s:
        async with s.begin():
            await ledger.append(s, type=MOVEMENT_RECEIPT, product_id=product.id, quantity=30)
            await ledger.append(s, type=MOVEMENT_RECEIPT, product_id=product.id, quantity=12.5)
            await ledger.append(s, type=MOVEMENT_WRITE_OFF, product_id=product.id, quantity=2.5)
            await ledger.append(s, type=MOVEMENT_RESERVE, product_id=product.id, quantity=10)
            await ledger.append(s, type=MOVEMENT_RECEIPT, product_id=other_product.id, quantity=7)

    async with session_maker() as s:
        assert await query.inventory_of(s, product.id) == pytest.approx(30 + 12.5 - 2.5 - 10)
        assert await query.inventory_of(s, other_product.id) == pytest.approx(7)
        totals = await query.all_inventory(s)

    assert totals == {product.id: pytest.approx(30.0), other_product.id: pytest.approx(7.0)}


@pytest.mark.asyncio
async def test_inventory_of_product_without_movements_is_zero(session_maker, product):
    async with session_maker() as s:
        assert await query.inventory_of(s, product.id) == 0.0
        assert await query.inventory_of(s, uuid.uuid4()) == 0.0
        assert await query.all_inventory(s) == {}


@pytest.mark.asyncio
async def test_append_assigns_id_and_timestamp(session_maker, product):
    async with session_maker() as s:
        async with s.begin():
            m = await ledger.append(s, type=MOVEMENT_RECEIPT, product_id=product.id, quantity=1, price=3.5)

    assert m.id is not None
    assert m.created_at is not None
    assert m.quantity == 1.0
    assert m.price == 3.5


@pytest.mark.asyncio
@pytest.mark.parametrize("quantity", [0, -1, None])
async def test_append_rejects_non_positive_quantity(session_maker, product, quantity):
    async with session_maker() as s:
        with pytest.raises(ValidationError):
            await ledger.append(s, type=MOVEMENT_RECEIPT, product_id=product.id, quantity=quantity)


@pytest.mark.asyncio
async def test_append_rejects_missing_product_and_unknown_type(session_maker, product):
    async with session_maker() as s:
        with pytest.raises(ValidationError):
            await ledger.append(s, type=MOVEMENT_RECEIPT, product_id=None, quantity=1)
        with pytest.raises(ValidationError):
            await ledger.append(s, type="transfer", product_id=product.id, quantity=1)


@pytest.mark.asyncio
async def test_movements_filtering(session_maker, product, other_product):
    async with session_maker() as s:
        async with s.begin():
            await ledger.append(s, type=MOVEMENT_RECEIPT, product_id=product.id, quantity=5)
            await ledger.append(s, type=MOVEMENT_WRITE_OFF, product_id=product.id, quantity=1)
            await ledger.append(s, type=MOVEMENT_RECEIPT, product_id=other_product.id, quantity=2)

    async with session_maker() as s:
        assert len(await ledger.movements(s)) == 3
        assert len(await ledger.movements(s, product_id=product.id)) == 2
        receipts = await ledger.movements(s, type=MOVEMENT_RECEIPT)
        assert {m.product_id for m in receipts} == {product.id, other_product.id}
