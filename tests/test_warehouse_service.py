from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from warehouse.core.exceptions import (
    BadStatusTransition,
    InsufficientStock,
    InvalidOperation,
    NotFound,
    ValidationError,
)
from warehouse.db.inventory import MOVEMENT_RECEIPT, MOVEMENT_RESERVE, MOVEMENT_WRITE_OFF
from warehouse.services import OrderLine


@pytest.mark.asyncio
async def test_receipt_write_off_scenario(warehouse_service, product, supplier):
    m = await warehouse_service.receipt(product.id, supplier.id, 100, price=2.0)
    assert m.type == MOVEMENT_RECEIPT
    assert m.supplier_id == supplier.id
    assert await warehouse_service.inventory_of(product.id) == 100

    w = await warehouse_service.write_off(product.id, 40)
    assert w.type == MOVEMENT_WRITE_OFF
    assert await warehouse_service.inventory_of(product.id) == 60

    with pytest.raises(InsufficientStock) as exc:
        await warehouse_service.write_off(product.id, 100)
    assert exc.value.available == 60
    assert exc.value.requested == 100

    assert await warehouse_service.inventory_of(product.id) == 60
    assert len(await warehouse_service.movements(product_id=product.id)) == 2


@pytest.mark.asyncio
async def test_write_off_exact_stock_is_allowed(warehouse_service, product):
    await warehouse_service.receipt(product.id, None, 5)
    await warehouse_service.write_off(product.id, 5)
    assert await warehouse_service.inventory_of(product.id) == 0


@pytest.mark.asyncio
async def test_receipt_keeps_price_and_expiry(warehouse_service, product):
    expiry = datetime.now(timezone.utc) + timedelta(days=30)
    m = await warehouse_service.receipt(product.id, None, 3, price=9.99, expiry_date=expiry)
    assert m.price == pytest.approx(9.99)
    assert m.expiry_date is not None


@pytest.mark.asyncio
async def test_receipt_for_unknown_product_is_rejected(warehouse_service, product):
    with pytest.raises(NotFound):
        await warehouse_service.receipt(uuid.uuid4(), None, 10)
    assert await warehouse_service.inventory() == []


@pytest.mark.asyncio
async def test_receipt_for_unknown_supplier_is_rejected(warehouse_service, product):
    with pytest.raises(NotFound):
        await warehouse_service.receipt(product.id, uuid.uuid4(), 10)


@pytest.mark.asyncio
@pytest.mark.parametrize("quantity", [0, -5])
async def test_operations_reject_non_positive_quantity(warehouse_service, product, quantity):
    with pytest.raises(InvalidOperation):
        await warehouse_service.receipt(product.id, None, quantity)
    with pytest.raises(InvalidOperation):
        await warehouse_service.write_off(product.id, quantity)
    with pytest.raises(InvalidOperation):
        await warehouse_service.reserve(product.id, uuid.uuid4(), quantity)


@pytest.mark.asyncio
async def test_invalid_operation_is_a_validation_error(warehouse_service):
    with pytest.raises(ValidationError):
        await warehouse_service.write_off(None, 1)


@pytest.mark.asyncio
async def test_reserve_against_order(warehouse_service, order_service, product):
    await warehouse_service.receipt(product.id, None, 50)
    order = await order_service.create_order("Acme", [OrderLine(product.id, 10, 5.0)])

    m = await warehouse_service.reserve(product.id, order.id, 15)
    assert m.type == MOVEMENT_RESERVE
    assert m.order_id == order.id
    assert await warehouse_service.inventory_of(product.id) == 25

    with pytest.raises(InsufficientStock):
        await warehouse_service.reserve(product.id, order.id, 26)
    assert await warehouse_service.inventory_of(product.id) == 25
    assert len(await warehouse_service.movements(order_id=order.id)) == 2


@pytest.mark.asyncio
async def test_reserve_requires_existing_order(warehouse_service, product):
    await warehouse_service.receipt(product.id, None, 50)
    with pytest.raises(NotFound):
        await warehouse_service.reserve(product.id, uuid.uuid4(), 1)
    with pytest.raises(InvalidOperation):
        await warehouse_service.reserve(product.id, None, 1)


@pytest.mark.asyncio
async def test_write_off_for_unknown_product(warehouse_service):
    with pytest.raises(NotFound):
        await warehouse_service.write_off(uuid.uuid4(), 1)


@pytest.mark.asyncio
async def test_inventory_lists_every_product_with_movements(warehouse_service, product, other_product):
    await warehouse_service.receipt(product.id, None, 10)
    await warehouse_service.receipt(other_product.id, None, 4)
    await warehouse_service.write_off(other_product.id, 1.5)

    items = {it.product_id: it.quantity for it in await warehouse_service.inventory()}
    assert items == {product.id: 10.0, other_product.id: 2.5}


@pytest.mark.asyncio
async def test_concurrent_write_offs_cannot_overdraw(warehouse_service, product):
    await warehouse_service.receipt(product.id, None, 100)

    results = await asyncio.gather(
        warehouse_service.write_off(product.id, 60),
        warehouse_service.write_off(product.id, 60),
        return_exceptions=True,
    )

    failures = [r for r in results if isinstance(r, Exception)]
    assert len(failures) == 1
    assert isinstance(failures[0], InsufficientStock)
    assert await warehouse_service.inventory_of(product.id) == 40


@pytest.mark.asyncio
async def test_concurrent_status_changes_cannot_leave_a_terminal_status(warehouse_service, order_service, product):
    await warehouse_service.receipt(product.id, None, 10)
    order = await order_service.create_order("Acme", [OrderLine(product.id, 1)])

    results = await asyncio.gather(
        order_service.update_order_status(order.id, "completed"),
        order_service.update_order_status(order.id, "canceled"),
        return_exceptions=True,
    )

    failures = [r for r in results if isinstance(r, Exception)]
    assert len(failures) == 1
    assert isinstance(failures[0], BadStatusTransition)

    final = await order_service.get_order(order.id)
    assert [h.status for h in final.status_history] == ["new", final.status]
    assert final.status in ("completed", "canceled")
