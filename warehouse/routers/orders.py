from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status

from warehouse.core.auth import current_active_user, require_roles
from warehouse.core.deps import get_order_service
from warehouse.db.order import Order as OrderModel
from warehouse.db.users import User
from warehouse.schemas.orders import OrderCreate, OrderRead, OrderStatusUpdate
from warehouse.services import OrderLine, OrderService

router = APIRouter()


def _serialize_order(o: OrderModel) -> OrderRead:
    return OrderRead(**o.to_schema)


@router.get("/", response_model=List[OrderRead])
async def list_orders(
    service: OrderService = Depends(get_order_service),
    user: User = Depends(current_active_user),
):
    return [_serialize_order(o) for o in await service.list_orders()]


@router.get("/{order_id}", response_model=OrderRead)
async def get_order(
    order_id: UUID,
    service: OrderService = Depends(get_order_service),
    user: User = Depends(current_active_user),
):
    return _serialize_order(await service.get_order(order_id))


@router.post("/", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreate,
    service: OrderService = Depends(get_order_service),
    user: User = Depends(require_roles("admin", "manager")),
):
    lines = [OrderLine(product_id=it.product_id, quantity=it.quantity, price=it.price) for it in payload.items]
    return _serialize_order(await service.create_order(payload.customer, lines))


@router.put("/{order_id}/status", response_model=OrderRead)
async def update_order_status(
    order_id: UUID,
    payload: OrderStatusUpdate,
    service: OrderService = Depends(get_order_service),
    user: User = Depends(require_roles("admin", "manager")),
):
    return _serialize_order(await service.update_order_status(order_id, payload.status))
