from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from warehouse.core.auth import current_active_user, require_roles
from warehouse.core.deps import get_warehouse_service
from warehouse.db.users import User
from warehouse.schemas.inventory import (
    MovementType,
    ReceiptCreate,
    ReserveCreate,
    StockItemRead,
    StockMovementRead,
    WriteOffCreate,
)
from warehouse.services import WarehouseService

router = APIRouter()


@router.post("/receipt", response_model=StockMovementRead, status_code=status.HTTP_201_CREATED)
async def receipt(
    payload: ReceiptCreate,
    service: WarehouseService = Depends(get_warehouse_service),
    user: User = Depends(require_roles("admin", "manager", "storekeeper")),
):
    movement = await service.receipt(
        payload.product_id,
        payload.supplier_id,
        payload.quantity,
        price=payload.price,
        expiry_date=payload.expiry_date,
    )
    return StockMovementRead(**movement.to_schema)


@router.post("/write-off", response_model=StockMovementRead, status_code=status.HTTP_201_CREATED)
async def write_off(
    payload: WriteOffCreate,
    service: WarehouseService = Depends(get_warehouse_service),
    user: User = Depends(require_roles("admin", "manager", "storekeeper")),
):
    movement = await service.write_off(payload.product_id, payload.quantity)
    return StockMovementRead(**movement.to_schema)


@router.post("/reserve", response_model=StockMovementRead, status_code=status.HTTP_201_CREATED)
async def reserve(
    payload: ReserveCreate,
    service: WarehouseService = Depends(get_warehouse_service),
    user: User = Depends(require_roles("admin", "manager")),
):
    movement = await service.reserve(payload.product_id, payload.order_id, payload.quantity)
    return StockMovementRead(**movement.to_schema)


@router.get("/inventory", response_model=List[StockItemRead])
async def get_inventory(
    service: WarehouseService = Depends(get_warehouse_service),
    user: User = Depends(current_active_user),
):
    return [StockItemRead(product_id=it.product_id, quantity=it.quantity) for it in await service.inventory()]


@router.get("/inventory/{product_id}", response_model=StockItemRead)
async def get_inventory_for_product(
    product_id: UUID,
    service: WarehouseService = Depends(get_warehouse_service),
    user: User = Depends(current_active_user),
):
    return StockItemRead(product_id=product_id, quantity=await service.inventory_of(product_id))


@router.get("/movements", response_model=List[StockMovementRead])
async def list_movements(
    product_id: Optional[UUID] = None,
    order_id: Optional[UUID] = None,
    movement_type: Optional[MovementType] = Query(None, alias="type"),
    service: WarehouseService = Depends(get_warehouse_service),
    user: User = Depends(current_active_user),
):
    movements = await service.movements(product_id=product_id, order_id=order_id, type=movement_type)
    return [StockMovementRead(**m.to_schema) for m in movements]
