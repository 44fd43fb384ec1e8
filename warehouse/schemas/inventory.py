from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel

MovementType = Literal["receipt", "write_off", "reserve"]


class ReceiptCreate(BaseModel):
    product_id: UUID
    supplier_id: Optional[UUID] = None
    quantity: float
    price: Optional[float] = None
    expiry_date: Optional[datetime] = None


class WriteOffCreate(BaseModel):
    product_id: UUID
    quantity: float


class ReserveCreate(BaseModel):
    product_id: UUID
    order_id: UUID
    quantity: float


class StockMovementRead(BaseModel):
    id: UUID
    type: MovementType
    product_id: UUID
    supplier_id: Optional[UUID] = None
    order_id: Optional[UUID] = None
    quantity: float
    price: Optional[float] = None
    expiry_date: Optional[datetime] = None
    created_at: datetime


class StockItemRead(BaseModel):
    product_id: UUID
    quantity: float
