from datetime import datetime
from typing import List, Literal
from uuid import UUID

from pydantic import BaseModel, field_validator

OrderStatus = Literal["new", "reserved", "completed", "canceled"]


class OrderItemCreate(BaseModel):
    product_id: UUID
    quantity: float
    price: float = 0.0


class OrderCreate(BaseModel):
    customer: str
    items: List[OrderItemCreate]

    @field_validator("customer")
    @classmethod
    def _strip(cls, v: str) -> str:
        return (v or "").strip()


class OrderItemRead(BaseModel):
    product_id: UUID
    quantity: float
    price: float


class StatusEntryRead(BaseModel):
    status: OrderStatus
    changed_at: datetime


class OrderRead(BaseModel):
    id: UUID
    customer: str
    status: OrderStatus
    items: List[OrderItemRead]
    created_at: datetime
    updated_at: datetime
    status_history: List[StatusEntryRead]


class OrderStatusUpdate(BaseModel):
    status: str
