from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel

Unit = Literal["pcs", "kg", "l", "box"]


class ProductRead(BaseModel):
    id: UUID
    sku: str
    name: str
    description: Optional[str] = None
    category_id: UUID
    supplier_id: Optional[UUID] = None
    unit: Unit
    created_at: datetime
    updated_at: datetime


class ProductCreate(BaseModel):
    sku: str
    name: str
    description: Optional[str] = None
    category_id: UUID
    supplier_id: Optional[UUID] = None
    unit: Unit = "pcs"


class ProductUpdate(ProductCreate):
    pass
