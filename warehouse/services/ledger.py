"""
Stock ledger and the inventory view derived from it.

Movements are immutable facts. Quantity is stored positive and signed at read
time: receipt +qty, write_off -qty, reserve -qty. Corrections are made by
appending a compensating movement, never by editing one.
"""

import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from warehouse.core.exceptions import ValidationError
from warehouse.db.database import utcnow
from warehouse.db.inventory import (
    MOVEMENT_RECEIPT,
    MOVEMENT_RESERVE,
    MOVEMENT_TYPES,
    MOVEMENT_WRITE_OFF,
    StockMovement,
)

logger = logging.getLogger(__name__)

SIGNED_QUANTITY = case(
    (StockMovement.type == MOVEMENT_RECEIPT, StockMovement.quantity),
    (StockMovement.type == MOVEMENT_WRITE_OFF, -StockMovement.quantity),
    (StockMovement.type == MOVEMENT_RESERVE, -StockMovement.quantity),
    else_=0.0,
)


class StockLedger:
    """Append-only store of movements. Has no update or delete."""

    async def append(
        self,
        session: AsyncSession,
        *,
        type: str,
        product_id: Optional[UUID],
        quantity: float,
        supplier_id: Optional[UUID] = None,
        order_id: Optional[UUID] = None,
        price: Optional[float] = None,
        expiry_date: Optional[datetime] = None,
        movement_id: Optional[UUID] = None,
        created_at: Optional[datetime] = None,
    ) -> StockMovement:
        if not product_id:
            raise ValidationError("product_id is required")
        if type not in MOVEMENT_TYPES:
            raise ValidationError(f"unknown movement type: {type}", type=type)
        if quantity is None or quantity <= 0:
            raise ValidationError("quantity must be > 0", quantity=quantity)

        movement = StockMovement(
            id=movement_id or uuid.uuid4(),
            type=type,
            product_id=product_id,
            supplier_id=supplier_id,
            order_id=order_id,
            quantity=float(quantity),
            price=price,
            expiry_date=expiry_date,
            created_at=created_at or utcnow(),
        )
        session.add(movement)
        await session.flush()

        logger.info(
            "ledger append %s product=%s qty=%s order=%s id=%s",
            type, product_id, quantity, order_id, movement.id,
        )
        return movement

    async def movements(
        self,
        session: AsyncSession,
        *,
        product_id: Optional[UUID] = None,
        order_id: Optional[UUID] = None,
        type: Optional[str] = None,
    ) -> List[StockMovement]:
        stmt = select(StockMovement)
        if product_id:
            stmt = stmt.where(StockMovement.product_id == product_id)
        if order_id:
            stmt = stmt.where(StockMovement.order_id == order_id)
        if type:
            stmt = stmt.where(StockMovement.type == type)
        res = await session.execute(stmt.order_by(StockMovement.created_at.asc()))
        return list(res.scalars().all())


class InventoryQuery:
    """Read-only aggregation over the ledger."""

    async def inventory_of(self, session: AsyncSession, product_id: UUID) -> float:
        stmt = select(func.coalesce(func.sum(SIGNED_QUANTITY), 0.0)).where(
            StockMovement.product_id == product_id
        )
        res = await session.execute(stmt)
        return float(res.scalar_one() or 0.0)

    async def all_inventory(self, session: AsyncSession) -> Dict[UUID, float]:
        stmt = (
            select(StockMovement.product_id, func.sum(SIGNED_QUANTITY))
            .group_by(StockMovement.product_id)
            .order_by(StockMovement.product_id)
        )
        res = await session.execute(stmt)
        return {product_id: float(qty or 0.0) for product_id, qty in res.all()}
