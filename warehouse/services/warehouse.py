"""
Warehouse operations: receipts, write-offs, reservations and the inventory view.

Write-offs and reservations lock the product row and check stock inside the
same transaction as the ledger append, so concurrent callers for one product
cannot both pass the check and overdraw it.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from warehouse.core.exceptions import InsufficientStock, InvalidOperation, NotFound
from warehouse.db.inventory import MOVEMENT_RECEIPT, MOVEMENT_RESERVE, MOVEMENT_WRITE_OFF, StockMovement
from warehouse.db.order import Order
from warehouse.db.supplier import Supplier

from .base import ServiceBase
from .ledger import InventoryQuery, StockLedger
from .products import ProductStore, SqlProductStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockItem:
    product_id: UUID
    quantity: float


class WarehouseService(ServiceBase):
    def __init__(
        self,
        session_maker,
        settings,
        products: Optional[ProductStore] = None,
        ledger: Optional[StockLedger] = None,
        inventory_query: Optional[InventoryQuery] = None,
    ):
        super().__init__(session_maker, settings)
        self.products = products or SqlProductStore()
        self.ledger = ledger or StockLedger()
        self.inventory_query = inventory_query or InventoryQuery()

    async def ensure_available(self, session: AsyncSession, product_id: UUID, quantity: float) -> float:
        """Lock the product and fail unless at least `quantity` is in stock. Returns current stock."""
        await self.products.lock(session, product_id)
        current = await self.inventory_query.inventory_of(session, product_id)
        if current < quantity:
            logger.warning(
                "insufficient stock for product %s: available=%s requested=%s",
                product_id, current, quantity,
            )
            raise InsufficientStock(product_id=product_id, available=current, requested=quantity)
        return current

    async def receipt(
        self,
        product_id: Optional[UUID],
        supplier_id: Optional[UUID],
        quantity: float,
        price: Optional[float] = None,
        expiry_date: Optional[datetime] = None,
    ) -> StockMovement:
        if not product_id or quantity is None or quantity <= 0:
            raise InvalidOperation(product_id=product_id, quantity=quantity)

        async def _receipt(session: AsyncSession) -> StockMovement:
            await self.products.get_by_id(session, product_id)
            if supplier_id is not None and await session.get(Supplier, supplier_id) is None:
                raise NotFound("Supplier not found", supplier_id=supplier_id)
            return await self.ledger.append(
                session,
                type=MOVEMENT_RECEIPT,
                product_id=product_id,
                supplier_id=supplier_id,
                quantity=quantity,
                price=price,
                expiry_date=expiry_date,
            )

        return await self._run(_receipt)

    async def write_off(self, product_id: Optional[UUID], quantity: float) -> StockMovement:
        if not product_id or quantity is None or quantity <= 0:
            raise InvalidOperation(product_id=product_id, quantity=quantity)

        async def _write_off(session: AsyncSession) -> StockMovement:
            await self.ensure_available(session, product_id, quantity)
            return await self.ledger.append(
                session,
                type=MOVEMENT_WRITE_OFF,
                product_id=product_id,
                quantity=quantity,
            )

        return await self._run(_write_off)

    async def reserve_in(
        self,
        session: AsyncSession,
        product_id: UUID,
        order_id: UUID,
        quantity: float,
        *,
        check: bool = True,
    ) -> StockMovement:
        """Append a reservation inside the caller's transaction."""
        if check:
            await self.ensure_available(session, product_id, quantity)
        return await self.ledger.append(
            session,
            type=MOVEMENT_RESERVE,
            product_id=product_id,
            order_id=order_id,
            quantity=quantity,
        )

    async def reserve(self, product_id: Optional[UUID], order_id: Optional[UUID], quantity: float) -> StockMovement:
        if not product_id or not order_id or quantity is None or quantity <= 0:
            raise InvalidOperation(product_id=product_id, order_id=order_id, quantity=quantity)

        async def _reserve(session: AsyncSession) -> StockMovement:
            if await session.get(Order, order_id) is None:
                raise NotFound("Order not found", order_id=order_id)
            return await self.reserve_in(session, product_id, order_id, quantity)

        return await self._run(_reserve)

    async def inventory_of(self, product_id: UUID) -> float:
        async def _inventory_of(session: AsyncSession) -> float:
            return await self.inventory_query.inventory_of(session, product_id)

        return await self._run(_inventory_of)

    async def inventory(self) -> List[StockItem]:
        async def _inventory(session: AsyncSession) -> List[StockItem]:
            totals = await self.inventory_query.all_inventory(session)
            return [StockItem(product_id=pid, quantity=qty) for pid, qty in totals.items()]

        return await self._run(_inventory)

    async def movements(
        self,
        product_id: Optional[UUID] = None,
        order_id: Optional[UUID] = None,
        type: Optional[str] = None,
    ) -> List[StockMovement]:
        async def _movements(session: AsyncSession) -> List[StockMovement]:
            return await self.ledger.movements(session, product_id=product_id, order_id=order_id, type=type)

        return await self._run(_movements)
