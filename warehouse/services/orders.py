import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from warehouse.core.exceptions import BadStatusTransition, NotFound, ValidationError
from warehouse.db.database import utcnow
from warehouse.db.order import (
    ORDER_CANCELED,
    ORDER_COMPLETED,
    ORDER_NEW,
    ORDER_RESERVED,
    ORDER_STATUSES,
    Order,
    OrderItem,
    OrderStatusHistory,
)

from .base import ServiceBase
from .products import ProductStore, SqlProductStore
from .warehouse import WarehouseService

logger = logging.getLogger(__name__)

# Only `new` and `reserved` may be left; any status may be entered from them.
LOOSE_TRANSITIONS: Mapping[str, Iterable[str]] = {
    ORDER_NEW: ORDER_STATUSES,
    ORDER_RESERVED: ORDER_STATUSES,
}

STRICT_TRANSITIONS: Mapping[str, Iterable[str]] = {
    ORDER_NEW: (ORDER_RESERVED, ORDER_COMPLETED, ORDER_CANCELED),
    ORDER_RESERVED: (ORDER_COMPLETED, ORDER_CANCELED),
}


class OrderStatusPolicy:
    """Which statuses an order may move to from its current one. Missing keys are terminal."""

    presets = {"loose": LOOSE_TRANSITIONS, "strict": STRICT_TRANSITIONS}

    def __init__(self, transitions: Mapping[str, Iterable[str]] = LOOSE_TRANSITIONS):
        self._transitions: Dict[str, FrozenSet[str]] = {
            src: frozenset(targets) for src, targets in transitions.items()
        }

    @classmethod
    def named(cls, name: str) -> "OrderStatusPolicy":
        try:
            return cls(cls.presets[name])
        except KeyError:
            raise ValueError(f"unknown order status policy {name!r}, expected one of {sorted(cls.presets)}") from None

    def allowed_from(self, current: str) -> FrozenSet[str]:
        return self._transitions.get(current, frozenset())

    def check(self, current: str, target: str) -> None:
        if target not in self.allowed_from(current):
            raise BadStatusTransition(current=current, requested=target)


@dataclass(frozen=True)
class OrderLine:
    product_id: Optional[UUID]
    quantity: float
    price: float = 0.0


def _validate_lines(customer: str, items: Sequence[OrderLine]) -> str:
    customer = (customer or "").strip()
    if not customer:
        raise ValidationError("customer is required")
    if not items:
        raise ValidationError("order must have at least one item")
    for i, it in enumerate(items):
        if not it.product_id:
            raise ValidationError("product_id is required", item=i)
        if it.quantity is None or it.quantity <= 0:
            raise ValidationError("quantity must be > 0", item=i, quantity=it.quantity)
        if it.price is None or it.price < 0:
            raise ValidationError("price must be >= 0", item=i, price=it.price)
    return customer


class OrderService(ServiceBase):
    def __init__(
        self,
        session_maker,
        settings,
        warehouse: WarehouseService,
        products: Optional[ProductStore] = None,
        policy: Optional[OrderStatusPolicy] = None,
    ):
        super().__init__(session_maker, settings)
        self.warehouse = warehouse
        self.products = products or SqlProductStore()
        self.policy = policy or OrderStatusPolicy.named(settings.order_status_transitions)

    @staticmethod
    def _select_orders():
        return select(Order).options(
            selectinload(Order.items),
            selectinload(Order.status_history),
        )

    @staticmethod
    async def _lock(session: AsyncSession, order_id: UUID) -> None:
        # SQLite ignores FOR UPDATE; a no-op UPDATE takes the database write lock
        # before the status is read.
        await session.execute(
            update(Order)
            .where(Order.id == order_id)
            .values(updated_at=Order.updated_at)
            .execution_options(synchronize_session=False)
        )

    async def _load(self, session: AsyncSession, order_id: UUID, *, for_update: bool = False) -> Order:
        stmt = self._select_orders().where(Order.id == order_id)
        if for_update:
            if session.bind.dialect.name == "sqlite":
                await self._lock(session, order_id)
            else:
                stmt = stmt.with_for_update(of=Order)
        res = await session.execute(stmt)
        order = res.scalar_one_or_none()
        if order is None:
            raise NotFound("Order not found", order_id=order_id)
        return order

    async def list_orders(self) -> List[Order]:
        async def _list(session: AsyncSession) -> List[Order]:
            res = await session.execute(self._select_orders().order_by(Order.created_at.desc()))
            return list(res.scalars().all())

        return await self._run(_list)

    async def get_order(self, order_id: UUID) -> Order:
        return await self._run(self._load, order_id)

    async def create_order(self, customer: str, items: Sequence[OrderLine]) -> Order:
        """
        Create an order in `new` status and reserve stock for every line.

        The order, its lines, its first history entry and all reservations are
        written in one transaction: if any line fails nothing is kept.
        """
        customer = _validate_lines(customer, items)
        check_stock = not self._settings.allow_over_reservation

        async def _create(session: AsyncSession) -> Order:
            for it in items:
                await self.products.get_by_id(session, it.product_id)

            now = utcnow()
            order = Order(
                customer=customer,
                status=ORDER_NEW,
                created_at=now,
                updated_at=now,
                items=[
                    OrderItem(product_id=it.product_id, quantity=float(it.quantity), price=float(it.price))
                    for it in items
                ],
                status_history=[OrderStatusHistory(status=ORDER_NEW, changed_at=now)],
            )
            session.add(order)
            await session.flush()

            for it in order.items:
                await self.warehouse.reserve_in(
                    session, it.product_id, order.id, it.quantity, check=check_stock
                )
            return order

        order = await self._run(_create)
        logger.info("Order %s created for %s with %d item(s)", order.id, order.customer, len(order.items))
        return order

    async def update_order_status(self, order_id: UUID, new_status: str) -> Order:
        new_status = (new_status or "").strip().lower()
        if new_status not in ORDER_STATUSES:
            raise ValidationError(f"unknown order status: {new_status!r}", status=new_status)

        async def _update(session: AsyncSession) -> Order:
            order = await self._load(session, order_id, for_update=True)
            self.policy.check(order.status, new_status)

            now = utcnow()
            order.status_history.append(OrderStatusHistory(status=new_status, changed_at=now))
            order.status = new_status
            order.updated_at = now
            await session.flush()
            return order

        order = await self._run(_update)
        logger.info("Order %s moved to %s", order.id, order.status)
        return order
