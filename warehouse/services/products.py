import logging
from typing import List, Optional, Protocol
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from warehouse.core.exceptions import AlreadyExists, NotFound, ValidationError
from warehouse.db.category import Category
from warehouse.db.product import UNITS, Product
from warehouse.db.supplier import Supplier

from .base import ServiceBase

logger = logging.getLogger(__name__)


class ProductStore(Protocol):
    """What the stock and order code needs to know about products."""

    async def get_by_id(self, session: AsyncSession, product_id: UUID) -> Product: ...

    async def get_by_sku(self, session: AsyncSession, sku: str) -> Product: ...

    async def lock(self, session: AsyncSession, product_id: UUID) -> None: ...


class SqlProductStore:
    async def get_by_id(self, session: AsyncSession, product_id: UUID) -> Product:
        res = await session.execute(select(Product).where(Product.id == product_id))
        product = res.scalar_one_or_none()
        if product is None:
            raise NotFound("Product not found", product_id=product_id)
        return product

    async def get_by_sku(self, session: AsyncSession, sku: str) -> Product:
        res = await session.execute(select(Product).where(Product.sku == sku))
        product = res.scalar_one_or_none()
        if product is None:
            raise NotFound("Product not found", sku=sku)
        return product

    async def lock(self, session: AsyncSession, product_id: UUID) -> None:
        """
        Hold a write lock on the product until the transaction ends.

        Stock checks for one product are serialized through this lock. SQLite has
        no row locks, so there a no-op UPDATE takes the database write lock instead.
        """
        if session.bind.dialect.name == "sqlite":
            res = await session.execute(
                update(Product)
                .where(Product.id == product_id)
                .values(updated_at=Product.updated_at)
                .execution_options(synchronize_session=False)
            )
            found = res.rowcount > 0
        else:
            res = await session.execute(
                select(Product.id).where(Product.id == product_id).with_for_update()
            )
            found = res.scalar_one_or_none() is not None
        if not found:
            raise NotFound("Product not found", product_id=product_id)


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


class ProductService(ServiceBase):
    def __init__(self, session_maker, settings, store: Optional[SqlProductStore] = None):
        super().__init__(session_maker, settings)
        self.store = store or SqlProductStore()

    async def list_products(self) -> List[Product]:
        async def _list(session: AsyncSession) -> List[Product]:
            res = await session.execute(select(Product).order_by(Product.created_at.desc()))
            return list(res.scalars().all())

        return await self._run(_list)

    async def get_product(self, product_id: UUID) -> Product:
        return await self._run(self.store.get_by_id, product_id)

    async def _check_refs(self, session: AsyncSession, category_id: UUID, supplier_id: Optional[UUID]):
        if await session.get(Category, category_id) is None:
            raise NotFound("Category not found", category_id=category_id)
        if supplier_id is not None and await session.get(Supplier, supplier_id) is None:
            raise NotFound("Supplier not found", supplier_id=supplier_id)

    async def _sku_taken(self, session: AsyncSession, sku: str) -> bool:
        try:
            await self.store.get_by_sku(session, sku)
        except NotFound:
            return False
        return True

    async def create_product(
        self,
        *,
        sku: str,
        name: str,
        category_id: Optional[UUID],
        description: Optional[str] = None,
        supplier_id: Optional[UUID] = None,
        unit: str = "pcs",
    ) -> Product:
        sku, name = _clean(sku), _clean(name)
        if not sku or not name or not category_id:
            raise ValidationError("sku, name and category_id are required")
        if unit not in UNITS:
            raise ValidationError(f"unit must be one of {', '.join(UNITS)}", unit=unit)

        async def _create(session: AsyncSession) -> Product:
            if await self._sku_taken(session, sku):
                raise AlreadyExists("Product with this SKU already exists", sku=sku)
            await self._check_refs(session, category_id, supplier_id)

            product = Product(
                sku=sku,
                name=name,
                description=description,
                category_id=category_id,
                supplier_id=supplier_id,
                unit=unit,
            )
            session.add(product)
            await session.flush()
            return product

        product = await self._run(_create)
        logger.info("Product %s created (sku=%s)", product.id, product.sku)
        return product

    async def update_product(
        self,
        product_id: UUID,
        *,
        sku: str,
        name: str,
        category_id: Optional[UUID],
        description: Optional[str] = None,
        supplier_id: Optional[UUID] = None,
        unit: str = "pcs",
    ) -> Product:
        sku, name = _clean(sku), _clean(name)
        if not sku or not name or not category_id:
            raise ValidationError("sku, name and category_id are required")
        if unit not in UNITS:
            raise ValidationError(f"unit must be one of {', '.join(UNITS)}", unit=unit)

        async def _update(session: AsyncSession) -> Product:
            product = await self.store.get_by_id(session, product_id)
            if product.sku != sku and await self._sku_taken(session, sku):
                raise AlreadyExists("Product with this SKU already exists", sku=sku)
            await self._check_refs(session, category_id, supplier_id)

            product.sku = sku
            product.name = name
            product.description = description
            product.category_id = category_id
            product.supplier_id = supplier_id
            product.unit = unit
            await session.flush()
            return product

        return await self._run(_update)

    async def delete_product(self, product_id: UUID) -> None:
        async def _delete(session: AsyncSession) -> None:
            product = await self.store.get_by_id(session, product_id)
            await session.delete(product)

        await self._run(_delete)
        logger.info("Product %s deleted", product_id)
