from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from warehouse.core.auth import current_active_user, require_roles
from warehouse.core.deps import get_product_service
from warehouse.db.users import User
from warehouse.schemas.products import ProductCreate, ProductRead, ProductUpdate
from warehouse.services import ProductService

router = APIRouter()


@router.get("/", response_model=List[ProductRead])
async def list_products(
    service: ProductService = Depends(get_product_service),
    user: User = Depends(current_active_user),
):
    return [ProductRead(**p.to_schema) for p in await service.list_products()]


@router.get("/{product_id}", response_model=ProductRead)
async def get_product(
    product_id: UUID,
    service: ProductService = Depends(get_product_service),
    user: User = Depends(current_active_user),
):
    return ProductRead(**(await service.get_product(product_id)).to_schema)


@router.post("/", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: ProductCreate,
    service: ProductService = Depends(get_product_service),
    user: User = Depends(require_roles("admin", "manager")),
):
    product = await service.create_product(**payload.model_dump())
    return ProductRead(**product.to_schema)


@router.put("/{product_id}", response_model=ProductRead)
async def update_product(
    product_id: UUID,
    payload: ProductUpdate,
    service: ProductService = Depends(get_product_service),
    user: User = Depends(require_roles("admin", "manager")),
):
    product = await service.update_product(product_id, **payload.model_dump())
    return ProductRead(**product.to_schema)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: UUID,
    service: ProductService = Depends(get_product_service),
    user: User = Depends(require_roles("admin")),
):
    await service.delete_product(product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
