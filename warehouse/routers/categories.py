from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from warehouse.core.auth import current_active_user, require_roles
from warehouse.db.category import Category as CategoryModel
from warehouse.db.database import get_async_session
from warehouse.db.users import User
from warehouse.schemas.categories import CategoryCreate, CategoryRead, CategoryUpdate

router = APIRouter()


async def _get_or_404(db: AsyncSession, category_id: UUID) -> CategoryModel:
    res = await db.execute(select(CategoryModel).where(CategoryModel.id == category_id))
    m = res.scalar_one_or_none()
    if not m:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return m


@router.get("/", response_model=List[CategoryRead])
async def list_categories(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(current_active_user),
):
    res = await db.execute(select(CategoryModel).order_by(func.lower(CategoryModel.name).asc()))
    return [CategoryRead(**c.to_schema) for c in res.scalars().all()]


@router.get("/{category_id}", response_model=CategoryRead)
async def get_category(
    category_id: UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(current_active_user),
):
    return CategoryRead(**(await _get_or_404(db, category_id)).to_schema)


@router.post("/", response_model=CategoryRead, status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryCreate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(require_roles("admin", "manager")),
):
    name = (payload.name or "").strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name is required")

    m = CategoryModel(name=name)
    db.add(m)
    await db.commit()
    await db.refresh(m)
    return CategoryRead(**m.to_schema)


@router.put("/{category_id}", response_model=CategoryRead)
async def update_category(
    category_id: UUID,
    payload: CategoryUpdate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(require_roles("admin", "manager")),
):
    m = await _get_or_404(db, category_id)
    name = (payload.name or "").strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name is required")

    m.name = name
    await db.commit()
    await db.refresh(m)
    return CategoryRead(**m.to_schema)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(require_roles("admin")),
):
    m = await _get_or_404(db, category_id)
    await db.delete(m)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Category is still used by products")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
