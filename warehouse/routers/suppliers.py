from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from warehouse.core.auth import current_active_user, require_roles
from warehouse.db.database import get_async_session
from warehouse.db.supplier import Supplier as SupplierModel
from warehouse.db.users import User
from warehouse.schemas.suppliers import SupplierCreate, SupplierRead, SupplierUpdate

router = APIRouter()


def _clean(v):
    return v.strip() if isinstance(v, str) else v


async def _get_or_404(db: AsyncSession, supplier_id: UUID) -> SupplierModel:
    res = await db.execute(select(SupplierModel).where(SupplierModel.id == supplier_id))
    m = res.scalar_one_or_none()
    if not m:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supplier not found")
    return m


@router.get("/", response_model=List[SupplierRead])
async def list_suppliers(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(current_active_user),
):
    res = await db.execute(select(SupplierModel).order_by(func.lower(SupplierModel.name).asc()))
    items = res.scalars().all()
    return [SupplierRead(**s.to_schema) for s in items]


@router.get("/{supplier_id}", response_model=SupplierRead)
async def get_supplier(
    supplier_id: UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(current_active_user),
):
    return SupplierRead(**(await _get_or_404(db, supplier_id)).to_schema)


@router.post("/", response_model=SupplierRead, status_code=status.HTTP_201_CREATED)
async def create_supplier(
    payload: SupplierCreate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(require_roles("admin", "manager")),
):
    name = (payload.name or "").strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name is required")

    m = SupplierModel(
        name=name,
        address=_clean(payload.address),
        phone=_clean(payload.phone),
        email=_clean(payload.email),
    )
    db.add(m)
    await db.commit()
    await db.refresh(m)
    return SupplierRead(**m.to_schema)


@router.put("/{supplier_id}", response_model=SupplierRead)
async def update_supplier(
    supplier_id: UUID,
    payload: SupplierUpdate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(require_roles("admin", "manager")),
):
    m = await _get_or_404(db, supplier_id)

    data = payload.model_dump(exclude_unset=True)
    if "name" in data:
        name = (data["name"] or "").strip()
        if not name:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name is required")
        m.name = name
    for field in ("address", "phone", "email"):
        if field in data:
            setattr(m, field, _clean(data[field]))

    await db.commit()
    await db.refresh(m)
    return SupplierRead(**m.to_schema)


@router.delete("/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_supplier(
    supplier_id: UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(require_roles("admin")),
):
    m = await _get_or_404(db, supplier_id)
    await db.delete(m)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Supplier is still referenced")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
