from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from promocode.core.db import get_db
from promocode.core.deps import get_current_user, require_admin
from promocode.models.user import User
from promocode.schemas.tenants import TenantCreate, TenantOut, TenantUpdate
from promocode.services import tenants
from promocode.services.tenants import TenantError, TenantNotFound

router = APIRouter(prefix="/api/v1/tenants", tags=["Tenants"])


@router.get("", response_model=list[TenantOut])
async def list_tenants(
    db: AsyncSession = Depends(get_db),
    admin_user: User = Depends(require_admin),
):
    return await tenants.list_tenants(db)


@router.get("/{tenant_id}", response_model=TenantOut)
async def get_tenant(
    tenant_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if current_user.role != "admin" and current_user.tenant_id != tenant_id:
        raise HTTPException(status_code=403, detail="Tenant not authorized")

    tenant = await tenants.get_tenant(db, tenant_id)
    if tenant is None:
        raise HTTPException(status_code=404, detail="Tenant not found")
    return tenant


@router.post("", response_model=TenantOut, status_code=status.HTTP_201_CREATED)
async def create_tenant(
    body: TenantCreate,
    db: AsyncSession = Depends(get_db),
    admin_user: User = Depends(require_admin),
):
    try:
        return await tenants.create_tenant(db, body, created_by=admin_user.username)
    except TenantError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/{tenant_id}", response_model=TenantOut)
async def update_tenant(
    tenant_id: uuid.UUID,
    body: TenantUpdate,
    db: AsyncSession = Depends(get_db),
    admin_user: User = Depends(require_admin),
):
    try:
        return await tenants.update_tenant(db, tenant_id, body, updated_by=admin_user.username)
    except TenantNotFound:
        raise HTTPException(status_code=404, detail="Tenant not found")
    except TenantError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{tenant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tenant(
    tenant_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    admin_user: User = Depends(require_admin),
):
    deleted = await tenants.delete_tenant(db, tenant_id, updated_by=admin_user.username)
    if not deleted:
        raise HTTPException(status_code=404, detail="Tenant not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
