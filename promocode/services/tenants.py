from __future__ import annotations

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from promocode.models.base import utcnow
from promocode.models.tenant import Tenant
from promocode.schemas.tenants import TenantCreate, TenantOut, TenantUpdate
from promocode.services.object_versioning import snapshot, stage_version

logger = logging.getLogger(__name__)

OBJECT_TYPE = "Tenant"


class TenantError(Exception):
    pass


class TenantNotFound(TenantError):
    pass


def _stage_audit(db: AsyncSession, tenant: Tenant, *, before_value: str | None, updated_by: str) -> None:
    stage_version(
        db,
        object_type=OBJECT_TYPE,
        object_id=tenant.id,
        object_tenant=tenant.id,
        before_value=before_value,
        after_value=snapshot(tenant, TenantOut),
        updated_by=updated_by,
    )


async def _commit(db: AsyncSession) -> None:
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise TenantError("Tenant name already exists") from e
    except Exception:
        await db.rollback()
        raise


async def get_tenant(db: AsyncSession, tenant_id: uuid.UUID) -> Tenant | None:
    res = await db.execute(select(Tenant).where(Tenant.id == tenant_id).where(Tenant.is_deleted.is_(False)))
    return res.scalar_one_or_none()


async def list_tenants(db: AsyncSession) -> list[Tenant]:
    res = await db.execute(select(Tenant).where(Tenant.is_deleted.is_(False)).order_by(Tenant.name))
    return list(res.scalars().all())


async def create_tenant(db: AsyncSession, body: TenantCreate, *, created_by: str) -> Tenant:
    tenant_id = uuid.uuid4()
    tenant = Tenant(
        id=tenant_id,
        tenant_id=tenant_id,  # a tenant owns itself
        name=body.name.strip(),
        is_active=True,
        is_deleted=False,
        created_at=utcnow(),
        created_by=created_by,
    )
    db.add(tenant)
    _stage_audit(db, tenant, before_value=None, updated_by=created_by)
    await _commit(db)

    logger.info("tenant created", extra={"object_id": tenant.id, "updated_by": created_by})
    return tenant


async def update_tenant(db: AsyncSession, tenant_id: uuid.UUID, body: TenantUpdate, *, updated_by: str) -> Tenant:
    tenant = await get_tenant(db, tenant_id)
    if tenant is None:
        raise TenantNotFound("Tenant not found")

    before_value = snapshot(tenant, TenantOut)
    for field, value in body.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(tenant, field, value)
    tenant.updated_at = utcnow()
    tenant.updated_by = updated_by

    _stage_audit(db, tenant, before_value=before_value, updated_by=updated_by)
    await _commit(db)
    return tenant


async def delete_tenant(db: AsyncSession, tenant_id: uuid.UUID, *, updated_by: str) -> bool:
    tenant = await get_tenant(db, tenant_id)
    if tenant is None:
        return False

    before_value = snapshot(tenant, TenantOut)
    tenant.is_deleted = True
    tenant.is_active = False
    tenant.updated_at = utcnow()
    tenant.updated_by = updated_by

    _stage_audit(db, tenant, before_value=before_value, updated_by=updated_by)
    await _commit(db)

    logger.info("tenant deleted", extra={"object_id": tenant.id, "updated_by": updated_by})
    return True
