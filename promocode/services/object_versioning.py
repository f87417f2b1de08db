# promocode/services/object_versioning.py
from __future__ import annotations

import json
import logging
import uuid
from typing import Any

from pydantic import BaseModel
from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from promocode.models.base import utcnow
from promocode.models.object_versioning import ObjectVersioning

logger = logging.getLogger(__name__)


class VersioningNotSupported(NotImplementedError):
    """Version records are append-only; update/delete are not offered."""


def snapshot(obj: Any, schema: type[BaseModel]) -> str:
    """Serialize an ORM row through its output schema into a JSON snapshot."""
    return schema.model_validate(obj).model_dump_json()


def load_snapshot(value: str | None) -> dict | None:
    if value is None:
        return None
    return json.loads(value)


def stage_version(
    db: AsyncSession,
    *,
    object_type: str,
    object_id: uuid.UUID,
    object_tenant: uuid.UUID,
    before_value: str | None,
    after_value: str,
    updated_by: str,
) -> ObjectVersioning:
    """
    Add a version record to the open session without committing.

    The caller commits it in the same transaction as the mutation it describes.
    """
    entry = ObjectVersioning(
        id=uuid.uuid4(),
        object_type=object_type,
        object_id=object_id,
        object_tenant=object_tenant,
        before_value=before_value,
        after_value=after_value,
        updated_on=utcnow(),
        updated_by=updated_by,
    )
    db.add(entry)
    return entry


async def append_version(
    db: AsyncSession,
    *,
    object_type: str,
    object_id: uuid.UUID,
    object_tenant: uuid.UUID,
    before_value: str | None,
    after_value: str,
    updated_by: str,
) -> uuid.UUID:
    entry = stage_version(
        db,
        object_type=object_type,
        object_id=object_id,
        object_tenant=object_tenant,
        before_value=before_value,
        after_value=after_value,
        updated_by=updated_by,
    )
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception(
            "failed to append object version",
            extra={"object_type": object_type, "object_id": object_id},
        )
        raise
    return entry.id


async def get_version(db: AsyncSession, version_id: uuid.UUID) -> ObjectVersioning | None:
    return await db.get(ObjectVersioning, version_id)


async def list_versions_for_object(
    db: AsyncSession,
    *,
    object_type: str,
    object_tenant: uuid.UUID,
    object_id: uuid.UUID,
) -> list[ObjectVersioning]:
    stmt = (
        select(ObjectVersioning)
        .where(ObjectVersioning.object_type == object_type)
        .where(ObjectVersioning.object_tenant == object_tenant)
        .where(ObjectVersioning.object_id == object_id)
        .order_by(desc(ObjectVersioning.updated_on))
    )
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def list_versions_by_object_id(db: AsyncSession, object_id: uuid.UUID) -> list[ObjectVersioning]:
    # looser lookup: ignores object type and tenant
    stmt = (
        select(ObjectVersioning)
        .where(ObjectVersioning.object_id == object_id)
        .order_by(desc(ObjectVersioning.updated_on))
    )
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def list_all_versions(db: AsyncSession) -> list[ObjectVersioning]:
    res = await db.execute(select(ObjectVersioning).order_by(desc(ObjectVersioning.updated_on)))
    return list(res.scalars().all())


async def update_version(db: AsyncSession, version_id: uuid.UUID, **changes: Any) -> ObjectVersioning:
    raise VersioningNotSupported("Object versions cannot be updated")


async def delete_version(db: AsyncSession, version_id: uuid.UUID) -> bool:
    raise VersioningNotSupported("Object versions cannot be deleted")
