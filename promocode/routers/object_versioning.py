from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from promocode.core.db import get_db
from promocode.core.deps import get_current_user
from promocode.models.user import User
from promocode.schemas.object_versioning import ObjectVersionCreate, ObjectVersionCreated, ObjectVersionOut
from promocode.services import object_versioning
from promocode.services.object_versioning import VersioningNotSupported

router = APIRouter(prefix="/api/v1/object-versions", tags=["Object Versioning"])


@router.post("", response_model=ObjectVersionCreated, status_code=status.HTTP_201_CREATED)
async def add_version(
    body: ObjectVersionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    version_id = await object_versioning.append_version(
        db,
        object_type=body.object_type,
        object_id=body.object_id,
        object_tenant=body.object_tenant,
        before_value=body.before_value,
        after_value=body.after_value,
        updated_by=body.updated_by or current_user.username,
    )
    return ObjectVersionCreated(id=version_id)


@router.get("", response_model=list[ObjectVersionOut])
async def list_versions(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Every version record across all objects (newest first).
    """
    return await object_versioning.list_all_versions(db)


@router.get("/object", response_model=list[ObjectVersionOut])
async def list_versions_for_object(
    object_type: str = Query(..., min_length=1),
    object_tenant: uuid.UUID = Query(...),
    object_id: uuid.UUID = Query(...),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await object_versioning.list_versions_for_object(
        db,
        object_type=object_type,
        object_tenant=object_tenant,
        object_id=object_id,
    )


@router.get("/by-object/{object_id}", response_model=list[ObjectVersionOut])
async def list_versions_by_object_id(
    object_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await object_versioning.list_versions_by_object_id(db, object_id)


@router.get("/{version_id}", response_model=ObjectVersionOut)
async def get_version(
    version_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    version = await object_versioning.get_version(db, version_id)
    if version is None:
        raise HTTPException(status_code=404, detail="Version not found")
    return version


@router.put("/{version_id}", response_model=ObjectVersionOut)
async def update_version(
    version_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return await object_versioning.update_version(db, version_id)
    except VersioningNotSupported as e:
        raise HTTPException(status_code=501, detail=str(e))


@router.delete("/{version_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_version(
    version_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        await object_versioning.delete_version(db, version_id)
    except VersioningNotSupported as e:
        raise HTTPException(status_code=501, detail=str(e))
