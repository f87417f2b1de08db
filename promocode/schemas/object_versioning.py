from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ObjectVersionCreate(BaseModel):
    object_type: str = Field(..., min_length=1, max_length=128)
    object_id: UUID
    object_tenant: UUID
    before_value: str | None = None
    after_value: str
    updated_by: str | None = None  # defaults to the caller


class ObjectVersionOut(BaseModel):
    id: UUID
    object_type: str
    object_id: UUID
    object_tenant: UUID
    before_value: str | None
    after_value: str
    updated_on: datetime
    updated_by: str

    class Config:
        from_attributes = True


class ObjectVersionCreated(BaseModel):
    id: UUID
