from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class TenantCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class TenantUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=255)
    is_active: bool | None = None


class TenantOut(BaseModel):
    id: UUID
    name: str
    is_active: bool
    is_deleted: bool
    created_at: datetime
    created_by: str
    updated_at: datetime | None
    updated_by: str | None

    class Config:
        from_attributes = True
