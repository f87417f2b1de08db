from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, Field


class MeOut(BaseModel):
    id: UUID
    username: str
    email: str | None = None
    role: str
    tenant_id: UUID
    is_active: bool

    class Config:
        from_attributes = True


class ChangePasswordIn(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)
    confirm_new_password: str = Field(..., min_length=6)
