# promocode/schemas/promo_codes.py
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from promocode.models.promotional_code import PromoCodeStatus


class PromotionalCodeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=1, max_length=64)
    max_uses: int = Field(..., ge=0)
    # defaults to max_uses when omitted
    remaining_uses: int | None = Field(default=None, ge=0)
    tenant_id: UUID | None = None  # defaults to the caller's tenant


class PromotionalCodeUpdate(BaseModel):
    """
    Sparse update. Only fields the caller actually sends are applied;
    a field sent as an explicit zero (e.g. remaining_uses=0) is applied too.
    Sending null is the same as leaving the field out.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=255)
    code: str | None = Field(default=None, min_length=1, max_length=64)
    remaining_uses: int | None = Field(default=None, ge=0)
    max_uses: int | None = Field(default=None, ge=0)
    status: PromoCodeStatus | None = None
    tenant_id: UUID | None = None

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True)


class PromotionalCodeOut(BaseModel):
    id: UUID
    name: str
    code: str
    remaining_uses: int
    max_uses: int
    status: PromoCodeStatus

    tenant_id: UUID
    is_deleted: bool

    created_at: datetime
    created_by: str
    updated_at: datetime | None
    updated_by: str | None

    class Config:
        from_attributes = True


class PromotionalCodeCreated(BaseModel):
    id: UUID


class PromotionalCodeAvailabilityOut(BaseModel):
    code: str
    remaining_uses: int
