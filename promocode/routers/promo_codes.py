# promocode/routers/promo_codes.py
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from promocode.core.db import get_db
from promocode.core.deps import get_cache_service, get_current_user
from promocode.models.user import User
from promocode.schemas.promo_codes import (
    PromotionalCodeAvailabilityOut,
    PromotionalCodeCreate,
    PromotionalCodeCreated,
    PromotionalCodeOut,
    PromotionalCodeUpdate,
)
from promocode.services import promo_codes
from promocode.services.cache import CacheService
from promocode.services.promo_code_store import (
    InvalidPromoCodeArgument,
    InvalidStatusTransition,
    PromoCodeNotFound,
    RedemptionOutcome,
)

router = APIRouter(prefix="/api/v1/promotional-codes", tags=["Promotional Codes"])


@router.get("", response_model=list[PromotionalCodeOut])
async def list_active_codes(
    tenant_id: uuid.UUID | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    return await promo_codes.get_active_codes(db, tenant_id=tenant_id)


@router.get("/{code_id}", response_model=PromotionalCodeOut)
async def get_code(
    code_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache_service),
):
    promo_code = await promo_codes.get_code(db, cache, code_id)
    if promo_code is None:
        raise HTTPException(status_code=404, detail="Promotional code not found")
    return promo_code


@router.post("", response_model=PromotionalCodeCreated, status_code=status.HTTP_201_CREATED)
async def create_code(
    body: PromotionalCodeCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    # codes land in the caller's tenant unless one is given explicitly
    try:
        code_id = await promo_codes.create_code(
            db,
            body,
            created_by=current_user.username,
            tenant_id=current_user.tenant_id,
        )
    except InvalidPromoCodeArgument as e:
        raise HTTPException(status_code=400, detail=str(e))
    return PromotionalCodeCreated(id=code_id)


@router.put("/{code_id}", response_model=PromotionalCodeOut)
async def update_code(
    code_id: uuid.UUID,
    body: PromotionalCodeUpdate,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache_service),
    current_user: User = Depends(get_current_user),
):
    try:
        return await promo_codes.update_code(db, cache, code_id, body, updated_by=current_user.username)
    except PromoCodeNotFound:
        raise HTTPException(status_code=404, detail="Promotional code not found")
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    except InvalidPromoCodeArgument as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{code_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_code(
    code_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache_service),
    current_user: User = Depends(get_current_user),
):
    await promo_codes.delete_code(db, cache, code_id, updated_by=current_user.username)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{code_id}/deactivate", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_code(
    code_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache_service),
    current_user: User = Depends(get_current_user),
):
    deactivated = await promo_codes.deactivate_code(db, cache, code_id, updated_by=current_user.username)
    if not deactivated:
        raise HTTPException(status_code=404, detail="Promotional code not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{code}/redeem", response_model=bool)
async def redeem_code(
    code: str,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache_service),
):
    outcome = await promo_codes.redeem_code_outcome(db, cache, code)
    if outcome is RedemptionOutcome.NOT_FOUND:
        raise HTTPException(status_code=404, detail="Promotional code not found")
    if outcome is RedemptionOutcome.EXHAUSTED:
        raise HTTPException(status_code=400, detail="Promotional code has no remaining uses")
    return True


@router.get("/{code}/availability", response_model=PromotionalCodeAvailabilityOut)
async def check_availability(
    code: str,
    db: AsyncSession = Depends(get_db),
):
    remaining = await promo_codes.check_availability(db, code)
    if remaining is None:
        raise HTTPException(status_code=404, detail="Promotional code not found")
    return PromotionalCodeAvailabilityOut(code=code, remaining_uses=remaining)
