# promocode/services/promo_codes.py
from __future__ import annotations

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from promocode.core.config import settings
from promocode.models.promotional_code import PromoCodeStatus, PromotionalCode
from promocode.schemas.promo_codes import PromotionalCodeCreate, PromotionalCodeOut, PromotionalCodeUpdate
from promocode.services import promo_code_store as store
from promocode.services.cache import CacheService
from promocode.services.promo_code_store import InvalidPromoCodeArgument, PromoCodeNotFound, RedemptionOutcome

logger = logging.getLogger(__name__)


def _cache_key(code_id: uuid.UUID) -> str:
    return str(code_id)


async def get_active_codes(db: AsyncSession, *, tenant_id: uuid.UUID | None = None) -> list[PromotionalCode]:
    # list results are never cached
    return await store.list_active_codes(db, tenant_id=tenant_id)


async def get_code(db: AsyncSession, cache: CacheService, code_id: uuid.UUID) -> PromotionalCodeOut | None:
    async def _load() -> PromotionalCodeOut | None:
        row = await store.get_active_by_id(db, code_id)
        return PromotionalCodeOut.model_validate(row) if row is not None else None

    return await cache.get_or_add(
        _cache_key(code_id),
        _load,
        PromotionalCodeOut,
        ttl_seconds=settings.CACHE_TTL_SECONDS or None,
    )


async def create_code(
    db: AsyncSession,
    payload: PromotionalCodeCreate | None,
    *,
    created_by: str,
    tenant_id: uuid.UUID | None = None,
) -> uuid.UUID:
    if payload is None:
        raise InvalidPromoCodeArgument("Promotional code is required")

    promo_code = PromotionalCode(
        name=payload.name,
        code=payload.code,
        max_uses=payload.max_uses,
        remaining_uses=payload.remaining_uses if payload.remaining_uses is not None else payload.max_uses,
        status=PromoCodeStatus.ACTIVE.value,
        tenant_id=payload.tenant_id or tenant_id,
        created_by=created_by,
    )
    return await store.add_code(db, promo_code)


async def update_code(
    db: AsyncSession,
    cache: CacheService,
    code_id: uuid.UUID,
    patch: PromotionalCodeUpdate | None,
    *,
    updated_by: str,
) -> PromotionalCode:
    updated = await store.update_code(db, code_id, patch, updated_by=updated_by)
    await cache.remove(_cache_key(code_id))
    return updated


async def delete_code(db: AsyncSession, cache: CacheService, code_id: uuid.UUID, *, updated_by: str) -> bool:
    """
    Soft-delete and drop the cache entry.

    Always reports success: deleting an unknown or already deleted code is
    treated as idempotent and only logged.
    """
    deleted = await store.soft_delete_code(db, code_id, updated_by=updated_by)
    await cache.remove(_cache_key(code_id))
    if not deleted:
        logger.info("delete requested for missing promo code", extra={"object_id": code_id, "updated_by": updated_by})
    return True


async def redeem_code_outcome(db: AsyncSession, cache: CacheService, code: str) -> RedemptionOutcome:
    # reads the store directly; a cached copy may lag behind remaining_uses
    redemption = await store.redeem_code(db, code, updated_by=settings.SYSTEM_REDEEMER)

    if redemption.outcome is RedemptionOutcome.REDEEMED and redemption.promo_code is not None:
        await cache.remove(_cache_key(redemption.promo_code.id))
    else:
        logger.info("redemption rejected: %s", redemption.outcome.value, extra={"code": code})

    return redemption.outcome


async def redeem_code(db: AsyncSession, cache: CacheService, code: str) -> bool:
    return await redeem_code_outcome(db, cache, code) is RedemptionOutcome.REDEEMED


async def deactivate_code(db: AsyncSession, cache: CacheService, code_id: uuid.UUID, *, updated_by: str) -> bool:
    existing = await store.get_active_by_id(db, code_id)
    if existing is None:
        return False

    try:
        await store.update_code(
            db,
            existing.id,
            PromotionalCodeUpdate(status=PromoCodeStatus.INACTIVE),
            updated_by=updated_by,
        )
    except PromoCodeNotFound:
        # deleted after the existence check
        return False
    await cache.remove(_cache_key(code_id))
    return True


async def check_availability(db: AsyncSession, code: str) -> int | None:
    return await store.check_availability(db, code)
