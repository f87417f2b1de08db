# promocode/services/promo_code_store.py
from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from promocode.models.base import utcnow
from promocode.models.promotional_code import PromoCodeStatus, PromotionalCode
from promocode.schemas.promo_codes import PromotionalCodeOut, PromotionalCodeUpdate
from promocode.services.object_versioning import snapshot, stage_version

logger = logging.getLogger(__name__)

OBJECT_TYPE = "PromotionalCode"

# status -> statuses reachable through a regular update.
# "deleted" is only reachable through soft_delete_code.
_ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    PromoCodeStatus.ACTIVE.value: {PromoCodeStatus.ACTIVE.value, PromoCodeStatus.INACTIVE.value},
    PromoCodeStatus.INACTIVE.value: {PromoCodeStatus.INACTIVE.value},
}


class PromoCodeError(Exception):
    pass


class PromoCodeNotFound(PromoCodeError):
    pass


class InvalidPromoCodeArgument(PromoCodeError):
    pass


class InvalidStatusTransition(PromoCodeError):
    pass


class RedemptionOutcome(str, enum.Enum):
    REDEEMED = "redeemed"
    NOT_FOUND = "not_found"
    EXHAUSTED = "exhausted"


@dataclass
class Redemption:
    outcome: RedemptionOutcome
    promo_code: PromotionalCode | None = None  # set only when redeemed


def _is_active():
    return (
        PromotionalCode.status == PromoCodeStatus.ACTIVE.value,
        PromotionalCode.is_deleted.is_(False),
    )


def _snapshot(code: PromotionalCode) -> str:
    return snapshot(code, PromotionalCodeOut)


def _stage_audit(
    db: AsyncSession,
    code: PromotionalCode,
    *,
    before_value: str | None,
    updated_by: str,
) -> None:
    stage_version(
        db,
        object_type=OBJECT_TYPE,
        object_id=code.id,
        object_tenant=code.tenant_id,
        before_value=before_value,
        after_value=_snapshot(code),
        updated_by=updated_by,
    )


async def _commit(db: AsyncSession, *, action: str, code_id: uuid.UUID) -> None:
    # The mutation and its version record share this commit.
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception(
            "promo code %s failed; mutation and audit record rolled back",
            action,
            extra={"object_type": OBJECT_TYPE, "object_id": code_id},
        )
        raise


async def _load_for_update(db: AsyncSession, code_id: uuid.UUID) -> PromotionalCode | None:
    stmt = (
        select(PromotionalCode)
        .where(PromotionalCode.id == code_id)
        .where(PromotionalCode.is_deleted.is_(False))
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    res = await db.execute(stmt)
    return res.scalar_one_or_none()


async def list_active_codes(db: AsyncSession, *, tenant_id: uuid.UUID | None = None) -> list[PromotionalCode]:
    stmt = (
        select(PromotionalCode)
        .where(*_is_active())
        .order_by(desc(func.coalesce(PromotionalCode.updated_at, PromotionalCode.created_at)))
    )
    if tenant_id is not None:
        stmt = stmt.where(PromotionalCode.tenant_id == tenant_id)

    res = await db.execute(stmt)
    return list(res.scalars().all())


async def get_active_by_id(db: AsyncSession, code_id: uuid.UUID) -> PromotionalCode | None:
    res = await db.execute(select(PromotionalCode).where(PromotionalCode.id == code_id).where(*_is_active()))
    return res.scalar_one_or_none()


async def get_active_by_code(db: AsyncSession, code: str) -> PromotionalCode | None:
    # codes are not unique at the schema level; newest wins
    stmt = (
        select(PromotionalCode)
        .where(PromotionalCode.code == code)
        .where(*_is_active())
        .order_by(desc(PromotionalCode.created_at))
        .limit(1)
    )
    res = await db.execute(stmt)
    return res.scalars().first()


async def check_availability(db: AsyncSession, code: str) -> int | None:
    stmt = (
        select(PromotionalCode.remaining_uses)
        .where(PromotionalCode.code == code)
        .where(*_is_active())
        .order_by(desc(PromotionalCode.created_at))
        .limit(1)
    )
    res = await db.execute(stmt)
    return res.scalars().first()


async def add_code(db: AsyncSession, promo_code: PromotionalCode | None) -> uuid.UUID:
    if promo_code is None:
        raise InvalidPromoCodeArgument("Promotional code is required")
    if not promo_code.created_by:
        raise InvalidPromoCodeArgument("created_by is required")
    if promo_code.tenant_id is None:
        raise InvalidPromoCodeArgument("tenant_id is required")
    if (promo_code.remaining_uses or 0) < 0 or (promo_code.max_uses or 0) < 0:
        raise InvalidPromoCodeArgument("Use counts cannot be negative")
    if promo_code.status == PromoCodeStatus.DELETED.value:
        raise InvalidPromoCodeArgument("Cannot create a deleted promotional code")

    promo_code.id = uuid.uuid4()
    promo_code.created_at = utcnow()
    promo_code.status = promo_code.status or PromoCodeStatus.ACTIVE.value
    promo_code.remaining_uses = promo_code.remaining_uses or 0
    promo_code.max_uses = promo_code.max_uses or 0
    promo_code.is_deleted = False

    db.add(promo_code)
    _stage_audit(db, promo_code, before_value=None, updated_by=promo_code.created_by)
    await _commit(db, action="create", code_id=promo_code.id)

    logger.info(
        "promo code created",
        extra={"object_id": promo_code.id, "code": promo_code.code, "updated_by": promo_code.created_by},
    )
    return promo_code.id


async def update_code(
    db: AsyncSession,
    code_id: uuid.UUID,
    patch: PromotionalCodeUpdate | None,
    *,
    updated_by: str,
) -> PromotionalCode:
    if patch is None:
        raise InvalidPromoCodeArgument("Update payload is required")

    changes = patch.changes()
    new_status = changes.get("status")
    if new_status is not None:
        new_status = PromoCodeStatus(new_status).value
        if new_status == PromoCodeStatus.DELETED.value:
            raise InvalidPromoCodeArgument("Use delete to remove a promotional code")
        changes["status"] = new_status

    existing = await _load_for_update(db, code_id)
    if existing is None:
        raise PromoCodeNotFound(f"Promotional code {code_id} not found")

    current_status = existing.status
    if new_status is not None and new_status not in _ALLOWED_TRANSITIONS.get(current_status, set()):
        await db.rollback()
        raise InvalidStatusTransition(f"Cannot move promotional code from {current_status} to {new_status}")

    before_value = _snapshot(existing)

    for field, value in changes.items():
        setattr(existing, field, value)
    existing.updated_at = utcnow()
    existing.updated_by = updated_by

    _stage_audit(db, existing, before_value=before_value, updated_by=updated_by)
    await _commit(db, action="update", code_id=existing.id)

    logger.info(
        "promo code updated (%s)",
        ", ".join(sorted(changes)) or "no fields",
        extra={"object_id": existing.id, "updated_by": updated_by},
    )
    return existing


async def soft_delete_code(db: AsyncSession, code_id: uuid.UUID, *, updated_by: str) -> bool:
    existing = await _load_for_update(db, code_id)
    if existing is None:
        await db.rollback()
        return False

    before_value = _snapshot(existing)

    # both flags move together
    existing.is_deleted = True
    existing.status = PromoCodeStatus.DELETED.value
    existing.updated_at = utcnow()
    existing.updated_by = updated_by

    _stage_audit(db, existing, before_value=before_value, updated_by=updated_by)
    await _commit(db, action="delete", code_id=existing.id)

    logger.info("promo code deleted", extra={"object_id": existing.id, "updated_by": updated_by})
    return True


async def redeem_code(db: AsyncSession, code: str, *, updated_by: str) -> Redemption:
    """
    Consume one use of the active code.

    The decrement is a conditional UPDATE (remaining_uses > 0) checked by
    rows affected, so concurrent redemptions cannot drive the counter below
    zero or lose a decrement.
    """
    stmt = (
        select(PromotionalCode)
        .where(PromotionalCode.code == code)
        .where(*_is_active())
        .order_by(desc(PromotionalCode.created_at))
        .limit(1)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    res = await db.execute(stmt)
    existing = res.scalars().first()

    if existing is None:
        await db.rollback()
        return Redemption(RedemptionOutcome.NOT_FOUND)
    if existing.remaining_uses < 1:
        await db.rollback()
        return Redemption(RedemptionOutcome.EXHAUSTED)

    before_value = _snapshot(existing)

    decrement = (
        update(PromotionalCode)
        .where(PromotionalCode.id == existing.id)
        .where(PromotionalCode.remaining_uses > 0)
        .where(*_is_active())
        .values(
            remaining_uses=PromotionalCode.remaining_uses - 1,
            updated_at=utcnow(),
            updated_by=updated_by,
        )
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(decrement)
    if result.rowcount != 1:
        # lost the race for the last use
        await db.rollback()
        return Redemption(RedemptionOutcome.EXHAUSTED)

    await db.refresh(existing)
    _stage_audit(db, existing, before_value=before_value, updated_by=updated_by)
    await _commit(db, action="redeem", code_id=existing.id)

    logger.info(
        "promo code redeemed, %s uses left",
        existing.remaining_uses,
        extra={"object_id": existing.id, "code": code},
    )
    return Redemption(RedemptionOutcome.REDEEMED, existing)
