from __future__ import annotations

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from promocode.core.security import hash_password, verify_password
from promocode.models.user import User
from promocode.services.tenants import get_tenant

logger = logging.getLogger(__name__)


class UserError(Exception):
    pass


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    res = await db.execute(select(User).where(User.username == username))
    return res.scalar_one_or_none()


async def register_user(
    db: AsyncSession,
    *,
    username: str,
    password: str,
    tenant_id: uuid.UUID,
    role: str = "manager",
    email: str | None = None,
) -> User:
    clean_username = (username or "").strip()
    if not clean_username:
        raise UserError("username is required")

    tenant = await get_tenant(db, tenant_id)
    if tenant is None or not tenant.is_active:
        raise UserError("Tenant not found or inactive")

    if await get_user_by_username(db, clean_username) is not None:
        raise UserError("Username already taken")

    user = User(
        id=uuid.uuid4(),
        username=clean_username,
        email=email,
        password_hash=hash_password(password),
        role=role,
        tenant_id=tenant_id,
        is_active=True,
    )
    db.add(user)
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("user registered", extra={"object_id": user.id, "tenant_id": str(tenant_id)})
    return user


async def authenticate_user(db: AsyncSession, username: str, password: str) -> User | None:
    user = await get_user_by_username(db, username)
    if user is None or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


async def change_password(db: AsyncSession, user: User, *, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.password_hash):
        raise UserError("Current password is incorrect.")
    if current_password == new_password:
        raise UserError("New password must be different from current password.")

    user.password_hash = hash_password(new_password)
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    logger.info("password changed", extra={"object_id": user.id})
