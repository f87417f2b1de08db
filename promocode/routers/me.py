from __future__ import annotations

from fastapi import APIRouter, Depends

from promocode.core.deps import get_current_user
from promocode.models.user import User
from promocode.schemas.me import MeOut

router = APIRouter(tags=["Me"])


@router.get("/me", response_model=MeOut)
async def me(current_user: User = Depends(get_current_user)) -> MeOut:
    return MeOut.model_validate(current_user)
