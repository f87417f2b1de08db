import uuid

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from promocode.core.db import get_db
from promocode.core.deps import get_current_user, require_admin
from promocode.core.security import TokenError, create_access_token, create_refresh_token, decode_token
from promocode.models.user import User
from promocode.schemas.auth import RefreshRequest, RegisterRequest, TokenPair
from promocode.schemas.me import ChangePasswordIn, MeOut
from promocode.services.users import UserError, authenticate_user, change_password, register_user

router = APIRouter(prefix="/auth", tags=["auth"])


def _issue_tokens(user: User) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(
            user_id=user.id,
            username=user.username,
            role=user.role,
            tenant_id=user.tenant_id,
        ),
        refresh_token=create_refresh_token(user_id=user.id),
    )


@router.post("/login", response_model=TokenPair)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
):
    user = await authenticate_user(db, form_data.username, form_data.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid username or password")
    return _issue_tokens(user)


@router.post("/refresh", response_model=TokenPair)
async def refresh(
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db),
):
    try:
        payload = decode_token(body.refresh_token, expected_type="refresh")
    except TokenError as e:
        raise HTTPException(status_code=401, detail=str(e))

    try:
        user = await db.get(User, uuid.UUID(str(payload.get("sub"))))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid user id in token")
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return _issue_tokens(user)


@router.post("/register", response_model=MeOut, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    admin_user: User = Depends(require_admin),
):
    try:
        return await register_user(
            db,
            username=body.username,
            password=body.password,
            tenant_id=body.tenant_id,
            role=body.role,
            email=body.email,
        )
    except UserError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/change-password", status_code=status.HTTP_204_NO_CONTENT)
async def change_own_password(
    payload: ChangePasswordIn,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if payload.new_password != payload.confirm_new_password:
        raise HTTPException(status_code=400, detail="New password and confirmation do not match.")
    try:
        await change_password(
            db,
            current_user,
            current_password=payload.current_password,
            new_password=payload.new_password,
        )
    except UserError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
