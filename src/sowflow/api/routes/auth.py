"""Authentication and user management routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sowflow.config import settings
from sowflow.dependencies import AdminActor, CurrentActor, get_db
from sowflow.errors.exceptions import AuthenticationError, ConflictError, NotFoundError
from sowflow.models.user import RefreshRequest, TokenResponse, UserCreate, UserLogin, UserResponse
from sowflow.repositories.user_repo import UserRepository
from sowflow.services.id_generator import generate_id
from sowflow.services.security import decode_token, hash_password, make_tokens, verify_password

router = APIRouter(tags=["Auth"])


@router.post("/auth/login", response_model=TokenResponse)
async def login(body: UserLogin, db: AsyncSession = Depends(get_db)):
    repo = UserRepository(db)
    user = await repo.get_by_email(body.email)
    if not user or not user.hashed_password or not user.is_active:
        raise AuthenticationError("Invalid email or password")
    if not verify_password(body.password, user.hashed_password):
        raise AuthenticationError("Invalid email or password")

    await repo.update_last_login(user)
    await db.commit()

    access_token, refresh_token = make_tokens(user.user_id, user.role, user.is_admin)
    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.jwt_access_token_expire_minutes * 60,
    )


@router.post("/auth/refresh", response_model=TokenResponse)
async def refresh_token(body: RefreshRequest, db: AsyncSession = Depends(get_db)):
    try:
        payload = decode_token(body.refresh_token)
    except ValueError as exc:
        raise AuthenticationError(f"Invalid refresh token: {exc}") from exc

    if payload.get("type") != "refresh":
        raise AuthenticationError("Not a refresh token")

    user = await UserRepository(db).get(payload.get("sub", ""))
    if not user or not user.is_active:
        raise AuthenticationError("User not found or inactive")

    access_token, new_refresh = make_tokens(user.user_id, user.role, user.is_admin)
    return TokenResponse(
        access_token=access_token,
        refresh_token=new_refresh,
        expires_in=settings.jwt_access_token_expire_minutes * 60,
    )


@router.get("/auth/me", response_model=UserResponse)
async def me(actor: CurrentActor, db: AsyncSession = Depends(get_db)):
    user = await UserRepository(db).get(actor.id)
    if not user:
        raise NotFoundError("User", actor.id)
    return user


@router.post("/users", response_model=UserResponse, status_code=201)
async def create_user(body: UserCreate, actor: AdminActor, db: AsyncSession = Depends(get_db)):
    repo = UserRepository(db)
    if await repo.get_by_email(body.email):
        raise ConflictError(f"User with email '{body.email}' already exists")

    user = await repo.create(
        user_id=generate_id("usr_"),
        email=body.email,
        display_name=body.display_name,
        hashed_password=hash_password(body.password),
        role=body.role.value,
        is_admin=body.is_admin,
        is_active=True,
    )
    await db.commit()
    return user
