"""
    Authentication Endpoints
    JWT session tokens for the API. Passwords are hashed with bcrypt and every
    token carries the user's token version, so changing the password revokes
    all previously issued tokens. Logout blacklists the presented token in
    Redis until it expires.
    Endpoints:
    - /register: Creates an account and issues an access token.
    - /token: OAuth2 password flow (used by the Swagger UI "Authorize" button).
    - /login: JSON body alternative to /token.
    - /me: Current user profile (GET) and profile update (PATCH).
    - /change-password: Verifies the current password and bumps the token version.
    - /logout: Revokes the presented token.
"""
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from jose import JWTError
import redis.asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from vibe.actions.errors import ActionError, Conflict
from vibe.api.dependencies import get_current_user, get_db, get_redis, oauth2_scheme
from vibe.core.security import create_access_token, decode_access_token, get_password_hash, verify_password
from vibe.logging import get_logger
from vibe.models.user import User
from vibe.schemas.auth import Login, Token
from vibe.schemas.common import ActionResult
from vibe.schemas.user import PasswordChange, UserCreate, UserOut, UserUpdate

router = APIRouter()
logger = get_logger(__name__)


def _session(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id)}, token_version=user.token_version)
    return {
        "user": UserOut.model_validate(user),
        "access_token": token,
        "token_type": "bearer",
    }


async def _authenticate(db: AsyncSession, email: str, password: str):
    result = await db.execute(select(User).filter(User.email == email.lower()))
    user = result.scalar_one_or_none()
    if not user or not verify_password(password, user.password):
        return None
    user.last_active_at = datetime.now(timezone.utc)
    await db.commit()
    return user


@router.post("/register", response_model=ActionResult, status_code=status.HTTP_201_CREATED)
async def register(payload: UserCreate, db: AsyncSession = Depends(get_db)):
    email = payload.email.lower()
    result = await db.execute(select(User).filter(User.email == email))
    if result.scalar_one_or_none():
        raise Conflict("Email already registered")

    user = User(name=payload.name, email=email, password=get_password_hash(payload.password))
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.great("User registered", user_id=user.id)
    return ActionResult(data=_session(user))


@router.post("/token", response_model=Token)
async def oauth2_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db)
):
    """
    Standard OAuth2 password flow.

    The OAuth2 `username` field carries the user's email.
    """
    user = await _authenticate(db, form_data.username, form_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(data={"sub": str(user.id)}, token_version=user.token_version)
    return {"access_token": access_token, "token_type": "bearer"}


@router.post("/login", response_model=ActionResult)
async def login(login_data: Login, db: AsyncSession = Depends(get_db)):
    """JSON body alternative to /token"""
    user = await _authenticate(db, login_data.email, login_data.password)
    if not user:
        raise ActionError("Invalid email or password", status_code=status.HTTP_401_UNAUTHORIZED)
    return ActionResult(data=_session(user))


@router.get("/me", response_model=ActionResult)
async def read_me(current_user: User = Depends(get_current_user)):
    return ActionResult(data=_session(current_user))


@router.patch("/me", response_model=ActionResult)
async def update_me(
    payload: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)
    await db.commit()
    await db.refresh(current_user)
    return ActionResult(data=UserOut.model_validate(current_user))


@router.post("/change-password", response_model=ActionResult)
async def change_password(
    payload: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Returns a fresh token; tokens issued before are no longer accepted"""
    if not verify_password(payload.current_password, current_user.password):
        raise ActionError("Current password is incorrect")

    current_user.password = get_password_hash(payload.new_password)
    current_user.token_version = (current_user.token_version or 1) + 1
    await db.commit()
    await db.refresh(current_user)

    logger.info("Password changed", user_id=current_user.id)
    return ActionResult(data=_session(current_user))


@router.post("/logout", response_model=ActionResult)
async def logout(
    token: str = Depends(oauth2_scheme),
    current_user: User = Depends(get_current_user),
    redis: aioredis.Redis = Depends(get_redis)
):
    try:
        payload = decode_access_token(token)
    except JWTError:
        raise ActionError("Invalid token", status_code=status.HTTP_401_UNAUTHORIZED)

    ttl = int(payload["exp"]) - int(datetime.now(timezone.utc).timestamp())
    if ttl > 0:
        await redis.setex(f"blacklist:{token}", ttl, "revoked")

    logger.info("User logged out", user_id=current_user.id)
    return ActionResult(data={"message": "Logout successful"})
