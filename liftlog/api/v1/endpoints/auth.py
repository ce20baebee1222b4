"""Registration and credentials login.

Login issues a JWT whose lifetime depends on ``remember_me`` (1 day vs 30 days)
and sets it both in the response body and as the session cookie.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from liftlog.api.deps import get_current_user
from liftlog.core.config import get_settings
from liftlog.core.security import create_access_token, hash_password, token_lifetime, verify_password
from liftlog.db.session import get_db
from liftlog.models.user import User
from liftlog.schemas.auth import TokenRead, UserLogin, UserRead, UserRegister

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/register", response_model=UserRead, status_code=201)
async def register(
    payload: UserRegister,
    db: AsyncSession = Depends(get_db),
):
    """Create an account. Emails are unique (case-insensitive)."""
    result = await db.execute(select(User).where(User.email == payload.email))
    if result.scalar_one_or_none() is not None:
        raise HTTPException(status_code=400, detail="User already exists")

    user = User(
        email=payload.email,
        name=payload.name,
        password_hash=hash_password(payload.password),
    )
    db.add(user)
    await db.flush()
    logger.info("Registered user %s", user.id)
    return user


@router.post("/login", response_model=TokenRead)
async def login(
    payload: UserLogin,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Verify credentials; same error for unknown email and wrong password."""
    result = await db.execute(select(User).where(User.email == payload.email))
    user = result.scalar_one_or_none()
    if user is None or not verify_password(payload.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    settings = get_settings()
    now = datetime.now(timezone.utc)
    lifetime = token_lifetime(payload.remember_me)
    token = create_access_token(str(user.id), remember_me=payload.remember_me, now=now)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=int(lifetime.total_seconds()),
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
    )
    return TokenRead(
        access_token=token,
        expires_at=now + lifetime,
        remember_me=payload.remember_me,
        user=UserRead.model_validate(user),
    )


@router.post("/logout", status_code=204)
async def logout(response: Response):
    """Drop the session cookie. Bearer tokens simply expire."""
    response.delete_cookie(get_settings().session_cookie_name)
    return None


@router.get("/me", response_model=UserRead)
async def me(user: User = Depends(get_current_user)):
    return user
