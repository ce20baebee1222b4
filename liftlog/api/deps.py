"""Shared FastAPI dependencies: current user from a bearer token or session cookie."""

from __future__ import annotations

import logging
import uuid

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from liftlog.core.config import get_settings
from liftlog.core.security import decode_access_token
from liftlog.db.session import get_db
from liftlog.models.user import User

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/auth/login", auto_error=False)


def _unauthorized(detail: str = "Unauthorized") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_auth_token(request: Request, token: str | None = Depends(oauth2_scheme)) -> str | None:
    """Authorization header first (API clients), then the session cookie (browser)."""
    if token:
        return token
    return request.cookies.get(get_settings().session_cookie_name)


async def get_current_user(
    request: Request,
    token: str | None = Depends(get_auth_token),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the authenticated user or fail with 401."""
    if not token:
        logger.info("Auth failed: no token, path=%s", request.url.path)
        raise _unauthorized()
    try:
        user_id = uuid.UUID(decode_access_token(token))
    except ValueError as e:
        raise _unauthorized("Invalid authentication credentials") from e

    user = await db.get(User, user_id)
    if user is None:
        logger.warning("Auth failed: user %s from token no longer exists", user_id)
        raise _unauthorized()
    return user
