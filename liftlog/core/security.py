"""Security utilities: password hashing and JWT session tokens."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from liftlog.core.config import get_settings
from liftlog.core.constants import REMEMBER_ME_CLAIM

logger = logging.getLogger(__name__)

password_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(plain: str) -> str:
    return password_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    return password_context.verify(plain, hashed)


def token_lifetime(remember_me: bool) -> timedelta:
    """Short-lived session by default, long-lived when the user asked to be remembered."""
    settings = get_settings()
    if remember_me:
        return timedelta(days=settings.remember_me_expire_days)
    return timedelta(hours=settings.access_token_expire_hours)


def create_access_token(user_id: str, remember_me: bool = False, now: datetime | None = None) -> str:
    """Create a signed JWT carrying the user id in ``sub``.

    Raises:
        ValueError: if ``user_id`` is empty.
    """
    user_id_str = str(user_id) if user_id is not None else ""
    if not user_id_str:
        raise ValueError("user_id cannot be None or empty")

    settings = get_settings()
    issued = now or datetime.now(timezone.utc)
    payload = {
        "sub": user_id_str,
        "iat": issued,
        "exp": issued + token_lifetime(remember_me),
        "iss": settings.jwt_issuer,
        REMEMBER_ME_CLAIM: remember_me,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> str:
    """Verify a token and return the user id from its ``sub`` claim.

    Raises:
        ValueError: if the token is malformed, tampered with or expired.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
        )
    except JWTError as e:
        logger.warning("JWT decode failed: %s", e)
        raise ValueError("Invalid or expired token") from e
    user_id = payload.get("sub")
    if not user_id:
        raise ValueError("Token missing user ID")
    return str(user_id)
