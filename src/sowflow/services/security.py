"""Password hashing and JWT issue/verify helpers."""

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from sowflow.config import settings

logger = logging.getLogger(__name__)


def make_tokens(user_id: str, role: str, is_admin: bool = False) -> tuple[str, str]:
    """Return (access_token, refresh_token)."""
    now = datetime.now(timezone.utc)
    access_payload = {
        "sub": user_id,
        "role": role,
        "is_admin": is_admin,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_access_token_expire_minutes),
        "type": "access",
    }
    refresh_payload = {
        "sub": user_id,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": now,
        "exp": now + timedelta(days=settings.jwt_refresh_token_expire_days),
        "type": "refresh",
    }

    key = settings.jwt_secret
    algo = settings.jwt_algorithm
    return (
        jwt.encode(access_payload, key, algorithm=algo),
        jwt.encode(refresh_payload, key, algorithm=algo),
    )


def decode_token(token: str) -> dict:
    """Decode and verify a token; raise ValueError when it is invalid."""
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
        )
    except JWTError as exc:
        logger.debug("JWT decode failed: %s", exc)
        raise ValueError(f"Invalid token: {exc}") from exc


def hash_password(password: str) -> str:
    salt = secrets.token_hex(16)
    h = hashlib.sha256(f"{salt}:{password}".encode()).hexdigest()
    return f"{salt}:{h}"


def verify_password(password: str, hashed: str) -> bool:
    parts = hashed.split(":", 1)
    if len(parts) != 2:
        return False
    salt, stored = parts
    h = hashlib.sha256(f"{salt}:{password}".encode()).hexdigest()
    return secrets.compare_digest(h, stored)
