"""
QR Menu Order Service - JWT helpers (admin tokens scoped to one restaurant)
"""
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt

from qrmenu.core.config import get_settings

settings = get_settings()


def create_access_token(restaurant_id: str, subject: str, extra: dict[str, Any] | None = None) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    claims: dict[str, Any] = {
        "sub": subject,
        "restaurant_id": restaurant_id,
        "type": "access",
        "exp": expire,
    }
    if extra:
        claims.update(extra)
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
