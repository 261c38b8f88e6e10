"""
QR Menu Order Service - Shared route helpers
"""
from fastapi import HTTPException, Request, status

from qrmenu.core.errors import DomainError


def current_restaurant_id(request: Request) -> str:
    """Tenant of the authenticated admin (set by JWTAuthMiddleware)."""
    user = getattr(request.state, "user", None)
    if not user or not user.get("restaurant_id"):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated.")
    return user["restaurant_id"]


def http_error(exc: DomainError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=str(exc))
