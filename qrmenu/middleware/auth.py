"""
QR Menu Order Service - JWT Authentication Middleware
Validates Bearer token on /admin routes; returns 401 on failure.
Customer-facing routes (menu checkout, tracking, coupon check) stay public.
"""
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from jose import JWTError

from qrmenu.core.security import decode_token

PROTECTED_PREFIX = "/admin"


class JWTAuthMiddleware(BaseHTTPMiddleware):
    """
    Intercepts admin requests. Validates the JWT Bearer token and requires a
    restaurant_id claim. Attaches decoded claims to request.state.user.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS":
            return await call_next(request)

        if not request.url.path.startswith(PROTECTED_PREFIX):
            return await call_next(request)

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return JSONResponse(
                status_code=401,
                content={"detail": "Missing or invalid Authorization header. Expected: Bearer <token>"},
                headers={"WWW-Authenticate": "Bearer"},
            )

        token = auth_header.split(" ", 1)[1]
        try:
            claims = decode_token(token)
        except JWTError as exc:
            return JSONResponse(
                status_code=401,
                content={"detail": f"Invalid or expired JWT: {str(exc)}"},
                headers={"WWW-Authenticate": "Bearer"},
            )

        if not claims.get("restaurant_id"):
            return JSONResponse(
                status_code=403,
                content={"detail": "Token is not scoped to a restaurant."},
            )

        request.state.user = claims
        return await call_next(request)
