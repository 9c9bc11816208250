"""
Principal middleware.

Runs on every request (except PUBLIC_ROUTES):
  1. Decode the bearer JWT → principal id (`sub`) and unit (`unit`)
  2. Set request.state.principal_id, request.state.unit

Requests without a principal are rejected with 401 here, before any
policy is loaded or evaluated.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from iam.auth.helpers import decode_access_token
from iam.utils import Unauthenticated


# Routes that skip principal resolution
PUBLIC_ROUTES = [
    "/health",
    "/openapi.json",
    "/api/docs",
    "/redoc",
]


def _unauthenticated(detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={"detail": detail},
        headers={"WWW-Authenticate": "Bearer"},
    )


class AuthPrincipalMiddleware(BaseHTTPMiddleware):
    """Resolves the bearer token to a principal before any handler runs."""

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS":
            return await call_next(request)

        path = request.url.path
        if any(path.endswith(route) for route in PUBLIC_ROUTES):
            return await call_next(request)

        auth_header = request.headers.get("Authorization")
        if not auth_header:
            return _unauthenticated("Missing Authorization header")

        if not auth_header.startswith("Bearer "):
            return _unauthenticated("Invalid token format. Expected 'Bearer <token>'")

        token = auth_header.split(" ", 1)[1].strip()
        try:
            payload = decode_access_token(token)
        except Unauthenticated as e:
            return _unauthenticated(e.detail)

        principal_id = payload.get("sub")
        unit = payload.get("unit")
        if not principal_id or not unit:
            return _unauthenticated("Token carries no principal")

        request.state.principal_id = principal_id
        request.state.unit = unit
        return await call_next(request)
