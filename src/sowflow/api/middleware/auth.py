"""JWT Bearer authentication middleware."""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from sowflow.services.security import decode_token

logger = logging.getLogger(__name__)

_ANONYMOUS = {"sub": "anonymous", "role": None, "is_admin": False}


class AuthMiddleware(BaseHTTPMiddleware):
    """Validate a Bearer token and attach the user claims to request.state.

    Missing credentials leave the request anonymous; routes that need an
    actor reject it through the get_current_actor dependency.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        auth_header = request.headers.get("authorization", "")
        if auth_header.startswith("Bearer "):
            request.state.user = self._validate_jwt(auth_header[7:])
        else:
            request.state.user = dict(_ANONYMOUS)
        return await call_next(request)

    def _validate_jwt(self, token: str) -> dict:
        try:
            payload = decode_token(token)
        except ValueError:
            return {**_ANONYMOUS, "_auth_error": "invalid_token"}

        if payload.get("type") != "access":
            return {**_ANONYMOUS, "_auth_error": "not_access_token"}

        return {
            "sub": payload.get("sub", ""),
            "role": payload.get("role"),
            "is_admin": bool(payload.get("is_admin", False)),
        }
