"""FastAPI dependency injection providers."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request

from sowflow.errors.exceptions import AuthenticationError, AuthorizationError
from sowflow.logging_config import bind_request_context
from sowflow.models.actor import Actor


async def get_db(request: Request) -> AsyncGenerator:
    """Yield a database session from the app's session factory."""
    session_factory = request.app.state.db_session_factory
    async with session_factory() as session:
        yield session


def get_trace_id(request: Request) -> str:
    """Extract trace_id from request state (set by middleware)."""
    return getattr(request.state, "trace_id", "unknown")


async def get_current_user(request: Request) -> dict:
    """Return the authenticated user dict or raise 401."""
    user = getattr(request.state, "user", {})
    if "_auth_error" in (user or {}):
        raise AuthenticationError(user["_auth_error"])
    if not user or user.get("sub") in ("anonymous", ""):
        raise AuthenticationError("Authentication required")
    return user


async def get_current_actor(request: Request, user: dict = Depends(get_current_user)) -> Actor:
    """Build the explicit Actor passed into every workflow call."""
    try:
        actor = Actor.from_claims(user)
    except ValueError as exc:
        raise AuthenticationError(f"Unknown role '{user.get('role')}'") from exc
    bind_request_context(
        get_trace_id(request),
        user_id=actor.id,
        document_id=request.path_params.get("document_id"),
    )
    return actor


async def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    if not actor.is_admin:
        raise AuthorizationError("Admin access required")
    return actor


# Type aliases for dependency injection
CurrentActor = Annotated[Actor, Depends(get_current_actor)]
AdminActor = Annotated[Actor, Depends(require_admin)]
