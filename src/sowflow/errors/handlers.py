"""FastAPI exception handlers producing the standard ErrorResponse body."""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from sowflow.errors.exceptions import AuthorizationError, ConflictError, SowflowError
from sowflow.models.common import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers on the FastAPI app."""

    @app.exception_handler(SowflowError)
    async def sowflow_error_handler(request: Request, exc: SowflowError):
        trace_id = getattr(request.state, "trace_id", "unknown")
        user = getattr(request.state, "user", {}) or {}
        if isinstance(exc, AuthorizationError):
            logger.warning(
                "workflow_access_denied",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "user_sub": user.get("sub", "anonymous"),
                    "user_role": user.get("role"),
                    "reason": str(exc),
                },
            )
        elif isinstance(exc, ConflictError):
            logger.info(
                "workflow_conflict",
                extra={"path": request.url.path, "reason": str(exc)},
            )
        error_response = ErrorResponse(
            schema_version="1.0",
            error=ErrorDetail(
                code=exc.code,
                message=exc.message,
                details=exc.details,
                trace_id=trace_id,
                timestamp=datetime.now(timezone.utc),
            ),
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response.model_dump(mode="json", exclude_none=True),
        )
