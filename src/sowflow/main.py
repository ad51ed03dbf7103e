"""FastAPI application factory and lifespan management."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sowflow.config import settings
from sowflow.db.engine import create_db_engine, create_session_factory
from sowflow.logging_config import configure_logging

# Configure logging at import time; console output in local mode, JSON otherwise
configure_logging(log_level=settings.log_level, json_output=not settings.local_mode)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application startup and shutdown resources."""
    engine = create_db_engine()
    session_factory = create_session_factory(engine)

    # Auto-create tables and seed defaults for SQLite (local dev, no migrations)
    if settings.local_mode:
        from sowflow.db.base import Base
        import sowflow.db.models  # noqa: F401 - register all ORM models
        from sowflow.services.default_stages import seed_bootstrap_admin, seed_default_stages

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("SQLite tables created (local mode)")

        async with session_factory() as seed_session:
            created = await seed_default_stages(seed_session)
            await seed_bootstrap_admin(seed_session)
            await seed_session.commit()
            if created:
                logger.info("Seeded %d default approval stages", created)

    app.state.db_engine = engine
    app.state.db_session_factory = session_factory

    logger.info("sowflow API started (db=%s)", "sqlite" if settings.local_mode else "postgresql")
    yield

    await engine.dispose()
    logger.info("sowflow API shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="sowflow API",
        version="1.0.0",
        description="Approval workflow engine for statements of work.",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Rate limiting sits inside auth so its key function sees the user
    from sowflow.api.middleware.rate_limit import setup_rate_limiter
    setup_rate_limiter(app)

    # Add middleware (order matters: last added = first executed)
    from sowflow.api.middleware.auth import AuthMiddleware
    from sowflow.api.middleware.trace_id import TraceIdMiddleware
    app.add_middleware(AuthMiddleware)
    app.add_middleware(TraceIdMiddleware)

    from sowflow.errors.handlers import register_exception_handlers
    register_exception_handlers(app)

    from sowflow.api.router import api_router
    app.include_router(api_router)

    return app


app = create_app()
