"""Master API router mounted at /api/v1."""

from fastapi import APIRouter

from sowflow.api.routes import admin, audit, auth, comments, documents, health, workflow

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(auth.router)
api_router.include_router(documents.router)
api_router.include_router(workflow.router)
api_router.include_router(comments.router)
api_router.include_router(audit.router)
api_router.include_router(admin.router)
