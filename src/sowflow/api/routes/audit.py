"""Approval audit trail routes."""

from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from sowflow.dependencies import CurrentActor, get_db
from sowflow.errors.exceptions import NotFoundError
from sowflow.models.audit import AuditFilter
from sowflow.models.enums import AuditAction
from sowflow.repositories.document_repo import DocumentRepository
from sowflow.services import audit as audit_service

router = APIRouter(tags=["Audit"])


async def _require_document(document_id: str, db: AsyncSession) -> None:
    if not await DocumentRepository(db).get(document_id):
        raise NotFoundError("Document", document_id)


@router.get("/documents/{document_id}/audit")
async def list_audit_entries(
    document_id: str,
    actor: CurrentActor,
    action: AuditAction | None = None,
    user_id: str | None = None,
    since: datetime | None = None,
    until: datetime | None = None,
    db: AsyncSession = Depends(get_db),
) -> list[dict]:
    await _require_document(document_id, db)
    filters = AuditFilter(action=action, user_id=user_id, since=since, until=until)
    entries = await audit_service.list_entries(db, document_id, filters)
    return [e.model_dump(mode="json") for e in entries]


@router.get("/documents/{document_id}/audit/summary")
async def get_audit_summary(
    document_id: str,
    actor: CurrentActor,
    db: AsyncSession = Depends(get_db),
) -> dict:
    await _require_document(document_id, db)
    entries = await audit_service.list_entries(db, document_id)
    return audit_service.summarize(entries).model_dump(mode="json")


@router.get("/documents/{document_id}/audit/export", response_class=PlainTextResponse)
async def export_audit_trail(
    document_id: str,
    actor: CurrentActor,
    db: AsyncSession = Depends(get_db),
) -> PlainTextResponse:
    await _require_document(document_id, db)
    entries = await audit_service.list_entries(db, document_id)
    return PlainTextResponse(
        audit_service.export_csv(entries),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="audit-{document_id}.csv"'},
    )
