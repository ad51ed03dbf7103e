"""Approval audit log repository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sowflow.db.models.audit import ApprovalAuditRow
from sowflow.models.audit import AuditFilter
from sowflow.repositories.base import BaseRepository


class ApprovalAuditRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, ApprovalAuditRow)

    async def append(self, **kwargs) -> ApprovalAuditRow:
        return await self.create(**kwargs)

    async def list_by_document(
        self, document_id: str, filters: AuditFilter | None = None
    ) -> list[ApprovalAuditRow]:
        """Audit entries for a document, newest first."""
        stmt = select(ApprovalAuditRow).where(ApprovalAuditRow.document_id == document_id)
        if filters is not None:
            if filters.action:
                stmt = stmt.where(ApprovalAuditRow.action == filters.action.value)
            if filters.user_id:
                stmt = stmt.where(ApprovalAuditRow.user_id == filters.user_id)
            if filters.since:
                stmt = stmt.where(ApprovalAuditRow.created_at >= filters.since)
            if filters.until:
                stmt = stmt.where(ApprovalAuditRow.created_at <= filters.until)
        stmt = stmt.order_by(ApprovalAuditRow.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
