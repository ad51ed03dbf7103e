"""Document approval repository."""

from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from sowflow.db.models.approval import DocumentApprovalRow
from sowflow.models.enums import ApprovalStatus
from sowflow.repositories.base import BaseRepository


class DocumentApprovalRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, DocumentApprovalRow)

    async def get(self, approval_id: str) -> DocumentApprovalRow | None:
        return await self.get_by_id("approval_id", approval_id)

    async def get_for_stage(self, document_id: str, stage_id: str) -> DocumentApprovalRow | None:
        return await self.get_where(document_id=document_id, stage_id=stage_id)

    async def list_by_document(self, document_id: str) -> list[DocumentApprovalRow]:
        """Approvals for one document, in stage order."""
        rows = await self.list_by_field("document_id", document_id)
        return sorted(rows, key=lambda r: (r.stage_snapshot.get("sort_order", 0), r.stage_id))

    async def count_for_document(self, document_id: str) -> int:
        stmt = select(func.count()).select_from(DocumentApprovalRow).where(
            DocumentApprovalRow.document_id == document_id
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def add_many(self, rows: list[DocumentApprovalRow]) -> list[DocumentApprovalRow]:
        """Insert all rows in one flush; the caller's transaction makes them a unit."""
        self.session.add_all(rows)
        await self.session.flush()
        return rows

    async def resolve_if_pending(
        self,
        document_id: str,
        stage_id: str,
        status: ApprovalStatus,
        approver_id: str,
        comments: str | None,
    ) -> bool:
        """Compare-and-swap a pending approval to a terminal status.

        Returns False when no pending row matched, i.e. another actor resolved
        it first.
        """
        now = datetime.now(timezone.utc)
        stmt = (
            update(DocumentApprovalRow)
            .where(
                DocumentApprovalRow.document_id == document_id,
                DocumentApprovalRow.stage_id == stage_id,
                DocumentApprovalRow.status == ApprovalStatus.PENDING.value,
            )
            .values(
                status=status.value,
                approver_id=approver_id,
                comments=comments,
                resolved_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
