"""Approval comment repository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sowflow.db.models.comment import ApprovalCommentRow
from sowflow.repositories.base import BaseRepository


class ApprovalCommentRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, ApprovalCommentRow)

    async def get(self, comment_id: str) -> ApprovalCommentRow | None:
        return await self.get_by_id("comment_id", comment_id)

    async def get_in_document(self, comment_id: str, document_id: str) -> ApprovalCommentRow | None:
        return await self.get_where(comment_id=comment_id, document_id=document_id)

    async def list_by_document(self, document_id: str) -> list[ApprovalCommentRow]:
        stmt = (
            select(ApprovalCommentRow)
            .where(ApprovalCommentRow.document_id == document_id)
            .order_by(ApprovalCommentRow.created_at.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
