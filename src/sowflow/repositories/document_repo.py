"""Document projection repository."""

from sqlalchemy.ext.asyncio import AsyncSession

from sowflow.db.models.document import DocumentRow
from sowflow.repositories.base import BaseRepository


class DocumentRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, DocumentRow)

    async def get(self, document_id: str) -> DocumentRow | None:
        return await self.get_by_id("document_id", document_id)

    async def set_status(self, document: DocumentRow, status: str) -> DocumentRow:
        return await self.update(document, status=status)
