"""Document projection routes: the minimal document the workflow reviews."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sowflow.dependencies import CurrentActor, get_db
from sowflow.errors.exceptions import NotFoundError
from sowflow.models.document import Document, DocumentCreate
from sowflow.models.enums import DocumentStatus
from sowflow.repositories.document_repo import DocumentRepository
from sowflow.services.id_generator import generate_id

router = APIRouter(tags=["Documents"])


@router.post("/documents", status_code=201)
async def create_document(
    body: DocumentCreate,
    actor: CurrentActor,
    db: AsyncSession = Depends(get_db),
) -> dict:
    row = await DocumentRepository(db).create(
        document_id=generate_id("doc_"),
        title=body.title,
        amount=body.amount,
        status=DocumentStatus.DRAFT.value,
        version=1,
        created_by=actor.id,
    )
    await db.commit()
    return Document.model_validate(row).model_dump(mode="json")


@router.get("/documents/{document_id}")
async def get_document(
    document_id: str,
    actor: CurrentActor,
    db: AsyncSession = Depends(get_db),
) -> dict:
    row = await DocumentRepository(db).get(document_id)
    if not row:
        raise NotFoundError("Document", document_id)
    return Document.model_validate(row).model_dump(mode="json")
