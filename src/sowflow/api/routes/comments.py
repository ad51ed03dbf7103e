"""Document comment thread routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sowflow.dependencies import CurrentActor, get_db
from sowflow.errors.exceptions import NotFoundError
from sowflow.models.comment import CommentCreate
from sowflow.repositories.document_repo import DocumentRepository
from sowflow.services import comments as comment_service

router = APIRouter(tags=["Comments"])


@router.post("/documents/{document_id}/comments", status_code=201)
async def add_comment(
    document_id: str,
    body: CommentCreate,
    actor: CurrentActor,
    db: AsyncSession = Depends(get_db),
) -> dict:
    comment = await comment_service.add_comment(document_id, body, actor, db)
    return comment.model_dump(mode="json")


@router.get("/documents/{document_id}/comments")
async def list_comments(
    document_id: str,
    actor: CurrentActor,
    db: AsyncSession = Depends(get_db),
) -> list[dict]:
    if not await DocumentRepository(db).get(document_id):
        raise NotFoundError("Document", document_id)
    thread = await comment_service.list_threaded(document_id, db)
    return [c.model_dump(mode="json") for c in thread]
