"""Per-document comment thread, displayed alongside the approval workflow."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from sowflow.errors.exceptions import NotFoundError, ValidationError
from sowflow.models.actor import Actor
from sowflow.models.comment import Comment, CommentCreate, ThreadedComment
from sowflow.models.enums import AuditAction
from sowflow.repositories.comment_repo import ApprovalCommentRepository
from sowflow.repositories.document_repo import DocumentRepository
from sowflow.services import audit
from sowflow.services.id_generator import generate_id

logger = logging.getLogger(__name__)


async def add_comment(
    document_id: str,
    body: CommentCreate,
    actor: Actor,
    session: AsyncSession,
) -> Comment:
    """Append a comment; a reply's parent must belong to the same document."""
    document = await DocumentRepository(session).get(document_id)
    if not document:
        raise NotFoundError("Document", document_id)

    text = body.text.strip()
    if not text:
        raise ValidationError("Comment text is required")

    repo = ApprovalCommentRepository(session)
    if body.parent_id and not await repo.get_in_document(body.parent_id, document_id):
        raise NotFoundError("Parent comment", body.parent_id)

    row = await repo.create(
        comment_id=generate_id("cmt_"),
        document_id=document_id,
        user_id=actor.id,
        text=text,
        is_internal=body.is_internal,
        parent_id=body.parent_id,
        version=document.version,
    )
    await audit.record_event(
        session,
        document_id,
        AuditAction.COMMENT_ADDED,
        user_id=actor.id,
        comments=text,
        details={"is_internal": body.is_internal, "parent_id": body.parent_id},
    )
    await session.commit()

    logger.info("Comment %s added to %s", row.comment_id, document_id)
    return Comment.model_validate(row)


def build_thread(comments: list[Comment]) -> list[ThreadedComment]:
    """Group a document's comments into roots with one level of replies.

    A reply to a reply is attached to the root it descends from. Roots and
    each root's replies are ordered by created_at ascending.
    """
    by_id = {c.comment_id: c for c in comments}

    def root_of(comment: Comment) -> Comment:
        seen = {comment.comment_id}
        while comment.parent_id and comment.parent_id in by_id and comment.parent_id not in seen:
            comment = by_id[comment.parent_id]
            seen.add(comment.comment_id)
        return comment

    roots: dict[str, ThreadedComment] = {}
    replies: dict[str, list[Comment]] = {}
    for c in comments:
        root = root_of(c)
        if root.comment_id == c.comment_id:
            roots[c.comment_id] = ThreadedComment(**c.model_dump())
        else:
            replies.setdefault(root.comment_id, []).append(c)

    thread = sorted(roots.values(), key=lambda c: c.created_at)
    for root in thread:
        root.replies = sorted(replies.get(root.comment_id, []), key=lambda c: c.created_at)
    return thread


async def list_threaded(document_id: str, session: AsyncSession) -> list[ThreadedComment]:
    rows = await ApprovalCommentRepository(session).list_by_document(document_id)
    return build_thread([Comment.model_validate(r) for r in rows])
