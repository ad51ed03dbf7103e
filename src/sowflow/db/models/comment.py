"""Document comment thread table."""

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from sowflow.db.base import Base, TimestampMixin


class ApprovalCommentRow(Base, TimestampMixin):
    __tablename__ = "approval_comments"

    comment_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    document_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("documents.document_id"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    is_internal: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    parent_id: Mapped[str | None] = mapped_column(
        String(128), ForeignKey("approval_comments.comment_id"), nullable=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
