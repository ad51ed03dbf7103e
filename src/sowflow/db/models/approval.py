"""Per-document approval records."""

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from sowflow.db.base import Base, TimestampMixin


class DocumentApprovalRow(Base, TimestampMixin):
    __tablename__ = "document_approvals"
    __table_args__ = (
        UniqueConstraint("document_id", "stage_id", name="uq_document_approvals_document_stage"),
    )

    approval_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    document_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("documents.document_id"), nullable=False, index=True
    )
    stage_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("approval_stages.stage_id"), nullable=False
    )
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    approver_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # name, assigned_role, sort_order, auto_approve, requires_comment at workflow start
    stage_snapshot: Mapped[dict] = mapped_column(JSON, nullable=False)
