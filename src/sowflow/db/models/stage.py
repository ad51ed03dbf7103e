"""Approval stage and rule configuration tables."""

from sqlalchemy import JSON, Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from sowflow.db.base import Base, TimestampMixin


class ApprovalStageRow(Base, TimestampMixin):
    __tablename__ = "approval_stages"

    stage_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    assigned_role: Mapped[str | None] = mapped_column(String(50), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    auto_approve: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    requires_comment: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class ApprovalRuleRow(Base, TimestampMixin):
    __tablename__ = "approval_rules"

    rule_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    condition_type: Mapped[str] = mapped_column(String(50), nullable=False)
    condition_value: Mapped[dict] = mapped_column(JSON, nullable=False)
    stage_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("approval_stages.stage_id"), nullable=False, index=True
    )
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
