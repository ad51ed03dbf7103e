"""SQLAlchemy ORM models - import all to register with Base.metadata."""

from sowflow.db.models.document import DocumentRow
from sowflow.db.models.stage import ApprovalStageRow, ApprovalRuleRow
from sowflow.db.models.approval import DocumentApprovalRow
from sowflow.db.models.comment import ApprovalCommentRow
from sowflow.db.models.audit import ApprovalAuditRow
from sowflow.db.models.user import UserRow

__all__ = [
    "DocumentRow",
    "ApprovalStageRow",
    "ApprovalRuleRow",
    "DocumentApprovalRow",
    "ApprovalCommentRow",
    "ApprovalAuditRow",
    "UserRow",
]
