"""String enums for roles, stages, statuses and audit actions."""

from enum import StrEnum


class Role(StrEnum):
    USER = "user"
    SALES = "sales"
    PRO_SERVICES = "pro_services"
    SOLUTION_CONSULTANT = "solution_consultant"
    PMO = "pmo"
    MANAGER = "manager"
    DIRECTOR = "director"
    VP = "vp"
    ADMIN = "admin"


class StageKind(StrEnum):
    """Stage names the workflow engine attaches behaviour to.

    Stages with any other name are CUSTOM: they can be required by rules and
    acted on by an admin, but never gate or complete the workflow.
    """

    MANAGER = "Manager Approval"
    DIRECTOR = "Director Approval"
    VP = "VP Approval"
    CUSTOM = "custom"

    @classmethod
    def of(cls, stage_name: str | None) -> "StageKind":
        for kind in (cls.MANAGER, cls.DIRECTOR, cls.VP):
            if stage_name == kind.value:
                return kind
        return cls.CUSTOM


class ApprovalStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SKIPPED = "skipped"


class ApprovalAction(StrEnum):
    APPROVE = "approve"
    REJECT = "reject"
    SKIP = "skip"

    @property
    def resulting_status(self) -> ApprovalStatus:
        return _ACTION_STATUS[self]


_ACTION_STATUS = {
    ApprovalAction.APPROVE: ApprovalStatus.APPROVED,
    ApprovalAction.REJECT: ApprovalStatus.REJECTED,
    ApprovalAction.SKIP: ApprovalStatus.SKIPPED,
}


class DocumentStatus(StrEnum):
    DRAFT = "draft"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class ConditionType(StrEnum):
    AMOUNT = "amount"


class AuditAction(StrEnum):
    WORKFLOW_STARTED = "workflow_started"
    APPROVE = "approve"
    REJECT = "reject"
    SKIP = "skip"
    COMMENT_ADDED = "comment_added"
    STATUS_CHANGE = "status_change"
