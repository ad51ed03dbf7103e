"""Pydantic models for stages, rules, approvals and workflow status."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from sowflow.models.comment import ThreadedComment
from sowflow.models.enums import ApprovalAction, ApprovalStatus, ConditionType, Role, StageKind


class Stage(BaseModel):
    """A stage definition, either live from the catalog or snapshotted onto an Approval."""

    model_config = ConfigDict(from_attributes=True)

    stage_id: str
    name: str
    description: str | None = None
    assigned_role: Role | None = None
    sort_order: int
    auto_approve: bool = False
    requires_comment: bool = False
    is_active: bool = True

    @property
    def kind(self) -> StageKind:
        return StageKind.of(self.name)

    def snapshot(self) -> dict:
        """Fields copied onto each Approval at workflow start."""
        return self.model_dump(mode="json", exclude={"stage_id", "is_active", "description"})


class Rule(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rule_id: str
    condition_type: ConditionType
    condition_value: dict[str, Any]
    stage_id: str
    sort_order: int = 0
    is_active: bool = True


class Approval(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    approval_id: str
    document_id: str
    stage_id: str
    status: ApprovalStatus
    approver_id: str | None = None
    comments: str | None = None
    version: int = 1
    resolved_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    stage: Stage

    @classmethod
    def from_row(cls, row) -> "Approval":
        return cls(
            approval_id=row.approval_id,
            document_id=row.document_id,
            stage_id=row.stage_id,
            status=row.status,
            approver_id=row.approver_id,
            comments=row.comments,
            version=row.version,
            resolved_at=row.resolved_at,
            created_at=row.created_at,
            updated_at=row.updated_at,
            stage=Stage(stage_id=row.stage_id, **row.stage_snapshot),
        )


# ── Requests ──────────────────────────────────────────────────────────────────


class StartWorkflowRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    amount: float | None = Field(None, ge=0)


class StageActionRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    action: ApprovalAction
    comments: str | None = Field(None, max_length=5000)


class StageUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    assigned_role: Role | None = None
    description: str | None = None
    sort_order: int | None = None
    auto_approve: bool | None = None
    requires_comment: bool | None = None
    is_active: bool | None = None


class RuleCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    condition_type: ConditionType
    condition_value: dict[str, Any]
    stage_id: str
    sort_order: int = 0
    is_active: bool = True


class RuleUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    condition_value: dict[str, Any] | None = None
    sort_order: int | None = None
    is_active: bool | None = None


# ── Responses ─────────────────────────────────────────────────────────────────


class StartWorkflowResult(BaseModel):
    document_id: str
    stages_created: int
    stage_ids: list[str]
    used_fallback: bool


class WorkflowStatus(BaseModel):
    document_id: str
    started: bool
    current_stage: Stage | None = None
    next_stage: Stage | None = None
    approvals: list[Approval] = Field(default_factory=list)
    comments: list[ThreadedComment] = Field(default_factory=list)
    can_approve: bool = False
    can_reject: bool = False
    can_skip: bool = False
    is_complete: bool = False
    bypassed: bool = False
    is_rejected: bool = False


class ApprovalStats(BaseModel):
    total_approvals: int = 0
    pending_approvals: int = 0
    approved_approvals: int = 0
    rejected_approvals: int = 0
    skipped_approvals: int = 0
    workflow_status: str = "no_workflow"
