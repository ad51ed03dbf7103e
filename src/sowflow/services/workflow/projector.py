"""Derive the observable workflow state from a document's approvals."""

from dataclasses import dataclass, field

from sowflow.models.enums import ApprovalStatus, StageKind
from sowflow.models.workflow import Approval, Stage
from sowflow.services.workflow.catalog import StageCatalog


@dataclass
class WorkflowProjection:
    current_stage: Stage | None = None
    next_stage: Stage | None = None
    is_complete: bool = False
    bypassed: bool = False
    is_rejected: bool = False
    approvals: list[Approval] = field(default_factory=list)


def project_status(approvals: list[Approval], catalog: StageCatalog | None = None) -> WorkflowProjection:
    """Apply bypass and sequential gating, in priority order.

    1. VP approved: complete, regardless of every other stage.
    2. Director approved: complete.
    3. Manager approved: Director is current if it is part of this instance,
       otherwise complete.
    4. Otherwise Manager is current, taken from the instance or else the catalog.
    """
    approved = {a.stage.kind for a in approvals if a.status is ApprovalStatus.APPROVED}
    in_instance: dict[StageKind, Stage] = {}
    for a in approvals:
        in_instance.setdefault(a.stage.kind, a.stage)

    projection = WorkflowProjection(
        approvals=list(approvals),
        is_rejected=any(a.status is ApprovalStatus.REJECTED for a in approvals),
    )

    if StageKind.VP in approved:
        projection.is_complete = True
        projection.bypassed = True
    elif StageKind.DIRECTOR in approved:
        projection.is_complete = True
    elif StageKind.MANAGER in approved:
        projection.current_stage = in_instance.get(StageKind.DIRECTOR)
        projection.is_complete = projection.current_stage is None
    else:
        projection.current_stage = in_instance.get(StageKind.MANAGER)
        if projection.current_stage is None and catalog is not None:
            projection.current_stage = catalog.find(StageKind.MANAGER)

    if projection.current_stage is not None:
        projection.next_stage = _next_stage(projection.current_stage, approvals)
    return projection


def _next_stage(current: Stage, approvals: list[Approval]) -> Stage | None:
    later = [a.stage for a in approvals if a.stage.sort_order > current.sort_order]
    return min(later, key=lambda s: (s.sort_order, s.stage_id), default=None)
