"""Approval workflow engine: start, act on a stage, and report status.

All state lives in the database between calls; every function takes the
acting ``Actor`` and an ``AsyncSession`` explicitly and commits its own
transaction. A failed mutation rolls back and leaves no partial rows.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sowflow.config import settings
from sowflow.db.models.approval import DocumentApprovalRow
from sowflow.db.models.document import DocumentRow
from sowflow.errors.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from sowflow.models.actor import Actor
from sowflow.models.enums import ApprovalAction, ApprovalStatus, AuditAction, DocumentStatus
from sowflow.models.workflow import Approval, ApprovalStats, Rule, Stage, StartWorkflowResult, WorkflowStatus
from sowflow.repositories.approval_repo import DocumentApprovalRepository
from sowflow.repositories.document_repo import DocumentRepository
from sowflow.repositories.stage_repo import ApprovalRuleRepository
from sowflow.services import audit
from sowflow.services.comments import list_threaded
from sowflow.services.id_generator import generate_id
from sowflow.services.workflow.catalog import load_stage_catalog
from sowflow.services.workflow.permissions import permissions_for
from sowflow.services.workflow.projector import WorkflowProjection, project_status
from sowflow.services.workflow.rules import DocumentAttributes, required_stages

logger = logging.getLogger(__name__)


async def _get_document(document_id: str, session: AsyncSession) -> DocumentRow:
    document = await DocumentRepository(session).get(document_id)
    if not document:
        raise NotFoundError("Document", document_id)
    return document


async def _load_approvals(document_id: str, session: AsyncSession) -> list[Approval]:
    rows = await DocumentApprovalRepository(session).list_by_document(document_id)
    return [Approval.from_row(r) for r in rows]


async def _project(document_id: str, session: AsyncSession) -> WorkflowProjection:
    approvals = await _load_approvals(document_id, session)
    catalog = await load_stage_catalog(session)
    return project_status(approvals, catalog)


async def start_workflow(
    document_id: str,
    amount: float | None,
    actor: Actor,
    session: AsyncSession,
) -> StartWorkflowResult:
    """Create one pending approval per required stage and put the document in review."""
    if not actor.is_admin:
        raise AuthorizationError("Only administrators can start an approval workflow")

    document = await _get_document(document_id, session)
    if amount is None:
        amount = document.amount
    if amount is None:
        raise ValidationError("An amount is required to start the approval workflow")

    approval_repo = DocumentApprovalRepository(session)
    if await approval_repo.count_for_document(document_id):
        raise ConflictError(f"Approval workflow already exists for document '{document_id}'")

    catalog = await load_stage_catalog(session)
    rules = [Rule.model_validate(r) for r in await ApprovalRuleRepository(session).list_all()]
    required = required_stages(
        rules, catalog, DocumentAttributes(amount=amount), settings.default_stage_count
    )
    if not required.stage_ids:
        raise ValidationError("No active approval stages are configured")

    rows = [
        DocumentApprovalRow(
            approval_id=generate_id("apv_"),
            document_id=document_id,
            stage_id=stage_id,
            status=ApprovalStatus.PENDING.value,
            version=1,
            stage_snapshot=catalog.get(stage_id).snapshot(),
        )
        for stage_id in required.stage_ids
    ]

    previous_status = document.status
    try:
        await approval_repo.add_many(rows)
        document.amount = amount
        document.status = DocumentStatus.IN_REVIEW.value
        for row in rows:
            await audit.record_event(
                session,
                document_id,
                AuditAction.WORKFLOW_STARTED,
                user_id=actor.id,
                approval_id=row.approval_id,
                new_status=ApprovalStatus.PENDING.value,
                details={"stage_id": row.stage_id, "stage_name": row.stage_snapshot["name"]},
            )
        await audit.record_event(
            session,
            document_id,
            AuditAction.STATUS_CHANGE,
            user_id=actor.id,
            previous_status=previous_status,
            new_status=DocumentStatus.IN_REVIEW.value,
        )
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        logger.info("Concurrent workflow start for %s rejected: %s", document_id, exc.orig)
        raise ConflictError(f"Approval workflow already exists for document '{document_id}'") from exc

    logger.info(
        "Approval workflow started for %s with %d stages (fallback=%s)",
        document_id,
        len(rows),
        required.used_fallback,
    )
    return StartWorkflowResult(
        document_id=document_id,
        stages_created=len(rows),
        stage_ids=required.stage_ids,
        used_fallback=required.used_fallback,
    )


async def act_on_stage(
    document_id: str,
    stage_id: str,
    action: ApprovalAction,
    actor: Actor,
    session: AsyncSession,
    comments: str | None = None,
) -> Approval:
    """Resolve one pending approval. Conflict if someone else resolved it first."""
    approval_repo = DocumentApprovalRepository(session)
    row = await approval_repo.get_for_stage(document_id, stage_id)
    if not row:
        raise NotFoundError("Approval", f"{document_id}/{stage_id}")

    target = Approval.from_row(row)
    if target.status is not ApprovalStatus.PENDING:
        raise ConflictError(
            f"Stage '{target.stage.name}' is already '{target.status.value}'",
            details={"stage_id": stage_id, "status": target.status.value},
        )

    projection = await _project(document_id, session)
    permissions = permissions_for(actor, projection.current_stage, target.stage)
    if not permissions.allows(action):
        raise AuthorizationError(
            f"Role '{actor.role.value}' may not {action.value} stage '{target.stage.name}'"
        )

    comments = (comments or "").strip() or None
    if target.stage.requires_comment and not comments:
        raise ValidationError(f"Comments are required for stage '{target.stage.name}'")

    new_status = action.resulting_status
    resolved = await approval_repo.resolve_if_pending(
        document_id, stage_id, new_status, actor.id, comments
    )
    if not resolved:
        await session.rollback()
        raise ConflictError(f"Stage '{target.stage.name}' was resolved by another reviewer")

    await session.refresh(row)
    await audit.record_event(
        session,
        document_id,
        AuditAction(action.value),
        user_id=actor.id,
        approval_id=row.approval_id,
        previous_status=ApprovalStatus.PENDING.value,
        new_status=new_status.value,
        comments=comments,
        details={"stage_name": target.stage.name},
    )
    await _sync_document_status(document_id, action, actor, session)
    await session.commit()

    logger.info(
        "Stage %s of %s %s by %s (%s)",
        target.stage.name,
        document_id,
        new_status.value,
        actor.id,
        actor.role.value,
    )
    return Approval.from_row(row)


async def _sync_document_status(
    document_id: str, action: ApprovalAction, actor: Actor, session: AsyncSession
) -> None:
    """Reject marks the document rejected; a completed projection marks it approved."""
    document = await _get_document(document_id, session)
    if action is ApprovalAction.REJECT:
        new_status = DocumentStatus.REJECTED
    elif (await _project(document_id, session)).is_complete:
        new_status = DocumentStatus.APPROVED
    else:
        return

    if document.status == new_status.value:
        return
    previous_status = document.status
    await DocumentRepository(session).set_status(document, new_status.value)
    await audit.record_event(
        session,
        document_id,
        AuditAction.STATUS_CHANGE,
        user_id=actor.id,
        previous_status=previous_status,
        new_status=new_status.value,
    )


def _stage_for_actor(approvals: list[Approval], actor: Actor) -> Stage | None:
    """The instance stage assigned to the actor's role, preferring a pending one.

    Status reports what the actor could do through act_on_stage, which checks
    assignment against the stage being acted on rather than the current one.
    """
    assigned = [a for a in approvals if a.stage.assigned_role == actor.role]
    pending = [a for a in assigned if a.status is ApprovalStatus.PENDING]
    chosen = (pending or assigned or [None])[0]
    return chosen.stage if chosen else None


async def get_workflow_status(
    document_id: str,
    actor: Actor,
    session: AsyncSession,
) -> WorkflowStatus:
    await _get_document(document_id, session)
    comments = await list_threaded(document_id, session)

    approvals = await _load_approvals(document_id, session)
    if not approvals:
        return WorkflowStatus(document_id=document_id, started=False, comments=comments)

    projection = project_status(approvals, await load_stage_catalog(session))
    target = _stage_for_actor(projection.approvals, actor) or projection.current_stage
    permissions = permissions_for(actor, projection.current_stage, target)
    return WorkflowStatus(
        document_id=document_id,
        started=True,
        current_stage=projection.current_stage,
        next_stage=projection.next_stage,
        approvals=projection.approvals,
        comments=comments,
        can_approve=permissions.can_approve,
        can_reject=permissions.can_reject,
        can_skip=permissions.can_skip,
        is_complete=projection.is_complete,
        bypassed=projection.bypassed,
        is_rejected=projection.is_rejected,
    )


async def get_approval_stats(document_id: str, session: AsyncSession) -> ApprovalStats:
    await _get_document(document_id, session)
    projection = await _project(document_id, session)
    return audit.approval_stats(projection.approvals, projection.is_complete)
