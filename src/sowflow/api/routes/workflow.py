"""Approval workflow API routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sowflow.dependencies import CurrentActor, get_db
from sowflow.models.workflow import StageActionRequest, StartWorkflowRequest
from sowflow.services.workflow import engine

router = APIRouter(tags=["Workflow"])


@router.get("/documents/{document_id}/workflow")
async def get_workflow_status(
    document_id: str,
    actor: CurrentActor,
    db: AsyncSession = Depends(get_db),
) -> dict:
    status = await engine.get_workflow_status(document_id, actor, db)
    return status.model_dump(mode="json")


@router.post("/documents/{document_id}/workflow/start", status_code=201)
async def start_workflow(
    document_id: str,
    actor: CurrentActor,
    body: StartWorkflowRequest | None = None,
    db: AsyncSession = Depends(get_db),
) -> dict:
    amount = body.amount if body else None
    result = await engine.start_workflow(document_id, amount, actor, db)
    return result.model_dump(mode="json")


@router.patch("/documents/{document_id}/approvals/{stage_id}")
async def act_on_stage(
    document_id: str,
    stage_id: str,
    body: StageActionRequest,
    actor: CurrentActor,
    db: AsyncSession = Depends(get_db),
) -> dict:
    approval = await engine.act_on_stage(
        document_id, stage_id, body.action, actor, db, comments=body.comments
    )
    return approval.model_dump(mode="json")


@router.get("/documents/{document_id}/approval-stats")
async def get_approval_stats(
    document_id: str,
    actor: CurrentActor,
    db: AsyncSession = Depends(get_db),
) -> dict:
    stats = await engine.get_approval_stats(document_id, db)
    return stats.model_dump(mode="json")
