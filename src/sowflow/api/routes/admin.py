"""Admin configuration of approval stages and rules.

Changes here only affect workflows started afterwards: each approval keeps a
snapshot of its stage from the moment the workflow started.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sowflow.dependencies import AdminActor, get_db
from sowflow.errors.exceptions import NotFoundError, ValidationError
from sowflow.models.workflow import Rule, RuleCreate, RuleUpdate, Stage, StageUpdate
from sowflow.repositories.stage_repo import ApprovalRuleRepository, ApprovalStageRepository
from sowflow.services.id_generator import generate_id
from sowflow.services.workflow.rules import RuleConditionError, parse_condition

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/approval-stages")
async def list_stages(actor: AdminActor, db: AsyncSession = Depends(get_db)) -> list[dict]:
    rows = await ApprovalStageRepository(db).list_all()
    return [Stage.model_validate(r).model_dump(mode="json") for r in rows]


@router.patch("/approval-stages/{stage_id}")
async def update_stage(
    stage_id: str,
    body: StageUpdate,
    actor: AdminActor,
    db: AsyncSession = Depends(get_db),
) -> dict:
    repo = ApprovalStageRepository(db)
    stage = await repo.get(stage_id)
    if not stage:
        raise NotFoundError("Approval stage", stage_id)

    changes = body.model_dump(mode="json", exclude_unset=True)
    await repo.update(stage, **changes)
    await db.commit()
    logger.info("Approval stage %s updated by %s: %s", stage_id, actor.id, sorted(changes))
    return Stage.model_validate(stage).model_dump(mode="json")


@router.get("/approval-rules")
async def list_rules(actor: AdminActor, db: AsyncSession = Depends(get_db)) -> list[dict]:
    rows = await ApprovalRuleRepository(db).list_all()
    return [Rule.model_validate(r).model_dump(mode="json") for r in rows]


def _validate_condition(condition_type, condition_value: dict) -> None:
    try:
        parse_condition(condition_type, condition_value)
    except RuleConditionError as exc:
        raise ValidationError(str(exc)) from exc


@router.post("/approval-rules", status_code=201)
async def create_rule(
    body: RuleCreate,
    actor: AdminActor,
    db: AsyncSession = Depends(get_db),
) -> dict:
    _validate_condition(body.condition_type, body.condition_value)
    if not await ApprovalStageRepository(db).get(body.stage_id):
        raise NotFoundError("Approval stage", body.stage_id)

    row = await ApprovalRuleRepository(db).create(
        rule_id=generate_id("rul_"),
        condition_type=body.condition_type.value,
        condition_value=body.condition_value,
        stage_id=body.stage_id,
        sort_order=body.sort_order,
        is_active=body.is_active,
    )
    await db.commit()
    logger.info("Approval rule %s created by %s", row.rule_id, actor.id)
    return Rule.model_validate(row).model_dump(mode="json")


@router.patch("/approval-rules/{rule_id}")
async def update_rule(
    rule_id: str,
    body: RuleUpdate,
    actor: AdminActor,
    db: AsyncSession = Depends(get_db),
) -> dict:
    repo = ApprovalRuleRepository(db)
    rule = await repo.get(rule_id)
    if not rule:
        raise NotFoundError("Approval rule", rule_id)

    changes = body.model_dump(exclude_unset=True)
    if "condition_value" in changes:
        _validate_condition(rule.condition_type, changes["condition_value"])
    await repo.update(rule, **changes)
    await db.commit()
    return Rule.model_validate(rule).model_dump(mode="json")
