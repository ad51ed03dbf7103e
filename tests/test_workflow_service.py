"""Workflow engine tests against the database, below the HTTP layer."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from sowflow.db.base import Base
from sowflow.db.models.approval import DocumentApprovalRow
from sowflow.db.models.audit import ApprovalAuditRow
from sowflow.db.models.document import DocumentRow
from sowflow.db.models.stage import ApprovalRuleRow
from sowflow.errors.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from sowflow.models.actor import Actor
from sowflow.models.enums import ApprovalAction, ApprovalStatus, Role
from sowflow.repositories.approval_repo import DocumentApprovalRepository
from sowflow.repositories.stage_repo import ApprovalStageRepository
from sowflow.services.default_stages import seed_default_stages
from sowflow.services.workflow import engine

ADMIN = Actor(id="usr_admin", role=Role.ADMIN, is_admin=True)
MANAGER = Actor(id="usr_mgr", role=Role.MANAGER)
DIRECTOR = Actor(id="usr_dir", role=Role.DIRECTOR)
VP = Actor(id="usr_vp", role=Role.VP)
SALES = Actor(id="usr_sales", role=Role.SALES)


async def _stage_id(session, name):
    return (await ApprovalStageRepository(session).get_by_name(name)).stage_id


@pytest.mark.asyncio
async def test_start_uses_fallback_without_rules(db_session, make_document):
    doc_id = await make_document(amount=1000)
    result = await engine.start_workflow(doc_id, None, ADMIN, db_session)

    assert result.used_fallback is True
    assert result.stages_created == 3

    rows = await DocumentApprovalRepository(db_session).list_by_document(doc_id)
    assert [r.stage_snapshot["name"] for r in rows] == [
        "Manager Approval",
        "Director Approval",
        "VP Approval",
    ]
    assert all(r.status == ApprovalStatus.PENDING.value for r in rows)

    doc = (await db_session.execute(select(DocumentRow).where(DocumentRow.document_id == doc_id))).scalar_one()
    assert doc.status == "in_review"


@pytest.mark.asyncio
async def test_start_applies_rules(db_session, make_document):
    mgr_id = await _stage_id(db_session, "Manager Approval")
    dir_id = await _stage_id(db_session, "Director Approval")
    db_session.add_all([
        ApprovalRuleRow(rule_id="rul_1", condition_type="amount", condition_value={"min_amount": 10000},
                        stage_id=mgr_id, sort_order=1, is_active=True),
        ApprovalRuleRow(rule_id="rul_2", condition_type="amount", condition_value={"min_amount": 40000},
                        stage_id=dir_id, sort_order=2, is_active=True),
    ])
    await db_session.commit()

    doc_id = await make_document(amount=None)
    result = await engine.start_workflow(doc_id, 50000, ADMIN, db_session)
    assert result.stage_ids == [mgr_id, dir_id]
    assert result.used_fallback is False


@pytest.mark.asyncio
async def test_start_twice_conflicts_and_keeps_rows(db_session, make_document):
    doc_id = await make_document()
    await engine.start_workflow(doc_id, None, ADMIN, db_session)

    with pytest.raises(ConflictError):
        await engine.start_workflow(doc_id, None, ADMIN, db_session)

    assert await DocumentApprovalRepository(db_session).count_for_document(doc_id) == 3


@pytest.mark.asyncio
async def test_start_requires_admin(db_session, make_document):
    doc_id = await make_document()
    with pytest.raises(AuthorizationError):
        await engine.start_workflow(doc_id, None, MANAGER, db_session)
    assert await DocumentApprovalRepository(db_session).count_for_document(doc_id) == 0


@pytest.mark.asyncio
async def test_start_unknown_document(db_session):
    with pytest.raises(NotFoundError):
        await engine.start_workflow("doc_missing", 100, ADMIN, db_session)


@pytest.mark.asyncio
async def test_start_without_amount_is_invalid(db_session, make_document):
    doc_id = await make_document(amount=None)
    with pytest.raises(ValidationError):
        await engine.start_workflow(doc_id, None, ADMIN, db_session)


@pytest.mark.asyncio
async def test_sequential_approval_completes(db_session, make_document):
    doc_id = await make_document()
    await engine.start_workflow(doc_id, None, ADMIN, db_session)
    mgr_id = await _stage_id(db_session, "Manager Approval")
    dir_id = await _stage_id(db_session, "Director Approval")

    approval = await engine.act_on_stage(doc_id, mgr_id, ApprovalAction.APPROVE, MANAGER, db_session)
    assert approval.status is ApprovalStatus.APPROVED
    assert approval.approver_id == MANAGER.id
    assert approval.resolved_at is not None

    status = await engine.get_workflow_status(doc_id, DIRECTOR, db_session)
    assert status.current_stage.name == "Director Approval"
    assert status.can_approve is True

    await engine.act_on_stage(doc_id, dir_id, ApprovalAction.APPROVE, DIRECTOR, db_session, comments="ok")
    status = await engine.get_workflow_status(doc_id, ADMIN, db_session)
    assert status.is_complete is True
    assert status.current_stage is None
    assert status.can_approve is False

    stats = await engine.get_approval_stats(doc_id, db_session)
    assert stats.approved_approvals == 2
    assert stats.pending_approvals == 1
    assert stats.workflow_status == "approved"


@pytest.mark.asyncio
async def test_director_blocked_until_manager_approves(db_session, make_document):
    doc_id = await make_document()
    await engine.start_workflow(doc_id, None, ADMIN, db_session)
    dir_id = await _stage_id(db_session, "Director Approval")

    with pytest.raises(AuthorizationError):
        await engine.act_on_stage(doc_id, dir_id, ApprovalAction.APPROVE, DIRECTOR, db_session)

    row = await DocumentApprovalRepository(db_session).get_for_stage(doc_id, dir_id)
    assert row.status == ApprovalStatus.PENDING.value


@pytest.mark.asyncio
async def test_unprivileged_role_is_forbidden(db_session, make_document):
    doc_id = await make_document()
    await engine.start_workflow(doc_id, None, ADMIN, db_session)
    mgr_id = await _stage_id(db_session, "Manager Approval")

    with pytest.raises(AuthorizationError):
        await engine.act_on_stage(doc_id, mgr_id, ApprovalAction.APPROVE, SALES, db_session)


@pytest.mark.asyncio
async def test_vp_bypass(db_session, make_document):
    doc_id = await make_document()
    await engine.start_workflow(doc_id, None, ADMIN, db_session)
    vp_id = await _stage_id(db_session, "VP Approval")

    await engine.act_on_stage(doc_id, vp_id, ApprovalAction.APPROVE, VP, db_session)
    status = await engine.get_workflow_status(doc_id, ADMIN, db_session)
    assert status.is_complete is True
    assert status.bypassed is True

    doc = (await db_session.execute(select(DocumentRow).where(DocumentRow.document_id == doc_id))).scalar_one()
    assert doc.status == "approved"


@pytest.mark.asyncio
async def test_second_resolution_conflicts(db_session, make_document):
    doc_id = await make_document()
    await engine.start_workflow(doc_id, None, ADMIN, db_session)
    mgr_id = await _stage_id(db_session, "Manager Approval")

    await engine.act_on_stage(doc_id, mgr_id, ApprovalAction.REJECT, MANAGER, db_session)
    with pytest.raises(ConflictError):
        await engine.act_on_stage(doc_id, mgr_id, ApprovalAction.APPROVE, ADMIN, db_session)

    row = await DocumentApprovalRepository(db_session).get_for_stage(doc_id, mgr_id)
    assert row.status == ApprovalStatus.REJECTED.value
    assert row.approver_id == MANAGER.id


@pytest.mark.asyncio
async def test_compare_and_swap_only_resolves_once(db_session, make_document):
    doc_id = await make_document()
    await engine.start_workflow(doc_id, None, ADMIN, db_session)
    mgr_id = await _stage_id(db_session, "Manager Approval")
    repo = DocumentApprovalRepository(db_session)

    first = await repo.resolve_if_pending(doc_id, mgr_id, ApprovalStatus.APPROVED, "usr_a", None)
    second = await repo.resolve_if_pending(doc_id, mgr_id, ApprovalStatus.REJECTED, "usr_b", None)
    await db_session.commit()

    assert first is True
    assert second is False
    row = await repo.get_for_stage(doc_id, mgr_id)
    await db_session.refresh(row)
    assert row.status == ApprovalStatus.APPROVED.value
    assert row.approver_id == "usr_a"


@pytest.mark.asyncio
async def test_reject_marks_document_rejected(db_session, make_document):
    doc_id = await make_document()
    await engine.start_workflow(doc_id, None, ADMIN, db_session)
    mgr_id = await _stage_id(db_session, "Manager Approval")

    await engine.act_on_stage(doc_id, mgr_id, ApprovalAction.REJECT, MANAGER, db_session, comments="Scope unclear")
    status = await engine.get_workflow_status(doc_id, MANAGER, db_session)
    assert status.is_rejected is True

    stats = await engine.get_approval_stats(doc_id, db_session)
    assert stats.workflow_status == "rejected"
    assert stats.rejected_approvals == 1


@pytest.mark.asyncio
async def test_skip_requires_auto_approve_for_admin(db_session, make_document):
    doc_id = await make_document()
    await engine.start_workflow(doc_id, None, ADMIN, db_session)
    mgr_id = await _stage_id(db_session, "Manager Approval")

    with pytest.raises(AuthorizationError):
        await engine.act_on_stage(doc_id, mgr_id, ApprovalAction.SKIP, ADMIN, db_session)


@pytest.mark.asyncio
async def test_stage_snapshot_isolates_running_workflow(db_session, make_document):
    doc_id = await make_document()
    await engine.start_workflow(doc_id, None, ADMIN, db_session)
    mgr_id = await _stage_id(db_session, "Manager Approval")

    stage = await ApprovalStageRepository(db_session).get(mgr_id)
    stage.auto_approve = True
    stage.requires_comment = True
    await db_session.commit()

    # The running workflow still sees the stage as it was at start
    with pytest.raises(AuthorizationError):
        await engine.act_on_stage(doc_id, mgr_id, ApprovalAction.SKIP, ADMIN, db_session)
    approval = await engine.act_on_stage(doc_id, mgr_id, ApprovalAction.APPROVE, MANAGER, db_session)
    assert approval.status is ApprovalStatus.APPROVED

    # A workflow started afterwards picks up the change
    doc2 = await make_document()
    await engine.start_workflow(doc2, None, ADMIN, db_session)
    with pytest.raises(ValidationError):
        await engine.act_on_stage(doc2, mgr_id, ApprovalAction.APPROVE, MANAGER, db_session)
    approval = await engine.act_on_stage(doc2, mgr_id, ApprovalAction.SKIP, ADMIN, db_session, comments="auto")
    assert approval.status is ApprovalStatus.SKIPPED


@pytest.mark.asyncio
async def test_act_on_unknown_stage(db_session, make_document):
    doc_id = await make_document()
    await engine.start_workflow(doc_id, None, ADMIN, db_session)
    with pytest.raises(NotFoundError):
        await engine.act_on_stage(doc_id, "stg_missing", ApprovalAction.APPROVE, ADMIN, db_session)


@pytest.mark.asyncio
async def test_status_before_start(db_session, make_document):
    doc_id = await make_document()
    status = await engine.get_workflow_status(doc_id, ADMIN, db_session)
    assert status.started is False
    assert status.approvals == []
    assert status.can_approve is False

    stats = await engine.get_approval_stats(doc_id, db_session)
    assert stats.workflow_status == "no_workflow"
    assert stats.total_approvals == 0


@pytest.mark.asyncio
async def test_every_mutation_is_audited(db_session, make_document):
    doc_id = await make_document()
    await engine.start_workflow(doc_id, None, ADMIN, db_session)
    mgr_id = await _stage_id(db_session, "Manager Approval")
    await engine.act_on_stage(doc_id, mgr_id, ApprovalAction.APPROVE, MANAGER, db_session)

    rows = (await db_session.execute(
        select(ApprovalAuditRow).where(ApprovalAuditRow.document_id == doc_id)
    )).scalars().all()
    actions = sorted(r.action for r in rows)
    assert actions.count("workflow_started") == 3
    assert actions.count("approve") == 1
    assert actions.count("status_change") == 1

    approve = next(r for r in rows if r.action == "approve")
    assert approve.previous_status == "pending"
    assert approve.new_status == "approved"
    assert approve.user_id == MANAGER.id


@pytest.fixture
async def file_session_factory(tmp_path):
    """Sessions on separate connections to one SQLite file, for interleaving two actors."""
    file_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'sowflow.db'}", echo=False)
    async with file_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(file_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as seed_session:
        await seed_default_stages(seed_session)
        seed_session.add(DocumentRow(document_id="doc_race", title="Race", amount=1000, status="draft", version=1))
        await seed_session.commit()
    yield factory
    await file_engine.dispose()


@pytest.mark.asyncio
async def test_losing_reviewer_gets_conflict(file_session_factory):
    reviewer_a = Actor(id="usr_mgr_a", role=Role.MANAGER)
    reviewer_b = Actor(id="usr_mgr_b", role=Role.MANAGER)

    async with file_session_factory() as setup:
        await engine.start_workflow("doc_race", None, ADMIN, setup)
        mgr_id = await _stage_id(setup, "Manager Approval")

    async with file_session_factory() as session_a, file_session_factory() as session_b:
        # B reads the approval while it is still pending
        stale = await DocumentApprovalRepository(session_b).get_for_stage("doc_race", mgr_id)
        assert stale.status == ApprovalStatus.PENDING.value

        await engine.act_on_stage("doc_race", mgr_id, ApprovalAction.APPROVE, reviewer_a, session_a)

        with pytest.raises(ConflictError, match="resolved by another reviewer"):
            await engine.act_on_stage("doc_race", mgr_id, ApprovalAction.REJECT, reviewer_b, session_b)

    async with file_session_factory() as check:
        row = await DocumentApprovalRepository(check).get_for_stage("doc_race", mgr_id)
        assert row.status == ApprovalStatus.APPROVED.value
        assert row.approver_id == reviewer_a.id
        actions = (await check.execute(
            select(ApprovalAuditRow.action).where(ApprovalAuditRow.document_id == "doc_race")
        )).scalars().all()
        assert actions.count("approve") == 1
        assert "reject" not in actions


@pytest.mark.asyncio
async def test_concurrent_start_rejected_by_unique_constraint(db_session, make_document, monkeypatch):
    doc_id = await make_document()
    await engine.start_workflow(doc_id, None, ADMIN, db_session)

    async def _not_started_yet(self, document_id):
        return 0

    # Second caller passed the existence check before the first one committed
    monkeypatch.setattr(DocumentApprovalRepository, "count_for_document", _not_started_yet)
    with pytest.raises(ConflictError):
        await engine.start_workflow(doc_id, None, ADMIN, db_session)

    approvals = (await db_session.execute(
        select(func.count()).select_from(DocumentApprovalRow).where(DocumentApprovalRow.document_id == doc_id)
    )).scalar_one()
    audit_entries = (await db_session.execute(
        select(func.count()).select_from(ApprovalAuditRow).where(ApprovalAuditRow.document_id == doc_id)
    )).scalar_one()
    assert approvals == 3
    assert audit_entries == 4


@pytest.mark.asyncio
async def test_approvals_start_at_version_one(db_session, make_document):
    doc_id = await make_document()
    doc = (await db_session.execute(select(DocumentRow).where(DocumentRow.document_id == doc_id))).scalar_one()
    doc.version = 3
    await db_session.commit()

    await engine.start_workflow(doc_id, None, ADMIN, db_session)
    rows = await DocumentApprovalRepository(db_session).list_by_document(doc_id)
    assert {r.version for r in rows} == {1}


@pytest.mark.asyncio
async def test_vp_status_reports_bypass_at_manager_stage(db_session, make_document):
    doc_id = await make_document()
    await engine.start_workflow(doc_id, None, ADMIN, db_session)

    status = await engine.get_workflow_status(doc_id, VP, db_session)
    assert status.current_stage.name == "Manager Approval"
    assert status.can_approve is True
    assert status.can_skip is False
