"""Approval audit trail: recording, statistics, summaries and CSV export."""

import csv
import io
import json
from collections import Counter

from sqlalchemy.ext.asyncio import AsyncSession

from sowflow.db.models.audit import ApprovalAuditRow
from sowflow.models.audit import AuditEntry, AuditFilter, AuditSummary
from sowflow.models.enums import ApprovalStatus, AuditAction
from sowflow.models.workflow import Approval, ApprovalStats
from sowflow.repositories.audit_repo import ApprovalAuditRepository
from sowflow.services.id_generator import generate_id

CSV_HEADER = ["Date", "User", "Action", "Previous Status", "New Status", "Comments", "Details"]
TIMELINE_LENGTH = 10


async def record_event(
    session: AsyncSession,
    document_id: str,
    action: AuditAction,
    *,
    user_id: str | None = None,
    approval_id: str | None = None,
    previous_status: str | None = None,
    new_status: str | None = None,
    comments: str | None = None,
    details: dict | None = None,
) -> ApprovalAuditRow:
    """Append an entry inside the caller's transaction."""
    return await ApprovalAuditRepository(session).append(
        entry_id=generate_id("aud_"),
        document_id=document_id,
        approval_id=approval_id,
        user_id=user_id,
        action=action.value,
        previous_status=previous_status,
        new_status=new_status,
        comments=comments,
        details=details or {},
    )


async def list_entries(
    session: AsyncSession, document_id: str, filters: AuditFilter | None = None
) -> list[AuditEntry]:
    rows = await ApprovalAuditRepository(session).list_by_document(document_id, filters)
    return [AuditEntry.model_validate(r) for r in rows]


def approval_stats(approvals: list[Approval], is_complete: bool) -> ApprovalStats:
    if not approvals:
        return ApprovalStats()

    counts = Counter(a.status for a in approvals)
    if counts[ApprovalStatus.REJECTED]:
        workflow_status = "rejected"
    elif is_complete:
        workflow_status = "approved"
    else:
        workflow_status = "in_review"

    return ApprovalStats(
        total_approvals=len(approvals),
        pending_approvals=counts[ApprovalStatus.PENDING],
        approved_approvals=counts[ApprovalStatus.APPROVED],
        rejected_approvals=counts[ApprovalStatus.REJECTED],
        skipped_approvals=counts[ApprovalStatus.SKIPPED],
        workflow_status=workflow_status,
    )


def summarize(entries: list[AuditEntry]) -> AuditSummary:
    """Counts by action and user plus the most recent actions (entries are newest first)."""
    by_type = Counter(e.action.value for e in entries)
    by_user = Counter(e.user_id or "system" for e in entries)
    timeline = [
        {
            "date": e.created_at.date().isoformat(),
            "action": e.action.value,
            "user": e.user_id or "system",
        }
        for e in entries[:TIMELINE_LENGTH]
    ]
    return AuditSummary(
        total_actions=len(entries),
        actions_by_type=dict(by_type),
        actions_by_user=dict(by_user),
        timeline=timeline,
    )


def export_csv(entries: list[AuditEntry]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for e in entries:
        writer.writerow([
            e.created_at.isoformat(),
            e.user_id or "system",
            e.action.value,
            e.previous_status or "",
            e.new_status or "",
            e.comments or "",
            json.dumps(e.details, sort_keys=True),
        ])
    return buffer.getvalue()
