"""Pydantic models for the approval audit trail."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from sowflow.models.enums import AuditAction


class AuditEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    entry_id: str
    document_id: str
    approval_id: str | None = None
    user_id: str | None = None
    action: AuditAction
    previous_status: str | None = None
    new_status: str | None = None
    comments: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class AuditFilter(BaseModel):
    action: AuditAction | None = None
    user_id: str | None = None
    since: datetime | None = None
    until: datetime | None = None


class AuditSummary(BaseModel):
    total_actions: int
    actions_by_type: dict[str, int]
    actions_by_user: dict[str, int]
    timeline: list[dict[str, Any]]
