"""Pydantic models for the document projection the workflow operates on."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from sowflow.models.enums import DocumentStatus


class DocumentCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1, max_length=500)
    amount: float | None = Field(None, ge=0)


class Document(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    document_id: str
    title: str
    amount: float | None = None
    status: DocumentStatus
    version: int
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
