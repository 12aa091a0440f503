from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditRecord(SQLModel, table=True):
    """One persisted policy decision."""

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    subject_id: Optional[str] = Field(default=None, index=True)
    role: Optional[str] = None
    action: str
    resource_id: Optional[str] = Field(default=None, index=True)
    allowed: bool
    reason: Optional[str] = None
    recorded_at: datetime = Field(default_factory=_utcnow)
