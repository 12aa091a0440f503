"""Audit sinks for policy decisions.

The policy engine itself never records anything. The orchestration layer
builds an :class:`AuditEvent` from each :class:`Decision` and hands it to
whichever :class:`AuditLog` is configured.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..config import TodoguardConfig, load_config
from ..contracts import Action, Subject
from ..db import AuditDB, AuditRecord
from ..exceptions import ConfigurationError
from .policy import Decision

logger = logging.getLogger(__name__)


class AuditEvent(BaseModel):
    """A single authorization decision, ready to be recorded."""

    model_config = ConfigDict(frozen=True)

    subject_id: Optional[str]
    role: Optional[str]
    action: Action
    resource_id: Optional[str] = None
    allowed: bool
    reason: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_decision(
        cls,
        subject: Subject,
        action: Action,
        decision: Decision,
        resource_id: Optional[str] = None,
    ) -> "AuditEvent":
        return cls(
            subject_id=subject.subject_id,
            role=subject.role.value,
            action=action,
            resource_id=resource_id,
            allowed=decision.allowed,
            reason=decision.reason,
        )


class AuditLog:
    """Records authorization decisions."""

    async def record(self, event: AuditEvent) -> None:  # pragma: no cover - interface
        """Persist an audit log entry."""
        raise NotImplementedError


class NullAuditLog(AuditLog):
    """Discards every event."""

    async def record(self, event: AuditEvent) -> None:
        return None


class InMemoryAuditLog(AuditLog):
    """Keep events in a list. Data is lost when the process exits."""

    def __init__(self) -> None:
        self.events: List[AuditEvent] = []

    async def record(self, event: AuditEvent) -> None:
        self.events.append(event)

    def denied(self) -> List[AuditEvent]:
        return [e for e in self.events if not e.allowed]


class LoggingAuditLog(AuditLog):
    """Write events to the standard logging system."""

    def __init__(self, logger_name: str = "todoguard.audit") -> None:
        self._logger = logging.getLogger(logger_name)

    async def record(self, event: AuditEvent) -> None:
        if event.allowed:
            self._logger.info(
                f"ALLOW subject={event.subject_id} role={event.role} "
                f"action={event.action.value} todo_id={event.resource_id}"
            )
        else:
            self._logger.warning(
                f"DENY subject={event.subject_id} role={event.role} "
                f"action={event.action.value} todo_id={event.resource_id} "
                f"reason={event.reason!r}"
            )


class DatabaseAuditLog(AuditLog):
    """Persist events through :class:`~todoguard.db.AuditDB`."""

    def __init__(self, db: AuditDB) -> None:
        self._db = db
        self._initialized = False
        self._init_lock = asyncio.Lock()

    @classmethod
    def from_url(cls, database_url: str) -> "DatabaseAuditLog":
        return cls(AuditDB(database_url))

    async def _ensure_schema(self) -> None:
        if self._initialized:
            return
        async with self._init_lock:
            if not self._initialized:
                await self._db.init_db()
                self._initialized = True

    async def record(self, event: AuditEvent) -> None:
        await self._ensure_schema()
        await self._db.add_record(
            AuditRecord(
                subject_id=event.subject_id,
                role=event.role,
                action=event.action.value,
                resource_id=event.resource_id,
                allowed=event.allowed,
                reason=event.reason,
                recorded_at=event.timestamp,
            )
        )
        logger.debug(
            f"Stored audit record for action={event.action.value} todo_id={event.resource_id}"
        )

    async def list_events(
        self, resource_id: Optional[str] = None, subject_id: Optional[str] = None
    ) -> List[AuditEvent]:
        await self._ensure_schema()
        rows = await self._db.list_records(resource_id=resource_id, subject_id=subject_id)
        return [
            AuditEvent(
                subject_id=r.subject_id,
                role=r.role,
                action=Action(r.action),
                resource_id=r.resource_id,
                allowed=r.allowed,
                reason=r.reason,
                timestamp=r.recorded_at,
            )
            for r in rows
        ]


def get_audit_log(config: Optional[TodoguardConfig] = None) -> AuditLog:
    """Build the audit sink named by ``config.audit.backend``."""
    config = config or load_config()
    backend = config.audit.backend
    if backend == "none":
        return NullAuditLog()
    if backend == "memory":
        return InMemoryAuditLog()
    if backend == "log":
        return LoggingAuditLog()
    if backend == "database":
        url = config.audit.database_url
        if not url:
            raise ConfigurationError("audit.database_url is required for the database backend")
        return DatabaseAuditLog.from_url(url)
    raise ConfigurationError(f"Unsupported audit backend: {backend}")
