from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlmodel import SQLModel, select

from .models import AuditRecord


class AuditDB:
    """Async database helper for the audit trail."""

    def __init__(self, database_url: str) -> None:
        connect_args = (
            {"check_same_thread": False} if database_url.startswith("sqlite") else {}
        )
        self.engine = create_async_engine(
            database_url, echo=False, future=True, connect_args=connect_args
        )

    async def init_db(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with AsyncSession(self.engine) as session:
            yield session

    async def add_record(self, record: AuditRecord) -> AuditRecord:
        async with self.session() as session:
            session.add(record)
            await session.commit()
            await session.refresh(record)
        return record

    async def list_records(
        self, resource_id: Optional[str] = None, subject_id: Optional[str] = None
    ) -> list[AuditRecord]:
        stmt = select(AuditRecord)
        if resource_id is not None:
            stmt = stmt.where(AuditRecord.resource_id == resource_id)
        if subject_id is not None:
            stmt = stmt.where(AuditRecord.subject_id == subject_id)
        stmt = stmt.order_by(AuditRecord.recorded_at)
        async with self.session() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())
