"""Run a todo through its lifecycle as different roles."""

import asyncio
import logging

from todoguard import Role, Subject, TodoService
from todoguard.persistence import InMemoryTodoRepository
from todoguard.security.audit import InMemoryAuditLog


async def main():
    """Create, update and delete a todo while recording every decision."""
    logging.basicConfig(level=logging.INFO)

    audit = InMemoryAuditLog()
    service = TodoService(repository=InMemoryTodoRepository(), audit_log=audit)

    alice = Subject(subject_id="alice", role=Role.USER)
    manager = Subject(subject_id="morgan", role=Role.MANAGER)
    admin = Subject(subject_id="ada", role=Role.ADMIN)

    created = await service.create_todo(alice, {"title": "Quarterly report"})
    todo_id = created.data.id
    print(f"📋 Created {todo_id} ({created.http_status})")

    for subject, patch in [
        (manager, {"title": "Renamed by manager"}),
        (alice, {"status": "completed"}),
        (alice, {"status": "draft"}),
    ]:
        result = await service.update_todo(subject, todo_id, patch)
        outcome = "ok" if result.ok else f"{result.failure.kind.value}: {result.failure.detail}"
        print(f"✏️  {subject.subject_id} {patch} -> {result.http_status} {outcome}")

    for subject in [alice, admin]:
        result = await service.delete_todo(subject, todo_id)
        outcome = "ok" if result.ok else result.failure.detail
        print(f"🗑️  {subject.subject_id} delete -> {result.http_status} {outcome}")

    print(f"🔗 {len(audit.events)} decisions audited, {len(audit.denied())} denied")


if __name__ == "__main__":
    asyncio.run(main())
