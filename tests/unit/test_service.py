"""Tests for the todo orchestration service."""

import asyncio

import pytest

from todoguard.contracts import Role, Status, Subject, Todo, TodoDraft
from todoguard.persistence import InMemoryTodoRepository
from todoguard.results import FailureKind
from todoguard.security.audit import InMemoryAuditLog
from todoguard.service import TodoService

USER = Subject(subject_id="u1", role=Role.USER)
OTHER_USER = Subject(subject_id="u2", role=Role.USER)
MANAGER = Subject(subject_id="m1", role=Role.MANAGER)
ADMIN = Subject(subject_id="a1", role=Role.ADMIN)


@pytest.fixture
def audit():
    return InMemoryAuditLog()


@pytest.fixture
def service(audit):
    return TodoService(repository=InMemoryTodoRepository(), audit_log=audit)


async def _create(service: TodoService, subject: Subject = USER, title: str = "Buy milk") -> Todo:
    result = await service.create_todo(subject, {"title": title})
    assert result.ok, result.failure
    return result.data


@pytest.mark.asyncio
async def test_create_todo_owned_by_subject_in_draft(service, audit):
    result = await service.create_todo(USER, TodoDraft(title=" Buy milk ", description="2%"))
    assert result.ok
    assert result.http_status == 201
    todo = result.data
    assert todo.owner_id == "u1"
    assert todo.status is Status.DRAFT
    assert todo.title == "Buy milk"
    assert audit.events[-1].allowed is True


@pytest.mark.asyncio
@pytest.mark.parametrize("subject,fragment", [(MANAGER, "Managers"), (ADMIN, "Admins")])
async def test_create_forbidden_for_non_users(service, audit, subject, fragment):
    result = await service.create_todo(subject, {"title": "x"})
    assert not result.ok
    assert result.kind is FailureKind.FORBIDDEN
    assert result.http_status == 403
    assert fragment in result.failure.detail
    assert audit.events[-1].allowed is False


@pytest.mark.asyncio
async def test_create_validates_title_after_policy(service):
    result = await service.create_todo(USER, {"title": "   "})
    assert result.kind is FailureKind.VALIDATION_ERROR
    assert "Title is required" in result.failure.detail

    # policy runs first, so a manager sees forbidden rather than validation
    result = await service.create_todo(MANAGER, {"title": "   "})
    assert result.kind is FailureKind.FORBIDDEN


@pytest.mark.asyncio
async def test_unauthenticated_requests(service):
    todo = await _create(service)
    for result in [
        await service.create_todo(None, {"title": "x"}),
        await service.list_todos(None),
        await service.get_todo(None, todo.id),
        await service.update_todo(None, todo.id, {"title": "y"}),
        await service.delete_todo(None, todo.id),
    ]:
        assert result.kind is FailureKind.UNAUTHENTICATED
        assert result.http_status == 401


@pytest.mark.asyncio
async def test_not_found_is_checked_before_policy(service, audit):
    before = len(audit.events)
    for result in [
        await service.get_todo(MANAGER, "missing"),
        await service.update_todo(MANAGER, "missing", {"title": "y"}),
        await service.delete_todo(MANAGER, "missing"),
    ]:
        assert result.kind is FailureKind.NOT_FOUND
        assert result.http_status == 404
    assert len(audit.events) == before


@pytest.mark.asyncio
async def test_get_todo_respects_ownership(service):
    todo = await _create(service)
    assert (await service.get_todo(USER, todo.id)).ok
    assert (await service.get_todo(MANAGER, todo.id)).ok
    assert (await service.get_todo(ADMIN, todo.id)).ok

    denied = await service.get_todo(OTHER_USER, todo.id)
    assert denied.kind is FailureKind.FORBIDDEN
    assert "Users can only view their own todos" in denied.failure.detail


@pytest.mark.asyncio
async def test_list_todos_filters_by_visibility(service):
    await _create(service, USER, "mine")
    await _create(service, OTHER_USER, "theirs")

    mine = await service.list_todos(USER)
    assert [t.title for t in mine.data] == ["mine"]
    assert len((await service.list_todos(MANAGER)).data) == 2
    assert len((await service.list_todos(ADMIN)).data) == 2


@pytest.mark.asyncio
async def test_update_fields_and_status(service):
    todo = await _create(service)
    result = await service.update_todo(
        USER, todo.id, {"title": "Buy oat milk", "status": "in_progress"}
    )
    assert result.ok
    assert result.data.title == "Buy oat milk"
    assert result.data.status is Status.IN_PROGRESS
    assert result.data.owner_id == "u1"
    assert result.data.updated_at >= todo.updated_at


@pytest.mark.asyncio
async def test_update_rejects_completed_to_draft(service):
    todo = await _create(service)
    assert (await service.update_todo(USER, todo.id, {"status": Status.COMPLETED})).ok

    result = await service.update_todo(USER, todo.id, {"status": "draft"})
    assert result.kind is FailureKind.INVALID_TRANSITION
    assert result.http_status == 400
    assert result.failure.from_status is Status.COMPLETED
    assert result.failure.to_status is Status.DRAFT
    assert "Invalid status transition from 'completed' to 'draft'" == result.failure.detail

    stored = (await service.get_todo(USER, todo.id)).data
    assert stored.status is Status.COMPLETED


@pytest.mark.asyncio
async def test_update_same_status_is_accepted(service):
    todo = await _create(service)
    await service.update_todo(USER, todo.id, {"status": "completed"})
    assert (await service.update_todo(USER, todo.id, {"status": "completed"})).ok


@pytest.mark.asyncio
async def test_update_validation_errors(service):
    todo = await _create(service)
    empty = await service.update_todo(USER, todo.id, {})
    assert empty.kind is FailureKind.VALIDATION_ERROR
    assert empty.failure.detail == "No fields to update"

    bad_status = await service.update_todo(USER, todo.id, {"status": "archived"})
    assert bad_status.kind is FailureKind.VALIDATION_ERROR
    assert "Unknown status" in bad_status.failure.detail


@pytest.mark.asyncio
@pytest.mark.parametrize("subject", [OTHER_USER, MANAGER, ADMIN])
async def test_update_forbidden(service, subject):
    todo = await _create(service)
    result = await service.update_todo(subject, todo.id, {"title": "hijack"})
    assert result.kind is FailureKind.FORBIDDEN
    assert (await service.get_todo(USER, todo.id)).data.title == "Buy milk"


@pytest.mark.asyncio
async def test_delete_rules(service):
    draft = await _create(service, title="draft")
    started = await _create(service, title="started")
    await service.update_todo(USER, started.id, {"status": "in_progress"})

    denied = await service.delete_todo(USER, started.id)
    assert denied.kind is FailureKind.FORBIDDEN
    assert "draft" in denied.failure.detail

    manager = await service.delete_todo(MANAGER, draft.id)
    assert "Managers" in manager.failure.detail

    assert (await service.delete_todo(USER, draft.id)).ok
    assert (await service.delete_todo(ADMIN, started.id)).ok
    assert (await service.list_todos(ADMIN)).data == []


@pytest.mark.asyncio
async def test_store_failure_becomes_internal_error(audit, caplog):
    class BrokenRepository(InMemoryTodoRepository):
        async def get_todo(self, todo_id):
            raise RuntimeError("disk on fire")

    service = TodoService(repository=BrokenRepository(), audit_log=audit)
    result = await service.get_todo(USER, "t1")
    assert result.kind is FailureKind.INTERNAL_ERROR
    assert result.http_status == 500
    assert "disk on fire" in caplog.text


class YieldingRepository(InMemoryTodoRepository):
    """Gives up control around reads and writes so overlapping calls interleave."""

    async def get_todo(self, todo_id):
        await asyncio.sleep(0)
        return await super().get_todo(todo_id)

    async def update_todo(self, todo):
        await asyncio.sleep(0)
        return await super().update_todo(todo)


@pytest.mark.asyncio
async def test_concurrent_updates_are_serialized(audit):
    service = TodoService(repository=YieldingRepository(), audit_log=audit)
    todo = await _create(service)

    results = await asyncio.gather(
        service.update_todo(USER, todo.id, {"status": "completed"}),
        service.update_todo(USER, todo.id, {"status": "draft"}),
    )
    # the second update must see the committed COMPLETED status, not the stale DRAFT
    assert results[0].ok
    assert results[1].kind is FailureKind.INVALID_TRANSITION
    assert results[1].failure.from_status is Status.COMPLETED
    assert (await service.get_todo(USER, todo.id)).data.status is Status.COMPLETED


@pytest.mark.asyncio
async def test_concurrent_delete_and_update_do_not_interleave(audit):
    service = TodoService(repository=YieldingRepository(), audit_log=audit)
    todo = await _create(service)

    deleted, updated = await asyncio.gather(
        service.delete_todo(USER, todo.id),
        service.update_todo(USER, todo.id, {"title": "Buy oat milk"}),
    )
    assert deleted.ok
    assert updated.kind is FailureKind.NOT_FOUND


@pytest.mark.asyncio
async def test_per_todo_locks_are_released(audit):
    service = TodoService(repository=YieldingRepository(), audit_log=audit)
    todo = await _create(service)

    for i in range(50):
        result = await service.update_todo(USER, f"missing-{i}", {"title": "x"})
        assert result.kind is FailureKind.NOT_FOUND
    await asyncio.gather(
        *[
            service.update_todo(USER, todo.id, {"title": f"Buy milk {i}"})
            for i in range(3)
        ]
    )
    assert service._locks == {}
    assert service._lock_users == {}

    assert (await service.delete_todo(USER, todo.id)).ok
    assert service._locks == {}


@pytest.mark.asyncio
async def test_update_strips_description(service):
    todo = await _create(service)
    result = await service.update_todo(USER, todo.id, {"description": "  2%  "})
    assert result.ok
    assert result.data.description == "2%"
