"""Orchestration of todo operations around the policy core.

Each operation follows the same order of checks: authenticated subject,
resource exists, policy allows, input is valid, status transition is legal,
then commit. Every outcome is returned as a :class:`Result`.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Mapping, Optional, Union

from pydantic import ValidationError

from .contracts import Action, Subject, Todo, TodoDraft, TodoPatch
from .persistence import TodoRepository, get_repository
from .results import FailureKind, Result
from .security.audit import AuditEvent, AuditLog, NullAuditLog
from .security.lifecycle import describe_invalid_transition, is_valid_transition
from .security.policy import Decision, PolicyEngine

logger = logging.getLogger(__name__)

DraftInput = Union[TodoDraft, Mapping[str, Any]]
PatchInput = Union[TodoPatch, Mapping[str, Any]]


def _validation_detail(error: ValidationError) -> str:
    first = error.errors()[0]
    msg = first.get("msg", str(error))
    # pydantic prefixes messages raised from validators
    return msg.removeprefix("Value error, ")


class TodoService:
    """Apply policy and lifecycle rules to todo operations."""

    def __init__(
        self,
        repository: TodoRepository | None = None,
        audit_log: AuditLog | None = None,
        policy: PolicyEngine | None = None,
    ) -> None:
        self._repository = repository or get_repository()
        self._audit = audit_log or NullAuditLog()
        self._policy = policy or PolicyEngine()
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    @property
    def repository(self) -> TodoRepository:
        return self._repository

    @asynccontextmanager
    async def _locked(self, todo_id: str) -> AsyncIterator[None]:
        """Hold the per-todo lock across fetch, decision and commit.

        The entry is dropped once no caller holds or waits on it.
        """
        lock = self._locks.setdefault(todo_id, asyncio.Lock())
        self._lock_users[todo_id] = self._lock_users.get(todo_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[todo_id] -= 1
            if not self._lock_users[todo_id]:
                del self._lock_users[todo_id]
                del self._locks[todo_id]

    async def _authorize(
        self, subject: Subject, action: Action, todo: Optional[Todo]
    ) -> Decision:
        decision = self._policy.decide_for(subject, action, todo)
        await self._audit.record(
            AuditEvent.from_decision(
                subject, action, decision, resource_id=todo.id if todo else None
            )
        )
        if not decision.allowed:
            logger.info(
                f"Denied {action.value} for subject={subject.subject_id} "
                f"todo_id={todo.id if todo else None}: {decision.reason}"
            )
        return decision

    # ------------------------------------------------------------------
    # Operations
    async def create_todo(self, subject: Optional[Subject], draft: DraftInput) -> Result:
        """Create a todo owned by ``subject``. New todos always start in draft."""
        if subject is None:
            return Result.unauthenticated()
        try:
            decision = await self._authorize(subject, Action.CREATE, None)
            if not decision.allowed:
                return Result.forbidden(decision.reason or "")
            try:
                parsed = (
                    draft if isinstance(draft, TodoDraft) else TodoDraft.model_validate(draft)
                )
            except ValidationError as e:
                return Result.fail(FailureKind.VALIDATION_ERROR, _validation_detail(e))
            todo = Todo(
                owner_id=subject.subject_id,
                title=parsed.title,
                description=parsed.description,
            )
            stored = await self._repository.create_todo(todo)
        except Exception as e:
            return self._internal_error("create", None, e)
        logger.info(f"Created todo_id={stored.id} for subject={subject.subject_id}")
        return Result.success(stored, created=True)

    async def get_todo(self, subject: Optional[Subject], todo_id: str) -> Result:
        """Return a single todo if ``subject`` may view it."""
        if subject is None:
            return Result.unauthenticated()
        try:
            todo = await self._repository.get_todo(todo_id)
            if todo is None:
                return Result.not_found(todo_id)
            decision = await self._authorize(subject, Action.VIEW, todo)
        except Exception as e:
            return self._internal_error("view", todo_id, e)
        if not decision.allowed:
            return Result.forbidden(decision.reason or "")
        return Result.success(todo)

    async def list_todos(self, subject: Optional[Subject]) -> Result:
        """Return every todo ``subject`` may view.

        Users get their own todos, managers and admins get all of them.
        Visibility is decided per todo by the policy engine rather than by a
        role switch here.
        """
        if subject is None:
            return Result.unauthenticated()
        try:
            todos = await self._repository.list_todos()
        except Exception as e:
            return self._internal_error("list", None, e)
        visible = [
            t for t in todos if self._policy.decide_for(subject, Action.VIEW, t).allowed
        ]
        logger.debug(
            f"Listing {len(visible)} of {len(todos)} todos for subject={subject.subject_id}"
        )
        return Result.success(visible)

    async def update_todo(
        self, subject: Optional[Subject], todo_id: str, patch: PatchInput
    ) -> Result:
        """Apply ``patch`` to a todo, validating any status change."""
        if subject is None:
            return Result.unauthenticated()
        try:
            async with self._locked(todo_id):
                todo = await self._repository.get_todo(todo_id)
                if todo is None:
                    return Result.not_found(todo_id)
                decision = await self._authorize(subject, Action.UPDATE, todo)
                if not decision.allowed:
                    return Result.forbidden(decision.reason or "")
                try:
                    parsed = (
                        patch
                        if isinstance(patch, TodoPatch)
                        else TodoPatch.model_validate(patch)
                    )
                except ValidationError as e:
                    return Result.fail(FailureKind.VALIDATION_ERROR, _validation_detail(e))
                if parsed.is_empty():
                    return Result.fail(FailureKind.VALIDATION_ERROR, "No fields to update")
                if parsed.status is not None and not is_valid_transition(
                    todo.status, parsed.status
                ):
                    return Result.fail(
                        FailureKind.INVALID_TRANSITION,
                        describe_invalid_transition(todo.status, parsed.status),
                        from_status=todo.status,
                        to_status=parsed.status,
                    )
                changes = parsed.model_dump(exclude_none=True)
                changes["updated_at"] = datetime.now(timezone.utc)
                updated = await self._repository.update_todo(todo.model_copy(update=changes))
        except Exception as e:
            return self._internal_error("update", todo_id, e)
        logger.info(f"Updated todo_id={todo_id} fields={sorted(changes)}")
        return Result.success(updated)

    async def delete_todo(self, subject: Optional[Subject], todo_id: str) -> Result:
        """Delete a todo if ``subject`` may do so in its current status."""
        if subject is None:
            return Result.unauthenticated()
        try:
            async with self._locked(todo_id):
                todo = await self._repository.get_todo(todo_id)
                if todo is None:
                    return Result.not_found(todo_id)
                decision = await self._authorize(subject, Action.DELETE, todo)
                if not decision.allowed:
                    return Result.forbidden(decision.reason or "")
                await self._repository.delete_todo(todo_id)
        except Exception as e:
            return self._internal_error("delete", todo_id, e)
        logger.info(f"Deleted todo_id={todo_id} by subject={subject.subject_id}")
        return Result.success(todo)

    def _internal_error(self, op: str, todo_id: Optional[str], error: Exception) -> Result:
        logger.exception(f"Failed to {op} todo_id={todo_id}: {error}")
        return Result.fail(FailureKind.INTERNAL_ERROR, "Internal server error")
