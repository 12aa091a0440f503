"""Exceptions raised at todoguard's integration boundaries.

Policy denials and invalid transitions are never raised; they are returned
as :class:`~todoguard.security.policy.Decision` values or
:class:`~todoguard.results.Failure` results.
"""

from __future__ import annotations


class TodoguardError(Exception):
    """Base class for todoguard errors."""


class ConfigurationError(TodoguardError):
    """Configuration names a backend todoguard cannot build."""


class StoreError(TodoguardError):
    """A todo store backend failed to complete an operation."""


class TodoNotFoundError(StoreError):
    """The store has no todo with the requested id."""

    def __init__(self, todo_id: str) -> None:
        super().__init__(f"Todo not found: {todo_id}")
        self.todo_id = todo_id
