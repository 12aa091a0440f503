"""Repository abstraction for todo persistence."""

from __future__ import annotations

from typing import Optional, Protocol

from ..contracts import Todo


class TodoRepository(Protocol):
    """Protocol for todo storage backends.

    Stores hold no policy. Callers are expected to have obtained a positive
    decision before calling any of the mutating methods.
    """

    async def create_todo(self, todo: Todo) -> Todo:
        """Persist a new todo and return the stored copy."""

    async def get_todo(self, todo_id: str) -> Todo | None:
        """Retrieve a todo by id."""

    async def list_todos(self, owner_id: Optional[str] = None) -> list[Todo]:
        """Return stored todos, optionally only those owned by ``owner_id``."""

    async def update_todo(self, todo: Todo) -> Todo:
        """Replace the stored todo with the same id.

        Raises:
            TodoNotFoundError: if no todo with ``todo.id`` exists.
        """

    async def delete_todo(self, todo_id: str) -> None:
        """Remove a todo.

        Raises:
            TodoNotFoundError: if no todo with ``todo_id`` exists.
        """
