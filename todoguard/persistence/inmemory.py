"""In-memory implementation of the todo repository."""

from __future__ import annotations

from typing import Dict, Optional

from ..contracts import Todo
from ..exceptions import TodoNotFoundError
from .repository import TodoRepository


class InMemoryTodoRepository(TodoRepository):
    """Store todos in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts. Copies are handed out so callers
    cannot change stored state without going through the repository.
    """

    def __init__(self) -> None:
        self._todos: Dict[str, Todo] = {}

    async def create_todo(self, todo: Todo) -> Todo:
        self._todos[todo.id] = todo.model_copy()
        return todo.model_copy()

    async def get_todo(self, todo_id: str) -> Todo | None:
        todo = self._todos.get(todo_id)
        return todo.model_copy() if todo else None

    async def list_todos(self, owner_id: Optional[str] = None) -> list[Todo]:
        return [
            t.model_copy()
            for t in self._todos.values()
            if owner_id is None or t.owner_id == owner_id
        ]

    async def update_todo(self, todo: Todo) -> Todo:
        if todo.id not in self._todos:
            raise TodoNotFoundError(todo.id)
        self._todos[todo.id] = todo.model_copy()
        return todo.model_copy()

    async def delete_todo(self, todo_id: str) -> None:
        if self._todos.pop(todo_id, None) is None:
            raise TodoNotFoundError(todo_id)
