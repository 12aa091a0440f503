"""SQLite implementation of the todo repository."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from ..contracts import Status, Todo
from ..exceptions import StoreError, TodoNotFoundError
from .repository import TodoRepository

logger = logging.getLogger(__name__)

_COLUMNS = "id, owner_id, title, description, status, created_at, updated_at"


class SQLiteTodoRepository(TodoRepository):
    """Persist todos using SQLite."""

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS todos (
                id TEXT PRIMARY KEY,
                owner_id TEXT NOT NULL,
                title TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                status TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        cur.execute("CREATE INDEX IF NOT EXISTS idx_todos_owner ON todos (owner_id)")
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()

    # ------------------------------------------------------------------
    # Helper methods
    def _execute(self, query: str, *params: Any) -> int:
        cur = self._conn.cursor()
        try:
            cur.execute(query, params)
            self._conn.commit()
        except sqlite3.Error as e:
            self._conn.rollback()
            raise StoreError(f"SQLite operation failed: {e}") from e
        return cur.rowcount

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchone()

    def _fetchall(self, query: str, *params: Any) -> list[sqlite3.Row]:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchall()

    @staticmethod
    def _row_to_todo(row: sqlite3.Row) -> Todo:
        return Todo(
            id=row["id"],
            owner_id=row["owner_id"],
            title=row["title"],
            description=row["description"],
            status=Status(row["status"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    # ------------------------------------------------------------------
    # Repository API
    async def create_todo(self, todo: Todo) -> Todo:
        await asyncio.to_thread(
            self._execute,
            f"INSERT INTO todos ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
            todo.id,
            todo.owner_id,
            todo.title,
            todo.description,
            todo.status.value,
            todo.created_at.isoformat(),
            todo.updated_at.isoformat(),
        )
        logger.debug(f"Inserted todo_id={todo.id} into {self.db_path}")
        return todo.model_copy()

    async def get_todo(self, todo_id: str) -> Todo | None:
        row = await asyncio.to_thread(
            self._fetchone, f"SELECT {_COLUMNS} FROM todos WHERE id = ?", todo_id
        )
        if not row:
            return None
        return self._row_to_todo(row)

    async def list_todos(self, owner_id: Optional[str] = None) -> list[Todo]:
        if owner_id is None:
            rows = await asyncio.to_thread(
                self._fetchall, f"SELECT {_COLUMNS} FROM todos ORDER BY created_at"
            )
        else:
            rows = await asyncio.to_thread(
                self._fetchall,
                f"SELECT {_COLUMNS} FROM todos WHERE owner_id = ? ORDER BY created_at",
                owner_id,
            )
        return [self._row_to_todo(r) for r in rows]

    async def update_todo(self, todo: Todo) -> Todo:
        # owner_id is immutable after creation
        changed = await asyncio.to_thread(
            self._execute,
            """
            UPDATE todos
            SET title = ?, description = ?, status = ?, updated_at = ?
            WHERE id = ?
            """,
            todo.title,
            todo.description,
            todo.status.value,
            todo.updated_at.isoformat(),
            todo.id,
        )
        if changed == 0:
            raise TodoNotFoundError(todo.id)
        return todo.model_copy()

    async def delete_todo(self, todo_id: str) -> None:
        deleted = await asyncio.to_thread(
            self._execute, "DELETE FROM todos WHERE id = ?", todo_id
        )
        if deleted == 0:
            raise TodoNotFoundError(todo_id)
