"""Persistence layer for todos."""

from __future__ import annotations

import os
from typing import Optional

from ..config import TodoguardConfig, load_config
from ..exceptions import ConfigurationError
from .inmemory import InMemoryTodoRepository
from .repository import TodoRepository
from .sqlite import SQLiteTodoRepository

_repository_instance: TodoRepository | None = None


def get_repository(
    database_url: Optional[str] = None, config: Optional[TodoguardConfig] = None
) -> TodoRepository:
    """Factory function to obtain a todo repository.

    The repository backend is selected based on ``database_url`` which can be
    provided explicitly, via environment variable ``TODOGUARD_DATABASE_URL``,
    or from loaded configuration. When no database is configured, an
    in-memory repository is returned.
    """

    global _repository_instance
    if _repository_instance is not None and database_url is None and config is None:
        return _repository_instance

    config = config or load_config()
    database_url = (
        database_url
        or os.getenv("TODOGUARD_DATABASE_URL")
        or getattr(config, "database_url", None)
    )

    if not database_url:
        _repository_instance = InMemoryTodoRepository()
        return _repository_instance

    if database_url.startswith("sqlite://"):
        path = database_url.replace("sqlite://", "", 1)
        _repository_instance = SQLiteTodoRepository(path)
    else:
        raise ConfigurationError(f"Unsupported database backend: {database_url}")

    return _repository_instance


__all__ = [
    "TodoRepository",
    "SQLiteTodoRepository",
    "InMemoryTodoRepository",
    "get_repository",
]
