"""Core contracts for the todoguard policy engine."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

E = TypeVar("E", bound="_ParsableEnum")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _ParsableEnum(str, Enum):
    """String enum that can be looked up by member name or value."""

    @classmethod
    def parse(cls: Type[E], value: Any) -> Optional[E]:
        """Return the member matching ``value`` or ``None`` when unknown.

        Matching is case-insensitive against both names and values, so
        ``"in_progress"``, ``"IN_PROGRESS"`` and ``Status.IN_PROGRESS`` all
        resolve to the same member.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str) or not value.strip():
            return None
        needle = value.strip().lower()
        for member in cls:
            if needle in (member.name.lower(), member.value.lower()):
                return member
        return None

    def __str__(self) -> str:
        return self.value


class Role(_ParsableEnum):
    """Roles a subject can hold. There is no hierarchy between them."""

    USER = "USER"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"


class Action(_ParsableEnum):
    """Operations that can be requested on a todo."""

    CREATE = "create"
    VIEW = "view"
    UPDATE = "update"
    DELETE = "delete"


class Status(_ParsableEnum):
    """Lifecycle stage of a todo."""

    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Subject(BaseModel):
    """The caller on whose behalf an operation runs.

    Supplied by a :class:`~todoguard.security.context.SessionProvider` and
    trusted as-is; todoguard performs no authentication.
    """

    model_config = ConfigDict(frozen=True)

    subject_id: str
    role: Role


class Todo(BaseModel):
    """A task record and the only resource type the policy governs."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    owner_id: str = Field(..., description="Subject id of the creator")
    title: str
    description: str = ""
    status: Status = Status.DRAFT
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class TodoDraft(BaseModel):
    """Input accepted when creating a todo."""

    title: str
    description: str = ""

    @field_validator("title")
    @classmethod
    def _ensure_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title is required and must be a non-empty string")
        return v

    @field_validator("description")
    @classmethod
    def _strip_description(cls, v: str) -> str:
        return v.strip()


class TodoPatch(BaseModel):
    """Partial update of a todo. Unset fields are left untouched."""

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[Status] = None

    @field_validator("title")
    @classmethod
    def _ensure_title(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Title must be a non-empty string")
        return v

    @field_validator("description")
    @classmethod
    def _strip_description(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, v: Any) -> Any:
        if v is None:
            return v
        parsed = Status.parse(v)
        if parsed is None:
            raise ValueError(f"Unknown status: {v}")
        return parsed

    def is_empty(self) -> bool:
        """Return ``True`` when the patch would not change anything."""
        return not self.model_dump(exclude_none=True)
