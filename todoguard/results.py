"""Transport-agnostic outcomes of todo operations."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from .contracts import Status


class FailureKind(str, Enum):
    """Ways an operation can fail, in the order they are checked."""

    UNAUTHENTICATED = "unauthenticated"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    INVALID_TRANSITION = "invalid_transition"
    VALIDATION_ERROR = "validation_error"
    INTERNAL_ERROR = "internal_error"


HTTP_STATUS: Dict[FailureKind, int] = {
    FailureKind.UNAUTHENTICATED: 401,
    FailureKind.NOT_FOUND: 404,
    FailureKind.FORBIDDEN: 403,
    FailureKind.INVALID_TRANSITION: 400,
    FailureKind.VALIDATION_ERROR: 400,
    FailureKind.INTERNAL_ERROR: 500,
}

EXIT_CODES: Dict[FailureKind, int] = {
    FailureKind.INTERNAL_ERROR: 1,
    FailureKind.UNAUTHENTICATED: 2,
    FailureKind.FORBIDDEN: 3,
    FailureKind.NOT_FOUND: 4,
    FailureKind.INVALID_TRANSITION: 5,
    FailureKind.VALIDATION_ERROR: 6,
}


class Failure(BaseModel):
    """Tagged failure. ``from_status``/``to_status`` are set for transitions."""

    model_config = ConfigDict(frozen=True)

    kind: FailureKind
    detail: str
    from_status: Optional[Status] = None
    to_status: Optional[Status] = None

    @property
    def http_status(self) -> int:
        return HTTP_STATUS[self.kind]

    @property
    def exit_code(self) -> int:
        return EXIT_CODES[self.kind]


class Result(BaseModel):
    """Either success with ``data`` or a :class:`Failure`."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    ok: bool
    data: Any = None
    failure: Optional[Failure] = None
    created: bool = False

    @classmethod
    def success(cls, data: Any = None, created: bool = False) -> "Result":
        return cls(ok=True, data=data, created=created)

    @classmethod
    def fail(cls, kind: FailureKind, detail: str, **extra: Any) -> "Result":
        return cls(ok=False, failure=Failure(kind=kind, detail=detail, **extra))

    @classmethod
    def unauthenticated(cls) -> "Result":
        return cls.fail(FailureKind.UNAUTHENTICATED, "Unauthorized")

    @classmethod
    def not_found(cls, todo_id: str) -> "Result":
        return cls.fail(FailureKind.NOT_FOUND, f"Todo not found: {todo_id}")

    @classmethod
    def forbidden(cls, reason: str) -> "Result":
        return cls.fail(FailureKind.FORBIDDEN, reason)

    @property
    def http_status(self) -> int:
        if self.failure is not None:
            return self.failure.http_status
        return 201 if self.created else 200

    @property
    def kind(self) -> Optional[FailureKind]:
        return self.failure.kind if self.failure else None
