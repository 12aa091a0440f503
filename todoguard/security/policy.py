"""Policy decision point for todo access.

Every request is answered with a :class:`Decision`. Denials are ordinary
return values carrying a stable, human readable reason; :func:`decide` never
raises for a malformed or forbidden request.

Decision table::

    role     create  view        update      delete
    USER     allow   owner only  owner only  owner only, draft only
    MANAGER  deny    allow       deny        deny
    ADMIN    deny    allow       deny        allow
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, model_validator

from ..contracts import Action, Role, Status, Subject, Todo

RoleLike = Union[Role, str, None]
ActionLike = Union[Action, str, None]


class DenialKind(str, Enum):
    """Closed set of reasons a request can be denied."""

    UNKNOWN_ROLE = "unknown_role"
    UNKNOWN_ACTION = "unknown_action"
    MISSING_SUBJECT = "missing_subject"
    MISSING_RESOURCE = "missing_resource"
    NOT_OWNER = "not_owner"
    WRONG_STATUS = "wrong_status"
    ROLE_FORBIDDEN = "role_forbidden"


MANAGER_READ_ONLY = "Managers cannot create, update, or delete todos"
ADMIN_NO_CREATE_OR_UPDATE = "Admins cannot create or update todos"
USER_DELETE_DRAFT_ONLY = "Users can only delete todos in draft status"


class Decision(BaseModel):
    """Outcome of a policy evaluation.

    ``reason`` and ``denial`` are set only when ``allowed`` is ``False``.
    """

    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: Optional[str] = None
    denial: Optional[DenialKind] = None

    @model_validator(mode="after")
    def _reason_only_on_deny(self) -> "Decision":
        if self.allowed and (self.reason is not None or self.denial is not None):
            raise ValueError("an allowing decision carries no reason")
        if not self.allowed and (not self.reason or self.denial is None):
            raise ValueError("a denying decision needs a reason and a denial kind")
        return self

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, denial: DenialKind, reason: str) -> "Decision":
        return cls(allowed=False, reason=reason, denial=denial)

    def __bool__(self) -> bool:
        return self.allowed


def _not_owner(action: Action) -> Decision:
    return Decision.deny(
        DenialKind.NOT_OWNER, f"Users can only {action.value} their own todos"
    )


def _decide_user(action: Action, resource: Todo, subject_id: str) -> Decision:
    if resource.owner_id != subject_id:
        return _not_owner(action)
    if action is Action.DELETE and resource.status is not Status.DRAFT:
        return Decision.deny(DenialKind.WRONG_STATUS, USER_DELETE_DRAFT_ONLY)
    return Decision.allow()


def _decide_manager(action: Action) -> Decision:
    if action is Action.VIEW:
        return Decision.allow()
    return Decision.deny(DenialKind.ROLE_FORBIDDEN, MANAGER_READ_ONLY)


def _decide_admin(action: Action) -> Decision:
    if action in (Action.VIEW, Action.DELETE):
        return Decision.allow()
    return Decision.deny(DenialKind.ROLE_FORBIDDEN, ADMIN_NO_CREATE_OR_UPDATE)


def decide(
    role: RoleLike,
    action: ActionLike,
    resource: Optional[Todo],
    subject_id: Optional[str],
) -> Decision:
    """Decide whether ``subject_id`` acting as ``role`` may perform ``action``.

    Args:
        role: A :class:`Role` or its name. Unrecognised values are denied
            with an ``Unknown role`` reason.
        action: An :class:`Action` or its name/value. Unrecognised values are
            denied with an ``Unknown action`` reason.
        resource: The todo being acted on. Required for every action except
            ``CREATE``, where it is ignored.
        subject_id: Identity of the caller, compared against
            ``resource.owner_id`` for ownership rules.
    """
    parsed_role = Role.parse(role)
    if parsed_role is None:
        return Decision.deny(DenialKind.UNKNOWN_ROLE, f"Unknown role: {role!r}")
    parsed_action = Action.parse(action)
    if parsed_action is None:
        return Decision.deny(DenialKind.UNKNOWN_ACTION, f"Unknown action: {action!r}")
    if not subject_id:
        return Decision.deny(DenialKind.MISSING_SUBJECT, "Subject id is required")
    if parsed_action is Action.CREATE:
        if parsed_role is Role.USER:
            return Decision.allow()
    elif resource is None:
        return Decision.deny(
            DenialKind.MISSING_RESOURCE,
            f"Todo is required for {parsed_action.value} checks",
        )
    elif parsed_role is Role.USER:
        return _decide_user(parsed_action, resource, subject_id)

    if parsed_role is Role.MANAGER:
        return _decide_manager(parsed_action)
    return _decide_admin(parsed_action)


class PolicyEngine:
    """Object wrapper around :func:`decide` for injection into services."""

    def decide(
        self,
        role: RoleLike,
        action: ActionLike,
        resource: Optional[Todo],
        subject_id: Optional[str],
    ) -> Decision:
        """Return the :class:`Decision` for the request."""
        return decide(role, action, resource, subject_id)

    def decide_for(
        self, subject: Subject, action: ActionLike, resource: Optional[Todo]
    ) -> Decision:
        """Shorthand taking a :class:`~todoguard.contracts.Subject`."""
        return decide(subject.role, action, resource, subject.subject_id)
