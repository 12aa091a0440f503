"""Status lifecycle rules for todos."""

from __future__ import annotations

from typing import Dict, FrozenSet, Union

from ..contracts import Status

StatusLike = Union[Status, str]

# COMPLETED -> DRAFT is the only edge missing from an otherwise complete graph.
ALLOWED_TRANSITIONS: Dict[Status, FrozenSet[Status]] = {
    Status.DRAFT: frozenset({Status.DRAFT, Status.IN_PROGRESS, Status.COMPLETED}),
    Status.IN_PROGRESS: frozenset(
        {Status.DRAFT, Status.IN_PROGRESS, Status.COMPLETED}
    ),
    Status.COMPLETED: frozenset({Status.IN_PROGRESS, Status.COMPLETED}),
}


def allowed_transitions(current: StatusLike) -> FrozenSet[Status]:
    """Return the statuses reachable from ``current`` in a single update."""
    parsed = Status.parse(current)
    if parsed is None:
        return frozenset()
    return ALLOWED_TRANSITIONS[parsed]


def is_valid_transition(current: StatusLike, requested: StatusLike) -> bool:
    """Return ``True`` if ``requested`` may follow ``current``.

    Unchanged status is always accepted. Unknown status values are never
    valid on either side.
    """
    src = Status.parse(current)
    dst = Status.parse(requested)
    if src is None or dst is None:
        return False
    if src is dst:
        return True
    return dst in ALLOWED_TRANSITIONS[src]


def describe_invalid_transition(current: StatusLike, requested: StatusLike) -> str:
    """Format the validation message used when a transition is rejected."""
    return f"Invalid status transition from '{current}' to '{requested}'"
