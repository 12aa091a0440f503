"""todoguard: attribute-based access control for todo records."""

from .contracts import Action, Role, Status, Subject, Todo, TodoDraft, TodoPatch
from .persistence import get_repository
from .results import Failure, FailureKind, Result
from .security.audit import get_audit_log
from .security.lifecycle import is_valid_transition
from .security.policy import Decision, DenialKind, PolicyEngine, decide
from .service import TodoService

__version__ = "0.1.0"
__all__ = [
    "Action",
    "Decision",
    "DenialKind",
    "Failure",
    "FailureKind",
    "PolicyEngine",
    "Result",
    "Role",
    "Status",
    "Subject",
    "Todo",
    "TodoDraft",
    "TodoPatch",
    "TodoService",
    "decide",
    "get_audit_log",
    "get_repository",
    "is_valid_transition",
]
