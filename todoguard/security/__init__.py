"""Policy decisions, lifecycle rules and their collaborators."""

from .audit import (
    AuditEvent,
    AuditLog,
    DatabaseAuditLog,
    InMemoryAuditLog,
    LoggingAuditLog,
    NullAuditLog,
    get_audit_log,
)
from .context import EnvSessionProvider, SessionProvider, StaticSessionProvider
from .lifecycle import ALLOWED_TRANSITIONS, allowed_transitions, is_valid_transition
from .policy import Decision, DenialKind, PolicyEngine, decide

__all__ = [
    "ALLOWED_TRANSITIONS",
    "AuditEvent",
    "AuditLog",
    "DatabaseAuditLog",
    "Decision",
    "DenialKind",
    "EnvSessionProvider",
    "InMemoryAuditLog",
    "LoggingAuditLog",
    "NullAuditLog",
    "PolicyEngine",
    "SessionProvider",
    "StaticSessionProvider",
    "allowed_transitions",
    "decide",
    "get_audit_log",
    "is_valid_transition",
]
