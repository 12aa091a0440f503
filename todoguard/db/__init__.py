from .audit_db import AuditDB
from .models import AuditRecord

__all__ = [
    "AuditDB",
    "AuditRecord",
]
