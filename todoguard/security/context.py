"""Session collaborators that tell todoguard who the caller is."""

from __future__ import annotations

import logging
import os
from typing import Optional, Protocol

from ..contracts import Role, Subject

logger = logging.getLogger(__name__)

SUBJECT_ENV = "TODOGUARD_SUBJECT_ID"
ROLE_ENV = "TODOGUARD_ROLE"


class SessionProvider(Protocol):
    """Supplies the :class:`Subject` for the current caller.

    Implementations wrap whatever authentication the host application uses.
    The returned subject is trusted verbatim; ``None`` means there is no
    authenticated caller.
    """

    async def current_subject(self) -> Optional[Subject]:
        """Return the caller's subject or ``None`` if unauthenticated."""


class StaticSessionProvider(SessionProvider):
    """Always reports the same subject. Useful for tests and scripts."""

    def __init__(self, subject: Optional[Subject] = None) -> None:
        self._subject = subject

    async def current_subject(self) -> Optional[Subject]:
        return self._subject


class EnvSessionProvider(SessionProvider):
    """Read the subject from ``TODOGUARD_SUBJECT_ID`` and ``TODOGUARD_ROLE``.

    Explicit ``subject_id``/``role`` arguments take precedence over the
    environment. The role defaults to ``USER`` when only an id is known, the
    same default the original account model applied to new sign-ups.
    """

    def __init__(
        self, subject_id: Optional[str] = None, role: Optional[str] = None
    ) -> None:
        self._subject_id = subject_id
        self._role = role

    async def current_subject(self) -> Optional[Subject]:
        subject_id = self._subject_id or os.getenv(SUBJECT_ENV)
        if not subject_id:
            return None
        raw_role = self._role or os.getenv(ROLE_ENV) or Role.USER.value
        role = Role.parse(raw_role)
        if role is None:
            logger.warning(f"Ignoring session with unknown role {raw_role!r}")
            return None
        return Subject(subject_id=subject_id, role=role)
