"""Odoo login state owned by a single service instance."""
from __future__ import annotations

import dataclasses


@dataclasses.dataclass
class Session:
    """CSRF token and session cookie from the most recent successful login.

    Only the negotiator populates these (via ``establish()``) and only an
    expired-session response clears them (via ``invalidate()``). Both
    fields are always set or cleared together.
    """

    securityToken: str | None = None
    sessionId: str | None = None

    @property
    def active(self) -> bool:
        return bool(self.sessionId)

    def establish(self, securityToken: str, sessionId: str | None) -> None:
        self.securityToken = securityToken
        self.sessionId = sessionId

    def invalidate(self) -> None:
        self.securityToken = None
        self.sessionId = None


@dataclasses.dataclass
class RetryGuard:
    """Marks the single session-recovery retry as in flight.

    Used as a context manager so the flag is dropped on every exit path,
    including exceptions and cancellation.
    """

    active: bool = False

    def __enter__(self) -> RetryGuard:
        self.active = True
        return self

    def __exit__(self, *exc) -> None:
        self.active = False
