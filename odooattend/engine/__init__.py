"""odooattend engine layer: Odoo login and attendance calls with no bot/CLI dependency.

All modules use ``from __future__ import annotations`` and modern
Python typing (``str | None``, ``@dataclass(slots=True)``, etc.).

Modules
-------
primitives
    Pure types and constants (stdlib-only).
    - ``Credentials``: frozen (baseUrl, database, username, password)
    - ``AttendanceResult``: (success, message) returned to callers
    - ``AttendanceStatus``: (isCheckedIn, lastAction)
    - Route, header, timeout and marker constants

session
    - ``Session``: CSRF token + session_id owned by one service instance
    - ``RetryGuard``: context-managed flag marking the single recovery retry

tokens
    CSRF token extraction from the login page.
    - ``EXTRACTORS``: ordered extractor functions, each ``(html) -> str | None``
    - ``extractToken``: first hit across ``EXTRACTORS``

negotiator
    Browser-like login handshake (edge cookies, login form, credential POST).
    - ``SessionNegotiator.negotiate()``: returns bool, populates ``Session`` on success
    - ``classifyLogin``: decides success from the login POST response

attendance
    The systray toggle JSON-RPC call.
    - ``AttendanceInvoker.invoke()``: toggle with at most one re-login
    - ``StatusReader.readStatus()``: current state, never raises
    - ``ToggleCall``: request builder shared by both

service
    - ``OdooAttendance``: owns the httpx client and session; exposes
      ``checkIn()``, ``checkOut()``, ``getAttendanceStatus()``

protocols
    - ``AttendanceService``: what the bot and CLI depend on

clock
    - ``LocalClock``: wall clock in the user's timezone (whenever)
"""

# Convenience re-exports for common usage:
# from odooattend.engine import OdooAttendance, Credentials
from odooattend.engine.primitives import AttendanceResult, AttendanceStatus, Credentials
from odooattend.engine.service import OdooAttendance
from odooattend.engine.protocols import AttendanceService

__all__ = [
    "AttendanceResult",
    "AttendanceStatus",
    "Credentials",
    "OdooAttendance",
    "AttendanceService",
]
