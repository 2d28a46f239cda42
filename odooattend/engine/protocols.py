"""Narrow protocols for the bot and CLI.

Collaborators only need the three attendance operations, so they depend on
this instead of on OdooAttendance directly (which also makes them trivial to
drive with test doubles).
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from odooattend.engine.primitives import AttendanceResult, AttendanceStatus


@runtime_checkable
class AttendanceService(Protocol):
    """Check-in/check-out and status lookup for one user."""

    async def checkIn(self) -> AttendanceResult: ...
    async def checkOut(self) -> AttendanceResult: ...
    async def getAttendanceStatus(self) -> AttendanceStatus: ...
