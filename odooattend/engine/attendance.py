"""Attendance toggle calls against Odoo's systray JSON-RPC endpoint.

Odoo only exposes one endpoint for this: it checks you in if you're out and
out if you're in. Check-in, check-out and status reads all go through it.
"""
from __future__ import annotations

import platform
import random
import types
from typing import Any, Final

import httpx
from loguru import logger

from odooattend.engine.negotiator import SESSION_COOKIE, SessionNegotiator
from odooattend.engine.primitives import (
    ATTENDANCE_TIMEOUT,
    ATTENDANCE_TOGGLE_PATH,
    ATTENDANCES_PAGE_PATH,
    DEFAULT_COMPANY_IDS,
    DEFAULT_TIMEZONE,
    SESSION_ERROR_KEYWORDS,
    SESSION_ERROR_STATUSES,
    STATUS_TIMEOUT,
    AttendanceResult,
    AttendanceStatus,
    Credentials,
)
from odooattend.engine.session import RetryGuard, Session

ourjson: types.ModuleType
# Only use orjson under CPython, else use default json (because `json` under pypy is faster than orjson)
if platform.python_implementation() == "CPython":
    import orjson

    ourjson = orjson
else:
    import json

    ourjson = json

LOGIN_FAILED: Final = AttendanceResult(False, "Login failed")
LOGIN_FAILED_AFTER_RETRY: Final = AttendanceResult(False, "Login failed after retry")
UNEXPECTED_RESPONSE: Final = AttendanceResult(False, "Unexpected response format")
TOGGLED: Final = AttendanceResult(True, "Attendance action succeeded!")


class SessionExpired(Exception):
    """Odoo rejected our session. Carries the result to report if we can't retry."""

    def __init__(self, reason: str, result: AttendanceResult):
        super().__init__(reason)
        self.result = result


def rpcErrorMessage(error: Any) -> str:
    if isinstance(error, dict):
        data = error.get("data")
        if isinstance(data, dict) and data.get("message"):
            return str(data["message"])

        return str(error.get("message") or "Unknown error")

    return str(error)


def interpretToggle(payload: Any) -> AttendanceResult:
    """Map a decoded JSON-RPC reply to a result.

    Raises SessionExpired if the error looks like a dead session.
    """
    if not isinstance(payload, dict):
        return UNEXPECTED_RESPONSE

    if error := payload.get("error"):
        message = rpcErrorMessage(error)
        logger.error("JSON-RPC error: {}", message)

        failed = AttendanceResult(False, message)
        if any(keyword in message.lower() for keyword in SESSION_ERROR_KEYWORDS):
            raise SessionExpired(message, failed)

        return failed

    if "result" in payload:
        logger.info("Attendance action result: {}", payload["result"])
        return TOGGLED

    return UNEXPECTED_RESPONSE


def statusFromPayload(payload: Any) -> AttendanceStatus:
    result = payload.get("result") if isinstance(payload, dict) else None
    if not result:
        return AttendanceStatus()

    attendance = result.get("attendance") if isinstance(result, dict) else None
    return AttendanceStatus(
        isCheckedIn=bool(attendance),
        lastAction="Checked In" if attendance else "Checked Out",
    )


class ToggleCall:
    """Builds and sends the systray toggle request for the current session."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        credentials: Credentials,
        session: Session,
        timezone: str = DEFAULT_TIMEZONE,
        companyIds: str = DEFAULT_COMPANY_IDS,
    ):
        self.client = client
        self.credentials = credentials
        self.session = session
        self.timezone = timezone
        self.companyIds = companyIds

    @staticmethod
    def payload() -> dict[str, Any]:
        # Odoo doesn't care about the id, it just echoes it back
        return dict(id=random.randint(0, 999), jsonrpc="2.0", method="call", params={})

    def headers(self, withReferer: bool = True) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "*/*",
            "Cookie": f"{SESSION_COOKIE}={self.session.sessionId}; tz={self.timezone}; cids={self.companyIds}",
            "X-Requested-With": "XMLHttpRequest",
        }

        if withReferer:
            headers["Origin"] = self.credentials.baseUrl
            headers["Referer"] = self.credentials.url(ATTENDANCES_PAGE_PATH)

        return headers

    async def post(self, timeout: float, withReferer: bool = True) -> httpx.Response:
        """POST the toggle. Raises httpx.HTTPStatusError on non-2xx replies."""
        got = await self.client.post(
            self.credentials.url(ATTENDANCE_TOGGLE_PATH),
            content=ourjson.dumps(self.payload()),
            headers=self.headers(withReferer),
            timeout=timeout,
        )

        logger.info("Toggle response status: {}", got.status_code)
        got.raise_for_status()
        return got


class AttendanceInvoker:
    """Runs the toggle with at most one re-login when the session went stale.

    Dependencies injected at construction:
    - toggle: request builder bound to the shared session
    - negotiator: used to log in when no session exists
    - session: cleared when Odoo reports the session as expired
    - guard: set only while the single recovery attempt runs
    """

    def __init__(
        self,
        toggle: ToggleCall,
        negotiator: SessionNegotiator,
        session: Session,
        guard: RetryGuard,
    ):
        self.toggle = toggle
        self.negotiator = negotiator
        self.session = session
        self.guard = guard

    async def invoke(self) -> AttendanceResult:
        if self.guard.active:
            logger.error("Already retrying, refusing to start another attempt")
            return LOGIN_FAILED_AFTER_RETRY

        try:
            return await self.attempt()
        except SessionExpired as e:
            logger.warning("Session expired ({}), logging in again once...", e)
            self.session.invalidate()

        with self.guard:
            try:
                return await self.attempt()
            except SessionExpired as e:
                logger.error("Session still rejected after re-login: {}", e)
                return e.result

    async def attempt(self) -> AttendanceResult:
        """One login-if-needed plus toggle round trip.

        Raises SessionExpired when Odoo says the session is no good.
        """
        if not self.session.active and not await self.negotiator.negotiate():
            return LOGIN_FAILED

        logger.info("Toggling attendance...")

        try:
            got = await self.toggle.post(timeout=ATTENDANCE_TIMEOUT)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error("Toggle failed with HTTP {}: {}", status, e.response.text[:200])

            failed = AttendanceResult(False, f"Error: {status}")
            if status in SESSION_ERROR_STATUSES:
                raise SessionExpired(f"HTTP {status}", failed) from e

            return failed
        except httpx.HTTPError as e:
            logger.error("Toggle request failed: {} ({})", type(e).__name__, e)
            return AttendanceResult(False, f"Error: {str(e) or type(e).__name__}")

        try:
            payload = ourjson.loads(got.content)
        except ValueError:
            logger.error("Toggle response isn't JSON: {}", got.text[:200])
            return UNEXPECTED_RESPONSE

        return interpretToggle(payload)


class StatusReader:
    """Reads check-in state. Never retries and never raises."""

    def __init__(self, toggle: ToggleCall, negotiator: SessionNegotiator, session: Session):
        self.toggle = toggle
        self.negotiator = negotiator
        self.session = session

    async def readStatus(self) -> AttendanceStatus:
        try:
            if not self.session.active and not await self.negotiator.negotiate():
                logger.warning("Can't read attendance status without a session")
                return AttendanceStatus()

            logger.info("Getting attendance status...")
            got = await self.toggle.post(timeout=STATUS_TIMEOUT, withReferer=False)
            payload = ourjson.loads(got.content)
        except Exception as e:
            logger.error("Error getting attendance status: {} ({})", type(e).__name__, e)
            return AttendanceStatus()

        status = statusFromPayload(payload)
        logger.info("Attendance status: {}", status)
        return status
