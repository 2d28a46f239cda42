"""The attendance service handed to the bot and the CLI."""
from __future__ import annotations

import pathlib

import httpx
from loguru import logger

from odooattend.engine.attendance import AttendanceInvoker, StatusReader, ToggleCall
from odooattend.engine.negotiator import SessionNegotiator
from odooattend.engine.primitives import (
    ACCEPT_LANGUAGE,
    DEFAULT_COMPANY_IDS,
    DEFAULT_TIMEZONE,
    LOGIN_PAGE_DUMP,
    NEGOTIATION_TIMEOUT,
    USER_AGENT,
    AttendanceResult,
    AttendanceStatus,
    Credentials,
)
from odooattend.engine.session import RetryGuard, Session


class OdooAttendance:
    """One Odoo user's attendance, backed by one login session.

    Callers are expected to await one operation at a time per instance;
    the session is shared state with no locking.

    None of the public operations raise for network or protocol failures,
    they report them in the returned result instead.
    """

    def __init__(
        self,
        credentials: Credentials,
        *,
        timezone: str = DEFAULT_TIMEZONE,
        companyIds: str = DEFAULT_COMPANY_IDS,
        verify: bool = False,
        dumpPath: str | pathlib.Path = LOGIN_PAGE_DUMP,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.credentials = credentials
        self.session = Session()
        self.guard = RetryGuard()

        self.client = httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT, "Accept-Language": ACCEPT_LANGUAGE},
            timeout=NEGOTIATION_TIMEOUT,
            verify=verify,
            transport=transport,
        )

        self.negotiator = SessionNegotiator(self.client, credentials, self.session, dumpPath)
        self.toggle = ToggleCall(self.client, credentials, self.session, timezone, companyIds)
        self.invoker = AttendanceInvoker(self.toggle, self.negotiator, self.session, self.guard)
        self.reader = StatusReader(self.toggle, self.negotiator, self.session)

    async def __aenter__(self) -> OdooAttendance:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def login(self) -> bool:
        return await self.negotiator.negotiate()

    async def checkIn(self) -> AttendanceResult:
        logger.info("Checking in...")
        return await self.invoker.invoke()

    async def checkOut(self) -> AttendanceResult:
        # Same call as checkIn. Odoo flips whichever state the user is in.
        logger.info("Checking out...")
        return await self.invoker.invoke()

    async def getAttendanceStatus(self) -> AttendanceStatus:
        return await self.reader.readStatus()
