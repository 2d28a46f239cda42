"""Odoo web login handshake.

Odoo's /web/login is a plain HTML form protected by a CSRF token, and hosted
instances usually sit behind an anti-bot edge layer (Cloudflare) which wants
to see its own cookies come back. So we act like a browser would:

    GET /                     -> collect edge cookies (best effort)
    GET /web/login?db=...     -> login form (maybe via one redirect)
    POST /web/login           -> credentials + token, inspect the redirect

Cookies are carried by hand between the three requests so we always know
exactly which session_id we ended up with.
"""
from __future__ import annotations

import pathlib

import httpx
from loguru import logger

from odooattend.engine.primitives import (
    ACCEPT_HTML,
    AUTHENTICATED_PATHS,
    DATABASE_SELECTOR_PATH,
    LOGIN_FAILURE_MARKERS,
    LOGIN_PAGE_DUMP,
    LOGIN_PATH,
    NEGOTIATION_TIMEOUT,
    REDIRECT_STATUSES,
    Credentials,
    preview,
)
from odooattend.engine.session import Session
from odooattend.engine.tokens import extractToken

SESSION_COOKIE = "session_id"


def setCookies(response: httpx.Response) -> dict[str, str]:
    """Name/value pairs from every Set-Cookie header (attributes dropped)."""
    found = {}
    for header in response.headers.get_list("set-cookie"):
        name, _, value = header.split(";", 1)[0].partition("=")
        if name := name.strip():
            found[name] = value.strip()

    return found


def sessionIdFrom(response: httpx.Response) -> str | None:
    return setCookies(response).get(SESSION_COOKIE)


def cookieHeader(cookies: dict[str, str]) -> str:
    return "; ".join(f"{name}={value}" for name, value in cookies.items())


def classifyLogin(status: int, location: str | None, body: str) -> tuple[bool, str]:
    """Decide if a POST /web/login response means we are logged in.

    Returns (success, reason).
    """
    if status in REDIRECT_STATUSES:
        if not location:
            return False, "no redirect target"

        # order matters: both failure targets also contain "/web"
        if DATABASE_SELECTOR_PATH in location:
            return False, "wrong credentials or database"

        if LOGIN_PATH in location:
            return False, "redirected back to login"

        if any(path in location for path in AUTHENTICATED_PATHS):
            return True, f"redirected to {location}"

    if body and any(marker in body for marker in LOGIN_FAILURE_MARKERS):
        return False, "wrong credentials"

    # Odoo doesn't give us anything better to go on here, so assume we're in.
    return True, "no failure marker in response"


class SessionNegotiator:
    """Logs in to Odoo and records the resulting token/session in ``session``.

    Dependencies injected at construction:
    - client: shared httpx.AsyncClient (browser headers already applied)
    - credentials: who to log in as
    - session: the service-owned Session to populate
    - dumpPath: where the login page is written if no CSRF token is found
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        credentials: Credentials,
        session: Session,
        dumpPath: str | pathlib.Path = LOGIN_PAGE_DUMP,
    ):
        self.client = client
        self.credentials = credentials
        self.session = session
        self.dumpPath = pathlib.Path(dumpPath)

    def _htmlHeaders(self, cookies: dict[str, str], referer: str) -> dict[str, str]:
        return {
            "Accept": ACCEPT_HTML,
            "Cookie": cookieHeader(cookies),
            "Referer": referer,
        }

    async def negotiate(self) -> bool:
        """Run the full login handshake. Never raises for network problems."""
        # a half-finished login must never leave a usable-looking session behind
        self.session.invalidate()
        self.client.cookies.clear()

        logger.info(
            "Logging in to Odoo at {} (db: {}, user: {})",
            self.credentials.baseUrl,
            self.credentials.database,
            self.credentials.username,
        )

        try:
            return await self._negotiate()
        except httpx.HTTPError as e:
            logger.error("Login error: {} ({})", type(e).__name__, e)
            return False

    async def edgeCookies(self) -> dict[str, str]:
        """Fetch the site root so the edge layer hands out its cookies.

        Failing here doesn't matter much, plenty of instances have no edge layer.
        """
        try:
            got = await self.client.get(
                self.credentials.url("/"),
                headers={"Accept": ACCEPT_HTML},
                timeout=NEGOTIATION_TIMEOUT,
            )
        except httpx.HTTPError as e:
            logger.warning("Couldn't fetch homepage for edge cookies, continuing without: {}", e)
            return {}

        cookies = setCookies(got)
        if cookies:
            logger.info("Got edge cookies: {}", ", ".join(cookies))

        return cookies

    async def _negotiate(self) -> bool:
        creds = self.credentials
        cookies = await self.edgeCookies()

        # Any status is usable here; error pages still get inspected for a token.
        page = await self.client.get(
            creds.loginUrl,
            headers=self._htmlHeaders(cookies, referer=creds.url("/")),
            follow_redirects=False,
            timeout=NEGOTIATION_TIMEOUT,
        )

        logger.info("Login page status: {}", page.status_code)

        if page.status_code in REDIRECT_STATUSES:
            location = page.headers.get("location")
            logger.info("Login page redirected to: {}", location)

            if not location:
                logger.error("Login page redirect has no Location header")
                return False

            cookies |= setCookies(page)

            page = await self.client.get(
                creds.url(location),
                headers=self._htmlHeaders(cookies, referer=creds.loginUrl),
                follow_redirects=True,
                timeout=NEGOTIATION_TIMEOUT,
            )

            logger.info("After redirect, status: {}", page.status_code)

        html = page.text
        token = extractToken(html)
        if not token:
            logger.error(
                "CSRF token not found in login page! Saving page to {} for inspection",
                self.dumpPath,
            )
            self.dumpLoginPage(html)
            return False

        logger.info("CSRF token: {}", preview(token, 30))

        if sessionId := sessionIdFrom(page):
            cookies[SESSION_COOKIE] = sessionId

        submitted = await self.client.post(
            creds.url(LOGIN_PATH),
            data={
                "csrf_token": token,
                "db": creds.database,
                "login": creds.username,
                "password": creds.password,
                "type": "password",
                "redirect": f"/odoo?db={creds.database}",
            },
            headers={
                "Cookie": cookieHeader(cookies),
                "Origin": creds.baseUrl,
                "Referer": creds.loginUrl,
                "Cache-Control": "max-age=0",
                "Upgrade-Insecure-Requests": "1",
            },
            follow_redirects=False,
            timeout=NEGOTIATION_TIMEOUT,
        )

        if newSessionId := sessionIdFrom(submitted):
            sessionId = newSessionId
            logger.info("New session id: {}", preview(sessionId))

        location = submitted.headers.get("location")
        success, reason = classifyLogin(submitted.status_code, location, submitted.text)

        if not success:
            logger.error("Login failed: {} (status {})", reason, submitted.status_code)
            return False

        self.session.establish(token, sessionId)
        logger.info("Login successful: {}", reason)
        return True

    def dumpLoginPage(self, html: str) -> None:
        try:
            self.dumpPath.write_text(html, encoding="utf-8")
        except OSError as e:
            logger.error("Couldn't write login page to {}: {}", self.dumpPath, e)
