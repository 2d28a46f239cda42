"""Shared test fixtures for odooattend test suite.

FakeOdoo is a scripted stand-in for an Odoo instance (plus its edge layer)
served through httpx.MockTransport, so the whole login/toggle flow runs
headless without any network.
"""

from dataclasses import dataclass, field
from io import StringIO
from typing import Any

import httpx
import pytest
from loguru import logger

from odooattend.engine.primitives import Credentials
from odooattend.engine.service import OdooAttendance

TOKEN = "3f2a9c1e0b7d4a6f8e2c5b1a9d0e7f6c3b2a1d0eo1893456789"

LOGIN_PAGE = f"""
<html><body>
<form class="oe_login_form" action="/web/login" method="post">
    <input type="hidden" name="csrf_token" value="{TOKEN}"/>
    <input type="text" name="login" id="login"/>
</form>
</body></html>
"""

CHECKED_IN: Any = {"jsonrpc": "2.0", "id": 1, "result": {"attendance": {"id": 7, "check_out": False}}}
CHECKED_OUT: Any = {"jsonrpc": "2.0", "id": 1, "result": {"attendance": False}}
SESSION_EXPIRED: Any = {
    "jsonrpc": "2.0",
    "id": 1,
    "error": {
        "code": 100,
        "message": "Odoo Session Expired",
        "data": {"name": "odoo.http.SessionExpiredException", "message": "Session expired, please login"},
    },
}


@dataclass
class FakeOdoo:
    """Scripted Odoo web server.

    toggleReplies is consumed front to back by POSTs to the systray endpoint.
    Entries may be a dict (200 JSON), a str (200 text), an int (bare status)
    or an exception instance (raised as a transport error). Once exhausted
    every toggle gets ``CHECKED_IN``.
    """

    loginPage: str = LOGIN_PAGE
    loginPageStatus: int = 200

    # GET /web/login answers with a 303 to here first, when set
    loginPageRedirect: str | None = None

    # POST /web/login answers 303 to here; None answers 200 with loginBody
    loginRedirect: str | None = "/odoo?db=testdb"
    loginBody: str = ""

    rootFails: bool = False
    loginFails: bool = False

    toggleReplies: list[Any] = field(default_factory=list)

    requests: list[httpx.Request] = field(default_factory=list)
    logins: int = 0

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    @property
    def toggles(self) -> list[httpx.Request]:
        return self.calls("POST", "/hr_attendance/systray_check_in_out")

    @property
    def loginPosts(self) -> list[httpx.Request]:
        return self.calls("POST", "/web/login")

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/":
            if self.rootFails:
                raise httpx.ConnectError("edge layer unreachable", request=request)

            return httpx.Response(
                200, text="<html>home</html>", headers={"set-cookie": "__cf_bm=edge123; Path=/; HttpOnly"}
            )

        if path == "/web/login" and request.method == "GET":
            if self.loginFails:
                raise httpx.ConnectTimeout("login page timed out", request=request)

            if self.loginPageRedirect and "redirected" not in request.url.params:
                return httpx.Response(
                    303,
                    headers={"location": self.loginPageRedirect, "set-cookie": "frontend_lang=en_US; Path=/"},
                )

            return httpx.Response(
                self.loginPageStatus,
                text=self.loginPage,
                headers={"set-cookie": "session_id=anonymous; Path=/; HttpOnly"},
            )

        if path == "/web/login" and request.method == "POST":
            self.logins += 1
            cookie = f"session_id=sess-{self.logins}; Path=/; HttpOnly"
            if self.loginRedirect is None:
                return httpx.Response(200, text=self.loginBody, headers={"set-cookie": cookie})

            return httpx.Response(303, headers={"location": self.loginRedirect, "set-cookie": cookie})

        if path == "/hr_attendance/systray_check_in_out":
            reply = self.toggleReplies.pop(0) if self.toggleReplies else CHECKED_IN
            if isinstance(reply, Exception):
                raise reply
            if isinstance(reply, int):
                return httpx.Response(reply, text="nope")
            if isinstance(reply, str):
                return httpx.Response(200, text=reply)

            return httpx.Response(200, json=reply)

        return httpx.Response(404, text="not found")


# ── Fixtures ──


@pytest.fixture
def credentials() -> Credentials:
    return Credentials("https://odoo.test/", "testdb", "alice@example.com", "hunter2")


@pytest.fixture
def fake_odoo() -> FakeOdoo:
    return FakeOdoo()


@pytest.fixture
def dump_path(tmp_path):
    return tmp_path / "odoo_login_page.html"


@pytest.fixture
def service(fake_odoo, credentials, dump_path) -> OdooAttendance:
    """OdooAttendance wired to fake_odoo (not logged in yet)."""
    return OdooAttendance(credentials, dumpPath=dump_path, transport=fake_odoo.transport)


@pytest.fixture
def log_capture():
    """Capture loguru output for assertion. Yields a StringIO buffer."""
    buf = StringIO()
    handler_id = logger.add(buf, format="{message}", level="INFO")
    yield buf
    logger.remove(handler_id)
