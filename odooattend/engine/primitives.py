"""Pure types and constants for talking to Odoo, stdlib only."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

# Browser-ish identity. The edge layer in front of most hosted Odoo instances
# rejects obviously scripted clients, so every request carries these.
USER_AGENT: Final = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"
)
ACCEPT_LANGUAGE: Final = "en-US,en;q=0.9"
ACCEPT_HTML: Final = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"

# Odoo web routes
LOGIN_PATH: Final = "/web/login"
DATABASE_SELECTOR_PATH: Final = "/web/database/selector"
ATTENDANCE_TOGGLE_PATH: Final = "/hr_attendance/systray_check_in_out"
ATTENDANCES_PAGE_PATH: Final = "/odoo/attendances"

# Any of these in a post-login redirect target means we landed inside the app.
AUTHENTICATED_PATHS: Final = ("/web", "/odoo")

# Markers Odoo renders in the login page when it refuses credentials.
LOGIN_FAILURE_MARKERS: Final = ("Wrong login/password", "alert alert-danger")

# Substrings of a JSON-RPC error message meaning "your session is gone"
SESSION_ERROR_KEYWORDS: Final = ("session", "login")

# HTTP statuses on the toggle call which we treat as an expired session
SESSION_ERROR_STATUSES: Final = frozenset({401, 403, 404})

REDIRECT_STATUSES: Final = frozenset({302, 303})

# Per-request deadlines (seconds)
NEGOTIATION_TIMEOUT: Final = 30.0
ATTENDANCE_TIMEOUT: Final = 15.0
STATUS_TIMEOUT: Final = 10.0

# where the login page gets dumped when we can't find a CSRF token in it
LOGIN_PAGE_DUMP: Final = "odoo_login_page.html"

DEFAULT_TIMEZONE: Final = "Asia/Jakarta"
DEFAULT_COMPANY_IDS: Final = "1"


@dataclass(frozen=True, slots=True)
class Credentials:
    """Connection details for one Odoo user. Immutable after construction."""

    baseUrl: str
    database: str
    username: str
    password: str

    def __post_init__(self) -> None:
        # allow "https://example.odoo.com/" in config without doubling slashes later
        object.__setattr__(self, "baseUrl", self.baseUrl.rstrip("/"))

    def url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path

        return f"{self.baseUrl}{path}"

    @property
    def loginUrl(self) -> str:
        return self.url(f"{LOGIN_PATH}?db={self.database}")

    def __repr__(self) -> str:
        # never leak the password into logs
        return f"Credentials(baseUrl={self.baseUrl!r}, database={self.database!r}, username={self.username!r})"


@dataclass(frozen=True, slots=True)
class AttendanceResult:
    success: bool
    message: str


@dataclass(frozen=True, slots=True)
class AttendanceStatus:
    isCheckedIn: bool = False
    lastAction: str | None = None


def preview(value: str | None, size: int = 20) -> str:
    """Truncate a secret-ish value (token, session id) for log output."""
    if not value:
        return "<none>"

    return f"{value[:size]}..."
