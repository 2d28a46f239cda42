"""CSRF token extraction from Odoo login pages.

Odoo has moved the login form token around between releases (and themes
move it around more), so we try a list of independent extractors in order
and take the first hit. The last one is a pure heuristic.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Final

Extractor = Callable[[str], str | None]

INPUT_NAME_FIRST: Final = re.compile(
    r"""<input[^>]*name=["']csrf_token["'][^>]*value=["']([^"']+)["']""", re.I
)
INPUT_VALUE_FIRST: Final = re.compile(
    r"""<input[^>]*value=["']([^"']+)["'][^>]*name=["']csrf_token["']""", re.I
)
SCRIPT_ASSIGNMENT: Final = re.compile(
    r"""csrf_token["']?\s*[:=]\s*["']([a-zA-Z0-9]+)["']""", re.I
)
JSON_FIELD: Final = re.compile(r'"csrf_token"\s*:\s*"([^"]+)"', re.I)

# Odoo tokens look like "<40 hex chars>o<expiry timestamp>"
TOKEN_LIKE: Final = re.compile(r"([a-f0-9]{40,}o\d+)", re.I)


def _first(pattern: re.Pattern[str], html: str) -> str | None:
    if found := pattern.search(html):
        return found.group(1)

    return None


def fromInputNameFirst(html: str) -> str | None:
    """<input type="hidden" name="csrf_token" value="...">"""
    return _first(INPUT_NAME_FIRST, html)


def fromInputValueFirst(html: str) -> str | None:
    """<input value="..." name="csrf_token">"""
    return _first(INPUT_VALUE_FIRST, html)


def fromScriptAssignment(html: str) -> str | None:
    """csrf_token: "..." or csrf_token = '...' inside an inline script."""
    return _first(SCRIPT_ASSIGNMENT, html)


def fromJsonField(html: str) -> str | None:
    """"csrf_token": "..." inside embedded session info JSON."""
    return _first(JSON_FIELD, html)


def fromTokenLike(html: str) -> str | None:
    return _first(TOKEN_LIKE, html)


EXTRACTORS: Final[tuple[Extractor, ...]] = (
    fromInputNameFirst,
    fromInputValueFirst,
    fromScriptAssignment,
    fromJsonField,
    fromTokenLike,
)


def extractToken(html: str | None, extractors: tuple[Extractor, ...] = EXTRACTORS) -> str | None:
    """Return the CSRF token from the first extractor that matches, else None."""
    if not html:
        return None

    for extractor in extractors:
        if token := extractor(html):
            return token

    return None
