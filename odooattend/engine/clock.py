"""Local wall clock for the user's Odoo timezone."""
from __future__ import annotations

import dataclasses

import whenever

from odooattend.engine.primitives import DEFAULT_TIMEZONE


@dataclasses.dataclass
class LocalClock:
    """Time source pinned to one IANA timezone.

    Used for the checkout-hour rule and for timestamps in chat replies.
    """

    timezone: str = DEFAULT_TIMEZONE

    def now(self) -> whenever.ZonedDateTime:
        return whenever.ZonedDateTime.now(self.timezone)

    def hhmm(self) -> str:
        now = self.now()
        return f"{now.hour:02}:{now.minute:02}"

    def atOrAfter(self, hour: int) -> bool:
        return self.now().hour >= hour
