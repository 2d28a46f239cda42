#!/usr/bin/env python3
"""Command line entry point.

    odooattend checkin             # check in unless already checked in
    odooattend checkout            # check out (only at/after ODOO_CHECKOUT_HOUR)
    odooattend status              # print current attendance status
    odooattend bot [--webhook URL] # run the Telegram bot

checkin/checkout are meant to be fired by editor open/close hooks or a
scheduler, so they check current state first and skip redundant toggles.
"""

import asyncio
import pathlib
import sys
from collections.abc import Mapping, Sequence
from typing import Final

import whenever
from loguru import logger

from odooattend.engine.clock import LocalClock
from odooattend.engine.primitives import AttendanceResult
from odooattend.engine.protocols import AttendanceService
from odooattend.helpers import (
    BOT_KEYS,
    ConfigError,
    allowedUserIds,
    checkoutHour,
    loadConfig,
    require,
    serviceFromConfig,
)

COMMANDS: Final = ("checkin", "checkout", "status", "bot")


def setupLogging(logdir: str | pathlib.Path, timezone: str, level: str = "INFO") -> str:
    """Console logging plus a full TRACE log file per run under logdir/YYYY/MM/."""
    now = whenever.ZonedDateTime.now(timezone)
    LOGDIR = pathlib.Path(logdir) / f"{now.year}" / f"{now.month:02}"
    LOGDIR.mkdir(exist_ok=True, parents=True)
    stamp = f"{now.year}{now.month:02}{now.day:02}-{now.hour:02}{now.minute:02}{now.second:02}"
    LOG_FILE = str(LOGDIR / f"odooattend-{stamp}.log")

    logger.remove()
    logger.add(sys.stderr, colorize=True, level=level)
    logger.add(sink=LOG_FILE, level="TRACE", colorize=False)

    logger.info("Logging session to: {}", LOG_FILE)
    return LOG_FILE


async def automatedCheckIn(service: AttendanceService) -> AttendanceResult | None:
    """Check in unless Odoo already has us checked in. None means skipped."""
    logger.info("Automated check-in triggered...")

    status = await service.getAttendanceStatus()
    if status.isCheckedIn:
        logger.info("Already checked in. Skipping.")
        return None

    result = await service.checkIn()
    logger.info(result.message)
    return result


async def automatedCheckOut(
    service: AttendanceService, clock: LocalClock, hour: int
) -> AttendanceResult | None:
    """Check out if it's late enough and we're checked in. None means skipped."""
    if not clock.atOrAfter(hour):
        logger.info(
            "Automated check-out skipped. Current time is {} (before {:02}:00).",
            clock.hhmm(),
            hour,
        )
        return None

    logger.info("Automated check-out triggered (after {:02}:00)...", hour)

    status = await service.getAttendanceStatus()
    if not status.isCheckedIn:
        logger.info("Not checked in. Skipping check-out.")
        return None

    result = await service.checkOut()
    logger.info(result.message)
    return result


async def showStatus(service: AttendanceService) -> None:
    status = await service.getAttendanceStatus()
    logger.info(
        "Checked in: {} (last action: {})", status.isCheckedIn, status.lastAction or "unknown"
    )


async def runCommand(command: str, config: Mapping[str, str], **serviceArgs) -> int:
    clock = LocalClock(config["ODOO_TIMEZONE"])

    async with serviceFromConfig(config, **serviceArgs) as service:
        if command == "checkin":
            result = await automatedCheckIn(service)
        elif command == "checkout":
            result = await automatedCheckOut(service, clock, checkoutHour(config))
        else:
            await showStatus(service)
            return 0

    return 0 if result is None or result.success else 1


def runBot(config: Mapping[str, str], args: Sequence[str]) -> int:
    from odooattend.bot import AttendanceBot

    require(config, *BOT_KEYS)

    webhookUrl = None
    if "--webhook" in args:
        try:
            webhookUrl = args[args.index("--webhook") + 1]
        except IndexError:
            raise ConfigError("--webhook needs a public URL")

    bot = AttendanceBot(
        config["TELEGRAM_BOT_TOKEN"],
        serviceFromConfig(config),
        allowedUserIds(config),
        LocalClock(config["ODOO_TIMEZONE"]),
    )

    logger.info("Odoo URL: {}", config["ODOO_URL"])
    logger.info("Database: {}", config["ODOO_DB"])
    logger.info("Username: {}", config["ODOO_USERNAME"])
    logger.info("Allowed users: {}", ", ".join(map(str, sorted(bot.allowedUserIds))))

    bot.run(webhookUrl=webhookUrl)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    command = args[0] if args else ""

    config = loadConfig()
    setupLogging(config["ODOO_LOGDIR"], config["ODOO_TIMEZONE"])

    if command not in COMMANDS:
        logger.error("Unknown command {!r}. Use one of: {}", command, ", ".join(COMMANDS))
        return 1

    try:
        if command == "bot":
            return runBot(config, args[1:])

        return asyncio.run(runCommand(command, config))
    except ConfigError as e:
        logger.error("{}", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
