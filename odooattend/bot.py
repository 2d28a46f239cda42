"""Telegram front end: /checkin, /checkout and /status for allowed users only."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from typing import Final

from loguru import logger
from telegram import Update
from telegram.constants import ParseMode
from telegram.ext import Application, CommandHandler, ContextTypes

from odooattend.engine.clock import LocalClock
from odooattend.engine.primitives import AttendanceResult, AttendanceStatus
from odooattend.engine.protocols import AttendanceService

ACCESS_DENIED: Final = "❌ You don't have access to this bot."

WELCOME: Final = """
🤖 *Attendance Odoo Bot*

Welcome! This bot checks you in and out of Odoo attendance.

*Available Commands:*
/checkin - Check in attendance
/checkout - Check out attendance
/status - Show current attendance status
/help - Show help

Use the commands above to get started! 🚀
""".strip()

HELP: Final = """
📖 *Help - Attendance Odoo Bot*

*Available commands:*

/checkin - Check in attendance
/checkout - Check out attendance
/status - Show current attendance status
/help - Show this message

*How it works:*
1. Use /checkin when you start work
2. Use /checkout when you finish
3. The bot logs in to Odoo and records attendance for you

*Notes:*
- Only allowed users can use this bot
- Odoo credentials come from the bot's .env file
""".strip()


def toggleReply(label: str, result: AttendanceResult, clock: LocalClock) -> str:
    if result.success:
        return f"✅ *{label} successful!*\n\n⏰ Time: {clock.hhmm()} ({clock.timezone})"

    return f"❌ {result.message}"


def statusReply(status: AttendanceStatus) -> str:
    text = "✅ Checked in" if status.isCheckedIn else "❌ Not checked in"
    return f"📊 *Attendance Status*\n\n{text}"


class AttendanceBot:
    """Routes Telegram commands to an AttendanceService.

    The service is awaited one command at a time (python-telegram-bot runs
    handlers sequentially unless told otherwise), which is what the
    service's unlocked session state expects.
    """

    def __init__(
        self,
        token: str,
        service: AttendanceService,
        allowedUserIds: Iterable[int],
        clock: LocalClock | None = None,
    ):
        self.service = service
        self.allowedUserIds = frozenset(allowedUserIds)
        self.clock = clock or LocalClock()

        self.application = Application.builder().token(token).build()

        for name, handler in (
            ("start", self.start),
            ("help", self.help),
            ("checkin", self.checkin),
            ("checkout", self.checkout),
            ("status", self.status),
        ):
            self.application.add_handler(CommandHandler(name, handler))

        self.application.add_error_handler(self.onError)

    def isAuthorized(self, userId: int | None) -> bool:
        return userId is not None and userId in self.allowedUserIds

    async def authorize(self, update: Update) -> bool:
        user = update.effective_user
        if self.isAuthorized(user.id if user else None):
            return True

        logger.warning("Rejected command from unauthorized user: {}", user.id if user else None)
        await update.effective_message.reply_text(ACCESS_DENIED)
        return False

    async def start(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if await self.authorize(update):
            await update.effective_message.reply_text(WELCOME, parse_mode=ParseMode.MARKDOWN)

    async def help(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if await self.authorize(update):
            await update.effective_message.reply_text(HELP, parse_mode=ParseMode.MARKDOWN)

    async def checkin(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self.toggle(update, "Check-in", self.service.checkIn)

    async def checkout(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self.toggle(update, "Check-out", self.service.checkOut)

    async def toggle(
        self,
        update: Update,
        label: str,
        action: Callable[[], Awaitable[AttendanceResult]],
    ) -> None:
        if not await self.authorize(update):
            return

        message = update.effective_message
        try:
            working = await message.reply_text(f"⏳ Running {label.lower()}...")
            result = await action()
            await working.delete()
        except Exception as e:
            logger.exception("Error handling {}", label)
            await message.reply_text(f"❌ Something went wrong: {e}")
            return

        await message.reply_text(toggleReply(label, result, self.clock), parse_mode=ParseMode.MARKDOWN)

    async def status(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if not await self.authorize(update):
            return

        try:
            found = await self.service.getAttendanceStatus()
        except Exception as e:
            logger.exception("Error handling status")
            await update.effective_message.reply_text(f"❌ Something went wrong: {e}")
            return

        await update.effective_message.reply_text(statusReply(found), parse_mode=ParseMode.MARKDOWN)

    async def onError(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        logger.opt(exception=context.error).error("Bot error while handling update: {}", update)

    def run(self, webhookUrl: str | None = None, listen: str = "0.0.0.0", port: int = 8443) -> None:
        """Block running the bot (long polling, or webhook when a public URL is given)."""
        logger.info("Bot started, waiting for commands...")

        if webhookUrl:
            self.application.run_webhook(listen=listen, port=port, webhook_url=webhookUrl)
        else:
            self.application.run_polling(allowed_updates=Update.ALL_TYPES)

        logger.info("Bot stopped")
