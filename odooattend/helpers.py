"""Configuration helpers shared between the cli and the bot."""

from __future__ import annotations

import os
import pathlib
from collections.abc import Mapping
from typing import Final

from dotenv import dotenv_values

from odooattend.engine.primitives import DEFAULT_COMPANY_IDS, DEFAULT_TIMEZONE, Credentials
from odooattend.engine.service import OdooAttendance

CONFIG_DEFAULTS: Final = dict(
    ODOO_TIMEZONE=DEFAULT_TIMEZONE,
    ODOO_COMPANY_IDS=DEFAULT_COMPANY_IDS,
    ODOO_VERIFY_TLS="0",
    ODOO_CHECKOUT_HOUR="17",
    ODOO_LOGDIR="runlogs",
)

# first one found wins (the docker layout keeps its env file under misc/)
ENV_FILES: Final = (".env", "misc/docker/.env")

ODOO_KEYS: Final = ("ODOO_URL", "ODOO_DB", "ODOO_USERNAME", "ODOO_PASSWORD")
BOT_KEYS: Final = ("TELEGRAM_BOT_TOKEN", "ALLOWED_USER_IDS")


class ConfigError(Exception):
    pass


def loadConfig(
    environ: Mapping[str, str] | None = None, envFiles: tuple[str, ...] = ENV_FILES
) -> dict[str, str]:
    """Merge defaults < env file < process environment."""
    fromFile: dict[str, str] = {}
    for path in envFiles:
        if pathlib.Path(path).is_file():
            fromFile = {k: v for k, v in dotenv_values(path).items() if v is not None}
            break

    return {**CONFIG_DEFAULTS, **fromFile, **(os.environ if environ is None else environ)}


def require(config: Mapping[str, str], *keys: str) -> None:
    for key in keys:
        if not config.get(key):
            raise ConfigError(f"Missing required environment variable: {key}")


def flag(value: str | None) -> bool:
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def credentialsFromConfig(config: Mapping[str, str]) -> Credentials:
    require(config, *ODOO_KEYS)
    return Credentials(
        baseUrl=config["ODOO_URL"],
        database=config["ODOO_DB"],
        username=config["ODOO_USERNAME"],
        password=config["ODOO_PASSWORD"],
    )


def serviceFromConfig(config: Mapping[str, str], **kwargs) -> OdooAttendance:
    return OdooAttendance(
        credentialsFromConfig(config),
        timezone=config.get("ODOO_TIMEZONE") or DEFAULT_TIMEZONE,
        companyIds=config.get("ODOO_COMPANY_IDS") or DEFAULT_COMPANY_IDS,
        verify=flag(config.get("ODOO_VERIFY_TLS")),
        **kwargs,
    )


def allowedUserIds(config: Mapping[str, str]) -> frozenset[int]:
    """Parse the comma separated ALLOWED_USER_IDS, skipping junk entries."""
    require(config, "ALLOWED_USER_IDS")

    ids = set()
    for part in config["ALLOWED_USER_IDS"].split(","):
        try:
            ids.add(int(part.strip()))
        except ValueError:
            continue

    if not ids:
        raise ConfigError("No valid user IDs found in ALLOWED_USER_IDS")

    return frozenset(ids)


def checkoutHour(config: Mapping[str, str]) -> int:
    try:
        return int(config.get("ODOO_CHECKOUT_HOUR") or CONFIG_DEFAULTS["ODOO_CHECKOUT_HOUR"])
    except ValueError:
        raise ConfigError(f"ODOO_CHECKOUT_HOUR must be an hour number, got: {config['ODOO_CHECKOUT_HOUR']}")
