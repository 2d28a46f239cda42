"""Tests for odooattend.helpers: configuration loading."""
import pytest

from odooattend.engine.service import OdooAttendance
from odooattend.helpers import (
    ConfigError,
    allowedUserIds,
    checkoutHour,
    credentialsFromConfig,
    flag,
    loadConfig,
    require,
    serviceFromConfig,
)

ODOO = dict(
    ODOO_URL="https://odoo.test/",
    ODOO_DB="testdb",
    ODOO_USERNAME="alice@example.com",
    ODOO_PASSWORD="hunter2",
)


class TestLoadConfig:
    def test_defaults(self, tmp_path):
        config = loadConfig(environ={}, envFiles=(str(tmp_path / "missing.env"),))
        assert config["ODOO_TIMEZONE"] == "Asia/Jakarta"
        assert config["ODOO_COMPANY_IDS"] == "1"
        assert config["ODOO_CHECKOUT_HOUR"] == "17"

    def test_env_file_over_defaults(self, tmp_path):
        env = tmp_path / ".env"
        env.write_text("ODOO_URL=https://from.file\nODOO_TIMEZONE=Europe/Berlin\n")

        config = loadConfig(environ={}, envFiles=(str(env),))
        assert config["ODOO_URL"] == "https://from.file"
        assert config["ODOO_TIMEZONE"] == "Europe/Berlin"

    def test_environment_over_env_file(self, tmp_path):
        env = tmp_path / ".env"
        env.write_text("ODOO_URL=https://from.file\n")

        config = loadConfig(environ={"ODOO_URL": "https://from.env"}, envFiles=(str(env),))
        assert config["ODOO_URL"] == "https://from.env"

    def test_first_env_file_wins(self, tmp_path):
        first = tmp_path / "first.env"
        second = tmp_path / "second.env"
        second.write_text("ODOO_DB=second\n")

        assert loadConfig(environ={}, envFiles=(str(first), str(second)))["ODOO_DB"] == "second"

        first.write_text("ODOO_DB=first\n")
        assert loadConfig(environ={}, envFiles=(str(first), str(second)))["ODOO_DB"] == "first"

    def test_process_environment_used_by_default(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("ODOO_DB", "from-os")
        assert loadConfig()["ODOO_DB"] == "from-os"


class TestCredentials:
    def test_from_config(self):
        creds = credentialsFromConfig(ODOO)
        assert creds.baseUrl == "https://odoo.test"
        assert creds.database == "testdb"
        assert creds.username == "alice@example.com"
        assert creds.password == "hunter2"

    @pytest.mark.parametrize("missing", ["ODOO_URL", "ODOO_DB", "ODOO_USERNAME", "ODOO_PASSWORD"])
    def test_missing_key(self, missing):
        config = {k: v for k, v in ODOO.items() if k != missing}
        with pytest.raises(ConfigError, match=missing):
            credentialsFromConfig(config)

    def test_empty_value_counts_as_missing(self):
        with pytest.raises(ConfigError, match="ODOO_PASSWORD"):
            credentialsFromConfig(ODOO | {"ODOO_PASSWORD": ""})

    def test_service_from_config(self):
        service = serviceFromConfig(ODOO | {"ODOO_TIMEZONE": "Europe/Berlin", "ODOO_COMPANY_IDS": "1,2"})
        assert isinstance(service, OdooAttendance)
        assert service.toggle.timezone == "Europe/Berlin"
        assert service.toggle.companyIds == "1,2"


class TestAllowedUserIds:
    def test_parses_and_skips_junk(self):
        assert allowedUserIds({"ALLOWED_USER_IDS": "123, 456,abc,, 789"}) == {123, 456, 789}

    def test_no_valid_ids(self):
        with pytest.raises(ConfigError, match="No valid user IDs"):
            allowedUserIds({"ALLOWED_USER_IDS": "abc, ,"})

    def test_missing(self):
        with pytest.raises(ConfigError, match="ALLOWED_USER_IDS"):
            allowedUserIds({})


class TestMisc:
    @pytest.mark.parametrize("value,expected", [("1", True), ("true", True), ("YES", True), ("0", False), ("", False), (None, False)])
    def test_flag(self, value, expected):
        assert flag(value) is expected

    def test_require_passes(self):
        require(ODOO, "ODOO_URL", "ODOO_DB")

    def test_checkout_hour(self):
        assert checkoutHour({"ODOO_CHECKOUT_HOUR": "18"}) == 18
        assert checkoutHour({}) == 17

    def test_bad_checkout_hour(self):
        with pytest.raises(ConfigError):
            checkoutHour({"ODOO_CHECKOUT_HOUR": "five"})
