"""
Tests for application settings
"""

import pytest
from pydantic import ValidationError

from bookreview.config import Settings

VALID_SECRET = "test-secret-key-for-unit-tests-at-least-32-characters-long"


class TestDefaults:
    def test_database_url_names_the_installed_driver(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)

        settings = Settings(_env_file=None, secret_key=VALID_SECRET)

        assert settings.database_url.startswith("postgresql+psycopg2://")

    def test_database_url_from_environment(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite:///./local.db")

        settings = Settings(_env_file=None, secret_key=VALID_SECRET)

        assert settings.database_url == "sqlite:///./local.db"


class TestValidators:
    def test_log_level_is_uppercased(self):
        settings = Settings(_env_file=None, secret_key=VALID_SECRET, log_level="debug")
        assert settings.log_level == "DEBUG"

    def test_unknown_log_level(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, secret_key=VALID_SECRET, log_level="LOUD")

    @pytest.mark.parametrize(
        "secret",
        ["REPLACE_WITH_YOUR_GENERATED_SECRET_KEY", "too-short"],
    )
    def test_rejected_secret_keys(self, secret):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, secret_key=secret)

    def test_unknown_environment(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, secret_key=VALID_SECRET, environment="qa")
