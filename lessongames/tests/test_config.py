"""
Unit tests for configuration.
"""

import pytest
from pydantic import ValidationError as SettingsError

from lessongames.config import Settings
from lessongames.service import GameService


class TestSettings:
    """Test the Settings configuration class"""

    def test_default_values(self, monkeypatch):
        """Test that default values are set correctly"""
        for name in ("DATABASE_URL", "MAX_ROUNDS", "BLANK_MARKER", "MAX_CHOICES"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)
        assert settings.database_url.endswith("lessongames.db")
        assert settings.blank_marker == "_"
        assert settings.max_rounds == 10
        assert settings.min_choices == 2
        assert settings.max_choices == 6
        assert isinstance(settings.debug, bool)

    def test_environment_variables(self, monkeypatch):
        """Test that environment variables override defaults"""
        monkeypatch.setenv("DATABASE_URL", "sqlite:///:memory:")
        monkeypatch.setenv("MAX_ROUNDS", "3")
        monkeypatch.setenv("BLANK_MARKER", "___")

        settings = Settings(_env_file=None)
        assert settings.database_url == "sqlite:///:memory:"
        assert settings.max_rounds == 3
        assert settings.blank_marker == "___"

    def test_rejects_empty_blank_marker(self):
        with pytest.raises(SettingsError):
            Settings(_env_file=None, blank_marker="")

    def test_service_uses_limits(self, db):
        """Test that the service validator picks up configured limits"""
        config = Settings(_env_file=None, max_rounds=4, max_choices=3, blank_marker="__")
        service = GameService(db, config)

        assert service.validator.max_rounds == 4
        assert service.validator.max_choices == 3
        assert service.validator.blank_marker == "__"
