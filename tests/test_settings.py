"""Tests for configuration."""

import pytest

from prevoyance.config import AppSettings, PensionSettings


class TestPensionSettings:
    """Tests for pension rule settings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("PENSION_MAX_CONTRIBUTION_YEARS", raising=False)
        settings = PensionSettings()
        assert settings.max_contribution_years == 44
        assert settings.normal_retirement_age == 65
        assert settings.cap_income_above_scale is False

    def test_env_override(self, monkeypatch):
        """Test settings are read from PENSION_ variables."""
        monkeypatch.setenv("PENSION_CAP_INCOME_ABOVE_SCALE", "true")
        assert PensionSettings().cap_income_above_scale is True

    def test_early_age_after_normal_age_rejected(self):
        with pytest.raises(ValueError):
            PensionSettings(early_retirement_min_age=64, normal_retirement_age=62)


class TestAppSettings:

    def test_invalid_log_level_rejected(self):
        with pytest.raises(ValueError):
            AppSettings(log_level="LOUD")
