"""
Configuration Management for Prevoyance

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Statutory constants (contribution years, retirement ages, annuity period)
live next to the storage credentials so a changed retirement age is a
configuration change, not a code change. A new scale year also needs the
matching table in the scale sheet; the resolver rejects a table tagged
with another year.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PensionSettings(BaseSettings):
    """Statutory parameters used by the calculation engine."""

    model_config = SettingsConfigDict(
        env_prefix="PENSION_",
        extra="ignore"
    )

    max_contribution_years: int = Field(
        default=44,
        ge=1,
        description="Contribution years required for a full AVS rent"
    )
    scale_year: int = Field(
        default=2025,
        ge=1948,
        description="Year of the AVS scale (Echelle 44); tagged scale rows must match"
    )
    cap_income_above_scale: bool = Field(
        default=False,
        description=(
            "Resolve incomes above the top bracket to the top row instead "
            "of failing with NotFoundError"
        )
    )
    normal_retirement_age: int = Field(
        default=65,
        ge=58,
        le=70,
        description="Reference retirement age"
    )
    early_retirement_min_age: int = Field(
        default=60,
        ge=58,
        le=65,
        description="Earliest age for which LPP early-retirement rents exist"
    )
    annuity_years: int = Field(
        default=20,
        ge=1,
        description="Years over which third-pillar capital is spread as a rent"
    )
    currency: str = Field(
        default="CHF",
        min_length=3,
        max_length=3,
        description="Currency suffix used when formatting amounts"
    )

    @model_validator(mode="after")
    def validate_ages(self) -> "PensionSettings":
        if self.early_retirement_min_age > self.normal_retirement_age:
            raise ValueError(
                "early_retirement_min_age cannot be after normal_retirement_age"
            )
        return self


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    scale_sheet_name: str = Field(
        default="AVSScale",
        description="Name of the sheet holding the AVS scale rows"
    )
    avs_profiles_sheet_name: str = Field(
        default="AVSProfiles",
        description="Name of the sheet for AVS claimant profiles"
    )
    lpp_accounts_sheet_name: str = Field(
        default="LPPAccounts",
        description="Name of the sheet for LPP accounts"
    )
    third_pillar_sheet_name: str = Field(
        default="ThirdPillarAccounts",
        description="Name of the sheet for third-pillar accounts"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level for structured logs"
    )

    # Certificate intake thresholds
    certificate_max_age_days: int = Field(
        default=730,
        ge=1,
        description="Certificates older than this are flagged for review"
    )
    rent_mismatch_tolerance_chf: int = Field(
        default=12,
        ge=0,
        description="Allowed gap between monthly x 12 and annual rent figures"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def pension(self) -> PensionSettings:
        return PensionSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("pension", "google_sheets", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
