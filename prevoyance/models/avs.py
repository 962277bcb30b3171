"""
AVS (first pillar) Models

DESIGN DECISION: AVSCalculationResult is created fresh on every call and
is never the source of truth. Only the summary fields (fraction, scale,
calculation date) are copied back onto the claimant profile, and that copy
is a separate, explicit save step.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from prevoyance.config import get_settings
from prevoyance.models.scale import BenefitScaleRow


def _max_contribution_years() -> int:
    return get_settings().pension.max_contribution_years


class DisabilityFraction(str, Enum):
    """Legally recognized degrees of disability."""
    FULL = "1/1"
    THREE_QUARTERS = "3/4"
    HALF = "1/2"
    QUARTER = "1/4"


class MaritalStatus(str, Enum):
    SINGLE = "single"
    MARRIED = "married"
    REGISTERED_PARTNERSHIP = "registered_partnership"
    DIVORCED = "divorced"
    WIDOWED = "widowed"


class YearlyIncome(BaseModel):
    """One year of the AVS income history."""

    year: int = Field(..., ge=1948, le=2100)
    income: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Income subject to AVS contributions; None for a gap year"
    )
    is_estimated: bool = False


class IncomeHistorySummary(BaseModel):
    """Figures derived from a yearly income history."""

    average_annual_income: Decimal = Field(..., ge=0)
    years_contributed: int = Field(..., ge=0)
    years_missing: int = Field(..., ge=0)
    gap_years: list[int] = Field(default_factory=list)
    has_gaps: bool = False


class AVSClaimantProfile(BaseModel):
    """
    Pension-relevant facts about one person.

    `full_rent_fraction`, `scale_used` and `last_calculation_date` are
    summaries of the last calculation, not inputs.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    profile_id: str = Field(..., min_length=1)
    owner_name: Optional[str] = Field(default=None, max_length=200)
    avs_number: Optional[str] = Field(
        default=None,
        max_length=16,
        description="AVS number (756.xxxx.xxxx.xx)"
    )
    marital_status: Optional[MaritalStatus] = None

    average_annual_income_determinant: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Average determining annual income in CHF"
    )
    years_contributed: int = Field(
        default_factory=_max_contribution_years,
        ge=0,
        description="Complete contribution years, at most PENSION_MAX_CONTRIBUTION_YEARS"
    )
    disability_fraction: Optional[DisabilityFraction] = None
    has_gaps: bool = False

    # Summary of the last calculation
    full_rent_fraction: Optional[Decimal] = Field(default=None, ge=0, le=1)
    scale_used: Optional[str] = None
    last_calculation_date: Optional[datetime] = None

    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator('years_contributed')
    @classmethod
    def validate_years_contributed(cls, v: int) -> int:
        max_years = _max_contribution_years()
        if v > max_years:
            raise ValueError(f"years_contributed cannot exceed {max_years}, got {v}")
        return v

    @field_validator('avs_number')
    @classmethod
    def validate_avs_number(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        digits = v.replace(".", "")
        if len(digits) != 13 or not digits.isdigit() or not digits.startswith("756"):
            raise ValueError(f"Invalid AVS number: {v}")
        return v

    @property
    def years_missing(self) -> int:
        return max(0, _max_contribution_years() - self.years_contributed)


class AVSCalculationResult(BaseModel):
    """
    Output of one AVS calculation.

    All amounts are whole CHF. Child and orphan amounts are per child;
    the caller multiplies by headcount.
    """

    old_age_rent_monthly: Decimal
    old_age_rent_annual: Decimal
    disability_rent_monthly: Decimal
    disability_rent_annual: Decimal
    survivor_rent_monthly: Decimal
    survivor_rent_annual: Decimal
    child_rent_monthly: Decimal
    child_rent_annual: Decimal
    orphan_rent_monthly: Decimal
    orphan_rent_annual: Decimal

    # Metadata
    income_used: Decimal
    scale_row: BenefitScaleRow
    full_rent_fraction: Decimal = Field(..., ge=0, le=1)
    years_contributed: int
    disability_fraction: DisabilityFraction
    calculated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def scale_label(self) -> str:
        year = self.scale_row.scale_year
        return f"echelle_44_{year}" if year else "echelle_44"
