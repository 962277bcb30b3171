"""
LPP (second pillar) Models

An LPPAccount mirrors one pension-fund certificate. A person with several
employers over a career holds several accounts; LPPAnalysis is the
household-level rollup across all of them and is never persisted.

DESIGN DECISION: Projected rents for ages 60-65 are stored in a map keyed
by RetirementAge instead of six loose `..._at_60` .. `..._at_65` fields.
Lookups by age go through `rent_at()`, never through built field names.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import IntEnum
from typing import Annotated, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

ZERO = Decimal("0")


class RetirementAge(IntEnum):
    """Discrete ages for which a certificate states a projected rent."""
    AGE_60 = 60
    AGE_61 = 61
    AGE_62 = 62
    AGE_63 = 63
    AGE_64 = 64
    AGE_65 = 65

    @classmethod
    def early(cls, min_age: Optional[int] = None) -> list["RetirementAge"]:
        """Early-retirement ages from `min_age` on, in ascending order."""
        return [
            age for age in cls
            if age < cls.AGE_65 and (min_age is None or age >= min_age)
        ]


class LPPAccount(BaseModel):
    """
    One occupational-pension policy.

    Every amount is optional: certificates are often only partially
    filled. Missing amounts count as zero in every calculation.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    profile_id: str = Field(..., min_length=1)
    provider_name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Pension fund name"
    )
    plan_name: Optional[str] = Field(default=None, max_length=200)
    contract_number: Optional[str] = Field(default=None, max_length=50)
    last_certificate_date: Optional[date] = None

    # Retirement
    current_retirement_savings: Optional[Decimal] = Field(default=None, ge=0)
    projected_savings_at_65: Optional[Decimal] = Field(default=None, ge=0)
    projected_retirement_rents: dict[
        RetirementAge, Optional[Annotated[Decimal, Field(ge=0)]]
    ] = Field(
        default_factory=dict,
        description="Projected annual rent per retirement age"
    )

    # Disability
    disability_rent_annual: Optional[Decimal] = Field(default=None, ge=0)
    child_disability_rent_annual: Optional[Decimal] = Field(default=None, ge=0)
    waiting_period_days: Optional[int] = Field(default=None, ge=0)

    # Death
    widow_rent_annual: Optional[Decimal] = Field(default=None, ge=0)
    orphan_rent_annual: Optional[Decimal] = Field(default=None, ge=0)
    death_capital: Optional[Decimal] = Field(default=None, ge=0)
    additional_death_capital: Optional[Decimal] = Field(default=None, ge=0)

    notes: Optional[str] = Field(default=None, max_length=1000)
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def rent_at(self, age: RetirementAge) -> Decimal:
        """Projected annual rent at `age`, zero when not stated."""
        return self.projected_retirement_rents.get(age) or ZERO

    @property
    def total_death_capital(self) -> Decimal:
        return (self.death_capital or ZERO) + (self.additional_death_capital or ZERO)


class RetirementOption(BaseModel):
    """Rent available when retiring at a given age."""

    age: RetirementAge
    annual_rent: Decimal
    monthly_rent: Decimal


class LPPRetirementResult(BaseModel):
    account_id: UUID
    provider_name: str
    current_savings: Decimal
    projected_savings_65: Decimal
    annual_rent_65: Decimal
    monthly_rent_65: Decimal
    retirement_options: list[RetirementOption] = Field(default_factory=list)


class LPPDisabilityResult(BaseModel):
    account_id: UUID
    provider_name: str
    disability_rent_annual: Decimal
    disability_rent_monthly: Decimal
    child_disability_rent_annual: Decimal
    child_disability_rent_monthly: Decimal
    waiting_period_days: int


class LPPDeathResult(BaseModel):
    account_id: UUID
    provider_name: str
    death_capital_total: Decimal
    widow_rent_annual: Decimal
    widow_rent_monthly: Decimal
    orphan_rent_annual: Decimal
    orphan_rent_monthly: Decimal


class AccountRetirementOptions(BaseModel):
    """Early-retirement options of one account inside an analysis."""

    account_id: UUID
    provider_name: str
    options: list[RetirementOption] = Field(default_factory=list)


class LPPAnalysis(BaseModel):
    """
    Household-level LPP rollup for one profile.

    Every `*_monthly` total is derived from the matching annual total,
    never summed on its own.
    """

    total_accounts: int = Field(default=0, ge=0)

    # Retirement
    total_current_savings: Decimal = ZERO
    total_projected_savings_65: Decimal = ZERO
    total_annual_rent_65: Decimal = ZERO
    total_monthly_rent_65: Decimal = ZERO

    # Disability
    total_disability_rent_annual: Decimal = ZERO
    total_disability_rent_monthly: Decimal = ZERO

    # Death
    total_death_capital: Decimal = ZERO
    total_widow_rent_annual: Decimal = ZERO
    total_widow_rent_monthly: Decimal = ZERO
    total_orphan_rent_annual: Decimal = ZERO
    total_orphan_rent_monthly: Decimal = ZERO

    retirement_options: list[AccountRetirementOptions] = Field(default_factory=list)
    accounts_details: list[LPPAccount] = Field(default_factory=list)
