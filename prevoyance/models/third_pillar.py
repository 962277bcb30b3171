"""Third-pillar (3a / 3b) Models."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

ZERO = Decimal("0")


class ThirdPillarAccountType(str, Enum):
    BANK_3A = "3a_bank"
    INSURANCE_3A = "3a_insurance"
    FREE_3B = "3b"

    @property
    def carries_insurance(self) -> bool:
        """Only insurance-backed accounts have risk benefits."""
        return self is not ThirdPillarAccountType.BANK_3A


class ThirdPillarAccount(BaseModel):
    """
    One private retirement account.

    `disability_rent_annual` and `death_capital` only mean something for
    insurance-backed accounts; on a bank 3a account they are ignored.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    profile_id: str = Field(..., min_length=1)
    account_type: ThirdPillarAccountType
    institution_name: str = Field(..., min_length=1, max_length=200)
    contract_number: Optional[str] = Field(default=None, max_length=50)
    start_date: Optional[date] = None

    current_amount: Decimal = Field(default=ZERO, ge=0)
    annual_contribution: Decimal = Field(default=ZERO, ge=0)
    return_rate: Decimal = Field(
        default=ZERO,
        ge=-100,
        le=100,
        description="Expected yearly return in percent"
    )

    # Stored projections (e.g. from an insurer statement)
    projected_amount_at_retirement: Optional[Decimal] = Field(default=None, ge=0)
    projected_annual_rent: Optional[Decimal] = Field(default=None, ge=0)

    # Insurance-only
    disability_rent_annual: Optional[Decimal] = Field(default=None, ge=0)
    death_capital: Optional[Decimal] = Field(default=None, ge=0)

    notes: Optional[str] = Field(default=None, max_length=1000)
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ThirdPillarProjection(BaseModel):
    """Projected value of one account at retirement."""

    account_id: UUID
    institution_name: str
    account_type: ThirdPillarAccountType
    current_amount: Decimal
    annual_contribution: Decimal
    return_rate: Decimal
    years_to_retirement: Optional[int] = None
    projected_amount: Decimal
    projected_annual_rent: Decimal
    is_stored_projection: bool = Field(
        default=False,
        description="True when the figures come from the account record"
    )


class ThirdPillarAnalysis(BaseModel):
    total_accounts: int = Field(default=0, ge=0)
    total_current_amount: Decimal = ZERO
    total_annual_contribution: Decimal = ZERO
    total_projected_amount: Decimal = ZERO
    total_projected_annual_rent: Decimal = ZERO
    total_projected_monthly_rent: Decimal = ZERO

    # Insurance-backed accounts only
    total_disability_rent_annual: Decimal = ZERO
    total_disability_rent_monthly: Decimal = ZERO
    total_death_capital: Decimal = ZERO

    accounts: list[ThirdPillarProjection] = Field(default_factory=list)
