"""
AVS Benefit Scale Model

One row of the statutory progressive scale (Echelle 44). Each row maps an
income bracket, identified by its upper bound, to the full monthly amounts
of every AVS/AI pension tier.

Rows are reference data: seeded once, read-only afterwards.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class BenefitScaleRow(BaseModel):
    """
    One bracket of the AVS scale.

    Amounts are full monthly rents in CHF, i.e. before the
    contribution-years fraction is applied.
    """
    model_config = ConfigDict(frozen=True)

    income_threshold: Decimal = Field(
        ...,
        gt=0,
        description="Upper bound (inclusive) of the annual income bracket"
    )
    old_age_rent_full: Decimal = Field(
        ...,
        ge=0,
        description="Full monthly old-age rent; also the 1/1 disability rent"
    )

    # Disability tiers (the 1/1 tier is old_age_rent_full)
    disability_rent_3_4: Decimal = Field(..., ge=0)
    disability_rent_1_2: Decimal = Field(..., ge=0)
    disability_rent_1_4: Decimal = Field(..., ge=0)

    # Survivors
    widow_rent_full: Decimal = Field(..., ge=0)
    widow_rent_3_4: Decimal = Field(..., ge=0)
    widow_rent_1_2: Decimal = Field(..., ge=0)
    widow_rent_1_4: Decimal = Field(..., ge=0)
    widow_additional_rent: Decimal = Field(..., ge=0)

    # Dependents
    child_rent: Decimal = Field(..., ge=0)
    double_child_rent: Decimal = Field(..., ge=0)
    orphan_rent_60pct: Decimal = Field(..., ge=0)

    scale_year: Optional[int] = Field(
        default=None,
        description="Year the scale applies to"
    )
