"""
AVS Pension Calculator

Derives old-age, disability, survivor, child and orphan rents from the
resolved scale row and the claimant's contribution years.

Rules:
- full_rent_fraction = min(years_contributed / 44, 1), applied linearly to
  every tier.
- The 1/1 disability rent is the full old-age rent (legal equivalence);
  the 3/4, 1/2 and 1/4 tiers come from their own scale columns.
- Child and orphan amounts are per-child rates.
- Monthly and annual amounts are each rounded half-up to whole CHF from the
  unrounded monthly value, so `annual` may differ from `12 x monthly` by a
  few francs. This matches the published figures and is pinned by tests.

Inputs out of range raise ValidationError. Nothing is clamped.
"""

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional, Union

from prevoyance.calculations.formatting import Number, round_chf, to_decimal
from prevoyance.calculations.scale import ScaleResolver
from prevoyance.config import get_settings
from prevoyance.errors import ValidationError
from prevoyance.models.avs import (
    AVSCalculationResult,
    AVSClaimantProfile,
    DisabilityFraction,
    IncomeHistorySummary,
    YearlyIncome,
)
from prevoyance.models.scale import BenefitScaleRow

MONTHS_PER_YEAR = Decimal("12")
ONE = Decimal("1")


_DISABILITY_TIERS: dict[DisabilityFraction, Callable[[BenefitScaleRow], Decimal]] = {
    DisabilityFraction.FULL: lambda row: row.old_age_rent_full,
    DisabilityFraction.THREE_QUARTERS: lambda row: row.disability_rent_3_4,
    DisabilityFraction.HALF: lambda row: row.disability_rent_1_2,
    DisabilityFraction.QUARTER: lambda row: row.disability_rent_1_4,
}


def _max_contribution_years(override: Optional[int] = None) -> int:
    if override is None:
        return get_settings().pension.max_contribution_years
    if isinstance(override, bool) or not isinstance(override, int) or override < 1:
        raise ValidationError(
            f"max_contribution_years must be a whole number of at least 1, got {override!r}",
            field="max_contribution_years",
            value=override,
        )
    return override


def compute_full_rent_fraction(
    years_contributed: int,
    max_contribution_years: Optional[int] = None,
) -> Decimal:
    """
    Fraction of the full rent earned by `years_contributed`.

    Raises ValidationError for non-integers or years outside
    [0, max_contribution_years].
    """
    max_years = _max_contribution_years(max_contribution_years)

    if isinstance(years_contributed, bool) or not isinstance(years_contributed, int):
        raise ValidationError(
            "years_contributed must be a whole number of years",
            field="years_contributed",
            value=years_contributed,
        )
    if not 0 <= years_contributed <= max_years:
        raise ValidationError(
            f"years_contributed must be between 0 and {max_years}, got {years_contributed}",
            field="years_contributed",
            value=years_contributed,
        )

    return min(Decimal(years_contributed) / Decimal(max_years), ONE)


def parse_disability_fraction(
    value: Union[DisabilityFraction, str],
) -> DisabilityFraction:
    """Accept a DisabilityFraction or its string form ('1/1', '3/4', ...)."""
    try:
        return DisabilityFraction(value)
    except ValueError:
        allowed = ", ".join(tier.value for tier in DisabilityFraction)
        raise ValidationError(
            f"Unknown disability fraction {value!r} (expected one of {allowed})",
            field="disability_fraction",
            value=value,
        )


def _scaled(full_amount: Decimal, fraction: Decimal) -> tuple[Decimal, Decimal]:
    """(monthly, annual) for a full monthly amount scaled by `fraction`."""
    raw_monthly = full_amount * fraction
    return round_chf(raw_monthly), round_chf(raw_monthly * MONTHS_PER_YEAR)


class AVSCalculator:
    """
    Computes AVS rents for a claimant.

    Pure: the only collaborator is the ScaleResolver, which works on an
    in-memory table.
    """

    def __init__(
        self,
        resolver: ScaleResolver,
        max_contribution_years: Optional[int] = None,
    ):
        self._resolver = resolver
        self._max_years = _max_contribution_years(max_contribution_years)

    @property
    def resolver(self) -> ScaleResolver:
        return self._resolver

    def calculate_pensions(
        self,
        income: Number,
        years_contributed: int,
        disability_fraction: Union[DisabilityFraction, str] = DisabilityFraction.FULL,
    ) -> AVSCalculationResult:
        """
        Calculate every AVS rent for one claimant.

        Args:
            income: Average determining annual income (CHF), must be > 0
            years_contributed: Complete contribution years, 0-44
            disability_fraction: Disability tier for the disability rent

        Raises:
            ValidationError: invalid income, years or disability tier
            NotFoundError: income above the top scale bracket
        """
        income_value = to_decimal(income, "income")
        if income_value <= 0:
            raise ValidationError(
                f"Income must be greater than zero, got {income_value}",
                field="income",
                value=income,
            )
        fraction = compute_full_rent_fraction(years_contributed, self._max_years)
        tier = parse_disability_fraction(disability_fraction)

        row = self._resolver.resolve_scale_row(income_value)

        old_age_monthly, old_age_annual = _scaled(row.old_age_rent_full, fraction)
        disability_monthly, disability_annual = _scaled(_DISABILITY_TIERS[tier](row), fraction)
        survivor_monthly, survivor_annual = _scaled(row.widow_rent_full, fraction)
        child_monthly, child_annual = _scaled(row.child_rent, fraction)
        orphan_monthly, orphan_annual = _scaled(row.orphan_rent_60pct, fraction)

        return AVSCalculationResult(
            old_age_rent_monthly=old_age_monthly,
            old_age_rent_annual=old_age_annual,
            disability_rent_monthly=disability_monthly,
            disability_rent_annual=disability_annual,
            survivor_rent_monthly=survivor_monthly,
            survivor_rent_annual=survivor_annual,
            child_rent_monthly=child_monthly,
            child_rent_annual=child_annual,
            orphan_rent_monthly=orphan_monthly,
            orphan_rent_annual=orphan_annual,
            income_used=income_value,
            scale_row=row,
            full_rent_fraction=fraction,
            years_contributed=years_contributed,
            disability_fraction=tier,
        )

    def calculate_for_profile(
        self,
        profile: AVSClaimantProfile,
        disability_fraction: Optional[Union[DisabilityFraction, str]] = None,
    ) -> AVSCalculationResult:
        """Calculate from a stored profile; the profile's tier is the default."""
        if profile.average_annual_income_determinant is None:
            raise ValidationError(
                "Profile has no average determining income",
                field="average_annual_income_determinant",
            )
        tier = disability_fraction or profile.disability_fraction or DisabilityFraction.FULL
        return self.calculate_pensions(
            profile.average_annual_income_determinant,
            profile.years_contributed,
            tier,
        )


def apply_result_to_profile(
    profile: AVSClaimantProfile,
    result: AVSCalculationResult,
) -> AVSClaimantProfile:
    """
    Copy the calculation summary onto a profile.

    Returns a new profile; persisting it is the caller's job.
    """
    return profile.model_copy(
        update={
            "average_annual_income_determinant": result.income_used,
            "years_contributed": result.years_contributed,
            "full_rent_fraction": result.full_rent_fraction.quantize(Decimal("0.0001")),
            "scale_used": result.scale_label,
            "last_calculation_date": result.calculated_at,
            "updated_at": datetime.utcnow(),
        }
    )


def summarize_income_history(
    incomes: Iterable[YearlyIncome],
    max_contribution_years: Optional[int] = None,
) -> IncomeHistorySummary:
    """
    Average income and contribution years from a yearly income history.

    A year counts as contributed when it has an income above zero. Years
    with no income are gaps; a history with no income at all has no gaps
    to report.
    """
    max_years = _max_contribution_years(max_contribution_years)
    history = sorted(incomes, key=lambda entry: entry.year)

    seen = set()
    for entry in history:
        if entry.year in seen:
            raise ValidationError(
                f"Income history lists {entry.year} more than once",
                field="year",
                value=entry.year,
            )
        seen.add(entry.year)

    filled = [entry for entry in history if entry.income is not None and entry.income > 0]
    gap_years = [entry.year for entry in history if entry.income is None or entry.income == 0]

    if filled:
        total = sum((entry.income for entry in filled), Decimal("0"))
        average = round_chf(total / Decimal(len(filled)))
    else:
        average = Decimal("0")

    years_contributed = min(len(filled), max_years)

    return IncomeHistorySummary(
        average_annual_income=average,
        years_contributed=years_contributed,
        years_missing=max_years - years_contributed,
        gap_years=gap_years if filled else [],
        has_gaps=bool(filled) and len(filled) < len(history),
    )
