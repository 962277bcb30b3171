"""
LPP Aggregator

Per-account breakdowns and the household rollup for second-pillar
accounts. Everything here is a straight read of stored certificate
figures: no projection math, no reconciliation between accounts.

Missing amounts count as zero. Monthly figures are always derived from an
annual total (round(annual / 12)), never summed on their own.
"""

from collections.abc import Iterable
from decimal import Decimal
from typing import Optional

from prevoyance.calculations.formatting import monthly_from_annual
from prevoyance.config import get_settings
from prevoyance.models.lpp import (
    AccountRetirementOptions,
    LPPAccount,
    LPPAnalysis,
    LPPDeathResult,
    LPPDisabilityResult,
    LPPRetirementResult,
    RetirementAge,
    RetirementOption,
)

ZERO = Decimal("0")


def _early_retirement_min_age(min_age: Optional[int]) -> int:
    if min_age is None:
        return get_settings().pension.early_retirement_min_age
    return min_age


def early_retirement_options(
    account: LPPAccount,
    min_age: Optional[int] = None,
) -> list[RetirementOption]:
    """
    Options for retiring between `min_age` (PENSION_EARLY_RETIREMENT_MIN_AGE
    by default) and 64.

    Only ages with a stated rent above zero are returned.
    """
    options = []
    for age in RetirementAge.early(_early_retirement_min_age(min_age)):
        annual_rent = account.rent_at(age)
        if annual_rent > 0:
            options.append(RetirementOption(
                age=age,
                annual_rent=annual_rent,
                monthly_rent=monthly_from_annual(annual_rent),
            ))
    return options


def calculate_lpp_retirement(
    account: LPPAccount,
    min_age: Optional[int] = None,
) -> LPPRetirementResult:
    annual_rent_65 = account.rent_at(RetirementAge.AGE_65)
    return LPPRetirementResult(
        account_id=account.id,
        provider_name=account.provider_name,
        current_savings=account.current_retirement_savings or ZERO,
        projected_savings_65=account.projected_savings_at_65 or ZERO,
        annual_rent_65=annual_rent_65,
        monthly_rent_65=monthly_from_annual(annual_rent_65),
        retirement_options=early_retirement_options(account, min_age),
    )


def calculate_lpp_disability(account: LPPAccount) -> LPPDisabilityResult:
    disability = account.disability_rent_annual or ZERO
    child_disability = account.child_disability_rent_annual or ZERO
    return LPPDisabilityResult(
        account_id=account.id,
        provider_name=account.provider_name,
        disability_rent_annual=disability,
        disability_rent_monthly=monthly_from_annual(disability),
        child_disability_rent_annual=child_disability,
        child_disability_rent_monthly=monthly_from_annual(child_disability),
        waiting_period_days=account.waiting_period_days or 0,
    )


def calculate_lpp_death(account: LPPAccount) -> LPPDeathResult:
    widow = account.widow_rent_annual or ZERO
    orphan = account.orphan_rent_annual or ZERO
    return LPPDeathResult(
        account_id=account.id,
        provider_name=account.provider_name,
        death_capital_total=account.total_death_capital,
        widow_rent_annual=widow,
        widow_rent_monthly=monthly_from_annual(widow),
        orphan_rent_annual=orphan,
        orphan_rent_monthly=monthly_from_annual(orphan),
    )


def aggregate_lpp(
    accounts: Iterable[LPPAccount],
    min_age: Optional[int] = None,
) -> LPPAnalysis:
    """
    Sum every benefit category across `accounts`.

    The caller passes the active accounts of one profile; an empty list
    gives an all-zero analysis.
    """
    accounts = list(accounts)
    min_age = _early_retirement_min_age(min_age)

    current_savings = ZERO
    projected_savings = ZERO
    annual_rent_65 = ZERO
    disability_annual = ZERO
    death_capital = ZERO
    widow_annual = ZERO
    orphan_annual = ZERO
    options = []

    for account in accounts:
        current_savings += account.current_retirement_savings or ZERO
        projected_savings += account.projected_savings_at_65 or ZERO
        annual_rent_65 += account.rent_at(RetirementAge.AGE_65)
        disability_annual += account.disability_rent_annual or ZERO
        death_capital += account.total_death_capital
        widow_annual += account.widow_rent_annual or ZERO
        orphan_annual += account.orphan_rent_annual or ZERO

        account_options = early_retirement_options(account, min_age)
        if account_options:
            options.append(AccountRetirementOptions(
                account_id=account.id,
                provider_name=account.provider_name,
                options=account_options,
            ))

    return LPPAnalysis(
        total_accounts=len(accounts),
        total_current_savings=current_savings,
        total_projected_savings_65=projected_savings,
        total_annual_rent_65=annual_rent_65,
        total_monthly_rent_65=monthly_from_annual(annual_rent_65),
        total_disability_rent_annual=disability_annual,
        total_disability_rent_monthly=monthly_from_annual(disability_annual),
        total_death_capital=death_capital,
        total_widow_rent_annual=widow_annual,
        total_widow_rent_monthly=monthly_from_annual(widow_annual),
        total_orphan_rent_annual=orphan_annual,
        total_orphan_rent_monthly=monthly_from_annual(orphan_annual),
        retirement_options=options,
        accounts_details=accounts,
    )
