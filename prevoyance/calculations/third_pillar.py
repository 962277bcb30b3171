"""
Third-Pillar Aggregator

Same shape as the LPP rollup: sum across accounts, derive the monthly
rent from the annual total.

Projection figures stored on an account (e.g. from an insurer statement)
take precedence. When they are missing and the holder's age is known, the
account is projected with compound growth and end-of-year contributions,
and the capital is spread over `annuity_years` to get an annual rent.
A stored annual rent is kept even when only the capital is projected.

Disability rent and death capital only count for insurance-backed
accounts (3a insurance, 3b). Bank 3a accounts contribute zero.
"""

from collections.abc import Iterable
from decimal import Decimal
from typing import Optional

from prevoyance.calculations.formatting import monthly_from_annual, round_centimes
from prevoyance.config import get_settings
from prevoyance.errors import ValidationError
from prevoyance.models.third_pillar import (
    ThirdPillarAccount,
    ThirdPillarAnalysis,
    ThirdPillarProjection,
)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def project_third_pillar_account(
    account: ThirdPillarAccount,
    current_age: int,
    retirement_age: Optional[int] = None,
    annuity_years: Optional[int] = None,
) -> ThirdPillarProjection:
    """Project an account's capital and rent at retirement."""
    settings = get_settings().pension
    if retirement_age is None:
        retirement_age = settings.normal_retirement_age
    if annuity_years is None:
        annuity_years = settings.annuity_years

    if current_age < 0:
        raise ValidationError(
            f"current_age cannot be negative, got {current_age}",
            field="current_age",
            value=current_age,
        )
    _check_annuity_years(annuity_years)

    years_to_retirement = max(0, retirement_age - current_age)
    growth = 1 + account.return_rate / HUNDRED

    amount = account.current_amount
    for _ in range(years_to_retirement):
        amount = amount * growth + account.annual_contribution

    projected_amount = round_centimes(amount)
    return ThirdPillarProjection(
        account_id=account.id,
        institution_name=account.institution_name,
        account_type=account.account_type,
        current_amount=account.current_amount,
        annual_contribution=account.annual_contribution,
        return_rate=account.return_rate,
        years_to_retirement=years_to_retirement,
        projected_amount=projected_amount,
        projected_annual_rent=round_centimes(projected_amount / Decimal(annuity_years)),
    )


def _check_annuity_years(annuity_years: int) -> None:
    if annuity_years < 1:
        raise ValidationError(
            f"annuity_years must be at least 1, got {annuity_years}",
            field="annuity_years",
            value=annuity_years,
        )


def _stored_projection(
    account: ThirdPillarAccount,
    annuity_years: int,
) -> ThirdPillarProjection:
    amount = account.projected_amount_at_retirement
    rent = account.projected_annual_rent
    if rent is None:
        rent = round_centimes(amount / Decimal(annuity_years))
    return ThirdPillarProjection(
        account_id=account.id,
        institution_name=account.institution_name,
        account_type=account.account_type,
        current_amount=account.current_amount,
        annual_contribution=account.annual_contribution,
        return_rate=account.return_rate,
        projected_amount=amount,
        projected_annual_rent=rent,
        is_stored_projection=True,
    )


def _unprojected(account: ThirdPillarAccount) -> ThirdPillarProjection:
    return ThirdPillarProjection(
        account_id=account.id,
        institution_name=account.institution_name,
        account_type=account.account_type,
        current_amount=account.current_amount,
        annual_contribution=account.annual_contribution,
        return_rate=account.return_rate,
        projected_amount=ZERO,
        projected_annual_rent=account.projected_annual_rent or ZERO,
        is_stored_projection=account.projected_annual_rent is not None,
    )


def aggregate_third_pillar(
    accounts: Iterable[ThirdPillarAccount],
    current_age: Optional[int] = None,
    retirement_age: Optional[int] = None,
    annuity_years: Optional[int] = None,
) -> ThirdPillarAnalysis:
    """Sum current, contribution, projection and insurance figures."""
    if annuity_years is None:
        annuity_years = get_settings().pension.annuity_years
    _check_annuity_years(annuity_years)
    accounts = list(accounts)

    projections = []
    disability_annual = ZERO
    death_capital = ZERO

    for account in accounts:
        if account.projected_amount_at_retirement is not None:
            projection = _stored_projection(account, annuity_years)
        elif current_age is not None:
            projection = project_third_pillar_account(
                account,
                current_age,
                retirement_age=retirement_age,
                annuity_years=annuity_years,
            )
            if account.projected_annual_rent is not None:
                projection = projection.model_copy(
                    update={"projected_annual_rent": account.projected_annual_rent}
                )
        else:
            projection = _unprojected(account)
        projections.append(projection)

        if account.account_type.carries_insurance:
            disability_annual += account.disability_rent_annual or ZERO
            death_capital += account.death_capital or ZERO

    total_rent = sum((p.projected_annual_rent for p in projections), ZERO)

    return ThirdPillarAnalysis(
        total_accounts=len(accounts),
        total_current_amount=sum((a.current_amount for a in accounts), ZERO),
        total_annual_contribution=sum((a.annual_contribution for a in accounts), ZERO),
        total_projected_amount=sum((p.projected_amount for p in projections), ZERO),
        total_projected_annual_rent=total_rent,
        total_projected_monthly_rent=monthly_from_annual(total_rent),
        total_disability_rent_annual=disability_annual,
        total_disability_rent_monthly=monthly_from_annual(disability_annual),
        total_death_capital=death_capital,
        accounts=projections,
    )
