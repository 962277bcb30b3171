"""Tests for the third-pillar aggregator and projection."""

import pytest
from decimal import Decimal

from prevoyance.calculations import aggregate_third_pillar, project_third_pillar_account
from prevoyance.errors import ValidationError
from prevoyance.models import ThirdPillarAccount, ThirdPillarAccountType


def make_account(account_type=ThirdPillarAccountType.BANK_3A, **kwargs) -> ThirdPillarAccount:
    defaults = {
        "profile_id": "household-1",
        "account_type": account_type,
        "institution_name": "Banque Test",
    }
    defaults.update(kwargs)
    return ThirdPillarAccount(**defaults)


class TestProjection:
    """Tests for compound projection of one account."""

    def test_contributions_without_return(self):
        """Test contributions add up when the return is zero."""
        account = make_account(current_amount=Decimal("10000"), annual_contribution=Decimal("1000"))
        projection = project_third_pillar_account(account, 60, retirement_age=65, annuity_years=20)
        assert projection.years_to_retirement == 5
        assert projection.projected_amount == Decimal("15000")
        assert projection.projected_annual_rent == Decimal("750")
        assert projection.is_stored_projection is False

    def test_compound_growth(self):
        """Test the return compounds yearly."""
        account = make_account(current_amount=Decimal("1000"), return_rate=Decimal("10"))
        projection = project_third_pillar_account(account, 63, retirement_age=65, annuity_years=20)
        assert projection.projected_amount == Decimal("1210.00")
        assert projection.projected_annual_rent == Decimal("60.50")

    def test_past_retirement_age(self):
        """Test no growth is applied after retirement age."""
        account = make_account(current_amount=Decimal("5000"), annual_contribution=Decimal("7000"))
        projection = project_third_pillar_account(account, 70, retirement_age=65, annuity_years=20)
        assert projection.years_to_retirement == 0
        assert projection.projected_amount == Decimal("5000")

    def test_negative_age_rejected(self):
        """Test a negative age is rejected."""
        with pytest.raises(ValidationError):
            project_third_pillar_account(make_account(), -1, retirement_age=65, annuity_years=20)


class TestAggregateThirdPillar:
    """Tests for the household third-pillar rollup."""

    def test_no_accounts(self):
        """Test zero accounts give an all-zero analysis."""
        analysis = aggregate_third_pillar([], annuity_years=20)
        assert analysis.total_accounts == 0
        assert analysis.total_projected_amount == Decimal("0")
        assert analysis.total_projected_monthly_rent == Decimal("0")
        assert analysis.accounts == []

    def test_insurance_fields_only_for_insurance_accounts(self):
        """Test bank 3a risk figures are ignored."""
        accounts = [
            make_account(
                ThirdPillarAccountType.BANK_3A,
                disability_rent_annual=Decimal("5000"),
                death_capital=Decimal("50000"),
            ),
            make_account(
                ThirdPillarAccountType.INSURANCE_3A,
                disability_rent_annual=Decimal("6000"),
                death_capital=Decimal("100000"),
            ),
            make_account(
                ThirdPillarAccountType.FREE_3B,
                disability_rent_annual=Decimal("1200"),
                death_capital=Decimal("20000"),
            ),
        ]
        analysis = aggregate_third_pillar(accounts, annuity_years=20)
        assert analysis.total_disability_rent_annual == Decimal("7200")
        assert analysis.total_disability_rent_monthly == Decimal("600")
        assert analysis.total_death_capital == Decimal("120000")

    def test_stored_projection_takes_precedence(self):
        """Test a stored projection is used even when the age is known."""
        account = make_account(
            current_amount=Decimal("10000"),
            projected_amount_at_retirement=Decimal("80000"),
        )
        analysis = aggregate_third_pillar([account], current_age=40, annuity_years=20)
        projection = analysis.accounts[0]
        assert projection.is_stored_projection is True
        assert projection.projected_amount == Decimal("80000")
        assert projection.projected_annual_rent == Decimal("4000")

    def test_totals_and_monthly_rent(self):
        """Test totals and monthly rent derived from the annual total."""
        accounts = [
            make_account(
                current_amount=Decimal("20000"),
                annual_contribution=Decimal("7056"),
                projected_amount_at_retirement=Decimal("120000"),
            ),
            make_account(
                ThirdPillarAccountType.INSURANCE_3A,
                current_amount=Decimal("5000"),
                annual_contribution=Decimal("3000"),
                projected_amount_at_retirement=Decimal("60000"),
                projected_annual_rent=Decimal("3600"),
            ),
        ]
        analysis = aggregate_third_pillar(accounts, annuity_years=20)
        assert analysis.total_accounts == 2
        assert analysis.total_current_amount == Decimal("25000")
        assert analysis.total_annual_contribution == Decimal("10056")
        assert analysis.total_projected_amount == Decimal("180000")
        assert analysis.total_projected_annual_rent == Decimal("9600")
        assert analysis.total_projected_monthly_rent == Decimal("800")

    def test_without_age_or_projection(self):
        """Test accounts without projection or age project to zero."""
        account = make_account(current_amount=Decimal("10000"))
        analysis = aggregate_third_pillar([account], annuity_years=20)
        assert analysis.total_projected_amount == Decimal("0")
        assert analysis.accounts[0].years_to_retirement is None

    def test_stored_rent_kept_when_capital_projected(self):
        """Test an insurer's rent is used when only the capital is projected."""
        account = make_account(
            ThirdPillarAccountType.INSURANCE_3A,
            current_amount=Decimal("10000"),
            projected_annual_rent=Decimal("5000"),
        )
        analysis = aggregate_third_pillar([account], current_age=40, annuity_years=20)
        projection = analysis.accounts[0]
        assert projection.projected_amount == Decimal("10000")
        assert projection.projected_annual_rent == Decimal("5000")
        assert projection.is_stored_projection is False
        assert analysis.total_projected_annual_rent == Decimal("5000")

    def test_zero_annuity_years_rejected(self):
        """Test an explicit zero annuity period is rejected, not replaced."""
        with pytest.raises(ValidationError):
            aggregate_third_pillar([make_account()], annuity_years=0)

    def test_explicit_retirement_age_zero_years(self):
        """Test an explicit retirement age is honoured, not the default."""
        account = make_account(current_amount=Decimal("1000"), annual_contribution=Decimal("500"))
        projection = project_third_pillar_account(account, 30, retirement_age=30, annuity_years=20)
        assert projection.years_to_retirement == 0
        assert projection.projected_amount == Decimal("1000")
