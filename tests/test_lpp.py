"""Tests for the LPP (second pillar) aggregator."""

from decimal import Decimal

from prevoyance.calculations import (
    aggregate_lpp,
    calculate_lpp_death,
    calculate_lpp_disability,
    calculate_lpp_retirement,
    early_retirement_options,
)
from prevoyance.models import LPPAccount, RetirementAge


def make_account(**kwargs) -> LPPAccount:
    defaults = {"profile_id": "household-1", "provider_name": "Caisse Test"}
    defaults.update(kwargs)
    return LPPAccount(**defaults)


class TestAggregateLPP:
    """Tests for the household LPP rollup."""

    def test_no_accounts(self):
        """Test zero accounts give an all-zero analysis."""
        analysis = aggregate_lpp([])
        assert analysis.total_accounts == 0
        assert analysis.total_current_savings == Decimal("0")
        assert analysis.total_annual_rent_65 == Decimal("0")
        assert analysis.total_monthly_rent_65 == Decimal("0")
        assert analysis.total_death_capital == Decimal("0")
        assert analysis.retirement_options == []
        assert analysis.accounts_details == []

    def test_two_accounts(self):
        """Test 12 000 + 18 000 annual rents sum to 30 000 / 2 500."""
        accounts = [
            make_account(projected_retirement_rents={RetirementAge.AGE_65: Decimal("12000")}),
            make_account(projected_retirement_rents={RetirementAge.AGE_65: Decimal("18000")}),
        ]
        analysis = aggregate_lpp(accounts)
        assert analysis.total_accounts == 2
        assert analysis.total_annual_rent_65 == Decimal("30000")
        assert analysis.total_monthly_rent_65 == Decimal("2500")

    def test_missing_amounts_count_as_zero(self):
        """Test partially filled accounts aggregate without errors."""
        accounts = [
            make_account(current_retirement_savings=Decimal("150000")),
            make_account(death_capital=Decimal("50000"), additional_death_capital=Decimal("20000")),
        ]
        analysis = aggregate_lpp(accounts)
        assert analysis.total_current_savings == Decimal("150000")
        assert analysis.total_projected_savings_65 == Decimal("0")
        assert analysis.total_death_capital == Decimal("70000")

    def test_monthly_derived_from_annual_total(self):
        """Test monthly totals come from the summed annual, not summed monthlies."""
        accounts = [
            make_account(disability_rent_annual=Decimal("1006")),
            make_account(disability_rent_annual=Decimal("1006")),
        ]
        analysis = aggregate_lpp(accounts)
        # 2012 / 12 = 167.67 -> 168; per account 83.83 -> 84, summed 168
        assert analysis.total_disability_rent_monthly == Decimal("168")

        accounts = [
            make_account(widow_rent_annual=Decimal("1002")),
            make_account(widow_rent_annual=Decimal("1002")),
        ]
        analysis = aggregate_lpp(accounts)
        # 2004 / 12 = 167; per account 83.5 -> 84, summed 168
        assert analysis.total_widow_rent_monthly == Decimal("167")

    def test_retirement_options_per_account(self):
        """Test only accounts with early options appear in the list."""
        with_options = make_account(projected_retirement_rents={
            RetirementAge.AGE_62: Decimal("9000"),
            RetirementAge.AGE_65: Decimal("12000"),
        })
        without_options = make_account(
            projected_retirement_rents={RetirementAge.AGE_65: Decimal("10000")}
        )
        analysis = aggregate_lpp([with_options, without_options])
        assert len(analysis.retirement_options) == 1
        assert analysis.retirement_options[0].account_id == with_options.id
        assert analysis.retirement_options[0].options[0].age == RetirementAge.AGE_62


class TestEarlyRetirementOptions:
    """Tests for sparse early-retirement options."""

    def test_sparse_ages(self):
        """Test only stated ages above zero are listed, in ascending order."""
        account = make_account(projected_retirement_rents={
            RetirementAge.AGE_64: Decimal("11000"),
            RetirementAge.AGE_60: Decimal("8400"),
            RetirementAge.AGE_61: Decimal("0"),
            RetirementAge.AGE_62: None,
            RetirementAge.AGE_65: Decimal("12000"),
        })
        options = early_retirement_options(account)
        assert [o.age for o in options] == [RetirementAge.AGE_60, RetirementAge.AGE_64]
        assert options[0].monthly_rent == Decimal("700")
        assert options[1].monthly_rent == Decimal("917")  # 916.67

    def test_no_rents(self):
        """Test an account without rents has no options."""
        assert early_retirement_options(make_account()) == []

    def test_min_age_from_settings(self, monkeypatch):
        """Test ages below the configured earliest retirement age are left out."""
        monkeypatch.setenv("PENSION_EARLY_RETIREMENT_MIN_AGE", "62")
        account = make_account(projected_retirement_rents={
            RetirementAge.AGE_60: Decimal("8400"),
            RetirementAge.AGE_62: Decimal("9600"),
            RetirementAge.AGE_65: Decimal("12000"),
        })
        assert [o.age for o in early_retirement_options(account)] == [RetirementAge.AGE_62]
        analysis = aggregate_lpp([account])
        assert [o.age for o in analysis.retirement_options[0].options] == [RetirementAge.AGE_62]

    def test_explicit_min_age(self):
        """Test an explicit earliest age overrides the configured one."""
        account = make_account(projected_retirement_rents={
            RetirementAge.AGE_60: Decimal("8400"),
            RetirementAge.AGE_63: Decimal("10200"),
        })
        options = early_retirement_options(account, min_age=61)
        assert [o.age for o in options] == [RetirementAge.AGE_63]


class TestPerAccountResults:
    """Tests for per-account retirement, disability and death results."""

    def test_retirement(self):
        account = make_account(
            current_retirement_savings=Decimal("200000"),
            projected_savings_at_65=Decimal("400000"),
            projected_retirement_rents={RetirementAge.AGE_65: Decimal("24000")},
        )
        result = calculate_lpp_retirement(account)
        assert result.annual_rent_65 == Decimal("24000")
        assert result.monthly_rent_65 == Decimal("2000")
        assert result.projected_savings_65 == Decimal("400000")

    def test_disability(self):
        account = make_account(disability_rent_annual=Decimal("18000"))
        result = calculate_lpp_disability(account)
        assert result.disability_rent_monthly == Decimal("1500")
        assert result.child_disability_rent_annual == Decimal("0")
        assert result.waiting_period_days == 0

    def test_death(self):
        account = make_account(
            widow_rent_annual=Decimal("9000"),
            death_capital=Decimal("100000"),
        )
        result = calculate_lpp_death(account)
        assert result.death_capital_total == Decimal("100000")
        assert result.widow_rent_monthly == Decimal("750")
        assert result.orphan_rent_monthly == Decimal("0")
