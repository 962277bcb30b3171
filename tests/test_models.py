"""
Tests for Prevoyance

Test strategy:
1. Unit tests for individual components (models, calculators, validator)
2. Integration tests for flows (with in-memory storage)
3. No real API calls in tests
"""

import json

import pytest
from decimal import Decimal
from uuid import uuid4

from prevoyance.models import (
    AVSClaimantProfile,
    BenefitScaleRow,
    LPPAccount,
    RetirementAge,
    ThirdPillarAccount,
    ThirdPillarAccountType,
    ValidationIssue,
    ValidationResult,
)
from prevoyance.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestPensionModels:
    """Tests for pension-related Pydantic models."""

    def test_profile_defaults_to_full_career(self):
        """Test a new profile assumes 44 contribution years."""
        profile = AVSClaimantProfile(profile_id="household-1")
        assert profile.years_contributed == 44
        assert profile.years_missing == 0

    def test_profile_rejects_too_many_years(self):
        """Test years above 44 are rejected."""
        with pytest.raises(ValueError):
            AVSClaimantProfile(profile_id="household-1", years_contributed=45)

    def test_profile_years_follow_configured_career(self, monkeypatch):
        """Test the contribution-years bound and default come from settings."""
        monkeypatch.setenv("PENSION_MAX_CONTRIBUTION_YEARS", "40")
        profile = AVSClaimantProfile(profile_id="household-1")
        assert profile.years_contributed == 40
        assert profile.years_missing == 0
        assert AVSClaimantProfile(profile_id="p", years_contributed=30).years_missing == 10
        with pytest.raises(ValueError):
            AVSClaimantProfile(profile_id="household-1", years_contributed=42)

    def test_avs_number_format(self):
        """Test AVS numbers must be 13 digits starting with 756."""
        profile = AVSClaimantProfile(profile_id="p", avs_number="756.1234.5678.97")
        assert profile.avs_number == "756.1234.5678.97"
        with pytest.raises(ValueError, match="Invalid AVS number"):
            AVSClaimantProfile(profile_id="p", avs_number="123.1234.5678.97")

    def test_scale_row_is_frozen(self):
        """Test scale rows cannot be modified."""
        row = BenefitScaleRow(
            income_threshold=Decimal("15120"),
            old_age_rent_full=Decimal("1260"),
            disability_rent_3_4=Decimal("945"),
            disability_rent_1_2=Decimal("630"),
            disability_rent_1_4=Decimal("315"),
            widow_rent_full=Decimal("1008"),
            widow_rent_3_4=Decimal("756"),
            widow_rent_1_2=Decimal("504"),
            widow_rent_1_4=Decimal("252"),
            widow_additional_rent=Decimal("378"),
            child_rent=Decimal("504"),
            double_child_rent=Decimal("756"),
            orphan_rent_60pct=Decimal("756"),
        )
        with pytest.raises(ValueError):
            row.old_age_rent_full = Decimal("1")

    def test_lpp_account_rent_lookup(self):
        """Test rents are looked up by age, zero when missing."""
        account = LPPAccount(
            profile_id="household-1",
            provider_name="  Caisse Test  ",
            projected_retirement_rents={RetirementAge.AGE_63: Decimal("10000")},
        )
        assert account.provider_name == "Caisse Test"
        assert account.rent_at(RetirementAge.AGE_63) == Decimal("10000")
        assert account.rent_at(RetirementAge.AGE_65) == Decimal("0")

    def test_lpp_account_rejects_negative_savings(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            LPPAccount(
                profile_id="household-1",
                provider_name="Caisse Test",
                current_retirement_savings=Decimal("-1"),
            )

    def test_early_ages(self):
        """Test early-retirement ages are 60 to 64."""
        assert [int(a) for a in RetirementAge.early()] == [60, 61, 62, 63, 64]

    def test_early_ages_from_min_age(self):
        """Test early-retirement ages start at the given minimum."""
        assert [int(a) for a in RetirementAge.early(62)] == [62, 63, 64]

    def test_lpp_account_rejects_negative_projected_rent(self):
        """Test a negative rent in the per-age map is rejected."""
        with pytest.raises(ValueError):
            LPPAccount(
                profile_id="household-1",
                provider_name="Caisse Test",
                projected_retirement_rents={RetirementAge.AGE_62: Decimal("-100")},
            )

    def test_lpp_account_accepts_missing_projected_rent(self):
        """Test an age can be listed without a rent."""
        account = LPPAccount(
            profile_id="household-1",
            provider_name="Caisse Test",
            projected_retirement_rents={RetirementAge.AGE_62: None},
        )
        assert account.rent_at(RetirementAge.AGE_62) == Decimal("0")

    def test_third_pillar_account_types(self):
        """Test which account types carry insurance benefits."""
        assert not ThirdPillarAccountType.BANK_3A.carries_insurance
        assert ThirdPillarAccountType.INSURANCE_3A.carries_insurance
        assert ThirdPillarAccountType("3b").carries_insurance

    def test_third_pillar_defaults(self):
        account = ThirdPillarAccount(
            profile_id="household-1",
            account_type="3a_bank",
            institution_name="Banque Test",
        )
        assert account.current_amount == Decimal("0")
        assert account.is_active

    def test_validation_result_error_count(self):
        """Test error counting on validation results."""
        result = ValidationResult(
            extraction_id=uuid4(),
            schema_valid=False,
            semantic_valid=False,
            is_valid=False,
            can_proceed_with_review=False,
            issues=[
                ValidationIssue(field="a", issue_type="missing", message="m", severity="error"),
                ValidationIssue(field="b", issue_type="missing", message="m", severity="warning"),
            ],
        )
        assert result.has_errors
        assert result.error_count == 1


class TestAuditModels:
    """Tests for audit event models."""

    def test_avs_calculated_event(self):
        """Test the AVS calculation event carries its figures."""
        correlation_id = uuid4()
        event = AuditEventBuilder.avs_calculated(
            profile_id="household-1",
            income="50000",
            years_contributed=44,
            full_rent_fraction="1",
            old_age_rent_monthly="1785",
            correlation_id=correlation_id,
        )
        assert event.event_type == AuditEventType.AVS_CALCULATED
        assert event.severity == AuditSeverity.INFO
        assert event.correlation_id == correlation_id
        assert event.details["old_age_rent_monthly"] == "1785"

    def test_bracket_not_found_is_warning(self):
        event = AuditEventBuilder.scale_bracket_not_found("120000", "90720")
        assert event.severity == AuditSeverity.WARNING
        assert event.error_code == "not_found"

    def test_to_sheets_row(self):
        """Test conversion to a 12-column sheet row."""
        event = AuditEventBuilder.calculation_rejected(
            entity_type="avs_calculation",
            entity_id=None,
            error_code="validation_error",
            error_message="years_contributed must be between 0 and 44, got 45",
        )
        row = event.to_sheets_row()
        assert len(row) == 12
        assert row[2] == "calculation_rejected"
        assert row[5] == ""
        assert row[9] == "validation_error"

    def test_to_log_dict(self):
        event = AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description="boom",
            details={"amount": Decimal("1")},
        )
        log = event.to_log_dict()
        assert log["event_type"] == "system_error"
        assert log["correlation_id"] is None
        assert json.loads(event.to_sheets_row()[8]) == {"amount": "1"}
