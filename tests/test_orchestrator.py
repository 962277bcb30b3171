"""Integration tests for the pension analysis flow with in-memory storage."""

import asyncio

import pytest
from decimal import Decimal
from uuid import uuid4

from prevoyance.audit import AuditLogger
from prevoyance.errors import NotFoundError, ValidationError
from prevoyance.models import (
    AuditEventType,
    AVSClaimantProfile,
    LPPAccount,
    RetirementAge,
    ThirdPillarAccount,
    ThirdPillarAccountType,
)
from prevoyance.orchestrator import PensionAnalysisFlow, create_app_components
from prevoyance.services.storage import StorageError


def run(coro):
    return asyncio.run(coro)


def event_types(audit_storage):
    return [event.event_type for event in audit_storage.events]


class TestAVSFlow:
    """Tests for AVS calculation through the flow."""

    def test_calculate_avs(self, flow, audit_storage):
        """Test a raw calculation is audited."""
        result = run(flow.calculate_avs(50000, 44))
        assert result.old_age_rent_monthly == Decimal("1785")
        assert event_types(audit_storage) == [
            AuditEventType.SCALE_ROW_RESOLVED,
            AuditEventType.AVS_CALCULATED,
        ]
        assert len({e.correlation_id for e in audit_storage.events}) == 1

    def test_calculate_avs_rejected(self, flow, audit_storage):
        """Test rejected input is audited and re-raised."""
        with pytest.raises(ValidationError):
            run(flow.calculate_avs(50000, 45))
        event = audit_storage.events[-1]
        assert event.event_type == AuditEventType.CALCULATION_REJECTED
        assert event.error_code == "validation_error"

    def test_bracket_not_found_audited(self, flow, audit_storage):
        """Test income above the scale records a bracket-not-found event."""
        with pytest.raises(NotFoundError):
            run(flow.calculate_avs(100000, 44))
        event = audit_storage.events[-1]
        assert event.event_type == AuditEventType.SCALE_BRACKET_NOT_FOUND
        assert event.details["top_threshold"] == "90720"

    def test_calculate_and_save_profile(self, flow, storage):
        """Test calculation does not persist; saving stamps the summary."""
        profile = AVSClaimantProfile(
            profile_id="household-1",
            average_annual_income_determinant=Decimal("50000"),
            years_contributed=22,
        )
        run(flow.save_avs_profile(profile))

        result = run(flow.calculate_avs_for_profile("household-1"))
        assert result.old_age_rent_monthly == Decimal("893")
        assert run(storage.get_avs_profile("household-1")).scale_used is None

        saved = run(flow.save_avs_profile(profile, result))
        assert saved.full_rent_fraction == Decimal("0.5")
        assert saved.scale_used == "echelle_44_2025"
        assert run(storage.get_avs_profile("household-1")).scale_used == "echelle_44_2025"

    def test_unknown_profile(self, flow, audit_storage):
        """Test an unknown profile is not found."""
        with pytest.raises(NotFoundError):
            run(flow.calculate_avs_for_profile("nobody"))
        assert audit_storage.events[-1].event_type == AuditEventType.CALCULATION_REJECTED


class TestLPPFlow:
    """Tests for LPP accounts through the flow."""

    def test_analyze_active_accounts(self, flow, audit_storage):
        """Test deactivated accounts drop out of the analysis."""
        first = LPPAccount(
            profile_id="household-1",
            provider_name="Caisse A",
            projected_retirement_rents={RetirementAge.AGE_65: Decimal("12000")},
        )
        second = LPPAccount(
            profile_id="household-1",
            provider_name="Caisse B",
            projected_retirement_rents={RetirementAge.AGE_65: Decimal("18000")},
        )
        run(flow.save_lpp_account(first))
        run(flow.save_lpp_account(second))

        analysis = run(flow.analyze_lpp("household-1"))
        assert analysis.total_annual_rent_65 == Decimal("30000")
        assert analysis.total_monthly_rent_65 == Decimal("2500")

        assert run(flow.deactivate_lpp_account(first.id)) is True
        analysis = run(flow.analyze_lpp("household-1"))
        assert analysis.total_accounts == 1
        assert analysis.total_annual_rent_65 == Decimal("18000")
        assert AuditEventType.ACCOUNT_DEACTIVATED in event_types(audit_storage)

    def test_deactivate_unknown_account(self, flow, audit_storage):
        """Test deactivating a missing account returns False without an event."""
        assert run(flow.deactivate_lpp_account(uuid4())) is False
        assert AuditEventType.ACCOUNT_DEACTIVATED not in event_types(audit_storage)

    def test_certificate_intake(self, flow, storage):
        """Test a valid certificate yields an unsaved draft."""
        result, draft = run(flow.intake_lpp_certificate(
            {
                "caisse_pension": "Caisse de pension Test",
                "avoir_vieillesse": 150000,
                "capital_projete_65": 420000,
                "rente_annuelle_projetee": 24000,
            },
            profile_id="household-1",
        ))
        assert result.is_valid
        assert draft.rent_at(RetirementAge.AGE_65) == Decimal("24000")
        assert run(storage.list_lpp_accounts("household-1")) == []

    def test_certificate_intake_without_provider(self, flow):
        """Test no draft is built without a pension fund name."""
        result, draft = run(flow.intake_lpp_certificate(
            {"avoir_vieillesse": 150000},
            profile_id="household-1",
        ))
        assert result.can_proceed_with_review
        assert draft is None

    def test_certificate_intake_rejected(self, flow, audit_storage):
        """Test an empty certificate is audited as failed."""
        result, draft = run(flow.intake_lpp_certificate({}, profile_id="household-1"))
        assert not result.is_valid
        assert draft is None
        assert audit_storage.events[-1].event_type == AuditEventType.CERTIFICATE_VALIDATION_FAILED


class TestThirdPillarFlow:
    """Tests for third-pillar accounts through the flow."""

    def test_analyze_and_delete(self, flow, audit_storage):
        account = ThirdPillarAccount(
            profile_id="household-1",
            account_type=ThirdPillarAccountType.INSURANCE_3A,
            institution_name="Assurance Test",
            current_amount=Decimal("10000"),
            annual_contribution=Decimal("1000"),
            death_capital=Decimal("50000"),
        )
        run(flow.save_third_pillar_account(account))

        analysis = run(flow.analyze_third_pillar("household-1", current_age=60))
        assert analysis.total_projected_amount == Decimal("15000")
        assert analysis.total_death_capital == Decimal("50000")

        assert run(flow.delete_third_pillar_account(account.id)) is True
        analysis = run(flow.analyze_third_pillar("household-1"))
        assert analysis.total_accounts == 0
        assert AuditEventType.ACCOUNT_DELETED in event_types(audit_storage)


class FailingStorage:
    """Storage stub whose reads always fail."""

    async def list_lpp_accounts(self, profile_id, include_inactive=False):
        raise StorageError("sheet unavailable")


class BrokenStorage:
    """Storage stub that fails with a non-storage error."""

    async def list_third_pillar_accounts(self, profile_id):
        raise RuntimeError("driver crashed")


class TestStorageFailures:
    """Tests for storage errors surfacing through the flow."""

    def test_storage_error_audited(self, calculator, audit_storage):
        flow = PensionAnalysisFlow(
            calculator=calculator,
            storage=FailingStorage(),
            audit_logger=AuditLogger(audit_storage),
        )
        with pytest.raises(StorageError):
            run(flow.analyze_lpp("household-1"))
        assert audit_storage.events[-1].event_type == AuditEventType.DATA_PROVIDER_ERROR

    def test_unexpected_error_audited(self, calculator, audit_storage):
        """Test an unexpected failure is recorded as a system error and re-raised."""
        flow = PensionAnalysisFlow(
            calculator=calculator,
            storage=BrokenStorage(),
            audit_logger=AuditLogger(audit_storage),
        )
        with pytest.raises(RuntimeError, match="driver crashed"):
            run(flow.analyze_third_pillar("household-1"))
        event = audit_storage.events[-1]
        assert event.event_type == AuditEventType.SYSTEM_ERROR
        assert event.error_message == "driver crashed"
        assert event.details["operation"] == "list_third_pillar_accounts"


class TestAppComponents:
    """Tests for the component factory."""

    def test_without_storage(self):
        """Test the factory works without Google Sheets."""
        flow, client = create_app_components(use_storage=False)
        assert client is None
        assert run(flow.calculate_avs(50000, 44)).old_age_rent_annual == Decimal("21420")
