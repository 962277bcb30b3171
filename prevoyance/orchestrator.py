"""
Main Orchestrator for Prevoyance

This module ties together the calculation engine, storage and audit trail,
and defines the end-to-end flows for:
1. AVS (first pillar): load profile → resolve scale row → compute rents
2. LPP (second pillar): load accounts → aggregate → early-retirement options
3. Third pillar: load accounts → project → aggregate
4. LPP certificate intake: extracted JSON → validate → account draft

DESIGN DECISION: The orchestrator enforces the boundaries:
- Calculations never write to storage; saving is a separate, explicit step
- Certificate data is never saved without human confirmation
- Every step is audited, including rejected inputs

This is the "glue" that keeps the calculators pure while the outer
layers deal with persistence and logging.
"""

from typing import Any, Optional, Union
from uuid import UUID

import structlog

from prevoyance.audit import AuditLogger, configure_logging, create_correlation_id
from prevoyance.calculations import (
    AVSCalculator,
    ScaleResolver,
    aggregate_lpp,
    aggregate_third_pillar,
    apply_result_to_profile,
)
from prevoyance.config import get_settings
from prevoyance.errors import NotFoundError, PensionError
from prevoyance.models import (
    AVSCalculationResult,
    AVSClaimantProfile,
    DisabilityFraction,
    LPPAccount,
    LPPAnalysis,
    LPPCertificateExtraction,
    ThirdPillarAccount,
    ThirdPillarAnalysis,
    ValidationResult,
)
from prevoyance.services.storage import (
    EmbeddedScaleRepository,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsPensionStorage,
    GoogleSheetsScaleRepository,
    InMemoryPensionStorage,
    PensionDataProvider,
    ScaleRepository,
    StorageError,
)
from prevoyance.validation import CertificateValidator


logger = structlog.get_logger(__name__)


class PensionAnalysisFlow:
    """
    Orchestrates the pension analysis flows for one household.

    Every public method takes an optional correlation id; when omitted a
    new one is created, so all events of one call can be traced together.
    Errors are audited and re-raised unchanged.
    """

    def __init__(
        self,
        calculator: Optional[AVSCalculator] = None,
        storage: Optional[PensionDataProvider] = None,
        validator: Optional[CertificateValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._calculator = calculator or AVSCalculator(
            ScaleResolver(EmbeddedScaleRepository())
        )
        self._storage = storage or InMemoryPensionStorage()
        self._validator = validator or CertificateValidator()
        self._audit = audit_logger or AuditLogger()
        self._settings = get_settings().pension

    @property
    def storage(self) -> PensionDataProvider:
        return self._storage

    async def _audit_failure(
        self,
        error: Exception,
        entity_type: str,
        entity_id: Optional[str],
        operation: str,
        correlation_id: UUID,
    ) -> None:
        """
        Record a failed step in the audit trail.

        Domain and storage errors get their own event types; anything else
        is recorded as a system error.
        """
        if isinstance(error, NotFoundError) and error.field == "income":
            await self._audit.log_scale_bracket_not_found(
                income=str(error.value),
                top_threshold=str(self._calculator.resolver.top_threshold),
                correlation_id=correlation_id,
            )
        elif isinstance(error, PensionError):
            await self._audit.log_calculation_rejected(
                entity_type=entity_type,
                entity_id=entity_id,
                error_code=error.code,
                error_message=str(error),
                correlation_id=correlation_id,
            )
        elif isinstance(error, StorageError):
            await self._audit.log_data_provider_error(
                operation=operation,
                error_message=str(error),
                correlation_id=correlation_id,
            )
        else:
            await self._audit.log_error(
                error_type=type(error).__name__,
                error_message=str(error),
                details={"operation": operation, "entity_type": entity_type, "entity_id": entity_id},
                correlation_id=correlation_id,
            )

    # =========================================================================
    # AVS (first pillar)
    # =========================================================================

    async def calculate_avs(
        self,
        income: Any,
        years_contributed: int,
        disability_fraction: Union[DisabilityFraction, str] = DisabilityFraction.FULL,
        correlation_id: Optional[UUID] = None,
    ) -> AVSCalculationResult:
        """
        Calculate AVS rents from raw inputs, without a stored profile.

        Raises:
            ValidationError: income, years or disability tier out of range
            NotFoundError: income above the top scale bracket
        """
        correlation_id = correlation_id or create_correlation_id()
        try:
            result = self._calculator.calculate_pensions(
                income, years_contributed, disability_fraction
            )
        except Exception as e:
            await self._audit_failure(e, "avs_calculation", None, "calculate_avs", correlation_id)
            raise

        await self._log_avs_result(None, result, correlation_id)
        return result

    async def calculate_avs_for_profile(
        self,
        profile_id: str,
        disability_fraction: Optional[Union[DisabilityFraction, str]] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AVSCalculationResult:
        """
        Load a claimant profile and calculate its AVS rents.

        The profile is not modified; call `save_avs_profile` with the result
        to persist the calculation summary.
        """
        correlation_id = correlation_id or create_correlation_id()
        try:
            profile = await self._storage.get_avs_profile(profile_id)
            result = self._calculator.calculate_for_profile(profile, disability_fraction)
        except Exception as e:
            await self._audit_failure(
                e, "avs_profile", profile_id, "get_avs_profile", correlation_id
            )
            raise

        await self._log_avs_result(profile_id, result, correlation_id)
        return result

    async def _log_avs_result(
        self,
        profile_id: Optional[str],
        result: AVSCalculationResult,
        correlation_id: UUID,
    ) -> None:
        await self._audit.log_scale_row_resolved(
            income=str(result.income_used),
            income_threshold=str(result.scale_row.income_threshold),
            correlation_id=correlation_id,
        )
        await self._audit.log_avs_calculated(
            profile_id=profile_id or "",
            income=str(result.income_used),
            years_contributed=result.years_contributed,
            full_rent_fraction=str(result.full_rent_fraction),
            old_age_rent_monthly=str(result.old_age_rent_monthly),
            correlation_id=correlation_id,
        )

    async def save_avs_profile(
        self,
        profile: AVSClaimantProfile,
        result: Optional[AVSCalculationResult] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AVSClaimantProfile:
        """
        Persist a claimant profile, optionally stamped with a calculation
        summary (fraction, scale used, calculation date).
        """
        correlation_id = correlation_id or create_correlation_id()
        if result is not None:
            profile = apply_result_to_profile(profile, result)

        try:
            saved = await self._storage.save_avs_profile(profile)
        except Exception as e:
            await self._audit_failure(
                e, "avs_profile", profile.profile_id, "save_avs_profile", correlation_id
            )
            raise

        await self._audit.log_profile_saved(
            profile_id=saved.profile_id,
            full_rent_fraction=(
                str(saved.full_rent_fraction)
                if saved.full_rent_fraction is not None
                else None
            ),
            correlation_id=correlation_id,
        )
        return saved

    # =========================================================================
    # LPP (second pillar)
    # =========================================================================

    async def analyze_lpp(
        self,
        profile_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> LPPAnalysis:
        """Aggregate every active LPP account of a profile."""
        correlation_id = correlation_id or create_correlation_id()
        try:
            accounts = await self._storage.list_lpp_accounts(profile_id)
        except Exception as e:
            await self._audit_failure(
                e, "profile", profile_id, "list_lpp_accounts", correlation_id
            )
            raise

        analysis = aggregate_lpp(accounts)

        await self._audit.log_lpp_aggregated(
            profile_id=profile_id,
            total_accounts=analysis.total_accounts,
            total_annual_rent_65=str(analysis.total_annual_rent_65),
            correlation_id=correlation_id,
        )
        return analysis

    async def save_lpp_account(
        self,
        account: LPPAccount,
        correlation_id: Optional[UUID] = None,
    ) -> UUID:
        correlation_id = correlation_id or create_correlation_id()
        try:
            account_id = await self._storage.save_lpp_account(account)
        except Exception as e:
            await self._audit_failure(
                e, "lpp_account", str(account.id), "save_lpp_account", correlation_id
            )
            raise

        await self._audit.log_account_saved(
            entity_type="lpp_account",
            account_id=account_id,
            institution=account.provider_name,
            correlation_id=correlation_id,
        )
        return account_id

    async def deactivate_lpp_account(
        self,
        account_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Soft-delete an LPP account. Returns False if it does not exist."""
        correlation_id = correlation_id or create_correlation_id()
        try:
            deactivated = await self._storage.deactivate_lpp_account(account_id)
        except Exception as e:
            await self._audit_failure(
                e, "lpp_account", str(account_id), "deactivate_lpp_account", correlation_id
            )
            raise

        if deactivated:
            await self._audit.log_account_deactivated(
                entity_type="lpp_account",
                account_id=account_id,
                correlation_id=correlation_id,
            )
        return deactivated

    # =========================================================================
    # Third pillar
    # =========================================================================

    async def analyze_third_pillar(
        self,
        profile_id: str,
        current_age: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ThirdPillarAnalysis:
        """
        Aggregate every active 3a/3b account of a profile.

        With `current_age`, accounts without a stored projection are
        projected to the normal retirement age.
        """
        correlation_id = correlation_id or create_correlation_id()
        try:
            accounts = await self._storage.list_third_pillar_accounts(profile_id)
            analysis = aggregate_third_pillar(
                accounts,
                current_age=current_age,
                retirement_age=self._settings.normal_retirement_age,
                annuity_years=self._settings.annuity_years,
            )
        except Exception as e:
            await self._audit_failure(
                e, "profile", profile_id, "list_third_pillar_accounts", correlation_id
            )
            raise

        await self._audit.log_third_pillar_aggregated(
            profile_id=profile_id,
            total_accounts=analysis.total_accounts,
            total_projected_amount=str(analysis.total_projected_amount),
            correlation_id=correlation_id,
        )
        return analysis

    async def save_third_pillar_account(
        self,
        account: ThirdPillarAccount,
        correlation_id: Optional[UUID] = None,
    ) -> UUID:
        correlation_id = correlation_id or create_correlation_id()
        try:
            account_id = await self._storage.save_third_pillar_account(account)
        except Exception as e:
            await self._audit_failure(
                e, "third_pillar_account", str(account.id),
                "save_third_pillar_account", correlation_id,
            )
            raise

        await self._audit.log_account_saved(
            entity_type="third_pillar_account",
            account_id=account_id,
            institution=account.institution_name,
            correlation_id=correlation_id,
        )
        return account_id

    async def delete_third_pillar_account(
        self,
        account_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Hard-delete a third-pillar account. Returns False if it does not exist."""
        correlation_id = correlation_id or create_correlation_id()
        try:
            deleted = await self._storage.delete_third_pillar_account(account_id)
        except Exception as e:
            await self._audit_failure(
                e, "third_pillar_account", str(account_id),
                "delete_third_pillar_account", correlation_id,
            )
            raise

        if deleted:
            await self._audit.log_account_deleted(
                entity_type="third_pillar_account",
                account_id=account_id,
                correlation_id=correlation_id,
            )
        return deleted

    # =========================================================================
    # LPP certificate intake
    # =========================================================================

    async def intake_lpp_certificate(
        self,
        extracted: Union[LPPCertificateExtraction, dict],
        profile_id: str,
        provider_name: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[ValidationResult, Optional[LPPAccount]]:
        """
        Validate extracted certificate data and build an account draft.

        The draft is NOT saved. The user reviews it and then calls
        `save_lpp_account`. No draft is returned when validation found
        errors or no pension fund name is known.
        """
        correlation_id = correlation_id or create_correlation_id()
        if isinstance(extracted, dict):
            extracted = LPPCertificateExtraction.model_validate(extracted)

        result = self._validator.validate(extracted)

        await self._audit.log_certificate_validated(
            extraction_id=extracted.extraction_id,
            is_valid=result.is_valid,
            issues=[issue.model_dump() for issue in result.issues],
            correlation_id=correlation_id,
        )

        if not result.can_proceed_with_review:
            return result, None
        if not (provider_name or extracted.provider_name):
            return result, None

        draft = extracted.to_lpp_account(profile_id, provider_name=provider_name)
        return result, draft


def _build_resolver(repository: ScaleRepository) -> ScaleResolver:
    """Scale resolver over `repository`, or the embedded table if it is empty."""
    try:
        return ScaleResolver(repository)
    except (ValueError, StorageError) as e:
        logger.warning("scale_repository_unusable", error=str(e))
        return ScaleResolver(EmbeddedScaleRepository())


def create_app_components(
    use_storage: bool = True,
) -> tuple[PensionAnalysisFlow, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False for testing without storage.

    Returns:
        (pension_analysis_flow, sheets_client)
    """
    settings = get_settings()
    configure_logging(settings.app.log_level)

    sheets_client = None
    storage: Optional[PensionDataProvider] = None
    scale_repository: ScaleRepository = EmbeddedScaleRepository()
    audit_logger = None

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            storage = GoogleSheetsPensionStorage(sheets_client)
            scale_repository = GoogleSheetsScaleRepository(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
            resolver = _build_resolver(scale_repository)
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            storage = None
            audit_logger = AuditLogger()  # Local-only logging
            resolver = ScaleResolver(EmbeddedScaleRepository())
    else:
        audit_logger = AuditLogger()  # Local-only logging
        resolver = ScaleResolver(scale_repository)

    flow = PensionAnalysisFlow(
        calculator=AVSCalculator(resolver),
        storage=storage or InMemoryPensionStorage(),
        audit_logger=audit_logger,
    )

    return flow, sheets_client
