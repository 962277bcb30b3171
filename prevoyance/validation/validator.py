"""
Two-Stage Certificate Validation

DESIGN DECISION: Validation of an extracted LPP certificate happens in two
distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence (savings, pension fund name)
- Sign checks (no negative amounts)
- Empty extraction detection

STAGE 2 - SEMANTIC VALIDATION:
- Projected capital at 65 below the current savings
- Monthly rent x 12 disagreeing with the stated annual rent
- Certificate date in the future or suspiciously old

Stage 2 only runs when stage 1 passes.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for human review.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from prevoyance.config import get_settings
from prevoyance.models.certificate import (
    MONTHS_PER_YEAR,
    LPPCertificateExtraction,
    ValidationIssue,
    ValidationResult,
)


AMOUNT_FIELDS = (
    "current_savings",
    "projected_savings_65",
    "projected_rent_monthly",
    "projected_rent_annual",
    "disability_rent_monthly",
    "disability_rent_annual",
    "disability_capital",
    "survivor_rent_monthly",
    "orphan_rent_monthly",
    "death_capital",
)


class CertificateValidator:
    """
    Validates an extracted LPP certificate through a two-stage pipeline.

    Stateless apart from settings; safe to share between flows.
    """

    def __init__(
        self,
        max_age_days: Optional[int] = None,
        rent_tolerance_chf: Optional[int] = None,
    ):
        settings = get_settings().app
        self._max_age_days = (
            max_age_days if max_age_days is not None else settings.certificate_max_age_days
        )
        self._tolerance = Decimal(
            rent_tolerance_chf
            if rent_tolerance_chf is not None
            else settings.rent_mismatch_tolerance_chf
        )

    def _validate_schema(
        self,
        extracted: LPPCertificateExtraction,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if all(getattr(extracted, name) is None for name in AMOUNT_FIELDS):
            issues.append(ValidationIssue(
                field="extraction",
                issue_type="empty",
                message="No amount could be read from this certificate",
                severity="error",
                suggested_fix="Please try again with the complete certificate",
            ))
            return False, issues

        if extracted.current_savings is None:
            issues.append(ValidationIssue(
                field="current_savings",
                issue_type="missing",
                message="Current retirement savings were not found",
                severity="error",
                suggested_fix="Enter the 'avoir de vieillesse' from the certificate",
            ))

        if not extracted.provider_name:
            issues.append(ValidationIssue(
                field="provider_name",
                issue_type="missing",
                message="Pension fund name was not found",
                severity="warning",  # Warning because user can enter it
                suggested_fix="You'll need to enter the pension fund manually",
            ))

        for name in AMOUNT_FIELDS:
            value = getattr(extracted, name)
            if value is not None and value < 0:
                issues.append(ValidationIssue(
                    field=name,
                    issue_type="negative_value",
                    message=f"{name} cannot be negative ({value})",
                    severity="error",
                    suggested_fix="Check if the amount was read correctly",
                ))

        # Schema is valid if no errors (warnings are okay)
        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def _rent_mismatch(
        self,
        field: str,
        monthly: Optional[Decimal],
        annual: Optional[Decimal],
    ) -> Optional[ValidationIssue]:
        if monthly is None or annual is None:
            return None
        expected = monthly * MONTHS_PER_YEAR
        if abs(expected - annual) <= self._tolerance:
            return None
        return ValidationIssue(
            field=field,
            issue_type="inconsistent",
            message=f"Monthly rent x 12 ({expected}) does not match the annual rent ({annual})",
            severity="warning",
            suggested_fix="Please verify both rent amounts",
        )

    def _validate_semantic(
        self,
        extracted: LPPCertificateExtraction,
        today: Optional[date] = None,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []
        today = today or date.today()

        if (
            extracted.projected_savings_65 is not None
            and extracted.current_savings is not None
            and extracted.projected_savings_65 < extracted.current_savings
        ):
            issues.append(ValidationIssue(
                field="projected_savings_65",
                issue_type="inconsistent",
                message="Projected capital at 65 is lower than the current savings",
                severity="warning",
                suggested_fix="Please verify both capital amounts",
            ))

        for issue in (
            self._rent_mismatch(
                "projected_rent_annual",
                extracted.projected_rent_monthly,
                extracted.projected_rent_annual,
            ),
            self._rent_mismatch(
                "disability_rent_annual",
                extracted.disability_rent_monthly,
                extracted.disability_rent_annual,
            ),
        ):
            if issue:
                issues.append(issue)

        if extracted.certificate_date:
            if extracted.certificate_date > today:
                issues.append(ValidationIssue(
                    field="certificate_date",
                    issue_type="future_date",
                    message=f"Certificate date ({extracted.certificate_date}) is in the future",
                    severity="error",
                    suggested_fix="Please verify the date is correct",
                ))
            elif extracted.certificate_date < today - timedelta(days=self._max_age_days):
                issues.append(ValidationIssue(
                    field="certificate_date",
                    issue_type="outdated",
                    message=f"Certificate dated {extracted.certificate_date} is outdated",
                    severity="warning",
                    suggested_fix="Use the latest certificate from your pension fund",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def validate(
        self,
        extracted: LPPCertificateExtraction,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Args:
            extracted: The extracted certificate data to validate
            today: Reference date for date checks (defaults to today)

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        schema_valid, schema_issues = self._validate_schema(extracted)
        all_issues.extend(schema_issues)

        # Only run stage 2 if stage 1 passes
        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(extracted, today)
            all_issues.extend(semantic_issues)

        warnings = [issue.message for issue in all_issues if issue.severity == "warning"]

        return ValidationResult(
            extraction_id=extracted.extraction_id,
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            can_proceed_with_review=not any(
                issue.severity == "error" for issue in all_issues
            ),
            issues=all_issues,
            warnings=warnings,
        )

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """Summary of validation results for non-technical users."""
        if result.is_valid and not result.warnings:
            return "✅ All checks passed! Please review the details below."

        lines = []

        if result.has_errors:
            lines.append("❌ Some information is missing or invalid:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        lines.append("")
        if result.can_proceed_with_review:
            lines.append("You can still proceed, but please review carefully.")
        else:
            lines.append("Please fix the issues above before continuing.")

        return "\n".join(lines)
