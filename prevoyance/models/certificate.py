"""
LPP Certificate Intake Models

The extraction function reads a pension-fund certificate and returns a
flat JSON object with French keys. This module only models that object
and maps it onto an LPPAccount draft; it never reads PDFs or calls a model.

CRITICAL: Extracted values are PROPOSED data, NOT verified.
They go through CertificateValidator and user review before being saved.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from prevoyance.models.lpp import LPPAccount, RetirementAge


MONTHS_PER_YEAR = Decimal("12")


class LPPCertificateExtraction(BaseModel):
    """
    Fields extracted from an LPP certificate.

    All amounts are optional because extraction may miss any of them.
    Survivor and orphan rents are stated per month on certificates.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
        extra="ignore",
    )

    extraction_id: UUID = Field(default_factory=uuid4)
    extracted_at: datetime = Field(default_factory=datetime.utcnow)

    current_savings: Optional[Decimal] = Field(
        default=None,
        alias="avoir_vieillesse",
        description="Current retirement savings (CHF)"
    )
    projected_savings_65: Optional[Decimal] = Field(
        default=None,
        alias="capital_projete_65",
        description="Projected savings at 65 (CHF)"
    )
    projected_rent_monthly: Optional[Decimal] = Field(
        default=None,
        alias="rente_mensuelle_projetee"
    )
    projected_rent_annual: Optional[Decimal] = Field(
        default=None,
        alias="rente_annuelle_projetee"
    )
    disability_rent_monthly: Optional[Decimal] = Field(
        default=None,
        alias="rente_invalidite_mensuelle"
    )
    disability_rent_annual: Optional[Decimal] = Field(
        default=None,
        alias="rente_invalidite_annuelle"
    )
    disability_capital: Optional[Decimal] = Field(
        default=None,
        alias="capital_invalidite"
    )
    survivor_rent_monthly: Optional[Decimal] = Field(
        default=None,
        alias="rente_conjoint_survivant"
    )
    orphan_rent_monthly: Optional[Decimal] = Field(
        default=None,
        alias="rente_orphelins"
    )
    death_capital: Optional[Decimal] = Field(
        default=None,
        alias="capital_deces"
    )
    certificate_date: Optional[date] = Field(
        default=None,
        alias="date_certificat"
    )
    provider_name: Optional[str] = Field(
        default=None,
        max_length=200,
        alias="caisse_pension"
    )

    @property
    def annual_projected_rent(self) -> Optional[Decimal]:
        """Annual rent at 65, falling back to monthly x 12."""
        if self.projected_rent_annual is not None:
            return self.projected_rent_annual
        if self.projected_rent_monthly is not None:
            return self.projected_rent_monthly * MONTHS_PER_YEAR
        return None

    @property
    def annual_disability_rent(self) -> Optional[Decimal]:
        if self.disability_rent_annual is not None:
            return self.disability_rent_annual
        if self.disability_rent_monthly is not None:
            return self.disability_rent_monthly * MONTHS_PER_YEAR
        return None

    def to_lpp_account(
        self,
        profile_id: str,
        provider_name: Optional[str] = None,
    ) -> LPPAccount:
        """
        Build an LPPAccount draft from the extracted fields.

        `provider_name` overrides the extracted fund name (the user may have
        corrected it during review).
        """
        name = provider_name or self.provider_name
        if not name:
            raise ValueError("A provider name is required to create an LPP account")

        rents = {}
        if self.annual_projected_rent is not None:
            rents[RetirementAge.AGE_65] = self.annual_projected_rent

        return LPPAccount(
            profile_id=profile_id,
            provider_name=name,
            last_certificate_date=self.certificate_date,
            current_retirement_savings=self.current_savings,
            projected_savings_at_65=self.projected_savings_65,
            projected_retirement_rents=rents,
            disability_rent_annual=self.annual_disability_rent,
            widow_rent_annual=(
                self.survivor_rent_monthly * MONTHS_PER_YEAR
                if self.survivor_rent_monthly is not None
                else None
            ),
            orphan_rent_annual=(
                self.orphan_rent_monthly * MONTHS_PER_YEAR
                if self.orphan_rent_monthly is not None
                else None
            ),
            death_capital=self.death_capital,
        )


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'negative_value', 'inconsistent')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """
    Result of the two-stage certificate validation.

    Stage 1: Schema validation (presence, signs)
    Stage 2: Semantic validation (consistency checks)
    """

    extraction_id: UUID
    validated_at: datetime = Field(default_factory=datetime.utcnow)

    schema_valid: bool
    semantic_valid: bool
    is_valid: bool
    can_proceed_with_review: bool

    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")
