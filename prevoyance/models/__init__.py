"""
Data Models Package

This package contains all Pydantic models used by the pension engine.
All data flowing through the system must conform to these schemas.
"""

from prevoyance.models.scale import BenefitScaleRow
from prevoyance.models.avs import (
    AVSCalculationResult,
    AVSClaimantProfile,
    DisabilityFraction,
    IncomeHistorySummary,
    MaritalStatus,
    YearlyIncome,
)
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
from prevoyance.models.third_pillar import (
    ThirdPillarAccount,
    ThirdPillarAccountType,
    ThirdPillarAnalysis,
    ThirdPillarProjection,
)
from prevoyance.models.certificate import (
    LPPCertificateExtraction,
    ValidationIssue,
    ValidationResult,
)
from prevoyance.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Scale
    "BenefitScaleRow",
    # AVS
    "AVSCalculationResult",
    "AVSClaimantProfile",
    "DisabilityFraction",
    "IncomeHistorySummary",
    "MaritalStatus",
    "YearlyIncome",
    # LPP
    "AccountRetirementOptions",
    "LPPAccount",
    "LPPAnalysis",
    "LPPDeathResult",
    "LPPDisabilityResult",
    "LPPRetirementResult",
    "RetirementAge",
    "RetirementOption",
    # Third pillar
    "ThirdPillarAccount",
    "ThirdPillarAccountType",
    "ThirdPillarAnalysis",
    "ThirdPillarProjection",
    # Certificate intake
    "LPPCertificateExtraction",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
