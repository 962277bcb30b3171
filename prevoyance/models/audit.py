"""
Audit Models for Prevoyance

Every calculation, rejection and write is logged for audit purposes.
This provides:
1. Traceability of which scale row produced which figure
2. Debugging information when a calculation is rejected
3. A history of profile and account changes

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Calculations
    SCALE_ROW_RESOLVED = "scale_row_resolved"
    SCALE_BRACKET_NOT_FOUND = "scale_bracket_not_found"
    AVS_CALCULATED = "avs_calculated"
    CALCULATION_REJECTED = "calculation_rejected"
    LPP_AGGREGATED = "lpp_aggregated"
    THIRD_PILLAR_AGGREGATED = "third_pillar_aggregated"

    # Certificate intake
    CERTIFICATE_VALIDATED = "certificate_validated"
    CERTIFICATE_VALIDATION_FAILED = "certificate_validation_failed"

    # Persistence
    PROFILE_SAVED = "profile_saved"
    ACCOUNT_SAVED = "account_saved"
    ACCOUNT_DEACTIVATED = "account_deactivated"
    ACCOUNT_DELETED = "account_deleted"

    # System events
    DATA_PROVIDER_ERROR = "data_provider_error"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'avs_profile', 'lpp_account')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one dashboard refresh)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_code,
         error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_code or "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.avs_calculated(profile_id, income, ...)
        event = AuditEventBuilder.account_saved("lpp_account", account_id, ...)
    """

    @staticmethod
    def scale_row_resolved(
        income: str,
        income_threshold: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SCALE_ROW_RESOLVED,
            severity=AuditSeverity.DEBUG,
            entity_type="scale_row",
            entity_id=income_threshold,
            correlation_id=correlation_id,
            description=f"Income {income} resolved to bracket {income_threshold}",
            details={
                "income": income,
                "income_threshold": income_threshold,
            },
        )

    @staticmethod
    def scale_bracket_not_found(
        income: str,
        top_threshold: Optional[str],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SCALE_BRACKET_NOT_FOUND,
            severity=AuditSeverity.WARNING,
            entity_type="scale_row",
            correlation_id=correlation_id,
            description=f"No scale bracket covers income {income}",
            details={
                "income": income,
                "top_threshold": top_threshold,
            },
            error_code="not_found",
        )

    @staticmethod
    def avs_calculated(
        profile_id: str,
        income: str,
        years_contributed: int,
        full_rent_fraction: str,
        old_age_rent_monthly: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AVS_CALCULATED,
            entity_type="avs_profile",
            entity_id=profile_id,
            correlation_id=correlation_id,
            description=f"AVS pensions calculated: {old_age_rent_monthly} CHF/month",
            details={
                "income": income,
                "years_contributed": years_contributed,
                "full_rent_fraction": full_rent_fraction,
                "old_age_rent_monthly": old_age_rent_monthly,
            },
        )

    @staticmethod
    def calculation_rejected(
        entity_type: str,
        entity_id: Optional[str],
        error_code: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CALCULATION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Calculation rejected: {error_code}",
            error_code=error_code,
            error_message=error_message,
        )

    @staticmethod
    def lpp_aggregated(
        profile_id: str,
        total_accounts: int,
        total_annual_rent_65: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LPP_AGGREGATED,
            entity_type="profile",
            entity_id=profile_id,
            correlation_id=correlation_id,
            description=f"LPP analysis over {total_accounts} accounts",
            details={
                "total_accounts": total_accounts,
                "total_annual_rent_65": total_annual_rent_65,
            },
        )

    @staticmethod
    def third_pillar_aggregated(
        profile_id: str,
        total_accounts: int,
        total_projected_amount: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.THIRD_PILLAR_AGGREGATED,
            entity_type="profile",
            entity_id=profile_id,
            correlation_id=correlation_id,
            description=f"Third-pillar analysis over {total_accounts} accounts",
            details={
                "total_accounts": total_accounts,
                "total_projected_amount": total_projected_amount,
            },
        )

    @staticmethod
    def certificate_validated(
        extraction_id: UUID,
        is_valid: bool,
        issues: list[dict],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        if is_valid:
            event_type = AuditEventType.CERTIFICATE_VALIDATED
            severity = AuditSeverity.INFO
        else:
            event_type = AuditEventType.CERTIFICATE_VALIDATION_FAILED
            severity = AuditSeverity.WARNING
        return AuditEvent(
            event_type=event_type,
            severity=severity,
            entity_type="lpp_certificate",
            entity_id=str(extraction_id),
            correlation_id=correlation_id,
            description=f"LPP certificate checked with {len(issues)} issues",
            details={
                "issues": issues,
            },
        )

    @staticmethod
    def profile_saved(
        profile_id: str,
        full_rent_fraction: Optional[str],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROFILE_SAVED,
            entity_type="avs_profile",
            entity_id=profile_id,
            correlation_id=correlation_id,
            description="AVS profile saved",
            details={
                "full_rent_fraction": full_rent_fraction,
            },
            is_user_action=True,
        )

    @staticmethod
    def account_saved(
        entity_type: str,
        account_id: UUID,
        institution: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_SAVED,
            entity_type=entity_type,
            entity_id=str(account_id),
            correlation_id=correlation_id,
            description=f"Account saved: {institution}",
            details={
                "institution": institution,
            },
            is_user_action=True,
        )

    @staticmethod
    def account_deactivated(
        entity_type: str,
        account_id: UUID,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_DEACTIVATED,
            entity_type=entity_type,
            entity_id=str(account_id),
            correlation_id=correlation_id,
            description="Account deactivated",
            is_user_action=True,
        )

    @staticmethod
    def account_deleted(
        entity_type: str,
        account_id: UUID,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_DELETED,
            entity_type=entity_type,
            entity_id=str(account_id),
            correlation_id=correlation_id,
            description="Account deleted",
            is_user_action=True,
        )

    @staticmethod
    def data_provider_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_PROVIDER_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Data provider error during {operation}",
            error_message=error_message,
            details={
                "operation": operation,
            },
            correlation_id=correlation_id,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
