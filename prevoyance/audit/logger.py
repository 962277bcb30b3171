"""
Audit Logger

DESIGN DECISION: Every calculation, rejection and write is logged.
This provides:
1. Traceability from a figure back to the scale row that produced it
2. Debugging capability when a calculation is rejected
3. A history of profile and account changes

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash a calculation if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from prevoyance.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from prevoyance.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(log_level: str = "INFO") -> None:
    """Route stdlib logging (and so structlog) to stdout at `log_level`."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("prevoyance.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_scale_row_resolved(
        self,
        income: str,
        income_threshold: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.scale_row_resolved(
            income=income,
            income_threshold=income_threshold,
            correlation_id=correlation_id,
        ))

    async def log_scale_bracket_not_found(
        self,
        income: str,
        top_threshold: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.scale_bracket_not_found(
            income=income,
            top_threshold=top_threshold,
            correlation_id=correlation_id,
        ))

    async def log_avs_calculated(
        self,
        profile_id: str,
        income: str,
        years_contributed: int,
        full_rent_fraction: str,
        old_age_rent_monthly: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a completed AVS calculation."""
        await self.log(AuditEventBuilder.avs_calculated(
            profile_id=profile_id,
            income=income,
            years_contributed=years_contributed,
            full_rent_fraction=full_rent_fraction,
            old_age_rent_monthly=old_age_rent_monthly,
            correlation_id=correlation_id,
        ))

    async def log_calculation_rejected(
        self,
        entity_type: str,
        entity_id: Optional[str],
        error_code: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a calculation refused because of bad input."""
        await self.log(AuditEventBuilder.calculation_rejected(
            entity_type=entity_type,
            entity_id=entity_id,
            error_code=error_code,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_lpp_aggregated(
        self,
        profile_id: str,
        total_accounts: int,
        total_annual_rent_65: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.lpp_aggregated(
            profile_id=profile_id,
            total_accounts=total_accounts,
            total_annual_rent_65=total_annual_rent_65,
            correlation_id=correlation_id,
        ))

    async def log_third_pillar_aggregated(
        self,
        profile_id: str,
        total_accounts: int,
        total_projected_amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.third_pillar_aggregated(
            profile_id=profile_id,
            total_accounts=total_accounts,
            total_projected_amount=total_projected_amount,
            correlation_id=correlation_id,
        ))

    async def log_certificate_validated(
        self,
        extraction_id: UUID,
        is_valid: bool,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log the outcome of an LPP certificate check."""
        await self.log(AuditEventBuilder.certificate_validated(
            extraction_id=extraction_id,
            is_valid=is_valid,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_profile_saved(
        self,
        profile_id: str,
        full_rent_fraction: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.profile_saved(
            profile_id=profile_id,
            full_rent_fraction=full_rent_fraction,
            correlation_id=correlation_id,
        ))

    async def log_account_saved(
        self,
        entity_type: str,
        account_id: UUID,
        institution: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.account_saved(
            entity_type=entity_type,
            account_id=account_id,
            institution=institution,
            correlation_id=correlation_id,
        ))

    async def log_account_deactivated(
        self,
        entity_type: str,
        account_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.account_deactivated(
            entity_type=entity_type,
            account_id=account_id,
            correlation_id=correlation_id,
        ))

    async def log_account_deleted(
        self,
        entity_type: str,
        account_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.account_deleted(
            entity_type=entity_type,
            account_id=account_id,
            correlation_id=correlation_id,
        ))

    async def log_data_provider_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a storage failure."""
        await self.log(AuditEventBuilder.data_provider_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., one AVS calculation).
    Pass it through all subsequent operations.
    """
    return uuid4()
