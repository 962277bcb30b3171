"""
Abstract Storage Interfaces

DESIGN DECISION: The calculation engine never talks to a database.
It consumes three kinds of data through these interfaces:
1. The AVS scale table (ScaleRepository, synchronous: it is loaded once)
2. Claimant profiles and pension accounts (PensionDataProvider, async)
3. The audit trail (AuditStorageInterface, async, append-only)

Implementations: in-memory (tests, local runs), embedded scale data,
and Google Sheets.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from prevoyance.errors import NotFoundError
from prevoyance.models.audit import AuditEvent
from prevoyance.models.avs import AVSClaimantProfile
from prevoyance.models.lpp import LPPAccount
from prevoyance.models.scale import BenefitScaleRow
from prevoyance.models.third_pillar import ThirdPillarAccount


class ScaleRepository(ABC):
    """
    Source of the AVS scale rows.

    Rows are reference data; implementations may return them in any order.
    """

    @abstractmethod
    def load_rows(self) -> list[BenefitScaleRow]:
        """
        Return every row of the scale.

        Raises:
            StorageError: If the rows cannot be read
        """
        pass


class PensionDataProvider(ABC):
    """
    Abstract interface for claimant profiles and pension accounts.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def get_avs_profile(self, profile_id: str) -> AVSClaimantProfile:
        """
        Retrieve the active AVS profile of a person.

        Raises:
            NotFoundError: If the profile has no active AVS record
        """
        pass

    @abstractmethod
    async def save_avs_profile(self, profile: AVSClaimantProfile) -> AVSClaimantProfile:
        """Insert or replace an AVS profile (matched on its id)."""
        pass

    @abstractmethod
    async def list_lpp_accounts(
        self,
        profile_id: str,
        include_inactive: bool = False,
    ) -> list[LPPAccount]:
        """
        List the LPP accounts of a profile, newest first.

        Inactive (soft-deleted) accounts are skipped unless requested.
        """
        pass

    @abstractmethod
    async def save_lpp_account(self, account: LPPAccount) -> UUID:
        """
        Full-record upsert of an LPP account.

        Returns:
            The account id
        """
        pass

    @abstractmethod
    async def deactivate_lpp_account(self, account_id: UUID) -> bool:
        """
        Soft-delete an LPP account by clearing `is_active`.

        Returns:
            True if the account existed
        """
        pass

    @abstractmethod
    async def list_third_pillar_accounts(
        self,
        profile_id: str,
        include_inactive: bool = False,
    ) -> list[ThirdPillarAccount]:
        """List the third-pillar accounts of a profile, newest first."""
        pass

    @abstractmethod
    async def save_third_pillar_account(self, account: ThirdPillarAccount) -> UUID:
        """Full-record upsert of a third-pillar account."""
        pass

    @abstractmethod
    async def delete_third_pillar_account(self, account_id: UUID) -> bool:
        """
        Hard-delete a third-pillar account.

        Returns:
            True if deleted, False if it did not exist
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get all events for a correlation ID, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get the most recent audit events (newest first)."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


__all__ = [
    "AuditStorageInterface",
    "ConnectionError",
    "NotFoundError",
    "PensionDataProvider",
    "ScaleRepository",
    "StorageError",
]
