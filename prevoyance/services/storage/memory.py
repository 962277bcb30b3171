"""
In-Memory Storage

Dict-backed implementations of the storage interfaces, used by tests and
by local runs without Google Sheets credentials. Records are copied on the
way in and out so callers cannot mutate stored state by accident.
"""

from datetime import datetime
from typing import Iterable, Optional
from uuid import UUID

from prevoyance.errors import NotFoundError
from prevoyance.models.audit import AuditEvent
from prevoyance.models.avs import AVSClaimantProfile
from prevoyance.models.lpp import LPPAccount
from prevoyance.models.scale import BenefitScaleRow
from prevoyance.models.third_pillar import ThirdPillarAccount
from prevoyance.services.storage.interface import (
    AuditStorageInterface,
    PensionDataProvider,
    ScaleRepository,
)


class InMemoryScaleRepository(ScaleRepository):
    """Scale rows held in a list."""

    def __init__(self, rows: Iterable[BenefitScaleRow]):
        self._rows = list(rows)

    def load_rows(self) -> list[BenefitScaleRow]:
        return list(self._rows)


class InMemoryPensionStorage(PensionDataProvider):
    """Profiles and accounts held in dicts keyed by id."""

    def __init__(self):
        self._avs_profiles: dict[UUID, AVSClaimantProfile] = {}
        self._lpp_accounts: dict[UUID, LPPAccount] = {}
        self._third_pillar_accounts: dict[UUID, ThirdPillarAccount] = {}

    async def get_avs_profile(self, profile_id: str) -> AVSClaimantProfile:
        for profile in self._avs_profiles.values():
            if profile.profile_id == profile_id and profile.is_active:
                return profile.model_copy(deep=True)
        raise NotFoundError(
            f"No active AVS profile for {profile_id}",
            field="profile_id",
            value=profile_id,
        )

    async def save_avs_profile(self, profile: AVSClaimantProfile) -> AVSClaimantProfile:
        stored = profile.model_copy(deep=True, update={"updated_at": datetime.utcnow()})
        self._avs_profiles[stored.id] = stored
        return stored.model_copy(deep=True)

    async def list_lpp_accounts(
        self,
        profile_id: str,
        include_inactive: bool = False,
    ) -> list[LPPAccount]:
        accounts = [
            account.model_copy(deep=True)
            for account in self._lpp_accounts.values()
            if account.profile_id == profile_id and (include_inactive or account.is_active)
        ]
        accounts.sort(key=lambda a: a.created_at, reverse=True)
        return accounts

    async def save_lpp_account(self, account: LPPAccount) -> UUID:
        self._lpp_accounts[account.id] = account.model_copy(
            deep=True, update={"updated_at": datetime.utcnow()}
        )
        return account.id

    async def deactivate_lpp_account(self, account_id: UUID) -> bool:
        account = self._lpp_accounts.get(account_id)
        if account is None:
            return False
        self._lpp_accounts[account_id] = account.model_copy(
            update={"is_active": False, "updated_at": datetime.utcnow()}
        )
        return True

    async def list_third_pillar_accounts(
        self,
        profile_id: str,
        include_inactive: bool = False,
    ) -> list[ThirdPillarAccount]:
        accounts = [
            account.model_copy(deep=True)
            for account in self._third_pillar_accounts.values()
            if account.profile_id == profile_id and (include_inactive or account.is_active)
        ]
        accounts.sort(key=lambda a: a.created_at, reverse=True)
        return accounts

    async def save_third_pillar_account(self, account: ThirdPillarAccount) -> UUID:
        self._third_pillar_accounts[account.id] = account.model_copy(
            deep=True, update={"updated_at": datetime.utcnow()}
        )
        return account.id

    async def delete_third_pillar_account(self, account_id: UUID) -> bool:
        return self._third_pillar_accounts.pop(account_id, None) is not None


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
