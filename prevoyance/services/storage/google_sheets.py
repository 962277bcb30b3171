"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the hosted backend because:
1. Advisors and clients can read the figures directly in Sheets
2. No database setup required
3. The scale table can be maintained by hand once a year

TRADEOFFS:
- No transactions (upserts rewrite one row at a time)
- Limited query capabilities (we filter in Python)

One worksheet per record type; one record per row; the first row holds
the column names below. The implementation follows the abstract
interfaces, so the calculation engine never sees gspread.
"""

import json
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from prevoyance.config import get_settings
from prevoyance.errors import NotFoundError
from prevoyance.models.audit import AuditEvent, AuditEventType, AuditSeverity
from prevoyance.models.avs import AVSClaimantProfile, DisabilityFraction, MaritalStatus
from prevoyance.models.lpp import LPPAccount, RetirementAge
from prevoyance.models.scale import BenefitScaleRow
from prevoyance.models.third_pillar import ThirdPillarAccount, ThirdPillarAccountType
from prevoyance.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    PensionDataProvider,
    ScaleRepository,
    StorageError,
)


logger = structlog.get_logger(__name__)


SCALE_COLUMNS = [
    "income_threshold",
    "old_age_rent_full",
    "disability_rent_3_4",
    "disability_rent_1_2",
    "disability_rent_1_4",
    "widow_rent_full",
    "widow_rent_3_4",
    "widow_rent_1_2",
    "widow_rent_1_4",
    "widow_additional_rent",
    "child_rent",
    "double_child_rent",
    "orphan_rent_60pct",
    "scale_year",
]

AVS_PROFILE_COLUMNS = [
    "id",
    "profile_id",
    "owner_name",
    "avs_number",
    "marital_status",
    "average_annual_income_determinant",
    "years_contributed",
    "disability_fraction",
    "has_gaps",
    "full_rent_fraction",
    "scale_used",
    "last_calculation_date",
    "is_active",
    "created_at",
    "updated_at",
]

# Sheet column per retirement age
RENT_COLUMNS: dict[RetirementAge, str] = {
    age: f"projected_retirement_rent_at_{age.value}" for age in RetirementAge
}

LPP_ACCOUNT_COLUMNS = [
    "id",
    "profile_id",
    "provider_name",
    "plan_name",
    "contract_number",
    "last_certificate_date",
    "current_retirement_savings",
    "projected_savings_at_65",
    *RENT_COLUMNS.values(),
    "disability_rent_annual",
    "child_disability_rent_annual",
    "waiting_period_days",
    "widow_rent_annual",
    "orphan_rent_annual",
    "death_capital",
    "additional_death_capital",
    "notes",
    "is_active",
    "created_at",
    "updated_at",
]

THIRD_PILLAR_COLUMNS = [
    "id",
    "profile_id",
    "account_type",
    "institution_name",
    "contract_number",
    "start_date",
    "current_amount",
    "annual_contribution",
    "return_rate",
    "projected_amount_at_retirement",
    "projected_annual_rent",
    "disability_rent_annual",
    "death_capital",
    "notes",
    "is_active",
    "created_at",
    "updated_at",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_code",
    "error_message",
    "is_user_action",
]


# =============================================================================
# CELL CONVERSION
# =============================================================================

def _cell(value) -> str:
    """Serialize a model value into a sheet cell."""
    if value is None:
        return ""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if hasattr(value, "value"):  # Enum
        return str(value.value)
    return str(value)


def _row_to_dict(row: list, columns: list[str]) -> dict[str, str]:
    """Map a sheet row onto column names; missing trailing cells are ''."""
    return {name: (row[i] if i < len(row) else "") for i, name in enumerate(columns)}


def _optional(raw: str, parse: Callable):
    return parse(raw) if raw not in ("", None) else None


def _decimal(raw: str) -> Optional[Decimal]:
    try:
        return _optional(raw.replace("'", "").replace(" ", ""), Decimal)
    except InvalidOperation:
        raise StorageError(f"Not a number: {raw!r}")


def _bool(raw: str, default: bool = True) -> bool:
    if raw == "":
        return default
    return raw.strip().lower() in ("true", "1", "yes")


# =============================================================================
# CLIENT
# =============================================================================

class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @property
    def settings(self):
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        """Get or create a worksheet, writing the header row on creation."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def read_records(self, title: str, columns: list[str]) -> list[tuple[int, dict[str, str]]]:
        """
        Read every non-empty row of a worksheet.

        Returns (sheet_row_number, record) pairs; row numbers are 1-based
        and the header is row 1.
        """
        sheet = self.get_worksheet(title, columns)
        records = []
        for index, row in enumerate(sheet.get_all_values()[1:], start=2):
            if row and row[0]:
                records.append((index, _row_to_dict(row, columns)))
        return records

    def upsert_row(self, title: str, columns: list[str], row: list[str]) -> None:
        """Replace the row whose first cell matches `row[0]`, or append it."""
        sheet = self.get_worksheet(title, columns)
        for index, existing in self.read_records(title, columns):
            if existing[columns[0]] == row[0]:
                sheet.update(range_name=f"A{index}", values=[row])
                return
        sheet.append_row(row, value_input_option="RAW")


# =============================================================================
# SCALE
# =============================================================================

class GoogleSheetsScaleRepository(ScaleRepository):
    """AVS scale maintained in a worksheet, one bracket per row."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _record_to_row(self, record: dict[str, str]) -> BenefitScaleRow:
        values = {name: _decimal(record[name]) for name in SCALE_COLUMNS[:-1]}
        return BenefitScaleRow(
            **values,
            scale_year=_optional(record["scale_year"], int),
        )

    def load_rows(self) -> list[BenefitScaleRow]:
        title = self._client.settings.scale_sheet_name
        try:
            records = self._client.read_records(title, SCALE_COLUMNS)
            return [self._record_to_row(record) for _, record in records]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to load AVS scale: {e}")


# =============================================================================
# PROFILES AND ACCOUNTS
# =============================================================================

class GoogleSheetsPensionStorage(PensionDataProvider):
    """
    Google Sheets implementation of the pension data provider.

    Profiles, LPP accounts and third-pillar accounts each live in their own
    worksheet. Upserts match on the id column.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        self._sheets = self._client.settings

    # -- AVS profiles ---------------------------------------------------------

    def _profile_to_row(self, profile: AVSClaimantProfile) -> list[str]:
        return [_cell(getattr(profile, name)) for name in AVS_PROFILE_COLUMNS]

    def _record_to_profile(self, record: dict[str, str]) -> AVSClaimantProfile:
        return AVSClaimantProfile(
            id=UUID(record["id"]),
            profile_id=record["profile_id"],
            owner_name=record["owner_name"] or None,
            avs_number=record["avs_number"] or None,
            marital_status=_optional(record["marital_status"], MaritalStatus),
            average_annual_income_determinant=_decimal(record["average_annual_income_determinant"]),
            years_contributed=_optional(record["years_contributed"], int) or 0,
            disability_fraction=_optional(record["disability_fraction"], DisabilityFraction),
            has_gaps=_bool(record["has_gaps"], default=False),
            full_rent_fraction=_decimal(record["full_rent_fraction"]),
            scale_used=record["scale_used"] or None,
            last_calculation_date=_optional(record["last_calculation_date"], datetime.fromisoformat),
            is_active=_bool(record["is_active"]),
            created_at=_optional(record["created_at"], datetime.fromisoformat) or datetime.utcnow(),
            updated_at=_optional(record["updated_at"], datetime.fromisoformat) or datetime.utcnow(),
        )

    async def get_avs_profile(self, profile_id: str) -> AVSClaimantProfile:
        try:
            records = self._client.read_records(
                self._sheets.avs_profiles_sheet_name, AVS_PROFILE_COLUMNS
            )
        except Exception as e:
            raise StorageError(f"Failed to read AVS profiles: {e}")

        for _, record in records:
            if record["profile_id"] == profile_id and _bool(record["is_active"]):
                try:
                    return self._record_to_profile(record)
                except (ValueError, KeyError) as e:
                    raise StorageError(f"Malformed AVS profile row for {profile_id}: {e}")
        raise NotFoundError(
            f"No active AVS profile for {profile_id}",
            field="profile_id",
            value=profile_id,
        )

    async def save_avs_profile(self, profile: AVSClaimantProfile) -> AVSClaimantProfile:
        stored = profile.model_copy(update={"updated_at": datetime.utcnow()})
        try:
            self._client.upsert_row(
                self._sheets.avs_profiles_sheet_name,
                AVS_PROFILE_COLUMNS,
                self._profile_to_row(stored),
            )
        except Exception as e:
            raise StorageError(f"Failed to save AVS profile: {e}")
        return stored

    # -- LPP accounts ---------------------------------------------------------

    def _lpp_to_row(self, account: LPPAccount) -> list[str]:
        cells = []
        rent_columns = {column: age for age, column in RENT_COLUMNS.items()}
        for name in LPP_ACCOUNT_COLUMNS:
            if name in rent_columns:
                cells.append(_cell(account.projected_retirement_rents.get(rent_columns[name])))
            else:
                cells.append(_cell(getattr(account, name)))
        return cells

    def _record_to_lpp(self, record: dict[str, str]) -> LPPAccount:
        rents = {}
        for age, column in RENT_COLUMNS.items():
            value = _decimal(record[column])
            if value is not None:
                rents[age] = value

        return LPPAccount(
            id=UUID(record["id"]),
            profile_id=record["profile_id"],
            provider_name=record["provider_name"],
            plan_name=record["plan_name"] or None,
            contract_number=record["contract_number"] or None,
            last_certificate_date=_optional(record["last_certificate_date"], date.fromisoformat),
            current_retirement_savings=_decimal(record["current_retirement_savings"]),
            projected_savings_at_65=_decimal(record["projected_savings_at_65"]),
            projected_retirement_rents=rents,
            disability_rent_annual=_decimal(record["disability_rent_annual"]),
            child_disability_rent_annual=_decimal(record["child_disability_rent_annual"]),
            waiting_period_days=_optional(record["waiting_period_days"], int),
            widow_rent_annual=_decimal(record["widow_rent_annual"]),
            orphan_rent_annual=_decimal(record["orphan_rent_annual"]),
            death_capital=_decimal(record["death_capital"]),
            additional_death_capital=_decimal(record["additional_death_capital"]),
            notes=record["notes"] or None,
            is_active=_bool(record["is_active"]),
            created_at=_optional(record["created_at"], datetime.fromisoformat) or datetime.utcnow(),
            updated_at=_optional(record["updated_at"], datetime.fromisoformat) or datetime.utcnow(),
        )

    async def list_lpp_accounts(
        self,
        profile_id: str,
        include_inactive: bool = False,
    ) -> list[LPPAccount]:
        try:
            records = self._client.read_records(
                self._sheets.lpp_accounts_sheet_name, LPP_ACCOUNT_COLUMNS
            )
            accounts = [
                self._record_to_lpp(record)
                for _, record in records
                if record["profile_id"] == profile_id
            ]
        except Exception as e:
            raise StorageError(f"Failed to list LPP accounts: {e}")

        if not include_inactive:
            accounts = [a for a in accounts if a.is_active]
        accounts.sort(key=lambda a: a.created_at, reverse=True)
        return accounts

    async def save_lpp_account(self, account: LPPAccount) -> UUID:
        stored = account.model_copy(update={"updated_at": datetime.utcnow()})
        try:
            self._client.upsert_row(
                self._sheets.lpp_accounts_sheet_name,
                LPP_ACCOUNT_COLUMNS,
                self._lpp_to_row(stored),
            )
        except Exception as e:
            raise StorageError(f"Failed to save LPP account: {e}")
        return stored.id

    async def deactivate_lpp_account(self, account_id: UUID) -> bool:
        try:
            records = self._client.read_records(
                self._sheets.lpp_accounts_sheet_name, LPP_ACCOUNT_COLUMNS
            )
        except Exception as e:
            raise StorageError(f"Failed to read LPP accounts: {e}")

        for _, record in records:
            if record["id"] == str(account_id):
                try:
                    account = self._record_to_lpp(record)
                except (ValueError, KeyError) as e:
                    raise StorageError(f"Malformed LPP account row {account_id}: {e}")
                await self.save_lpp_account(account.model_copy(update={"is_active": False}))
                return True
        return False

    # -- Third pillar ---------------------------------------------------------

    def _third_pillar_to_row(self, account: ThirdPillarAccount) -> list[str]:
        return [_cell(getattr(account, name)) for name in THIRD_PILLAR_COLUMNS]

    def _record_to_third_pillar(self, record: dict[str, str]) -> ThirdPillarAccount:
        return ThirdPillarAccount(
            id=UUID(record["id"]),
            profile_id=record["profile_id"],
            account_type=ThirdPillarAccountType(record["account_type"]),
            institution_name=record["institution_name"],
            contract_number=record["contract_number"] or None,
            start_date=_optional(record["start_date"], date.fromisoformat),
            current_amount=_decimal(record["current_amount"]) or Decimal("0"),
            annual_contribution=_decimal(record["annual_contribution"]) or Decimal("0"),
            return_rate=_decimal(record["return_rate"]) or Decimal("0"),
            projected_amount_at_retirement=_decimal(record["projected_amount_at_retirement"]),
            projected_annual_rent=_decimal(record["projected_annual_rent"]),
            disability_rent_annual=_decimal(record["disability_rent_annual"]),
            death_capital=_decimal(record["death_capital"]),
            notes=record["notes"] or None,
            is_active=_bool(record["is_active"]),
            created_at=_optional(record["created_at"], datetime.fromisoformat) or datetime.utcnow(),
            updated_at=_optional(record["updated_at"], datetime.fromisoformat) or datetime.utcnow(),
        )

    async def list_third_pillar_accounts(
        self,
        profile_id: str,
        include_inactive: bool = False,
    ) -> list[ThirdPillarAccount]:
        try:
            records = self._client.read_records(
                self._sheets.third_pillar_sheet_name, THIRD_PILLAR_COLUMNS
            )
            accounts = [
                self._record_to_third_pillar(record)
                for _, record in records
                if record["profile_id"] == profile_id
            ]
        except Exception as e:
            raise StorageError(f"Failed to list third-pillar accounts: {e}")

        if not include_inactive:
            accounts = [a for a in accounts if a.is_active]
        accounts.sort(key=lambda a: a.created_at, reverse=True)
        return accounts

    async def save_third_pillar_account(self, account: ThirdPillarAccount) -> UUID:
        stored = account.model_copy(update={"updated_at": datetime.utcnow()})
        try:
            self._client.upsert_row(
                self._sheets.third_pillar_sheet_name,
                THIRD_PILLAR_COLUMNS,
                self._third_pillar_to_row(stored),
            )
        except Exception as e:
            raise StorageError(f"Failed to save third-pillar account: {e}")
        return stored.id

    async def delete_third_pillar_account(self, account_id: UUID) -> bool:
        title = self._sheets.third_pillar_sheet_name
        try:
            sheet = self._client.get_worksheet(title, THIRD_PILLAR_COLUMNS)
            for index, record in self._client.read_records(title, THIRD_PILLAR_COLUMNS):
                if record["id"] == str(account_id):
                    sheet.delete_rows(index)
                    return True
            return False
        except Exception as e:
            raise StorageError(f"Failed to delete third-pillar account: {e}")


# =============================================================================
# AUDIT
# =============================================================================

class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, record: dict[str, str]) -> AuditEvent:
        return AuditEvent(
            event_id=UUID(record["event_id"]),
            timestamp=datetime.fromisoformat(record["timestamp"]),
            event_type=AuditEventType(record["event_type"]),
            severity=AuditSeverity(record["severity"]),
            entity_type=record["entity_type"] or None,
            entity_id=record["entity_id"] or None,
            correlation_id=_optional(record["correlation_id"], UUID),
            description=record["description"],
            details=json.loads(record["details_json"]) if record["details_json"] else {},
            error_code=record["error_code"] or None,
            error_message=record["error_message"] or None,
            is_user_action=_bool(record["is_user_action"], default=False),
        )

    def _read_events(self) -> list[AuditEvent]:
        title = self._client.settings.audit_sheet_name
        events = []
        for _, record in self._client.read_records(title, AUDIT_COLUMNS):
            try:
                events.append(self._row_to_event(record))
            except Exception:
                logger.warning("audit_row_skipped", event_id=record.get("event_id"))
        return events

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_worksheet(
                self._client.settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
            )
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Audit logging must not break the main flow
            logger.warning("audit_write_failed", error=str(e), event_id=str(event.event_id))
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        try:
            events = [e for e in self._read_events() if e.correlation_id == correlation_id]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        try:
            events = self._read_events()
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
