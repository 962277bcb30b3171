"""Services package."""

from prevoyance.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    EmbeddedScaleRepository,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsPensionStorage,
    GoogleSheetsScaleRepository,
    InMemoryAuditStorage,
    InMemoryPensionStorage,
    InMemoryScaleRepository,
    NotFoundError,
    PensionDataProvider,
    ScaleRepository,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "ConnectionError",
    "EmbeddedScaleRepository",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsPensionStorage",
    "GoogleSheetsScaleRepository",
    "InMemoryAuditStorage",
    "InMemoryPensionStorage",
    "InMemoryScaleRepository",
    "NotFoundError",
    "PensionDataProvider",
    "ScaleRepository",
    "StorageError",
]
