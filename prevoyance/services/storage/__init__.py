"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage:
in-memory, the embedded AVS scale, and Google Sheets.
"""

from prevoyance.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    NotFoundError,
    PensionDataProvider,
    ScaleRepository,
    StorageError,
)
from prevoyance.services.storage.embedded_scale import (
    ECHELLE_44_2025,
    EmbeddedScaleRepository,
    build_scale_row,
)
from prevoyance.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryPensionStorage,
    InMemoryScaleRepository,
)
from prevoyance.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsPensionStorage,
    GoogleSheetsScaleRepository,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "PensionDataProvider",
    "ScaleRepository",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Embedded scale
    "ECHELLE_44_2025",
    "EmbeddedScaleRepository",
    "build_scale_row",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryPensionStorage",
    "InMemoryScaleRepository",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsPensionStorage",
    "GoogleSheetsScaleRepository",
]
