"""
Calculation Errors

Every failure the engine can raise carries a stable `code` so callers
(UI, API) can translate it into a user-facing message without parsing text.
There is no retryable error here: network and storage failures belong to
the storage layer and are wrapped before they reach the calculators.
"""

from typing import Any, Optional


class PensionError(Exception):
    """Base exception for the calculation engine."""

    code = "pension_error"

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        self.field = field
        self.value = value
        super().__init__(message)


class ValidationError(PensionError):
    """Caller supplied an out-of-range or unrecognized input."""

    code = "validation_error"


class NotFoundError(PensionError):
    """No scale bracket or no profile/account matches the request."""

    code = "not_found"
