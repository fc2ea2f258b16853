"""Error types raised by the ledger and translated to JSON by the web layer."""

from __future__ import annotations

from typing import Dict


class LedgerError(Exception):
    """Base class for every error the ledger surfaces to callers."""

    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self) -> Dict[str, str]:
        return {"message": self.message}


class ValidationError(LedgerError):
    status_code = 400
    default_message = "Invalid request"


class InvalidAmount(ValidationError):
    default_message = "Amount must be a non-negative number"


class DuplicateCategory(LedgerError):
    status_code = 400
    default_message = "Category already exists"


class Protected(LedgerError):
    status_code = 400
    default_message = "This category cannot be deleted"


class UnknownCategory(LedgerError):
    status_code = 400
    default_message = "Unknown category"


class NotFound(LedgerError):
    status_code = 404
    default_message = "Not found"


class NotInitialized(LedgerError):
    """Global state was expected to exist but has never been created."""

    status_code = 500
    default_message = "Global state has not been initialized"


class StoreFault(LedgerError):
    """The underlying database failed; callers may retry."""

    status_code = 500
    default_message = "The data store is unavailable"
