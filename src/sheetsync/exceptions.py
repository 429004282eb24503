"""
Exception classes for sheetsync.
"""

from typing import Any, Dict, Optional


class SheetsyncError(Exception):
    """Base exception for all sheetsync errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        result = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            result += f" [{details_str}]"
        if self.cause:
            result += f" (caused by: {self.cause})"
        return result


class ConfigurationError(SheetsyncError):
    """Raised when there's an error in configuration."""

    pass


class ValidationError(SheetsyncError):
    """Raised when an argument has the wrong shape or type."""

    pass


class SheetError(SheetsyncError):
    """Raised when there's an error talking to a spreadsheet backend."""

    pass


class SheetAccessError(SheetError):
    """Raised when a spreadsheet API call fails."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        sheet_id: Optional[str] = None,
    ) -> None:
        details = {}
        if status_code:
            details["status_code"] = status_code
        if response_body:
            details["response_body"] = response_body
        if sheet_id:
            details["sheet_id"] = sheet_id

        super().__init__(message, details)
        self.status_code = status_code
        self.response_body = response_body
        self.sheet_id = sheet_id


class SheetAuthError(SheetAccessError):
    """Raised when the spreadsheet API rejects our credentials."""

    pass


class SheetNotFoundError(SheetAccessError):
    """Raised when the spreadsheet or tab does not exist."""

    pass


class RateLimitError(SheetAccessError):
    """Raised when hitting API rate limits."""

    def __init__(
        self,
        retry_after: Optional[float] = None,
        sheet_id: Optional[str] = None,
    ) -> None:
        message = "Sheets API rate limit exceeded"
        if retry_after:
            message += f", retry after {retry_after} seconds"

        super().__init__(message, status_code=429, sheet_id=sheet_id)
        self.retry_after = retry_after


class APITimeoutError(SheetAccessError):
    """Raised when API calls timeout."""

    def __init__(
        self,
        message: str = "Sheets API request timed out",
        timeout_duration: Optional[float] = None,
        sheet_id: Optional[str] = None,
    ) -> None:
        if timeout_duration:
            message += f" (timeout: {timeout_duration}s)"

        super().__init__(message, sheet_id=sheet_id)
        self.timeout_duration = timeout_duration


class MetadataStoreError(SheetsyncError):
    """Raised when there's an error with persisted column metadata."""

    pass


class StoreConnectionError(MetadataStoreError):
    """Raised when there's an error establishing or maintaining store connections."""

    pass


class StoreConfigurationError(MetadataStoreError):
    """Raised when there's an error in metadata store configuration."""

    pass


class SyncError(SheetsyncError):
    """Raised when a column sync cannot be completed."""

    pass
