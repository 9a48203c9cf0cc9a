"""Custom exceptions for sh-backups."""


class ShBackupsError(Exception):
    """Base exception for all sh-backups errors."""


class ConfigError(ShBackupsError):
    """Raised when configuration is invalid or missing."""


class GatewayError(ShBackupsError):
    """Raised when a backend API call fails."""

    def __init__(self, message: str, status_code: int | None = None, detail: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class StorageError(ShBackupsError):
    """Raised when an object storage lookup fails."""


class QuotaError(ShBackupsError):
    """Raised when the quota policy is invoked without a known quota."""
