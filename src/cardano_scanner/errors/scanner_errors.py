"""ScannerError — base exception class for all cardano-scanner errors."""

from __future__ import annotations


class ScannerError(Exception):
    """Base error for all scanner operations.

    Attributes:
        message: Human-readable error description.
        status_code: Suggested HTTP status code.
        code: Machine-readable error code string.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 500,
        code: str = "scanner-error",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class EventStoreError(ScannerError):
    """Some events of a transaction could not be stored.

    Attributes:
        created: Events that were stored before or despite the failure.
    """

    def __init__(self, message: str, *, created: list | None = None) -> None:
        super().__init__(message, status_code=500, code="event-store-error")
        self.created = created or []
