"""Blockfrost upstream errors."""

from __future__ import annotations

from cardano_scanner.errors.scanner_errors import ScannerError


class UpstreamError(ScannerError):
    """Transient failure talking to the upstream provider (timeout, 5xx, 429)."""

    def __init__(self, message: str, *, status_code: int = 502) -> None:
        super().__init__(message, status_code=status_code, code="upstream-error")


class UpstreamNotFoundError(UpstreamError):
    """The upstream provider has no record of the requested resource."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=404)
        self.code = "upstream-not-found"
