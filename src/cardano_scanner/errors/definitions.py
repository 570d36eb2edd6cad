"""Error definitions shared by the engine and the admin API."""

from __future__ import annotations

from cardano_scanner.errors.scanner_errors import ScannerError


class ConfigError(ScannerError):
    """Missing or invalid configuration detected at startup."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=500, code="config-error")


class DeliveryError(ScannerError):
    """A webhook delivery could not be processed (not an HTTP failure)."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=500, code="delivery-error")


# -- Authentication --------------------------------------------------------

ErrUnauthorized = ScannerError("API key is required", status_code=401, code="unauthorized")
ErrInvalidApiKey = ScannerError("invalid API key", status_code=401, code="invalid-api-key")
ErrApiKeyExpired = ScannerError("API key has expired", status_code=401, code="api-key-expired")
ErrPermissionDenied = ScannerError(
    "insufficient permissions", status_code=403, code="permission-denied"
)

# -- Monitoring ------------------------------------------------------------

ErrAddressNotFound = ScannerError(
    "monitored address not found", status_code=404, code="address-not-found"
)
ErrAddressDuplicate = ScannerError(
    "address is already being monitored", status_code=409, code="address-duplicate"
)
ErrInvalidAddress = ScannerError(
    "address is not known on the blockchain", status_code=400, code="invalid-address"
)
ErrContractNotFound = ScannerError(
    "monitored contract not found", status_code=404, code="contract-not-found"
)
ErrContractDuplicate = ScannerError(
    "contract is already being monitored", status_code=409, code="contract-duplicate"
)

# -- Webhooks --------------------------------------------------------------

ErrWebhookNotFound = ScannerError("webhook not found", status_code=404, code="webhook-not-found")
ErrInvalidEventTypes = ScannerError(
    "event_types must be a non-empty list of known event types",
    status_code=400,
    code="invalid-event-types",
)
ErrInvalidWebhookUrl = ScannerError(
    "webhook url must be an absolute http(s) URL", status_code=400, code="invalid-webhook-url"
)

ErrNoFieldsToUpdate = ScannerError("no fields to update", status_code=400, code="no-fields-to-update")
ErrEventTypeNotSubscribed = ScannerError(
    "webhook is not subscribed to this event type",
    status_code=400,
    code="event-type-not-subscribed",
)

# -- Deliveries ------------------------------------------------------------

ErrInvalidSortField = ScannerError(
    "deliveries cannot be sorted by this field", status_code=400, code="invalid-sort-field"
)

# -- Upstream --------------------------------------------------------------

ErrUpstreamUnavailable = ScannerError(
    "blockchain provider is not configured", status_code=503, code="upstream-unavailable"
)
