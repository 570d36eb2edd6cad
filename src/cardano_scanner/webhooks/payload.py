"""Outbound webhook request construction.

The body is serialized exactly once; the signature covers those bytes
and the same bytes are sent on the wire.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from cardano_scanner.utils.crypto import hmac_sha256_hex

DEFAULT_USER_AGENT = "Cardano-Scanner-Webhook/1.0"
SIGNATURE_HEADER = "X-Webhook-Signature"


@dataclass(frozen=True)
class WebhookRequest:
    """A fully prepared POST: serialized body plus headers."""

    body: bytes
    headers: dict[str, str]


def iso_now() -> str:
    """Current UTC time as ISO 8601 with millisecond precision and ``Z``."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def serialize(payload: dict[str, Any]) -> bytes:
    """Compact JSON encoding used for every outbound body."""
    return json.dumps(payload, separators=(",", ":"), default=str).encode("utf-8")


def event_payload(event_id: str, event_type: str, data: Any, *, timestamp: str | None = None) -> dict[str, Any]:
    return {
        "id": event_id,
        "type": event_type,
        "timestamp": timestamp or iso_now(),
        "data": data,
    }


def build_request(
    payload: dict[str, Any],
    *,
    webhook_id: str,
    event_type: str,
    delivery_id: str,
    event_id: str | None = None,
    secret: str | None = None,
    custom_headers: dict[str, str] | None = None,
    user_agent: str = DEFAULT_USER_AGENT,
    extra_headers: dict[str, str] | None = None,
) -> WebhookRequest:
    """Serialize *payload* and assemble the delivery headers.

    Custom webhook headers are applied last and override the defaults.
    """
    body = serialize(payload)
    headers = {
        "Content-Type": "application/json",
        "User-Agent": user_agent,
        "X-Webhook-ID": webhook_id,
        "X-Event-Type": event_type,
        "X-Delivery-ID": delivery_id,
        "X-Delivery-Timestamp": iso_now(),
    }
    if event_id is not None:
        headers["X-Event-ID"] = event_id
    if extra_headers:
        headers.update(extra_headers)
    if secret:
        headers[SIGNATURE_HEADER] = hmac_sha256_hex(secret, body)
    if custom_headers:
        headers.update({str(k): str(v) for k, v in custom_headers.items()})
    return WebhookRequest(body=body, headers=headers)
