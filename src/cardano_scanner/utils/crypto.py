"""Cryptographic helpers — hashing, HMAC signatures, API key generation."""

from __future__ import annotations

import hashlib
import hmac
import secrets


def sha256_hex(data: bytes | str) -> str:
    """SHA-256 hex digest of *data* (strings are UTF-8 encoded)."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def hmac_sha256_hex(secret: str, body: bytes) -> str:
    """HMAC-SHA256 of *body* keyed by *secret*, as lowercase hex."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(secret: str, body: bytes, signature: str) -> bool:
    """Constant-time check of a webhook signature header value."""
    return hmac.compare_digest(hmac_sha256_hex(secret, body), signature)


def generate_api_key() -> str:
    """Generate a new random API key (URL-safe, 256 bits)."""
    return secrets.token_urlsafe(32)
