"""API key service — mint and authenticate admin API keys."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cardano_scanner.engine.models.api_key import (
    PERMISSION_ADMIN,
    PERMISSION_READ,
    PERMISSION_WRITE,
    ApiKey,
)
from cardano_scanner.engine.models.base import as_utc, utc_now
from cardano_scanner.errors.definitions import ErrApiKeyExpired, ErrInvalidApiKey
from cardano_scanner.utils.crypto import generate_api_key, sha256_hex

if TYPE_CHECKING:
    from datetime import datetime

    from cardano_scanner.engine.client import ScannerEngine

logger = logging.getLogger(__name__)

VALID_PERMISSIONS = (PERMISSION_READ, PERMISSION_WRITE, PERMISSION_ADMIN)


class ApiKeyService:
    """Business logic for API keys.

    - The plain key is returned once at creation; only its sha256 is stored
    - Authentication checks activity and expiry and stamps ``last_used_at``
    """

    def __init__(self, engine: ScannerEngine) -> None:
        self._engine = engine

    async def create_api_key(
        self,
        name: str,
        permissions: list[str] | None = None,
        *,
        expires_at: datetime | None = None,
    ) -> tuple[ApiKey, str]:
        """Mint a new key.

        Args:
            name: Label for the key.
            permissions: Any of ``read``, ``write``, ``admin``. Defaults to ``read``.
            expires_at: Optional expiry.

        Returns:
            Tuple of (persisted ApiKey, plain key).

        Raises:
            ValueError: On an unknown permission.
        """
        perms = list(dict.fromkeys(permissions or [PERMISSION_READ]))
        unknown = [p for p in perms if p not in VALID_PERMISSIONS]
        if unknown:
            msg = f"unknown permissions: {', '.join(unknown)}"
            raise ValueError(msg)

        plain = generate_api_key()
        api_key = ApiKey(
            name=name,
            key_hash=sha256_hex(plain),
            permissions=perms,
            expires_at=expires_at,
            is_active=True,
        )
        api_key = await self._engine.api_keys.create(api_key)
        logger.info("Created API key %s (%s) with %s", api_key.id, name, ",".join(perms))
        return api_key, plain

    async def authenticate(self, plain_key: str) -> ApiKey:
        """Resolve a presented key to its record.

        Raises:
            ScannerError: ``invalid-api-key`` or ``api-key-expired`` (401).
        """
        api_key = await self._engine.api_keys.get_active_by_hash(sha256_hex(plain_key))
        if api_key is None:
            raise ErrInvalidApiKey
        expires_at = as_utc(api_key.expires_at)
        if expires_at is not None and expires_at <= utc_now():
            raise ErrApiKeyExpired
        await self._engine.api_keys.touch_last_used(api_key.id)
        return api_key
