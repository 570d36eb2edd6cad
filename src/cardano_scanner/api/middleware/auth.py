"""Authentication — Bearer API keys.

Reads ``Authorization: Bearer <key>``, resolves the key through the
engine's API key service and exposes the caller as an ``ApiKeyContext``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from cardano_scanner.errors.definitions import ErrPermissionDenied, ErrUnauthorized

if TYPE_CHECKING:
    from cardano_scanner.engine.client import ScannerEngine

AUTH_HEADER = "Authorization"
BEARER_SCHEME = "bearer"


@dataclass(frozen=True)
class ApiKeyContext:
    """Authenticated caller attached to the request."""

    key_id: str
    name: str
    permissions: tuple[str, ...] = field(default_factory=tuple)

    def has_permission(self, permission: str) -> bool:
        """``admin`` grants every permission."""
        return permission in self.permissions or "admin" in self.permissions


def parse_bearer(authorization: str) -> str:
    """Extract the key from an ``Authorization`` header value.

    Raises:
        ScannerError: ``unauthorized`` (401) if missing or not a Bearer token.
    """
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != BEARER_SCHEME or not token:
        raise ErrUnauthorized
    return token


async def authenticate_request(engine: ScannerEngine, authorization: str) -> ApiKeyContext:
    """Authenticate a request from its ``Authorization`` header.

    Raises:
        ScannerError: 401 if the header is missing, the key is unknown,
            inactive or expired.
    """
    api_key = await engine.api_key_service.authenticate(parse_bearer(authorization))
    return ApiKeyContext(
        key_id=api_key.id,
        name=api_key.name,
        permissions=tuple(api_key.permissions or ()),
    )


def check_permission(ctx: ApiKeyContext, permission: str) -> None:
    """Raise if the caller lacks *permission*.

    Raises:
        ScannerError: ``permission-denied`` (403).
    """
    if not ctx.has_permission(permission):
        raise ErrPermissionDenied
