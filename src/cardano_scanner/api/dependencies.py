"""FastAPI dependency injection helpers.

Provides ``Depends()``-compatible callables for engine access and
authentication in route handlers.

Usage in a route::

    @router.post("/webhooks")
    async def create_webhook(
        ctx: Annotated[ApiKeyContext, Depends(require_permission("write"))],
        engine: Annotated[ScannerEngine, Depends(get_engine)],
    ) -> ...:
        ...
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, Header, Request

from cardano_scanner.api.middleware.auth import (
    AUTH_HEADER,
    ApiKeyContext,
    authenticate_request,
    check_permission,
)
from cardano_scanner.engine.client import ScannerEngine  # noqa: TC001
from cardano_scanner.errors.scanner_errors import ScannerError

ErrEngineUnavailable = ScannerError(
    "engine is not initialized", status_code=503, code="engine-unavailable"
)

# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def get_engine(request: Request) -> ScannerEngine:
    """Retrieve the engine stored on ``app.state`` during lifespan startup."""
    engine: ScannerEngine | None = getattr(request.app.state, "engine", None)
    if engine is None or not engine.is_initialized:
        raise ErrEngineUnavailable
    return engine


# ---------------------------------------------------------------------------
# Auth context
# ---------------------------------------------------------------------------


async def require_api_key(
    engine: Annotated[ScannerEngine, Depends(get_engine)],
    authorization: Annotated[str, Header(alias=AUTH_HEADER)] = "",
) -> ApiKeyContext:
    """Dependency that requires any valid API key."""
    return await authenticate_request(engine, authorization)


def require_permission(permission: str) -> Callable[..., Awaitable[ApiKeyContext]]:
    """Build a dependency requiring *permission* (``admin`` always passes)."""

    async def _dependency(
        ctx: Annotated[ApiKeyContext, Depends(require_api_key)],
    ) -> ApiKeyContext:
        check_permission(ctx, permission)
        return ctx

    return _dependency
