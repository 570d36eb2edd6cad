"""V1 REST API routes.

Combines all sub-routers under the ``/api/v1`` prefix.
"""

from fastapi import APIRouter

from cardano_scanner.api.v1.blockchain import router as blockchain_router
from cardano_scanner.api.v1.deliveries import router as deliveries_router
from cardano_scanner.api.v1.monitoring import router as monitoring_router
from cardano_scanner.api.v1.webhooks import router as webhooks_router

v1_router = APIRouter(prefix="/api/v1")

v1_router.include_router(monitoring_router)
v1_router.include_router(webhooks_router)
v1_router.include_router(deliveries_router)
v1_router.include_router(blockchain_router)

__all__ = ["v1_router"]
