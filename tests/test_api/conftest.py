"""Fixtures for the HTTP API tests.

The app runs its real lifespan against an in-memory database; webhook
traffic goes to an ``httpx.MockTransport``.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

import httpx
import pytest
from fastapi.testclient import TestClient

from cardano_scanner.api.app import create_app
from cardano_scanner.engine.client import ScannerEngine
from cardano_scanner.metrics.collector import ScannerMetrics


@dataclass
class Subscriber:
    """Records webhook requests and answers with a fixed status."""

    status_code: int = 200
    body: str = "ok"
    requests: list[httpx.Request] = field(default_factory=list)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, text=self.body)


@dataclass
class ApiHarness:
    client: TestClient
    engine: ScannerEngine
    subscriber: Subscriber

    def key(self, *permissions: str) -> dict[str, str]:
        """Mint an API key and return the matching auth header."""
        _, plain = self.client.portal.call(
            self.engine.api_key_service.create_api_key, "test", list(permissions) or None
        )
        return {"Authorization": f"Bearer {plain}"}


@pytest.fixture
def subscriber() -> Subscriber:
    return Subscriber()


@pytest.fixture
def api(app_config, subscriber) -> Iterator[ApiHarness]:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(subscriber))
    engine = ScannerEngine(app_config, http_client=http_client, metrics=ScannerMetrics())
    app = create_app(engine=engine)
    with TestClient(app) as client:
        yield ApiHarness(client=client, engine=engine, subscriber=subscriber)


@pytest.fixture
def read_headers(api) -> dict[str, str]:
    return api.key("read")


@pytest.fixture
def write_headers(api) -> dict[str, str]:
    return api.key("write")
