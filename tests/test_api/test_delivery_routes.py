"""Tests for GET /api/v1/deliveries."""

from __future__ import annotations

import pytest

from cardano_scanner.engine.models.event import TransactionEvent


async def _seed(engine, count: int) -> tuple[list[str], str]:
    """Create *count* webhooks with one pending delivery each for a single event."""
    address = await engine.monitoring_service.register_address("addr_test1qdeliveries")
    event = await engine.events.create(
        TransactionEvent(
            tx_hash="d" * 64,
            event_type="ada_received",
            event_data={"tx": {"hash": "d" * 64}},
            address_id=address.id,
        )
    )
    webhook_ids = []
    for i in range(count):
        webhook = await engine.webhook_service.create_webhook(
            name=f"w{i}", url=f"https://hooks.example.com/{i}", event_types=["ada_received"]
        )
        await engine.deliveries.create_pending(webhook.id, event.id)
        webhook_ids.append(webhook.id)
    return webhook_ids, event.id


@pytest.fixture
def seeded(api) -> tuple[list[str], str]:
    return api.client.portal.call(_seed, api.engine, 3)


class TestListDeliveries:
    def test_page_and_total(self, api, read_headers, seeded) -> None:
        resp = api.client.get("/api/v1/deliveries", params={"limit": 2}, headers=read_headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["total_count"] == 3
        assert len(body["data"]) == 2
        first = body["data"][0]
        assert first["status"] == "pending"
        assert first["attempt_count"] == 0
        assert first["status_code"] is None

    def test_offset(self, api, read_headers, seeded) -> None:
        resp = api.client.get(
            "/api/v1/deliveries", params={"limit": 2, "offset": 2}, headers=read_headers
        )
        body = resp.json()
        assert body["total_count"] == 3
        assert len(body["data"]) == 1

    def test_filter_by_webhook(self, api, read_headers, seeded) -> None:
        webhook_ids, event_id = seeded
        resp = api.client.get(
            "/api/v1/deliveries",
            params={"webhook_id": webhook_ids[0], "event_id": event_id},
            headers=read_headers,
        )
        body = resp.json()
        assert body["total_count"] == 1
        assert body["data"][0]["webhook_id"] == webhook_ids[0]

    def test_filter_by_status(self, api, read_headers, seeded) -> None:
        resp = api.client.get(
            "/api/v1/deliveries", params={"status": "succeeded"}, headers=read_headers
        )
        assert resp.json() == {"data": [], "total_count": 0}

    def test_sort_ascending(self, api, read_headers, seeded) -> None:
        asc = api.client.get(
            "/api/v1/deliveries", params={"sort_order": "asc"}, headers=read_headers
        ).json()["data"]
        desc = api.client.get("/api/v1/deliveries", headers=read_headers).json()["data"]
        assert [d["id"] for d in asc] == [d["id"] for d in reversed(desc)]

    @pytest.mark.parametrize(
        "params",
        [{"limit": 101}, {"limit": 0}, {"offset": -1}, {"status": "lost"}, {"sort_order": "up"}],
    )
    def test_invalid_query(self, api, read_headers, params: dict) -> None:
        resp = api.client.get("/api/v1/deliveries", params=params, headers=read_headers)
        assert resp.status_code == 422

    def test_invalid_sort_field(self, api, read_headers) -> None:
        resp = api.client.get(
            "/api/v1/deliveries", params={"sort_by": "response_body"}, headers=read_headers
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid-sort-field"

    def test_requires_key(self, api) -> None:
        assert api.client.get("/api/v1/deliveries").status_code == 401
