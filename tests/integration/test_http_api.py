"""Integration tests for the directory and segment API endpoints."""

from datetime import timedelta

import pytest

from crm_engine.exceptions import BackendError
from crm_engine.schemas.segment import DEFAULT_RULES, Segment
from tests.conftest import NOW, make_customer, make_rules_payload


def _directory(n: int):
    return [
        make_customer(
            name=f"Customer {i:02d}",
            email=f"c{i}@example.com",
            total_spend=i * 100,
            visits=i % 4,
            tags=("vip",) if i % 3 == 0 else ("new",),
            created_at=NOW - timedelta(days=i),
        )
        for i in range(n)
    ]


@pytest.mark.asyncio
class TestAuthRequired:
    async def test_customers_requires_token(self, client):
        resp = await client.get("/api/v1/customers")
        assert resp.status_code == 401

    async def test_segments_requires_token(self, client):
        resp = await client.post("/api/v1/segments/preview", json={"rules": make_rules_payload()})
        assert resp.status_code == 401

    async def test_invalid_token(self, client):
        resp = await client.get(
            "/api/v1/customers", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert resp.status_code == 401


@pytest.mark.asyncio
class TestCustomersAPI:
    async def test_default_page(self, auth_client, backend):
        backend.list_customers.return_value = _directory(25)
        resp = await auth_client.get("/api/v1/customers")
        assert resp.status_code == 200
        body = resp.json()
        assert body["totalMatches"] == 25
        assert body["totalPages"] == 3
        assert body["currentPage"] == 1
        assert body["pageSize"] == 10
        assert len(body["items"]) == 10
        # latest first
        assert body["items"][0]["name"] == "Customer 00"

    async def test_forwards_bearer_token(self, auth_client, backend):
        await auth_client.get("/api/v1/customers")
        token = auth_client.headers["Authorization"].removeprefix("Bearer ")
        backend.list_customers.assert_awaited_once_with(token)

    async def test_search_tag_sort_page(self, auth_client, backend):
        backend.list_customers.return_value = _directory(25)
        resp = await auth_client.get(
            "/api/v1/customers",
            params={"search": "customer", "tag": "vip", "sort": "highestSpend", "page": 2, "size": 4},
        )
        assert resp.status_code == 200
        body = resp.json()
        # vip: 0, 3, 6, ..., 24 -> 9 customers
        assert body["totalMatches"] == 9
        assert body["totalPages"] == 3
        assert [item["name"] for item in body["items"]] == [
            "Customer 12",
            "Customer 09",
            "Customer 06",
            "Customer 03",
        ]

    async def test_page_beyond_end_is_clamped(self, auth_client, backend):
        backend.list_customers.return_value = _directory(5)
        resp = await auth_client.get("/api/v1/customers", params={"page": 7})
        assert resp.status_code == 200
        assert resp.json()["currentPage"] == 1

    async def test_empty_directory(self, auth_client, backend):
        backend.list_customers.return_value = []
        body = (await auth_client.get("/api/v1/customers")).json()
        assert body == {
            "items": [],
            "totalMatches": 0,
            "totalPages": 1,
            "currentPage": 1,
            "pageSize": 10,
        }

    async def test_unknown_sort_mode(self, auth_client, backend):
        resp = await auth_client.get("/api/v1/customers", params={"sort": "alphabetical"})
        assert resp.status_code == 422
        backend.list_customers.assert_not_awaited()

    async def test_invalid_page(self, auth_client):
        resp = await auth_client.get("/api/v1/customers", params={"page": 0})
        assert resp.status_code == 422

    async def test_items_use_backend_field_names(self, auth_client, backend):
        backend.list_customers.return_value = [make_customer(id="abc")]
        item = (await auth_client.get("/api/v1/customers")).json()["items"][0]
        assert item["_id"] == "abc"
        assert "totalSpend" in item

    async def test_tags(self, auth_client, backend):
        backend.list_customers.return_value = _directory(4)
        resp = await auth_client.get("/api/v1/customers/tags")
        assert resp.status_code == 200
        assert resp.json() == ["vip", "new"]

    async def test_backend_unavailable(self, auth_client, backend):
        backend.list_customers.side_effect = BackendError("down")
        resp = await auth_client.get("/api/v1/customers")
        assert resp.status_code == 502

    async def test_backend_failure_logged_with_request_id(self, auth_client, backend, caplog):
        backend.list_customers.side_effect = BackendError("down")
        caplog.set_level("WARNING", logger="crm_engine.main")
        resp = await auth_client.get("/api/v1/customers", headers={"X-Request-ID": "req-99"})
        assert resp.status_code == 502
        assert any("req-99" in r.getMessage() for r in caplog.records if r.name == "crm_engine.main")

    async def test_backend_rejects_token(self, auth_client, backend):
        backend.list_customers.side_effect = BackendError("nope", status_code=401)
        resp = await auth_client.get("/api/v1/customers")
        assert resp.status_code == 401


@pytest.mark.asyncio
class TestSegmentsAPI:
    async def test_preview(self, auth_client, backend):
        backend.list_customers.return_value = [
            make_customer(name="Lapsed VIP", total_spend=6000, visits=1, last_active_at=NOW - timedelta(days=100)),
            make_customer(name="Regular", total_spend=4000, visits=1, last_active_at=NOW - timedelta(days=100)),
        ]
        resp = await auth_client.post("/api/v1/segments/preview", json={"rules": make_rules_payload()})
        assert resp.status_code == 200
        body = resp.json()
        assert body["count"] == 1
        assert [c["name"] for c in body["sample"]] == ["Lapsed VIP"]
        assert body["sampleSize"] == 5

    async def test_preview_sample_size(self, auth_client, backend):
        backend.list_customers.return_value = [
            make_customer(total_spend=9000, visits=0, last_active_at=None, created_at=None)
            for _ in range(4)
        ]
        resp = await auth_client.post(
            "/api/v1/segments/preview", json={"rules": make_rules_payload(), "sampleSize": 2}
        )
        body = resp.json()
        assert body["count"] == 4
        assert len(body["sample"]) == 2

    async def test_preview_unknown_operator(self, auth_client, backend):
        rules = make_rules_payload(visits={"operator": "ne", "value": 3})
        resp = await auth_client.post("/api/v1/segments/preview", json={"rules": rules})
        assert resp.status_code == 422
        backend.list_customers.assert_not_awaited()

    async def test_list_segments(self, auth_client, backend):
        backend.list_segments.return_value = [
            Segment(id="s1", name="Lapsed", rules=DEFAULT_RULES),
        ]
        resp = await auth_client.get("/api/v1/segments")
        assert resp.status_code == 200
        assert resp.json()[0]["_id"] == "s1"
        assert resp.json()[0]["rules"]["inactiveDays"] == 90

    async def test_create_segment(self, auth_client, backend):
        backend.create_segment.return_value = Segment(
            id="s2", name="VIP", rules=DEFAULT_RULES, created_at=NOW
        )
        resp = await auth_client.post(
            "/api/v1/segments", json={"name": "  VIP ", "rules": make_rules_payload()}
        )
        assert resp.status_code == 201
        assert resp.json()["_id"] == "s2"
        sent = backend.create_segment.call_args.args[1]
        assert sent.name == "VIP"
        assert sent.rules == DEFAULT_RULES

    async def test_create_segment_blank_name(self, auth_client, backend):
        resp = await auth_client.post(
            "/api/v1/segments", json={"name": "   ", "rules": make_rules_payload()}
        )
        assert resp.status_code == 422
        backend.create_segment.assert_not_awaited()

    async def test_create_segment_invalid_rules(self, auth_client, backend):
        resp = await auth_client.post(
            "/api/v1/segments",
            json={"name": "Lapsed", "rules": make_rules_payload(inactiveDays=-3)},
        )
        assert resp.status_code == 422
        backend.create_segment.assert_not_awaited()

    async def test_delete_segment(self, auth_client, backend):
        resp = await auth_client.delete("/api/v1/segments/s1")
        assert resp.status_code == 204
        assert backend.delete_segment.call_args.args[1] == "s1"

    async def test_delete_missing_segment(self, auth_client, backend):
        backend.delete_segment.side_effect = BackendError("missing", status_code=404)
        resp = await auth_client.delete("/api/v1/segments/nope")
        assert resp.status_code == 404


@pytest.mark.asyncio
class TestAuditTrail:
    async def test_delete_is_audited(self, auth_client, backend, caplog):
        caplog.set_level("INFO", logger="audit")
        await auth_client.delete("/api/v1/segments/s7")
        records = [r for r in caplog.records if r.name == "audit"]
        assert len(records) == 1
        assert records[0].action == "delete_segment"
        assert records[0].segment_id == "s7"
        assert records[0].user == "marketer"

    async def test_preview_is_not_audited(self, auth_client, caplog):
        caplog.set_level("INFO", logger="audit")
        await auth_client.post("/api/v1/segments/preview", json={"rules": make_rules_payload()})
        assert not [r for r in caplog.records if r.name == "audit"]
