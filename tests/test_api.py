"""HTTP surface: routing, auth and error mapping."""

from datetime import timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from loanledger.services.statement import main
from loanledger.services.statement.service import StatementService
from loanledger.services.statement.source import InMemoryStatementSource


HEADERS = {"x-api-key": "test-api-key"}


@pytest.fixture
def client(busy_source):
    main.app.dependency_overrides[main.get_statement_service] = lambda: StatementService(
        busy_source, tz=timezone.utc
    )
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


def test_statement_page(client):
    resp = client.get("/customers/1/statement", params={"page_size": 3}, headers=HEADERS)

    assert resp.status_code == 200
    body = resp.json()
    assert body["customer"]["id"] == 1
    assert body["customer_name"] == "Amina Otieno"
    assert body["is_partial"] is False
    assert Decimal(body["opening_balance"]["running_balance"]) == Decimal("550")
    assert Decimal(body["summary"]["outstanding_balance"]) == Decimal("11600")
    page = body["view"]["page"]
    assert page["total"] == 10
    assert page["page_numbers"] == [1, 2, 3, 4]
    assert page["items"][0]["description"] == "Balance B/F"
    assert page["items"][0]["is_opening_balance"] is True


def test_statement_search(client):
    resp = client.get("/customers/1/statement", params={"search": "C2B001"}, headers=HEADERS)

    view = resp.json()["view"]
    assert view["search_matched"] is True
    assert [item["id"] for item in view["page"]["items"]] == ["c2b-500"]


def test_full_statement_is_chronological(client):
    resp = client.get("/customers/1/statement/full", headers=HEADERS)

    assert resp.status_code == 200
    body = resp.json()
    assert body["events"][0]["id"] == "reg-fee-1"
    assert body["display_events"][0]["id"] == "balance-bf"
    assert len(body["display_events"]) == len(body["events"]) + 1


def test_unknown_customer_is_404(client):
    assert client.get("/customers/99/statement", headers=HEADERS).status_code == 404


def test_missing_api_key_is_401(client):
    assert client.get("/customers/1/statement").status_code == 401


def test_invalid_parameters_are_422(client):
    assert client.get("/customers/1/statement", params={"page": 0}, headers=HEADERS).status_code == 422
    assert client.get("/customers/1/statement", params={"filter": "decade"}, headers=HEADERS).status_code == 422
    resp = client.get(
        "/customers/1/statement",
        params={"filter": "custom", "start": "2025-05-10", "end": "2025-05-01"},
        headers=HEADERS,
    )
    assert resp.status_code == 422


def test_customer_lookup_outage_is_503():
    class Down(InMemoryStatementSource):
        def get_customer(self, customer_id):
            raise ConnectionError("primary unreachable")

    main.app.dependency_overrides[main.get_statement_service] = lambda: StatementService(Down(), tz=timezone.utc)
    try:
        resp = TestClient(main.app).get("/customers/1/statement", headers=HEADERS)
    finally:
        main.app.dependency_overrides.clear()
    assert resp.status_code == 503


def test_health_and_metrics(client):
    assert client.get("/health").json() == {"ok": True}
    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert "statement_requests_total" in metrics.text
