"""
HTTP surface: document collections, stock, stock moves and products.

Requests run against real commits through ``pg_session_factory``; the
fixture clears every table afterwards.
"""

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from stock_api.app import create_app
from stock_kernel.domain.clock import DeterministicClock
from stock_modules.documents.service import DocumentService
from tests.conftest import build_site


@pytest.fixture
def http_site(pg_session_factory, test_actor_id):
    seed = pg_session_factory()
    site = build_site(seed, test_actor_id)
    seed.close()
    return site


@pytest.fixture
def client(pg_session_factory, stock_config):
    app = create_app(stock_config, session_factory=pg_session_factory, clock=DeterministicClock())
    with TestClient(app) as test_client:
        yield test_client


def _receipt(client, site, quantity, location=None, **header):
    payload = {
        "warehouse_id": str(site.warehouse.id),
        "items": [
            {
                "product_id": str(site.widget.id),
                "quantity": quantity,
                "location_id": str((location or site.loc_a).id),
            }
        ],
        **header,
    }
    response = client.post("/receipts", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def _validate(client, collection, document_id):
    return client.post(f"/{collection}/{document_id}/validate")


def _complete_receipt(client, site, quantity, location=None):
    doc = _receipt(client, site, quantity, location)
    _validate(client, "receipts", doc["id"])
    response = _validate(client, "receipts", doc["id"])
    assert response.json()["status"] == "DONE"
    return response.json()


def _stock(client, site, location=None) -> int:
    rows = client.get("/stock", params={"product_id": str(site.widget.id)}).json()
    location = location or site.loc_a
    matching = [r["quantity"] for r in rows if r["location_id"] == str(location.id)]
    return matching[0] if matching else 0


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "app": "stockmaster"}

    def test_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-Id": "req-42"})
        assert response.headers["X-Request-Id"] == "req-42"

    def test_request_id_generated(self, client):
        assert client.get("/health").headers["X-Request-Id"]


class TestReceipts:
    def test_receipt_lifecycle(self, client, http_site):
        doc = _receipt(client, http_site, 20, supplier="Acme")
        assert doc["status"] == "DRAFT"
        assert doc["reference"] == "WH01/IN/2024/0001"
        assert doc["attributes"]["supplier"] == "Acme"
        assert doc["items"][0]["destination_location_id"] == str(http_site.loc_a.id)

        ready = _validate(client, "receipts", doc["id"])
        assert ready.status_code == 200
        assert ready.json()["status"] == "READY"

        done = _validate(client, "receipts", doc["id"]).json()
        assert done["status"] == "DONE"
        assert [i["status"] for i in done["items"]] == ["DONE"]
        assert _stock(client, http_site) == 20

    def test_get_and_list(self, client, http_site):
        doc = _receipt(client, http_site, 1, supplier="Acme", source_doc="PO-9")

        fetched = client.get(f"/receipts/{doc['id']}").json()
        assert fetched["reference"] == doc["reference"]

        listed = client.get("/receipts", params={"status": "DRAFT", "search": "po-9"}).json()
        assert [d["id"] for d in listed] == [doc["id"]]
        assert client.get("/receipts", params={"status": "DONE"}).json() == []

    def test_update_completed_receipt_rejected(self, client, http_site):
        done = _complete_receipt(client, http_site, 5)

        response = client.put(
            f"/receipts/{done['id']}",
            json={"items": [{"product_id": str(http_site.widget.id), "quantity": 50}]},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "DOCUMENT_IMMUTABLE"
        fetched = client.get(f"/receipts/{done['id']}").json()
        assert fetched["items"][0]["quantity"] == 5

    def test_validate_completed_receipt_rejected(self, client, http_site):
        done = _complete_receipt(client, http_site, 5)
        response = _validate(client, "receipts", done["id"])
        assert response.status_code == 400
        assert response.json()["code"] == "DOCUMENT_ALREADY_COMPLETED"
        assert _stock(client, http_site) == 5

    def test_empty_receipt_cannot_complete(self, client, http_site):
        response = client.post("/receipts", json={"warehouse_id": str(http_site.warehouse.id)})
        doc = response.json()
        assert _validate(client, "receipts", doc["id"]).json()["status"] == "READY"

        failed = _validate(client, "receipts", doc["id"])
        assert failed.status_code == 400
        assert failed.json()["code"] == "EMPTY_DOCUMENT"
        assert client.get(f"/receipts/{doc['id']}").json()["status"] == "READY"

    def test_partial_update(self, client, http_site):
        doc = _receipt(client, http_site, 3, supplier="Acme")
        response = client.put(f"/receipts/{doc['id']}", json={"source_doc": "PO-1"})
        assert response.status_code == 200
        body = response.json()
        assert body["attributes"] == {"supplier": "Acme", "source_doc": "PO-1"}
        assert body["items"][0]["quantity"] == 3

    def test_delete_draft_and_refuse_done(self, client, http_site):
        draft = _receipt(client, http_site, 1)
        response = client.delete(f"/receipts/{draft['id']}")
        assert response.status_code == 200
        assert response.json() == {"message": "Receipt deleted successfully"}
        assert client.get(f"/receipts/{draft['id']}").status_code == 404

        done = _complete_receipt(client, http_site, 1)
        refused = client.delete(f"/receipts/{done['id']}")
        assert refused.status_code == 400
        assert refused.json()["code"] == "DOCUMENT_IMMUTABLE"


class TestDeliveries:
    def test_waiting_delivery_reports_shortfall(self, client, http_site):
        _complete_receipt(client, http_site, 10)

        response = client.post(
            "/deliveries",
            json={
                "warehouse_id": str(http_site.warehouse.id),
                "customer": "Globex",
                "items": [
                    {
                        "product_id": str(http_site.widget.id),
                        "quantity": 15,
                        "location_id": str(http_site.loc_a.id),
                    }
                ],
            },
        )
        assert response.status_code == 201
        doc = response.json()
        assert doc["status"] == "WAITING"
        assert doc["reference"] == "WH01/OUT/2024/0001"
        (check,) = doc["stock_checks"]
        assert (check["available"], check["required"], check["is_short"]) == (10, 15, True)

        blocked = _validate(client, "deliveries", doc["id"])
        assert blocked.status_code == 400
        body = blocked.json()
        assert body["code"] == "INSUFFICIENT_STOCK"
        assert body["line_no"] == 1
        assert body["stock_checks"][0]["required"] == 15

        _complete_receipt(client, http_site, 10)
        assert _validate(client, "deliveries", doc["id"]).json()["status"] == "READY"
        assert _validate(client, "deliveries", doc["id"]).json()["status"] == "DONE"
        assert _stock(client, http_site) == 5

    def test_completion_shortfall_reports_line_check(self, client, http_site):
        _complete_receipt(client, http_site, 10)
        line = {
            "product_id": str(http_site.widget.id),
            "quantity": 8,
            "location_id": str(http_site.loc_a.id),
        }
        doc = client.post(
            "/deliveries",
            json={"warehouse_id": str(http_site.warehouse.id), "items": [line]},
        ).json()
        assert _validate(client, "deliveries", doc["id"]).json()["status"] == "READY"

        count = client.post(
            "/adjustments",
            json={
                "warehouse_id": str(http_site.warehouse.id),
                "items": [{**line, "quantity": 3}],
            },
        ).json()
        _validate(client, "adjustments", count["id"])
        _validate(client, "adjustments", count["id"])

        failed = _validate(client, "deliveries", doc["id"])
        assert failed.status_code == 400
        body = failed.json()
        assert body["code"] == "INSUFFICIENT_STOCK"
        assert body["line_no"] == 1
        assert body["stock_checks"] == [
            {
                "line_no": 1,
                "product_id": str(http_site.widget.id),
                "location_id": str(http_site.loc_a.id),
                "required": 8,
                "available": 3,
                "is_short": True,
            }
        ]
        assert client.get(f"/deliveries/{doc['id']}").json()["status"] == "READY"
        assert _stock(client, http_site) == 3


class TestTransfers:
    def test_transfer_moves_stock(self, client, http_site):
        _complete_receipt(client, http_site, 5)
        response = client.post(
            "/transfers",
            json={
                "source_location_id": str(http_site.loc_a.id),
                "destination_location_id": str(http_site.loc_b.id),
                "items": [{"product_id": str(http_site.widget.id), "quantity": 5}],
            },
        )
        doc = response.json()
        assert doc["reference"] == "TRANS/2024/0001"
        _validate(client, "transfers", doc["id"])
        assert _validate(client, "transfers", doc["id"]).json()["status"] == "DONE"

        assert _stock(client, http_site, http_site.loc_a) == 0
        assert _stock(client, http_site, http_site.loc_b) == 5


class TestAdjustments:
    def test_sequential_references(self, client, http_site):
        payload = {
            "warehouse_id": str(http_site.warehouse.id),
            "items": [
                {
                    "product_id": str(http_site.widget.id),
                    "quantity": 50,
                    "location_id": str(http_site.loc_a.id),
                }
            ],
        }
        first = client.post("/adjustments", json=payload).json()
        second = client.post("/adjustments", json=payload).json()
        assert (first["reference"], second["reference"]) == ("ADJ/2024/0001", "ADJ/2024/0002")

    def test_adjustment_sets_absolute_quantity(self, client, http_site):
        _complete_receipt(client, http_site, 80)
        doc = client.post(
            "/adjustments",
            json={
                "warehouse_id": str(http_site.warehouse.id),
                "reason": "count",
                "items": [
                    {
                        "product_id": str(http_site.widget.id),
                        "quantity": 50,
                        "location_id": str(http_site.loc_a.id),
                    }
                ],
            },
        ).json()
        _validate(client, "adjustments", doc["id"])
        _validate(client, "adjustments", doc["id"])
        assert _stock(client, http_site) == 50


class TestErrors:
    def test_unknown_document_is_404(self, client, http_site):
        response = client.get(f"/deliveries/{uuid4()}")
        assert response.status_code == 404
        assert response.json()["code"] == "DOCUMENT_NOT_FOUND"

    def test_unknown_warehouse_is_404(self, client, http_site):
        response = client.post("/receipts", json={"warehouse_id": str(uuid4())})
        assert response.status_code == 404
        assert response.json()["code"] == "WAREHOUSE_NOT_FOUND"

    def test_missing_warehouse_is_400(self, client, http_site):
        response = client.post("/receipts", json={"supplier": "Acme"})
        assert response.status_code == 400
        assert response.json()["field"] == "warehouse_id"

    def test_negative_quantity_is_400(self, client, http_site):
        response = client.post(
            "/receipts",
            json={
                "warehouse_id": str(http_site.warehouse.id),
                "items": [{"product_id": str(http_site.widget.id), "quantity": -1}],
            },
        )
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_status_in_body_is_400(self, client, http_site):
        doc = _receipt(client, http_site, 1)
        response = client.put(f"/receipts/{doc['id']}", json={"status": "DONE"})
        assert response.status_code == 400
        assert client.get(f"/receipts/{doc['id']}").json()["status"] == "DRAFT"

    def test_zero_quantity_receipt_line_is_400(self, client, http_site):
        response = client.post(
            "/receipts",
            json={
                "warehouse_id": str(http_site.warehouse.id),
                "items": [{"product_id": str(http_site.widget.id), "quantity": 0}],
            },
        )
        assert response.status_code == 400
        assert response.json()["field"] == "items[1].quantity"

    def test_invalid_actor_header_is_400(self, client, http_site):
        response = client.get("/receipts", headers={"X-Actor-Id": "nobody"})
        assert response.status_code == 400
        assert response.json()["field"] == "X-Actor-Id"

    def test_unexpected_failure_is_500(self, pg_session_factory, stock_config, monkeypatch):
        def _boom(self, *args, **kwargs):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(DocumentService, "list_documents", _boom)
        app = create_app(stock_config, session_factory=pg_session_factory)
        with TestClient(app, raise_server_exceptions=False) as failing:
            response = failing.get("/receipts")
        assert response.status_code == 500
        assert response.json() == {"message": "Internal server error", "code": "INTERNAL_FAILURE"}


class TestStockEndpoints:
    def test_stock_levels(self, client, http_site):
        _complete_receipt(client, http_site, 7)
        rows = client.get("/stock", params={"warehouse_id": str(http_site.warehouse.id)}).json()
        assert len(rows) == 1
        row = rows[0]
        assert (row["sku"], row["location_code"], row["warehouse_code"]) == (
            "WIDGET-001", "LOC-A", "WH01",
        )
        assert (row["quantity"], row["reserved"], row["available"]) == (7, 0, 7)

    def test_move_history(self, client, http_site):
        done = _complete_receipt(client, http_site, 7)
        _receipt(client, http_site, 2, supplier="Initech")

        moves = client.get("/stock-moves", params={"status": "DONE"}).json()
        assert [m["reference"] for m in moves] == [done["reference"]]

        by_contact = client.get("/stock-moves", params={"contact": "initech"}).json()
        assert len(by_contact) == 1
        assert by_contact[0]["contact"] == "Initech"

        move_id = moves[0]["move"]["id"]
        single = client.get(f"/stock-moves/{move_id}").json()
        assert single["document_kind"] == "receipt"
        assert single["move"]["move_type"] == "INCOMING"

    def test_unknown_move_is_404(self, client, http_site):
        assert client.get(f"/stock-moves/{uuid4()}").status_code == 404


class TestProducts:
    def test_unused_product_deleted(self, client, http_site):
        response = client.delete(f"/products/{http_site.gadget.id}")
        assert response.status_code == 200
        body = response.json()
        assert body["outcome"] == "DELETED"
        assert body["product"]["sku"] == "GADGET-001"

    def test_product_with_stock_refused(self, client, http_site):
        _complete_receipt(client, http_site, 3)
        response = client.delete(f"/products/{http_site.widget.id}")
        assert response.status_code == 400
        assert response.json()["code"] == "PRODUCT_HAS_STOCK"

    def test_product_with_history_archived(self, client, http_site):
        _complete_receipt(client, http_site, 3)
        count = client.post(
            "/adjustments",
            json={
                "warehouse_id": str(http_site.warehouse.id),
                "items": [
                    {
                        "product_id": str(http_site.widget.id),
                        "quantity": 0,
                        "location_id": str(http_site.loc_a.id),
                    }
                ],
            },
        ).json()
        _validate(client, "adjustments", count["id"])
        _validate(client, "adjustments", count["id"])

        response = client.delete(f"/products/{http_site.widget.id}")
        assert response.status_code == 200
        assert response.json()["outcome"] == "ARCHIVED"
        assert response.json()["product"]["is_active"] is False

    def test_unknown_product_is_404(self, client, http_site):
        assert client.delete(f"/products/{uuid4()}").status_code == 404
