"""
DocumentService transaction boundary and log context.
"""

from uuid import uuid4

import pytest
from sqlalchemy.orm.exc import StaleDataError

from stock_kernel.domain.dtos import LineItem, StockKey
from stock_kernel.exceptions import (
    DocumentNotFoundError,
    InsufficientStockError,
    OptimisticLockError,
    ValidationError,
)
from stock_kernel.services.document_engine import DocumentEngine
from stock_kernel.services.stock_ledger_service import StockLedgerService
from stock_modules.documents.service import DocumentService


def _delivery(document_service, site, *lines):
    return document_service.create(
        "delivery",
        {"warehouse_id": site.warehouse.id, "customer": "Globex"},
        [LineItem(product_id=p.id, quantity=q, location_id=loc.id) for p, q, loc in lines],
    )


class TestTransactionBoundary:
    def test_create_is_committed(self, session, document_service, site):
        created = document_service.create(
            "receipt",
            {"warehouse_id": site.warehouse.id},
            [LineItem(product_id=site.widget.id, quantity=2, location_id=site.loc_a.id)],
        )
        session.rollback()
        assert document_service.get("receipt", created.document.id).status == "DRAFT"

    def test_failed_validation_rolls_back(self, session, document_service, site, put_stock):
        put_stock(site.widget, site.loc_a, 10)
        put_stock(site.gadget, site.loc_b, 10)
        created = _delivery(
            document_service, site,
            (site.widget, 3, site.loc_a),
            (site.gadget, 6, site.loc_b),
        )
        document_service.validate("delivery", created.document.id)

        ledger = StockLedgerService(session, uuid4())
        gadget_key = StockKey(site.gadget.id, site.loc_b.id, site.warehouse.id)
        ledger.decrement(gadget_key, 9)
        session.commit()

        with pytest.raises(InsufficientStockError):
            document_service.validate("delivery", created.document.id)

        widget_key = StockKey(site.widget.id, site.loc_a.id, site.warehouse.id)
        assert ledger.find_row(widget_key).quantity == 10
        assert ledger.find_row(gadget_key).quantity == 1
        assert document_service.get("delivery", created.document.id).status == "READY"

    def test_full_cycle(self, session, document_service, site, put_stock):
        put_stock(site.widget, site.loc_a, 10)
        created = _delivery(document_service, site, (site.widget, 4, site.loc_a))
        document_service.validate("delivery", created.document.id)
        done = document_service.validate("delivery", created.document.id)

        assert done.document.status == "DONE"
        ledger = StockLedgerService(session, uuid4())
        assert ledger.available(StockKey(site.widget.id, site.loc_a.id, site.warehouse.id)) == 6

    def test_delete(self, document_service, site):
        created = _delivery(document_service, site, (site.widget, 1, site.loc_a))
        document_service.delete("delivery", created.document.id)
        with pytest.raises(DocumentNotFoundError):
            document_service.get("delivery", created.document.id)

    def test_update_partial_header(self, document_service, site):
        created = _delivery(document_service, site, (site.widget, 1, site.loc_a))
        updated = document_service.update(
            "delivery", created.document.id, header={"delivery_address": "1 Dock Rd"}
        )
        assert updated.document.attributes["delivery_address"] == "1 Dock Rd"
        assert updated.document.attributes["customer"] == "Globex"
        assert len(updated.document.moves) == 1

    def test_stale_write_becomes_optimistic_lock_error(
        self, document_service, site, monkeypatch
    ):
        created = _delivery(document_service, site, (site.widget, 1, site.loc_a))

        def _stale(self, document_id):
            raise StaleDataError("version mismatch")

        monkeypatch.setattr(DocumentEngine, "validate", _stale)

        with pytest.raises(OptimisticLockError) as exc_info:
            document_service.validate("delivery", created.document.id)
        assert exc_info.value.entity_type == "Delivery"


class TestKinds:
    def test_configured_kinds(self, document_service):
        assert set(document_service.kinds) == {"receipt", "delivery", "transfer", "adjustment"}

    def test_unknown_kind(self, document_service):
        with pytest.raises(ValidationError) as exc_info:
            document_service.create("invoice", {}, [])
        assert exc_info.value.field == "kind"

    def test_explicit_workflows_are_used(self, session, document_kinds, workflows, test_actor_id):
        service = DocumentService(session, document_kinds, test_actor_id, workflows=workflows)
        assert service.engine("delivery").workflow is workflows["delivery"]


class TestLogContext:
    def test_transition_logged_with_context(
        self, document_service, site, captured_logs, test_actor_id
    ):
        created = document_service.create(
            "receipt",
            {"warehouse_id": site.warehouse.id},
            [LineItem(product_id=site.widget.id, quantity=2, location_id=site.loc_a.id)],
        )
        document_service.validate("receipt", created.document.id)

        transitions = [r for r in captured_logs() if r["message"] == "document_transitioned"]
        assert transitions
        record = transitions[-1]
        assert record["document_kind"] == "receipt"
        assert record["actor_id"] == str(test_actor_id)
        assert record["document_id"] == str(created.document.id)
        assert (record["from_state"], record["to_state"]) == ("DRAFT", "READY")

    def test_rollback_logged(self, document_service, captured_logs):
        with pytest.raises(DocumentNotFoundError):
            document_service.validate("receipt", uuid4())
        assert any(
            r["message"] == "document_operation_rolled_back" and r["operation"] == "validate"
            for r in captured_logs()
        )

    def test_context_cleared_after_call(self, document_service, site):
        from stock_kernel.logging_config import LogContext

        _delivery(document_service, site, (site.widget, 1, site.loc_a))
        assert "document_kind" not in LogContext.get_all()
