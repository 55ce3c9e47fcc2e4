"""
Document workflows and kind descriptors.

Pure domain tests: no database.
"""

import pytest

from stock_kernel.domain.document_kinds import (
    ApplyMode,
    DocumentKind,
    DocumentStatus,
    LocationRole,
    MoveType,
)
from stock_kernel.domain.dtos import LineItem, StockCheck
from stock_kernel.domain.workflow import Transition, Workflow
from stock_modules.documents.workflows import (
    GATED_TRANSITIONS,
    UNGATED_TRANSITIONS,
    build_workflow,
)


def _kind(**overrides) -> DocumentKind:
    values = dict(
        name="delivery",
        collection="deliveries",
        move_type=MoveType.OUTGOING,
        apply_mode=ApplyMode.DECREMENT,
        reference_prefix="{warehouse_code}/OUT",
        header_warehouse=True,
        availability_gate=True,
    )
    values.update(overrides)
    return DocumentKind(**values)


class TestWorkflowDefinition:
    def test_undeclared_initial_state_rejected(self):
        with pytest.raises(ValueError, match="initial state"):
            Workflow(
                name="broken",
                description="",
                initial_state="NOPE",
                states=("DRAFT",),
                transitions=(),
            )

    def test_transition_to_undeclared_state_rejected(self):
        with pytest.raises(ValueError, match="undeclared state"):
            Workflow(
                name="broken",
                description="",
                initial_state="DRAFT",
                states=("DRAFT",),
                transitions=(Transition("DRAFT", "DONE", action="finish"),),
            )

    def test_terminal_state_cannot_have_outgoing_transitions(self):
        with pytest.raises(ValueError, match="terminal state"):
            Workflow(
                name="broken",
                description="",
                initial_state="DRAFT",
                states=("DRAFT", "DONE"),
                transitions=(Transition("DONE", "DRAFT", action="reopen"),),
                terminal_states=("DONE",),
            )


class TestDocumentWorkflows:
    def test_gated_kind_has_waiting_detour(self):
        workflow = build_workflow(_kind())
        assert workflow.transitions == GATED_TRANSITIONS
        assert workflow.find_transition("DRAFT", "WAITING") is not None
        assert workflow.find_transition("WAITING", "READY") is not None

    def test_ungated_kind_goes_straight_to_ready(self):
        workflow = build_workflow(_kind(availability_gate=False))
        assert workflow.transitions == UNGATED_TRANSITIONS
        assert workflow.find_transition("DRAFT", "WAITING") is None
        assert workflow.find_transition("DRAFT", "READY") is not None

    @pytest.mark.parametrize("gated", [True, False])
    def test_only_completion_applies_stock(self, gated):
        workflow = build_workflow(_kind(availability_gate=gated))
        applying = [t for t in workflow.transitions if t.applies_stock]
        assert [(t.from_state, t.to_state) for t in applying] == [("READY", "DONE")]

    @pytest.mark.parametrize("gated", [True, False])
    def test_transitions_only_move_forward(self, gated):
        order = ["DRAFT", "WAITING", "READY", "DONE"]
        workflow = build_workflow(_kind(availability_gate=gated))
        for t in workflow.transitions:
            assert order.index(t.to_state) > order.index(t.from_state)

    def test_done_is_terminal(self):
        workflow = build_workflow(_kind())
        assert workflow.is_terminal(DocumentStatus.DONE.value)
        assert workflow.transitions_from("DONE") == ()
        assert workflow.initial_state == "DRAFT"


class TestDocumentKind:
    def test_location_roles_follow_apply_mode(self):
        assert _kind().location_role == LocationRole.SOURCE
        assert _kind(apply_mode=ApplyMode.INCREMENT).location_role == LocationRole.DESTINATION
        assert _kind(apply_mode=ApplyMode.SET_ABSOLUTE).location_role == LocationRole.DESTINATION
        assert _kind(apply_mode=ApplyMode.TRANSFER).location_role == LocationRole.HEADER

    def test_transfer_needs_both_ends(self):
        kind = _kind(apply_mode=ApplyMode.TRANSFER)
        assert kind.needs_source and kind.needs_destination

    def test_render_prefix_with_warehouse_code(self):
        assert _kind().render_prefix("WH01") == "WH01/OUT"

    def test_render_prefix_requires_code(self):
        with pytest.raises(ValueError):
            _kind().render_prefix(None)

    def test_static_prefix_ignores_code(self):
        kind = _kind(reference_prefix="TRANS", header_warehouse=False)
        assert kind.render_prefix() == "TRANS"


class TestValueObjects:
    def test_negative_line_quantity_rejected(self):
        with pytest.raises(ValueError):
            LineItem(product_id=None, quantity=-1)

    def test_stock_check_shortfall(self):
        check = StockCheck(line_no=1, product_id=None, location_id=None, requested=15, available=10)
        assert check.is_short
        assert check.shortfall == 5

    def test_stock_check_satisfied(self):
        check = StockCheck(line_no=1, product_id=None, location_id=None, requested=5, available=10)
        assert not check.is_short
        assert check.shortfall == 0
