"""
Document Workflows.

State machines for receipts, deliveries, transfers and adjustments.  All
kinds share one lifecycle; kinds with an availability gate add the WAITING
detour for documents whose source stock is short.
"""

from stock_kernel.domain.document_kinds import DocumentKind, DocumentStatus
from stock_kernel.domain.workflow import Guard, Transition, Workflow
from stock_kernel.logging_config import get_logger

logger = get_logger("modules.documents.workflows")

DRAFT = DocumentStatus.DRAFT.value
WAITING = DocumentStatus.WAITING.value
READY = DocumentStatus.READY.value
DONE = DocumentStatus.DONE.value
CANCELLED = DocumentStatus.CANCELLED.value

STATES = (DRAFT, WAITING, READY, DONE, CANCELLED)
TERMINAL_STATES = (DONE, CANCELLED)


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

STOCK_AVAILABLE = Guard(
    name="stock_available",
    description="Every line's source location holds the requested quantity",
)

STOCK_SHORT = Guard(
    name="stock_short",
    description="At least one line's source location is short",
)

HAS_LINES = Guard(
    name="has_lines",
    description="The document has at least one line",
)

logger.info(
    "document_workflow_guards_defined",
    extra={
        "guards": [
            STOCK_AVAILABLE.name,
            STOCK_SHORT.name,
            HAS_LINES.name,
        ],
    },
)


# -----------------------------------------------------------------------------
# Transitions
# -----------------------------------------------------------------------------

COMPLETE = Transition(READY, DONE, action="complete", guard=HAS_LINES, applies_stock=True)

UNGATED_TRANSITIONS = (
    Transition(DRAFT, READY, action="mark_ready"),
    COMPLETE,
)

GATED_TRANSITIONS = (
    Transition(DRAFT, READY, action="mark_ready", guard=STOCK_AVAILABLE),
    Transition(DRAFT, WAITING, action="wait_for_stock", guard=STOCK_SHORT),
    Transition(WAITING, READY, action="mark_ready", guard=STOCK_AVAILABLE),
    COMPLETE,
)


def build_workflow(kind: DocumentKind) -> Workflow:
    """The lifecycle for one document kind."""
    gated = kind.availability_gate
    workflow = Workflow(
        name=f"{kind.name}_lifecycle",
        description=(
            f"{kind.name.capitalize()} lifecycle"
            + (" with availability gate" if gated else "")
        ),
        initial_state=DRAFT,
        states=STATES,
        transitions=GATED_TRANSITIONS if gated else UNGATED_TRANSITIONS,
        terminal_states=TERMINAL_STATES,
    )
    logger.info(
        "document_workflow_registered",
        extra={
            "workflow_name": workflow.name,
            "state_count": len(workflow.states),
            "transition_count": len(workflow.transitions),
            "initial_state": workflow.initial_state,
            "availability_gate": gated,
        },
    )
    return workflow


def build_workflows(kinds: dict[str, DocumentKind]) -> dict[str, Workflow]:
    return {name: build_workflow(kind) for name, kind in kinds.items()}
