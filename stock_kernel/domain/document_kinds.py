"""
Document kinds (``stock_kernel.domain.document_kinds``).

Responsibility
--------------
Status and type enumerations shared by models and services, and the
``DocumentKind`` descriptor that parameterizes the single document engine.
Receipt, Delivery, Transfer and Adjustment differ only in the values of
their descriptor: which way the moves point, how completion touches the
ledger, whether an availability gate applies, and how references are
prefixed.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects, ZERO I/O.  Descriptors are
built from configuration by ``stock_config.bridges``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DocumentStatus(str, Enum):
    """Lifecycle status shared by all document kinds and their moves.

    Transitions are DRAFT -> (WAITING) -> READY -> DONE.  CANCELLED is a
    recognised value with no transition leading into it.
    """

    DRAFT = "DRAFT"
    WAITING = "WAITING"
    READY = "READY"
    DONE = "DONE"
    CANCELLED = "CANCELLED"


class MoveType(str, Enum):
    INCOMING = "INCOMING"
    OUTGOING = "OUTGOING"
    INTERNAL = "INTERNAL"
    ADJUSTMENT = "ADJUSTMENT"


class LocationType(str, Enum):
    """ZONE is a physical storage area; VENDOR and CUSTOMER are virtual."""

    ZONE = "ZONE"
    VENDOR = "VENDOR"
    CUSTOMER = "CUSTOMER"


class ApplyMode(str, Enum):
    """How a completed move changes the ledger."""

    INCREMENT = "INCREMENT"
    DECREMENT = "DECREMENT"
    TRANSFER = "TRANSFER"
    SET_ABSOLUTE = "SET_ABSOLUTE"


class LocationRole(str, Enum):
    """Which move location a document line's location fills."""

    SOURCE = "SOURCE"
    DESTINATION = "DESTINATION"
    HEADER = "HEADER"  # both ends come from the document header


_ROLE_BY_MODE = {
    ApplyMode.INCREMENT: LocationRole.DESTINATION,
    ApplyMode.DECREMENT: LocationRole.SOURCE,
    ApplyMode.TRANSFER: LocationRole.HEADER,
    ApplyMode.SET_ABSOLUTE: LocationRole.DESTINATION,
}


@dataclass(frozen=True)
class DocumentKind:
    """Descriptor for one document kind.

    ``reference_prefix`` is a template; ``{warehouse_code}`` is replaced
    with the document warehouse's code for warehouse-scoped kinds.
    ``header_fields`` lists the header attributes callers may set;
    ``search_fields`` the ones matched by free-text list search.
    """

    name: str
    collection: str
    move_type: MoveType
    apply_mode: ApplyMode
    reference_prefix: str
    header_warehouse: bool
    availability_gate: bool = False
    min_quantity: int = 1
    header_fields: tuple[str, ...] = ()
    search_fields: tuple[str, ...] = ("reference",)

    @property
    def location_role(self) -> LocationRole:
        return _ROLE_BY_MODE[self.apply_mode]

    @property
    def needs_source(self) -> bool:
        return self.apply_mode in (ApplyMode.DECREMENT, ApplyMode.TRANSFER)

    @property
    def needs_destination(self) -> bool:
        return self.apply_mode != ApplyMode.DECREMENT

    def render_prefix(self, warehouse_code: str | None = None) -> str:
        if "{warehouse_code}" in self.reference_prefix:
            if not warehouse_code:
                raise ValueError(
                    f"{self.name} references need a warehouse code"
                )
            return self.reference_prefix.format(warehouse_code=warehouse_code)
        return self.reference_prefix
