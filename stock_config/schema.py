"""
StockConfigurationSet schema.

Defines the human-authored, reviewable configuration artifact. YAML sets are
parsed into these types by the loader, checked by the validator, and turned
into kernel inputs by the bridges.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseDef:
    """Connection settings handed to ``stock_kernel.db.init_engine_from_url``."""

    url: str
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30


# ---------------------------------------------------------------------------
# Document kinds
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DocumentKindDef:
    """One document kind as declared in YAML.

    Enum-valued fields stay strings here; the validator checks them and the
    bridge converts them.
    """

    name: str
    collection: str
    move_type: str
    apply_mode: str
    reference_prefix: str
    header_warehouse: bool = True
    availability_gate: bool = False
    min_quantity: int = 1
    header_fields: tuple[str, ...] = ()
    search_fields: tuple[str, ...] = ("reference",)


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StockConfigurationSet:
    """A complete, versioned configuration set."""

    config_id: str
    version: int
    database: DatabaseDef
    default_actor_id: UUID
    description: str = ""
    document_kinds: tuple[DocumentKindDef, ...] = ()
    checksum: str = field(default="", compare=False)

    def kind(self, name: str) -> DocumentKindDef:
        for kind_def in self.document_kinds:
            if kind_def.name == name:
                return kind_def
        raise KeyError(f"No document kind named {name!r} in config {self.config_id}")
