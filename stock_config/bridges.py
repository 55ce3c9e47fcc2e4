"""
Config -> Kernel Bridges.

Functions that convert a validated ``StockConfigurationSet`` into
kernel-compatible inputs.  These live in stock_config (the producer)
because the kernel must never import stock_config.

Usage:
    from stock_config.bridges import build_document_kinds, init_database

    config = get_active_config()
    init_database(config)
    kinds = build_document_kinds(config)
"""

from __future__ import annotations

from sqlalchemy.engine import Engine

from stock_config.schema import DocumentKindDef, StockConfigurationSet
from stock_kernel.db.engine import init_engine_from_url
from stock_kernel.domain.document_kinds import ApplyMode, DocumentKind, MoveType


def build_document_kind(kind_def: DocumentKindDef) -> DocumentKind:
    """Translate one YAML kind definition into a kernel descriptor."""
    return DocumentKind(
        name=kind_def.name,
        collection=kind_def.collection,
        move_type=MoveType[kind_def.move_type],
        apply_mode=ApplyMode[kind_def.apply_mode],
        reference_prefix=kind_def.reference_prefix,
        header_warehouse=kind_def.header_warehouse,
        availability_gate=kind_def.availability_gate,
        min_quantity=kind_def.min_quantity,
        header_fields=kind_def.header_fields,
        search_fields=kind_def.search_fields,
    )


def build_document_kinds(config: StockConfigurationSet) -> dict[str, DocumentKind]:
    """Descriptors for every configured kind, keyed by kind name."""
    return {
        kind_def.name: build_document_kind(kind_def)
        for kind_def in config.document_kinds
    }


def init_database(config: StockConfigurationSet) -> Engine:
    """Initialize the kernel engine from the configured database settings."""
    db = config.database
    return init_engine_from_url(
        db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
    )
