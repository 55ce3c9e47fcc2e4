"""
Configuration Validator (``stock_config.validator``).

Responsibility
--------------
Validates a ``StockConfigurationSet`` before it is handed to the bridges,
so a misconfigured document kind fails at startup rather than on the first
document.

Invariants enforced
-------------------
* Kind names are one of the four persisted document kinds, each at most once.
* Collections (URL segments) are unique.
* ``move_type`` and ``apply_mode`` name real enum members.
* ``{warehouse_code}`` appears in a reference prefix only for
  warehouse-scoped kinds, and is the only placeholder.
* The availability gate is only set on kinds whose completion removes
  stock from a source location.
* ``min_quantity`` is not negative; pool sizes are positive.
* Header and search fields exist on the kind's document.

Failure modes
-------------
* Errors (``ConfigValidationResult.errors``)  -> the set MUST NOT be used.
* Warnings  -> usable, but worth a look.
"""

from __future__ import annotations

import string
from dataclasses import dataclass, field

from stock_config.schema import DocumentKindDef, StockConfigurationSet
from stock_kernel.domain.document_kinds import ApplyMode, MoveType

# Header attributes each persisted document kind carries.
KNOWN_HEADER_FIELDS: dict[str, frozenset[str]] = {
    "receipt": frozenset({"warehouse_id", "supplier", "source_doc", "scheduled_date"}),
    "delivery": frozenset(
        {"warehouse_id", "customer", "source_doc", "delivery_address", "scheduled_date"}
    ),
    "transfer": frozenset(
        {"source_location_id", "destination_location_id", "scheduled_date"}
    ),
    "adjustment": frozenset({"warehouse_id", "reason", "scheduled_date"}),
}

_SOURCE_MODES = frozenset({ApplyMode.DECREMENT.value, ApplyMode.TRANSFER.value})


@dataclass
class ConfigValidationResult:
    """
    Result of configuration validation.

    ``is_valid`` is ``True`` only when ``errors`` is empty.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_configuration(config: StockConfigurationSet) -> ConfigValidationResult:
    """Validate a configuration set and collect every problem found."""
    result = ConfigValidationResult()

    _validate_database(config, result)

    if not config.document_kinds:
        result.add_error("No document kinds declared")

    seen_names: set[str] = set()
    seen_collections: set[str] = set()
    for kind_def in config.document_kinds:
        if kind_def.name in seen_names:
            result.add_error(f"Duplicate document kind: {kind_def.name}")
        seen_names.add(kind_def.name)
        if kind_def.collection in seen_collections:
            result.add_error(
                f"Duplicate collection '{kind_def.collection}' (kind {kind_def.name})"
            )
        seen_collections.add(kind_def.collection)
        _validate_kind(kind_def, result)

    missing = set(KNOWN_HEADER_FIELDS) - seen_names
    for name in sorted(missing):
        result.add_warning(f"Document kind '{name}' is not configured")

    return result


def _validate_database(config: StockConfigurationSet, result: ConfigValidationResult) -> None:
    db = config.database
    if not db.url:
        result.add_error("database.url is empty")
    if db.pool_size < 1:
        result.add_error(f"database.pool_size must be positive, got {db.pool_size}")
    if db.max_overflow < 0:
        result.add_error(
            f"database.max_overflow cannot be negative, got {db.max_overflow}"
        )
    if db.pool_timeout < 1:
        result.add_error(
            f"database.pool_timeout must be positive, got {db.pool_timeout}"
        )


def _validate_kind(kind_def: DocumentKindDef, result: ConfigValidationResult) -> None:
    name = kind_def.name
    known_fields = KNOWN_HEADER_FIELDS.get(name)
    if known_fields is None:
        result.add_error(
            f"Unknown document kind '{name}' "
            f"(expected one of {', '.join(sorted(KNOWN_HEADER_FIELDS))})"
        )
        return

    if kind_def.move_type not in MoveType.__members__:
        result.add_error(f"{name}: unknown move_type '{kind_def.move_type}'")
    if kind_def.apply_mode not in ApplyMode.__members__:
        result.add_error(f"{name}: unknown apply_mode '{kind_def.apply_mode}'")

    if kind_def.availability_gate and kind_def.apply_mode not in _SOURCE_MODES:
        result.add_error(
            f"{name}: availability_gate requires a DECREMENT or TRANSFER apply_mode"
        )

    if kind_def.min_quantity < 0:
        result.add_error(
            f"{name}: min_quantity cannot be negative, got {kind_def.min_quantity}"
        )

    _validate_prefix(kind_def, result)

    if kind_def.header_warehouse and "warehouse_id" not in kind_def.header_fields:
        result.add_error(f"{name}: warehouse-scoped kinds must accept warehouse_id")
    if not kind_def.header_warehouse and kind_def.apply_mode != ApplyMode.TRANSFER.value:
        result.add_error(f"{name}: only TRANSFER kinds can omit the header warehouse")

    for header_field in kind_def.header_fields:
        if header_field not in known_fields:
            result.add_error(f"{name}: unknown header field '{header_field}'")
    for search_field in kind_def.search_fields:
        if search_field != "reference" and search_field not in known_fields:
            result.add_error(f"{name}: unknown search field '{search_field}'")
        elif search_field.endswith("_id") or search_field == "scheduled_date":
            result.add_error(f"{name}: search field '{search_field}' is not text")


def _validate_prefix(kind_def: DocumentKindDef, result: ConfigValidationResult) -> None:
    name = kind_def.name
    prefix = kind_def.reference_prefix
    if not prefix:
        result.add_error(f"{name}: reference_prefix is empty")
        return
    try:
        placeholders = {
            field_name
            for _, field_name, _, _ in string.Formatter().parse(prefix)
            if field_name is not None
        }
    except ValueError as exc:
        result.add_error(f"{name}: malformed reference_prefix '{prefix}': {exc}")
        return

    unexpected = placeholders - {"warehouse_code"}
    if unexpected:
        result.add_error(
            f"{name}: reference_prefix uses unknown placeholder(s) "
            f"{', '.join(sorted(unexpected))}"
        )
    if "warehouse_code" in placeholders and not kind_def.header_warehouse:
        result.add_error(
            f"{name}: {{warehouse_code}} needs a warehouse-scoped kind"
        )
