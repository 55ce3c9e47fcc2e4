"""
Configuration Loader (``stock_config.loader``).

Responsibility
--------------
Loads YAML configuration set files and parses them into typed
``stock_config.schema`` dataclass instances.  Runtime callers go through
``stock_config.get_active_config()`` instead of calling this directly.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Malformed actor id  -> ``ValueError`` from ``UUID``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any
from uuid import UUID

import yaml

from stock_config.schema import DatabaseDef, DocumentKindDef, StockConfigurationSet


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_database(data: dict[str, Any]) -> DatabaseDef:
    """Parse a DatabaseDef from a dict."""
    return DatabaseDef(
        url=data["url"],
        echo=bool(data.get("echo", False)),
        pool_size=int(data.get("pool_size", 20)),
        max_overflow=int(data.get("max_overflow", 10)),
        pool_timeout=int(data.get("pool_timeout", 30)),
    )


def parse_document_kind(data: dict[str, Any]) -> DocumentKindDef:
    """Parse a DocumentKindDef from a dict."""
    return DocumentKindDef(
        name=data["name"],
        collection=data["collection"],
        move_type=str(data["move_type"]).upper(),
        apply_mode=str(data["apply_mode"]).upper(),
        reference_prefix=data["reference_prefix"],
        header_warehouse=bool(data.get("header_warehouse", True)),
        availability_gate=bool(data.get("availability_gate", False)),
        min_quantity=int(data.get("min_quantity", 1)),
        header_fields=tuple(data.get("header_fields", ())),
        search_fields=tuple(data.get("search_fields", ("reference",))),
    )


def parse_configuration_set(data: dict[str, Any]) -> StockConfigurationSet:
    """
    Parse a full configuration set from the dict of one YAML file.

    The checksum covers the raw dict, so two files with the same content
    always yield the same checksum.
    """
    return StockConfigurationSet(
        config_id=data["config_id"],
        version=int(data.get("version", 1)),
        description=data.get("description", ""),
        default_actor_id=UUID(str(data["default_actor_id"])),
        database=parse_database(data["database"]),
        document_kinds=tuple(
            parse_document_kind(k) for k in data.get("document_kinds", ())
        ),
        checksum=compute_checksum(data),
    )


def load_configuration_set(path: Path) -> StockConfigurationSet:
    """Load and parse one configuration set file."""
    return parse_configuration_set(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
