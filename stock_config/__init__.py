"""
stock_config -- single public entrypoint for stock service configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration
    files or environment variables directly.

Architecture position:
    Configuration -- YAML-driven, validated at load time.  This package
    sits above ``stock_kernel`` and below ``stock_modules`` /
    ``stock_api``.  The kernel MUST NEVER import from ``stock_config``;
    ``stock_config.bridges`` translates configuration into kernel inputs.

Failure modes:
    - ``FileNotFoundError`` -- no configuration set with the requested id.
    - ``ValueError`` -- schema or structural validation failures.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``STOCK_CONFIG_TRACE`` log entry with the config_id, version and
    checksum, tying every written document to the configuration that
    governed it.
"""

from __future__ import annotations

import os
from dataclasses import replace
from pathlib import Path

from stock_config.loader import load_configuration_set
from stock_config.schema import StockConfigurationSet
from stock_config.validator import validate_configuration
from stock_kernel.logging_config import get_logger

_logger = get_logger("config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"

DATABASE_URL_ENV = "DATABASE_URL"


def get_active_config(
    config_dir: Path | None = None,
    config_id: str = "default",
) -> StockConfigurationSet:
    """The ONLY public configuration entrypoint.

    Loads ``<config_dir>/<config_id>.yaml``, validates it, and applies the
    ``DATABASE_URL`` environment override to the database URL.

    Args:
        config_dir: Override path to the configuration sets directory.
            Defaults to stock_config/sets/.
        config_id: Name of the set to load.

    Returns:
        A validated, frozen ``StockConfigurationSet``.

    Raises:
        FileNotFoundError: If the set does not exist.
        ValueError: If validation fails.
    """
    sets_dir = Path(config_dir) if config_dir else _DEFAULT_CONFIG_DIR
    path = sets_dir / f"{config_id}.yaml"
    if not path.is_file():
        raise FileNotFoundError(f"Configuration set not found: {path}")

    config = load_configuration_set(path)

    validation = validate_configuration(config)
    if not validation.is_valid:
        raise ValueError(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in validation.errors)
        )
    for warning in validation.warnings:
        _logger.warning("config_warning", extra={"config_id": config.config_id, "warning": warning})

    override = os.environ.get(DATABASE_URL_ENV)
    if override:
        config = replace(config, database=replace(config.database, url=override))

    _logger.info(
        "STOCK_CONFIG_TRACE",
        extra={
            "trace_type": "STOCK_CONFIG_TRACE",
            "config_set_id": config.config_id,
            "config_set_version": config.version,
            "checksum": config.checksum,
            "database_url_overridden": bool(override),
            "document_kind_count": len(config.document_kinds),
        },
    )

    return config


__all__ = ["StockConfigurationSet", "get_active_config"]
