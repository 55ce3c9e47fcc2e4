#!/usr/bin/env python3
"""
Seed the database with a demo warehouse.

Drops all tables, recreates them, creates one warehouse with a storage
location, a category and a product, and books 100 units of opening stock
through a completed receipt so the ledger and move history agree.

Usage:
    python3 scripts/seed_data.py [--config-id default] [--keep]
"""

import argparse
import logging
import sys
from pathlib import Path

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

OPENING_QUANTITY = 100


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed demo data")
    parser.add_argument("--config-id", default="default")
    parser.add_argument(
        "--keep", action="store_true", help="Do not drop existing tables first"
    )
    args = parser.parse_args()

    logging.disable(logging.CRITICAL)

    from stock_config import get_active_config
    from stock_config.bridges import build_document_kinds, init_database
    from stock_kernel.db.engine import (
        create_tables,
        drop_tables,
        get_session,
        session_scope,
    )
    from stock_kernel.db.immutability import register_immutability_listeners
    from stock_kernel.domain.document_kinds import LocationType
    from stock_kernel.domain.dtos import LineItem
    from stock_kernel.models.master import Category, Location, Product, Warehouse
    from stock_modules.documents.service import DocumentService

    config = get_active_config(config_id=args.config_id)

    print()
    print("  [1/4] Connecting to the database...")
    try:
        init_database(config)
    except Exception as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1

    print("  [2/4] Recreating schema...")
    if not args.keep:
        drop_tables()
    create_tables()
    register_immutability_listeners()

    actor_id = config.default_actor_id
    print("  [3/4] Creating warehouse, location and product...")
    try:
        with session_scope() as session:
            warehouse = Warehouse(
                code="WH01",
                name="Main Warehouse",
                address="123 Stock St, City",
                capacity=1000,
                created_by_id=actor_id,
            )
            session.add(warehouse)
            session.flush()

            location = Location(
                code="LOC01",
                name="Aisle 1",
                location_type=LocationType.ZONE,
                warehouse_id=warehouse.id,
                created_by_id=actor_id,
            )
            category = Category(
                name="General",
                description="Demo category",
                created_by_id=actor_id,
            )
            session.add_all([location, category])
            session.flush()

            product = Product(
                sku="PROD001",
                name="Sample Widget",
                description="A demo product for testing",
                unit_of_measure="pcs",
                min_stock=5,
                category_id=category.id,
                created_by_id=actor_id,
            )
            session.add(product)
            session.flush()
            labels = (warehouse.code, location.code, product.sku)
            warehouse_id, location_id, product_id = warehouse.id, location.id, product.id
    except Exception as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1

    print(f"  [4/4] Receiving {OPENING_QUANTITY} units of opening stock...")
    session = get_session()
    try:
        service = DocumentService(session, build_document_kinds(config), actor_id=actor_id)
        result = service.create(
            "receipt",
            {"warehouse_id": warehouse_id, "supplier": "Opening balance"},
            [LineItem(product_id, OPENING_QUANTITY, location_id)],
        )
        receipt_id = result.document.id
        service.validate("receipt", receipt_id)  # DRAFT -> READY
        done = service.validate("receipt", receipt_id)  # READY -> DONE
    except Exception as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1
    finally:
        session.close()

    print()
    print("  Seeded warehouse {}, location {}, product {}".format(*labels))
    print(f"  Opening receipt {done.document.reference} is {done.document.status}")
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
