"""Storefront ordering database management CLI.

Creates and drops the SQL schema of the ordering domain and seeds products
into the catalog so orders can be placed against them.

Usage:
    python src/manage.py setup-db                    # Create all tables
    python src/manage.py drop-db                     # Drop all tables
    python src/manage.py seed-products products.json # Register products from a JSON list
"""

import argparse
import json
import sys


def setup_database():
    """Create the ordering schema on every SQL provider."""
    from ordering.domain import ordering
    from ordering.utils.db import setup_db

    print("Initializing ordering domain...")
    ordering.init()
    print("Creating ordering database schema...")
    providers = setup_db(ordering)
    if not providers:
        print("  No SQL provider configured; nothing to create.")
    for name in providers:
        print(f"  {name} schema ready.")

    print("Done.")


def drop_database():
    """Drop the ordering schema on every SQL provider."""
    from ordering.domain import ordering
    from ordering.utils.db import drop_db

    print("Initializing ordering domain...")
    ordering.init()
    print("Dropping ordering database schema...")
    for name in drop_db(ordering):
        print(f"  {name} schema dropped.")

    print("Done.")


def seed_products(path):
    """Register every product listed in the JSON file at ``path``.

    The file holds a list of objects with ``name``, ``sku``, ``price`` and
    optionally ``sale_price``, ``stock`` and ``status``. Products whose SKU
    already exists are skipped.
    """
    from protean.exceptions import ValidationError

    from ordering.catalog.management import RegisterProduct
    from ordering.domain import ordering

    with open(path) as handle:
        products = json.load(handle)

    print("Initializing ordering domain...")
    ordering.init()

    registered = 0
    with ordering.domain_context():
        for entry in products:
            try:
                product_id = ordering.process(RegisterProduct(**entry), asynchronous=False)
            except ValidationError as exc:
                print(f"  Skipped {entry.get('sku')}: {exc.messages}")
                continue
            registered += 1
            print(f"  Registered {entry['sku']} as {product_id}")

    print(f"Done. {registered} of {len(products)} products registered.")


def main():
    parser = argparse.ArgumentParser(description="Storefront ordering database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    seed_parser = subparsers.add_parser("seed-products", help="Register products from a JSON file")
    seed_parser.add_argument("path", help="JSON file with a list of products")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "seed-products":
        seed_products(args.path)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
