"""Ordering management CLI.

Usage:
    python src/manage.py setup-db                 # Create all tables
    python src/manage.py drop-db                  # Drop all tables
    python src/manage.py purge-carts [--as-of T]  # Delete expired carts

Select the configuration environment with PROTEAN_ENV (e.g. ``production``).
``purge-carts`` is meant to be run by an external scheduler.
"""

import argparse
import sys
from datetime import datetime


def setup_databases():
    from ordering.domain import ordering
    from ordering.utils.db import setup_db

    print("Initializing ordering domain...")
    ordering.init()
    print("Creating ordering database schema...")
    setup_db(ordering)
    print("Done.")


def drop_databases():
    from ordering.domain import ordering
    from ordering.utils.db import drop_db

    print("Initializing ordering domain...")
    ordering.init()
    print("Dropping ordering database schema...")
    drop_db(ordering)
    print("Done.")


def purge_carts(as_of=None):
    from ordering.cart.expiry import PurgeExpiredCarts
    from ordering.domain import ordering

    ordering.init()
    with ordering.domain_context():
        purged = ordering.process(PurgeExpiredCarts(as_of=as_of), asynchronous=False)
    print(f"Purged {purged} expired cart(s).")


def main():
    parser = argparse.ArgumentParser(description="Ordering database and maintenance tasks")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    purge_parser = subparsers.add_parser("purge-carts", help="Delete carts whose expiry time has passed")
    purge_parser.add_argument(
        "--as-of",
        type=datetime.fromisoformat,
        default=None,
        help="ISO-8601 timestamp to compare expiry times against (default: now)",
    )

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_databases()
    elif args.command == "drop-db":
        drop_databases()
    elif args.command == "purge-carts":
        purge_carts(args.as_of)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
