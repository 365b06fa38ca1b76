"""Mailroom database management CLI.

Creates and drops the delivery-record and dead-letter tables when the
domain is configured with a relational provider (``PROTEAN_ENV=production``).

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def setup_database():
    from mailroom.domain import mailroom
    from mailroom.utils.db import setup_db

    print("Initializing mailroom domain...")
    mailroom.init()
    print("Creating mailroom database schema...")
    touched = setup_db(mailroom)
    if touched:
        print(f"  schema ready on: {', '.join(touched)}")
    else:
        print("  no relational providers configured, nothing to do.")
    print("Done.")


def drop_database():
    from mailroom.domain import mailroom
    from mailroom.utils.db import drop_db

    print("Initializing mailroom domain...")
    mailroom.init()
    print("Dropping mailroom database schema...")
    touched = drop_db(mailroom)
    if touched:
        print(f"  schema dropped on: {', '.join(touched)}")
    else:
        print("  no relational providers configured, nothing to do.")
    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Mailroom database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
