"""Stockflow management CLI.

Creates and drops the database schema, and runs the daily auto-close job.

Usage:
    python src/manage.py setup-db          # Create all tables
    python src/manage.py drop-db           # Drop all tables
    python src/manage.py close-due-orders  # Close received orders past their auto-close time
"""

import argparse
import sys
from datetime import datetime


def setup_database():
    """Create the requisitions database schema."""
    from requisitions.domain import requisitions
    from requisitions.utils.db import setup_db

    print("Initializing requisitions domain...")
    requisitions.init()
    print("Creating requisitions database schema...")
    setup_db(requisitions)
    print("Done.")


def drop_database():
    """Drop the requisitions database schema."""
    from requisitions.domain import requisitions
    from requisitions.utils.db import drop_db

    print("Initializing requisitions domain...")
    requisitions.init()
    print("Dropping requisitions database schema...")
    drop_db(requisitions)
    print("Done.")


def close_due_orders(as_of: datetime | None = None) -> int:
    """Close every received order whose auto-close time has passed."""
    from requisitions.domain import requisitions
    from requisitions.order.auto_close import close_due_orders as run_auto_close
    from requisitions.utils.logging import configure_logging

    configure_logging(log_file_prefix="stockflow")
    requisitions.init()
    with requisitions.domain_context():
        closed = run_auto_close(as_of)

    print(f"Closed {closed} order(s).")
    return closed


def main():
    parser = argparse.ArgumentParser(description="Stockflow management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    close_parser = subparsers.add_parser("close-due-orders", help="Auto-close received orders that are due")
    close_parser.add_argument(
        "--as-of",
        type=datetime.fromisoformat,
        help="Treat this ISO timestamp as the current time (default: now)",
    )

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "close-due-orders":
        close_due_orders(args.as_of)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
