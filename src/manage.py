"""Logistics management CLI.

Creates and drops the database schema and runs the maintenance jobs that
cron triggers.

Usage:
    python src/manage.py setup-db                  # Create all tables
    python src/manage.py drop-db                   # Drop all tables
    python src/manage.py retention-cleanup         # Delete records past retention
    python src/manage.py retention-cleanup --dry-run
    python src/manage.py convert-reviewed          # Convert reviewed, unconverted bookings
    python src/manage.py assign-tracking-numbers   # Backfill missing booking AWBs
"""

import argparse
import json
import sys


def _domain():
    from logistics.domain import logistics

    print("Initializing logistics domain...")
    logistics.init()
    return logistics


def setup_database():
    """Create the database schema."""
    from logistics.utils.db import setup_db

    domain = _domain()
    print("Creating logistics database schema...")
    setup_db(domain)
    print("Done.")


def drop_database():
    """Drop the database schema."""
    from logistics.utils.db import drop_db

    domain = _domain()
    print("Dropping logistics database schema...")
    drop_db(domain)
    print("Done.")


def _process(command_factory):
    domain = _domain()
    with domain.domain_context():
        result = domain.process(command_factory(), asynchronous=False)
    print(json.dumps(result, indent=2, default=str))
    return result


def retention_cleanup(dry_run=False):
    from logistics.retention.cleanup import RunRetentionCleanup

    return _process(lambda: RunRetentionCleanup(dry_run=dry_run))


def convert_reviewed(reviewed_by=None, limit=None):
    from logistics.booking.migration import ConvertReviewedBookings

    return _process(lambda: ConvertReviewedBookings(reviewed_by=reviewed_by, limit=limit))


def assign_tracking_numbers(limit=None):
    from logistics.booking.tracking_backfill import AssignMissingTrackingNumbers

    return _process(lambda: AssignMissingTrackingNumbers(limit=limit))


def main():
    parser = argparse.ArgumentParser(description="Logistics management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    retention_parser = subparsers.add_parser("retention-cleanup", help="Delete records past their retention window")
    retention_parser.add_argument("--dry-run", action="store_true", help="Only count eligible records")

    convert_parser = subparsers.add_parser("convert-reviewed", help="Convert reviewed bookings to invoice requests")
    convert_parser.add_argument("--reviewed-by", default="migration")
    convert_parser.add_argument("--limit", type=int)

    tracking_parser = subparsers.add_parser("assign-tracking-numbers", help="Backfill missing booking AWBs")
    tracking_parser.add_argument("--limit", type=int)

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "retention-cleanup":
        retention_cleanup(args.dry_run)
    elif args.command == "convert-reviewed":
        convert_reviewed(args.reviewed_by, args.limit)
    elif args.command == "assign-tracking-numbers":
        assign_tracking_numbers(args.limit)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
