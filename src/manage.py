"""ShipTrack management CLI.

Usage:
    python src/manage.py setup-db                       # Create all tables
    python src/manage.py drop-db                        # Drop all tables
    python src/manage.py check-delays --tenant TENANT   # Run the delay scan
"""

import argparse
import sys


def _domain():
    from tracking.domain import tracking

    print("Initializing tracking domain...")
    tracking.init()
    return tracking


def setup_database():
    """Create the database schema for the tracking domain."""
    from tracking.utils.db import setup_db

    domain = _domain()
    print("Creating tracking database schema...")
    providers = setup_db(domain)
    if providers:
        print(f"  schema ready ({', '.join(providers)}).")
    else:
        print("  no SQL provider configured, nothing to create.")

    print("Done.")


def drop_database():
    """Drop the database schema for the tracking domain."""
    from tracking.utils.db import drop_db

    domain = _domain()
    print("Dropping tracking database schema...")
    providers = drop_db(domain)
    if providers:
        print(f"  schema dropped ({', '.join(providers)}).")
    else:
        print("  no SQL provider configured, nothing to drop.")

    print("Done.")


def run_delay_scan(tenant_ids):
    """Queue delayed_order automation signals for each tenant."""
    from tracking.automation.delays import check_delays

    domain = _domain()
    with domain.domain_context():
        for tenant_id in tenant_ids:
            result = check_delays(tenant_id)
            print(
                f"  {tenant_id}: checked {result['checked_shipments']} shipments, "
                f"{result['delayed_orders']} delayed."
            )

    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="ShipTrack management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    delays_parser = subparsers.add_parser("check-delays", help="Queue automation signals for delayed shipments")
    delays_parser.add_argument(
        "--tenant",
        dest="tenants",
        action="append",
        required=True,
        help="Tenant to scan (repeatable)",
    )

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "check-delays":
        run_delay_scan(args.tenants)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
