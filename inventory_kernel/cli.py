"""
Administrative command line for the inventory kernel.

Usage:
  inventory-kernel [--config FILE] [--db-url URL] init-db
  inventory-kernel seats LICENSE_ID
  inventory-kernel reconcile LICENSE_ID SEATS --actor USER_ID
  inventory-kernel release-seat SEAT_ID --actor USER_ID

Settings come from ``--config`` (or ``$INVENTORY_CONFIG``) with the usual
environment overrides; ``--db-url`` wins over both.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace

from inventory_kernel.config import KernelSettings, get_settings, load_settings
from inventory_kernel.db.engine import create_tables, init_engine_from_url, session_scope
from inventory_kernel.exceptions import InventoryKernelError
from inventory_kernel.logging_config import configure_logging
from inventory_kernel.selectors.seat_selector import SeatSelector
from inventory_kernel.services.assignment_workflow import AssignmentWorkflow
from inventory_kernel.services.license_service import LicenseService


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="inventory-kernel",
        description="Asset assignment and license seat administration",
    )
    p.add_argument("--config", default=None, help="YAML settings file")
    p.add_argument("--db-url", default=None, help="Database URL (overrides settings)")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create the kernel tables")

    seats = sub.add_parser("seats", help="List the seats of a license")
    seats.add_argument("license_id", type=int)

    reconcile = sub.add_parser("reconcile", help="Change a license's seat count")
    reconcile.add_argument("license_id", type=int)
    reconcile.add_argument("seats", type=int)
    reconcile.add_argument("--actor", type=int, required=True, help="Acting user id")

    release = sub.add_parser("release-seat", help="Free an assigned seat")
    release.add_argument("seat_id", type=int)
    release.add_argument("--actor", type=int, required=True, help="Acting user id")

    return p.parse_args(argv)


def _settings(args: argparse.Namespace) -> KernelSettings:
    # An explicit --config file bypasses the process-wide settings
    settings = load_settings(args.config) if args.config else get_settings()
    if args.db_url:
        settings = replace(settings, database_url=args.db_url)
    return settings


def _cmd_init_db() -> int:
    create_tables()
    print("  Tables created.")
    return 0


def _cmd_seats(license_id: int) -> int:
    with session_scope() as session:
        info = LicenseService(session).get_license(license_id)
        selector = SeatSelector(session)
        counts = selector.counts(license_id)
        print(f"  {info.name}: {counts.total} seat(s), {counts.available} available")
        for view in selector.list_seats(license_id):
            assignee = view.user_name or view.asset_description or ""
            print(f"  {view.label:<10} {view.state.value:<10} {assignee}")
    return 0


def _cmd_reconcile(license_id: int, seats: int, actor_id: int) -> int:
    with session_scope() as session:
        result = LicenseService(session).update_license(license_id, actor_id, seats=seats)
    if not result.is_success:
        print(f"  ERROR [{result.error_code}]: {result.error}", file=sys.stderr)
        return 1
    print(f"  License {license_id} now has {result.seats} seat(s).")
    return 0


def _cmd_release_seat(seat_id: int, actor_id: int) -> int:
    with session_scope() as session:
        result = AssignmentWorkflow(session).release_seat(seat_id, actor_id)
    if not result.is_success:
        print(f"  ERROR [{result.error_code}]: {result.error}", file=sys.stderr)
        return 1
    print(f"  Seat {seat_id} released.")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = _settings(args)
    configure_logging(level=settings.log_level)

    init_engine_from_url(
        settings.database_url,
        echo=settings.echo,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        pool_timeout=settings.pool_timeout,
    )

    try:
        match args.command:
            case "init-db":
                return _cmd_init_db()
            case "seats":
                return _cmd_seats(args.license_id)
            case "reconcile":
                return _cmd_reconcile(args.license_id, args.seats, args.actor)
            case "release-seat":
                return _cmd_release_seat(args.seat_id, args.actor)
    except InventoryKernelError as exc:
        print(f"  ERROR [{exc.code}]: {exc}", file=sys.stderr)
        return 1
    return 2


if __name__ == "__main__":
    sys.exit(main())
