"""Application entry point."""

from __future__ import annotations

import argparse
import logging
import sqlite3
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from car_rental_admin.config import AppConfig
from car_rental_admin.db.connection import get_connection
from car_rental_admin.db.migrations import apply_migrations
from car_rental_admin.domain.models import Car, CarStatus, RateType, Rental
from car_rental_admin.logging_config import configure_logging, get_logger
from car_rental_admin.paths import get_db_path
from car_rental_admin.repositories.car_repo import CarRepo
from car_rental_admin.repositories.catalog_repo import CatalogRepo
from car_rental_admin.repositories.customer_repo import CustomerRepo
from car_rental_admin.services.availability_service import AvailabilityService
from car_rental_admin.services.car_service import CarService
from car_rental_admin.services.dashboard_service import DashboardService
from car_rental_admin.services.errors import ServiceError
from car_rental_admin.services.receipt_service import ReceiptService
from car_rental_admin.services.rental_service import RentalService
from car_rental_admin.utils.dates import parse_datetime, to_iso, to_optional_iso
from car_rental_admin.utils.money import format_money

EXIT_OK = 0
EXIT_SERVICE_ERROR = 1


def _format_rental(rental: Rental) -> str:
    line = (
        f"#{rental.id} car={rental.car_id} customer={rental.customer_id} "
        f"{to_iso(rental.start_at)} -> {to_iso(rental.planned_end_at)} "
        f"{rental.rate_type.value} {rental.status.value} "
        f"base={format_money(rental.base_price)} "
        f"late_fee={format_money(rental.late_fee)} "
        f"total={format_money(rental.total_price)}"
    )
    if rental.actual_return_at:
        line += f" returned={to_optional_iso(rental.actual_return_at)}"
    return line


def _format_car(car: Car) -> str:
    return (
        f"#{car.id} {car.license_plate} vin={car.vin} {car.status.value} "
        f"hourly={format_money(car.hourly_rate)} daily={format_money(car.daily_rate)} "
        f"weekly={format_money(car.weekly_rate)} mileage={car.mileage_km}km"
    )


def _rate_type(value: str) -> RateType:
    try:
        return RateType(value.strip().upper())
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"rate type must be one of {', '.join(r.value for r in RateType)}"
        ) from exc


def _datetime(value: str) -> datetime:
    try:
        return parse_datetime(value)
    except (ValueError, OverflowError) as exc:
        raise argparse.ArgumentTypeError(f"invalid ISO datetime: {value!r}") from exc


def _build_parser(config: AppConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="car-rental-admin",
        description="Car rental back-office: pricing, availability and rental lifecycle.",
    )
    parser.add_argument("--db", type=Path, default=None, help="SQLite database path.")
    parser.add_argument("--verbose", action="store_true", help="Log to the console.")
    parser.add_argument(
        "--version", action="version", version=f"{config.app_name} {config.version}"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="Create or upgrade the database schema.")

    preview = commands.add_parser("preview", help="Quote a rental without saving it.")
    preview.add_argument("car_id", type=int)
    preview.add_argument("rate_type", type=_rate_type)
    preview.add_argument("start_at", type=_datetime)
    preview.add_argument("planned_end_at", type=_datetime)

    create = commands.add_parser("create", help="Create an ACTIVE rental.")
    create.add_argument("customer_id", type=int)
    create.add_argument("car_id", type=int)
    create.add_argument("rate_type", type=_rate_type)
    create.add_argument("start_at", type=_datetime)
    create.add_argument("planned_end_at", type=_datetime)
    create.add_argument("--notes", default=None)

    update = commands.add_parser("update", help="Change planned end, plan and notes.")
    update.add_argument("rental_id", type=int)
    update.add_argument("rate_type", type=_rate_type)
    update.add_argument("planned_end_at", type=_datetime)
    update.add_argument("--notes", default=None)

    extend = commands.add_parser("extend", help="Move the planned end later.")
    extend.add_argument("rental_id", type=int)
    extend.add_argument("new_planned_end_at", type=_datetime)

    return_cmd = commands.add_parser("return", help="Close a rental as RETURNED.")
    return_cmd.add_argument("rental_id", type=int)
    return_cmd.add_argument("--at", dest="actual_return_at", type=_datetime, default=None)
    return_cmd.add_argument("--mileage", dest="new_mileage_km", type=int, default=None)

    cancel = commands.add_parser("cancel", help="Close a rental as CANCELED.")
    cancel.add_argument("rental_id", type=int)

    delete = commands.add_parser("delete", help="Remove a rental.")
    delete.add_argument("rental_id", type=int)

    commands.add_parser("active", help="List ACTIVE rentals.")
    commands.add_parser("overdue", help="List overdue ACTIVE rentals.")

    available = commands.add_parser("available", help="List cars free in a period.")
    available.add_argument("start_at", type=_datetime)
    available.add_argument("end_at", type=_datetime)

    history = commands.add_parser("history", help="List rentals of a car.")
    history.add_argument("car_id", type=int)

    cars = commands.add_parser("cars", help="List cars.")
    cars.add_argument(
        "--status", type=str.upper, choices=[s.value for s in CarStatus], default=None
    )
    commands.add_parser("customers", help="List customers.")
    commands.add_parser("categories", help="List categories and their discounts.")

    commands.add_parser("summary", help="Rental counts and revenue.")

    receipt = commands.add_parser("receipt", help="Export a rental receipt PDF.")
    receipt.add_argument("rental_id", type=int)
    receipt.add_argument("--output-dir", type=Path, default=None)

    return parser


def _print_rentals(rentals: Sequence[Rental]) -> None:
    for rental in rentals:
        print(_format_rental(rental))
    if not rentals:
        print("No rentals.")


def _run_command(args: argparse.Namespace, connection: sqlite3.Connection) -> None:
    rentals = RentalService(connection)
    command = args.command
    if command == "init-db":
        print(f"Database ready: {args.db}")
    elif command == "preview":
        quote = rentals.preview_price(
            args.car_id, args.rate_type, args.start_at, args.planned_end_at
        )
        print(
            f"{quote.rate_type.value} base_price={format_money(quote.base_price)} "
            f"discount={quote.discount_percent}%"
        )
    elif command == "create":
        print(
            _format_rental(
                rentals.create_rental(
                    args.customer_id,
                    args.car_id,
                    args.start_at,
                    args.planned_end_at,
                    args.rate_type,
                    notes=args.notes,
                )
            )
        )
    elif command == "update":
        print(
            _format_rental(
                rentals.update_rental(
                    args.rental_id, args.planned_end_at, args.rate_type, notes=args.notes
                )
            )
        )
    elif command == "extend":
        print(_format_rental(rentals.extend_rental(args.rental_id, args.new_planned_end_at)))
    elif command == "return":
        print(
            _format_rental(
                rentals.return_rental(
                    args.rental_id,
                    actual_return_at=args.actual_return_at,
                    new_mileage_km=args.new_mileage_km,
                )
            )
        )
    elif command == "cancel":
        print(_format_rental(rentals.cancel_rental(args.rental_id)))
    elif command == "delete":
        rentals.delete_rental(args.rental_id)
        print(f"Deleted rental #{args.rental_id}")
    elif command == "active":
        _print_rentals(rentals.list_active())
    elif command == "overdue":
        _print_rentals(rentals.list_overdue())
    elif command == "available":
        cars = AvailabilityService(connection).available_cars(args.start_at, args.end_at)
        for car in cars:
            print(_format_car(car))
        if not cars:
            print("No cars available.")
    elif command == "cars":
        car_list = (
            CarService(connection).list_by_status(args.status)
            if args.status
            else CarRepo(connection).list_all()
        )
        for car in car_list:
            print(_format_car(car))
    elif command == "customers":
        for customer in CustomerRepo(connection).list_all():
            print(f"#{customer.id} {customer.full_name} <{customer.email}>")
    elif command == "categories":
        for category in CatalogRepo(connection).list_categories():
            print(
                f"#{category.id} {category.name} daily={category.daily_discount_percent}% "
                f"weekly={category.weekly_discount_percent}%"
            )
    elif command == "history":
        _print_rentals(CarService(connection).rental_history(args.car_id))
    elif command == "summary":
        summary = DashboardService(connection).get_summary()
        print(f"Rentals today: {summary.rentals_today}")
        print(f"Rentals this week: {summary.rentals_this_week}")
        print(f"Active: {summary.active}")
        print(f"Overdue: {summary.overdue}")
        print(f"Revenue today: {format_money(summary.revenue_today)}")
        print(f"Revenue this week: {format_money(summary.revenue_this_week)}")
    elif command == "receipt":
        path = ReceiptService(connection).export_receipt(args.rental_id, args.output_dir)
        print(f"Receipt written to {path}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run one CarRentalAdmin command."""
    config = AppConfig()
    args = _build_parser(config).parse_args(argv)
    configure_logging(
        logging.DEBUG if args.verbose else logging.INFO, console=args.verbose
    )
    logger = get_logger(__name__)
    if args.db is None:
        args.db = get_db_path()
    logger.info(
        "Starting %s %s (%s) command=%s db=%s",
        config.app_name,
        config.version,
        config.organization_name,
        args.command,
        args.db,
    )

    connection = get_connection(args.db)
    try:
        apply_migrations(connection)
        _run_command(args, connection)
    except ServiceError as exc:
        logger.warning("Command %s failed: %s", args.command, exc)
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_SERVICE_ERROR
    finally:
        connection.close()
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
