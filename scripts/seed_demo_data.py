"""Seed demo data into the CarRentalAdmin SQLite database."""

from __future__ import annotations

import argparse
import random
import sqlite3
import sys
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from car_rental_admin.db.connection import get_connection  # noqa: E402
from car_rental_admin.db.migrations import apply_migrations  # noqa: E402
from car_rental_admin.domain.models import Car, RateType  # noqa: E402
from car_rental_admin.paths import get_db_path  # noqa: E402
from car_rental_admin.repositories.catalog_repo import CatalogRepo  # noqa: E402
from car_rental_admin.repositories.customer_repo import CustomerRepo  # noqa: E402
from car_rental_admin.services.car_service import CarService  # noqa: E402
from car_rental_admin.services.errors import ValidationError  # noqa: E402
from car_rental_admin.services.rental_service import RentalService  # noqa: E402

SEED_TAG = "Seed Demo"
DEFAULT_SEED = 42


@dataclass(frozen=True)
class CategorySeed:
    name: str
    daily_discount: str
    weekly_discount: str


@dataclass(frozen=True)
class CarSeed:
    brand: str
    model: str
    category: str
    hourly_rate: str
    daily_rate: str
    weekly_rate: str


CATEGORIES = [
    CategorySeed("Economy", "0", "10"),
    CategorySeed("Compact", "5", "15"),
    CategorySeed("SUV", "10", "20"),
    CategorySeed("Premium", "0", "5"),
]

CARS = [
    CarSeed("Toyota", "Yaris", "Economy", "8", "40", "240"),
    CarSeed("Skoda", "Fabia", "Economy", "8", "42", "250"),
    CarSeed("Volkswagen", "Golf", "Compact", "11", "55", "330"),
    CarSeed("Toyota", "Corolla", "Compact", "12", "60", "360"),
    CarSeed("Kia", "Sportage", "SUV", "15", "85", "500"),
    CarSeed("Volvo", "XC60", "Premium", "25", "140", "850"),
]

FIRST_NAMES = ["Anna", "Jan", "Piotr", "Maria", "Tomasz", "Katarzyna", "Paweł", "Ewa"]
LAST_NAMES = ["Nowak", "Kowalski", "Wiśniewski", "Wójcik", "Kamiński", "Lewandowska"]
COLORS = ["Black", "White", "Silver", "Blue", "Red", "Grey"]


class SteppingClock:
    """Clock the seeder moves forward to create rentals in the past."""

    def __init__(self, current: datetime) -> None:
        self.current = current

    def __call__(self) -> datetime:
        return self.current


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed demo data for CarRentalAdmin")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Remove the current database and recreate it before inserting data.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=DEFAULT_SEED,
        help="Seed for the random generator.",
    )
    parser.add_argument(
        "--days",
        type=int,
        default=30,
        help="How many days of rental history to simulate.",
    )
    return parser.parse_args()


def _seed_exists(connection: sqlite3.Connection) -> bool:
    row = connection.execute(
        "SELECT 1 FROM customers WHERE address = ? LIMIT 1", (SEED_TAG,)
    ).fetchone()
    return row is not None


def _random_vin(rng: random.Random) -> str:
    alphabet = "ABCDEFGHJKLMNPRSTUVWXYZ0123456789"
    return "".join(rng.choice(alphabet) for _ in range(17))


def _random_plate(rng: random.Random) -> str:
    letters = "".join(rng.choice("ABCDEFGHKLMNPRSTWXYZ") for _ in range(2))
    return f"{letters} {rng.randint(10000, 99999)}"


def _seed_catalog(connection: sqlite3.Connection, rng: random.Random) -> list[Car]:
    catalog = CatalogRepo(connection)
    cars = CarService(connection)
    categories = {
        seed.name: catalog.create_category(
            seed.name,
            daily_discount_percent=Decimal(seed.daily_discount),
            weekly_discount_percent=Decimal(seed.weekly_discount),
        )
        for seed in CATEGORIES
    }
    brands: dict[str, int] = {}
    created: list[Car] = []
    for seed in CARS:
        if seed.brand not in brands:
            brands[seed.brand] = catalog.create_brand(seed.brand).id
        model = catalog.create_model(seed.model, brands[seed.brand])
        for _ in range(2):
            created.append(
                cars.register_car(
                    vin=_random_vin(rng),
                    license_plate=_random_plate(rng),
                    production_year=rng.randint(2017, 2025),
                    model_id=model.id,
                    category_id=categories[seed.category].id,
                    hourly_rate=seed.hourly_rate,
                    daily_rate=seed.daily_rate,
                    weekly_rate=seed.weekly_rate,
                    color=rng.choice(COLORS),
                    mileage_km=rng.randint(5_000, 90_000),
                )
            )
    return created


def _seed_customers(connection: sqlite3.Connection, rng: random.Random, count: int) -> list[int]:
    repo = CustomerRepo(connection)
    ids = []
    for index in range(count):
        first = rng.choice(FIRST_NAMES)
        last = rng.choice(LAST_NAMES)
        ids.append(
            repo.create(
                first,
                last,
                f"{first.lower()}.{last.lower()}{index}@example.com",
                phone=f"+48 {rng.randint(500, 899)} {rng.randint(100, 999)} {rng.randint(100, 999)}",
                address=SEED_TAG,
            ).id
        )
    return ids


def _simulate_rentals(
    connection: sqlite3.Connection,
    rng: random.Random,
    cars: list[Car],
    customer_ids: list[int],
    days: int,
) -> dict[str, int]:
    now = datetime.now().replace(second=0, microsecond=0)
    clock = SteppingClock(now - timedelta(days=days))
    service = RentalService(connection, clock=clock)
    stats = {"created": 0, "returned": 0, "canceled": 0, "rejected": 0}
    mileage = {car.id: car.mileage_km for car in cars}

    while clock.current < now:
        for rental in service.list_active():
            if rental.planned_end_at > clock.current:
                continue
            mileage[rental.car_id] += rng.randint(50, 900)
            service.return_rental(
                rental.id,
                actual_return_at=clock.current,
                new_mileage_km=mileage[rental.car_id],
            )
            stats["returned"] += 1

        car = rng.choice(cars)
        rate_type = rng.choice(list(RateType))
        length = {
            RateType.HOURLY: timedelta(hours=rng.randint(2, 10)),
            RateType.DAILY: timedelta(days=rng.randint(1, 5)),
            RateType.WEEKLY: timedelta(days=rng.randint(7, 14)),
        }[rate_type]
        try:
            rental = service.create_rental(
                rng.choice(customer_ids),
                car.id,
                clock.current,
                clock.current + length,
                rate_type,
            )
        except ValidationError:
            stats["rejected"] += 1
        else:
            stats["created"] += 1
            if rng.random() < 0.08:
                service.cancel_rental(rental.id)
                stats["canceled"] += 1
        clock.current += timedelta(hours=rng.randint(3, 12))
    return stats


def main() -> None:
    args = _parse_args()
    rng = random.Random(args.seed)

    db_path = get_db_path()
    if args.reset and db_path.exists():
        db_path.unlink()
        print(f"Database removed: {db_path}")

    print(f"Using database: {db_path}")
    connection = get_connection(db_path)
    try:
        apply_migrations(connection)
        if _seed_exists(connection) and not args.reset:
            print("Seed data already present. Use --reset to recreate the database.")
            return

        cars = _seed_catalog(connection, rng)
        customer_ids = _seed_customers(connection, rng, 25)
        stats = _simulate_rentals(connection, rng, cars, customer_ids, args.days)
    finally:
        connection.close()

    print(f"Cars: {len(cars)}")
    print(f"Customers: {len(customer_ids)}")
    print(
        "Rentals: {created} created, {returned} returned, {canceled} canceled, "
        "{rejected} rejected as unavailable".format(**stats)
    )


if __name__ == "__main__":
    main()
