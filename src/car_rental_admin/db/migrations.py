"""Database migrations for SQLite schema versioning."""

from __future__ import annotations

from dataclasses import dataclass
import sqlite3

from car_rental_admin.db.connection import transaction
from car_rental_admin.logging_config import get_logger


@dataclass(frozen=True)
class Migration:
    version: int
    script: str


MIGRATIONS: list[Migration] = [
    Migration(
        version=1,
        script="""
        CREATE TABLE IF NOT EXISTS brands (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE,
            created_at TEXT,
            updated_at TEXT
        );

        CREATE TABLE IF NOT EXISTS car_models (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            brand_id INTEGER NOT NULL,
            created_at TEXT,
            updated_at TEXT,
            FOREIGN KEY (brand_id) REFERENCES brands(id),
            UNIQUE (brand_id, name)
        );

        CREATE TABLE IF NOT EXISTS categories (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE,
            description TEXT,
            daily_discount_percent TEXT NOT NULL DEFAULT '0',
            weekly_discount_percent TEXT NOT NULL DEFAULT '0',
            created_at TEXT,
            updated_at TEXT
        );

        CREATE TABLE IF NOT EXISTS customers (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            first_name TEXT NOT NULL,
            last_name TEXT NOT NULL,
            email TEXT NOT NULL,
            phone TEXT,
            address TEXT,
            created_at TEXT,
            updated_at TEXT
        );

        CREATE TABLE IF NOT EXISTS cars (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            vin TEXT NOT NULL UNIQUE,
            license_plate TEXT NOT NULL UNIQUE,
            production_year INTEGER NOT NULL,
            color TEXT,
            status TEXT NOT NULL DEFAULT 'AVAILABLE'
                CHECK (status IN ('AVAILABLE', 'RENTED', 'MAINTENANCE')),
            model_id INTEGER NOT NULL,
            category_id INTEGER NOT NULL,
            hourly_rate TEXT NOT NULL,
            daily_rate TEXT NOT NULL,
            weekly_rate TEXT NOT NULL,
            mileage_km INTEGER NOT NULL DEFAULT 0 CHECK (mileage_km >= 0),
            created_at TEXT,
            updated_at TEXT,
            FOREIGN KEY (model_id) REFERENCES car_models(id),
            FOREIGN KEY (category_id) REFERENCES categories(id)
        );

        CREATE TABLE IF NOT EXISTS rentals (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            customer_id INTEGER NOT NULL,
            car_id INTEGER NOT NULL,
            start_at TEXT NOT NULL,
            planned_end_at TEXT NOT NULL,
            actual_return_at TEXT,
            rate_type TEXT NOT NULL CHECK (rate_type IN ('HOURLY', 'DAILY', 'WEEKLY')),
            status TEXT NOT NULL CHECK (status IN ('ACTIVE', 'RETURNED', 'CANCELED')),
            base_price TEXT NOT NULL DEFAULT '0.00',
            late_fee TEXT NOT NULL DEFAULT '0.00',
            total_price TEXT NOT NULL DEFAULT '0.00',
            notes TEXT,
            created_at TEXT,
            updated_at TEXT,
            FOREIGN KEY (customer_id) REFERENCES customers(id),
            FOREIGN KEY (car_id) REFERENCES cars(id),
            CHECK (planned_end_at > start_at)
        );

        CREATE INDEX IF NOT EXISTS idx_cars_status
            ON cars(status);
        CREATE INDEX IF NOT EXISTS idx_rentals_car_status
            ON rentals(car_id, status);
        CREATE INDEX IF NOT EXISTS idx_rentals_status_planned_end
            ON rentals(status, planned_end_at);
        CREATE INDEX IF NOT EXISTS idx_rentals_start_at
            ON rentals(start_at);
        CREATE INDEX IF NOT EXISTS idx_rentals_customer_id
            ON rentals(customer_id);
        """,
    ),
    Migration(
        version=2,
        script="""
        CREATE TRIGGER IF NOT EXISTS trg_rentals_no_overlap
        BEFORE INSERT ON rentals
        WHEN NEW.status = 'ACTIVE'
        BEGIN
            SELECT RAISE(ABORT, 'overlapping active rental for car')
            WHERE EXISTS (
                SELECT 1
                FROM rentals r
                WHERE r.car_id = NEW.car_id
                  AND r.status = 'ACTIVE'
                  AND r.start_at < NEW.planned_end_at
                  AND r.planned_end_at > NEW.start_at
            );
        END;
        """,
    ),
]


def _fetch_schema_version(connection: sqlite3.Connection) -> int:
    connection.execute(
        """
        CREATE TABLE IF NOT EXISTS app_meta (
            schema_version INTEGER NOT NULL
        );
        """
    )
    row = connection.execute(
        "SELECT schema_version FROM app_meta LIMIT 1"
    ).fetchone()
    if row is None:
        connection.execute("INSERT INTO app_meta (schema_version) VALUES (0)")
        return 0
    return int(row[0])


def apply_migrations(connection: sqlite3.Connection) -> int:
    """Apply pending database migrations and return the resulting version."""
    logger = get_logger("migrations")
    with transaction(connection):
        current_version = _fetch_schema_version(connection)

    for migration in MIGRATIONS:
        if migration.version <= current_version:
            continue
        try:
            connection.executescript(
                "BEGIN;\n"
                f"{migration.script}\n"
                f"UPDATE app_meta SET schema_version = {migration.version};\n"
                "COMMIT;"
            )
        except sqlite3.Error:
            if connection.in_transaction:
                connection.rollback()
            logger.exception("Failed to apply migration version=%s", migration.version)
            raise
        logger.info("Applied migration version=%s", migration.version)
        current_version = migration.version
    return current_version
