"""SQLite row mappers for domain models."""

from __future__ import annotations

import sqlite3
from typing import Any, Dict

from car_rental_admin.domain.models import (
    Brand,
    Car,
    CarModel,
    CarStatus,
    Category,
    Customer,
    RateType,
    Rental,
    RentalStatus,
)
from car_rental_admin.utils.dates import (
    parse_datetime,
    parse_optional_datetime,
    to_iso,
    to_optional_iso,
)
from car_rental_admin.utils.money import to_decimal


def _row_value(row: sqlite3.Row, key: str) -> Any:
    return row[key] if key in row.keys() else None


def brand_from_row(row: sqlite3.Row) -> Brand:
    return Brand(
        id=_row_value(row, "id"),
        name=row["name"],
        created_at=_row_value(row, "created_at"),
        updated_at=_row_value(row, "updated_at"),
    )


def car_model_from_row(row: sqlite3.Row) -> CarModel:
    return CarModel(
        id=_row_value(row, "id"),
        name=row["name"],
        brand_id=row["brand_id"],
        created_at=_row_value(row, "created_at"),
        updated_at=_row_value(row, "updated_at"),
    )


def category_from_row(row: sqlite3.Row) -> Category:
    return Category(
        id=_row_value(row, "id"),
        name=row["name"],
        description=_row_value(row, "description"),
        daily_discount_percent=to_decimal(_row_value(row, "daily_discount_percent")),
        weekly_discount_percent=to_decimal(_row_value(row, "weekly_discount_percent")),
        created_at=_row_value(row, "created_at"),
        updated_at=_row_value(row, "updated_at"),
    )


def customer_from_row(row: sqlite3.Row) -> Customer:
    return Customer(
        id=_row_value(row, "id"),
        first_name=row["first_name"],
        last_name=row["last_name"],
        email=row["email"],
        phone=_row_value(row, "phone"),
        address=_row_value(row, "address"),
        created_at=_row_value(row, "created_at"),
        updated_at=_row_value(row, "updated_at"),
    )


def car_from_row(row: sqlite3.Row) -> Car:
    return Car(
        id=_row_value(row, "id"),
        vin=row["vin"],
        license_plate=row["license_plate"],
        production_year=row["production_year"],
        color=_row_value(row, "color"),
        model_id=row["model_id"],
        category_id=row["category_id"],
        hourly_rate=to_decimal(row["hourly_rate"]),
        daily_rate=to_decimal(row["daily_rate"]),
        weekly_rate=to_decimal(row["weekly_rate"]),
        mileage_km=row["mileage_km"],
        status=CarStatus(row["status"]),
        created_at=_row_value(row, "created_at"),
        updated_at=_row_value(row, "updated_at"),
    )


def car_to_record(car: Car) -> Dict[str, Any]:
    return {
        "id": car.id,
        "vin": car.vin,
        "license_plate": car.license_plate,
        "production_year": car.production_year,
        "color": car.color,
        "status": car.status.value,
        "model_id": car.model_id,
        "category_id": car.category_id,
        "hourly_rate": str(car.hourly_rate),
        "daily_rate": str(car.daily_rate),
        "weekly_rate": str(car.weekly_rate),
        "mileage_km": car.mileage_km,
        "created_at": car.created_at,
        "updated_at": car.updated_at,
    }


def rental_from_row(row: sqlite3.Row) -> Rental:
    return Rental(
        id=_row_value(row, "id"),
        customer_id=row["customer_id"],
        car_id=row["car_id"],
        start_at=parse_datetime(row["start_at"]),
        planned_end_at=parse_datetime(row["planned_end_at"]),
        actual_return_at=parse_optional_datetime(_row_value(row, "actual_return_at")),
        rate_type=RateType(row["rate_type"]),
        status=RentalStatus(row["status"]),
        base_price=to_decimal(row["base_price"]),
        late_fee=to_decimal(row["late_fee"]),
        total_price=to_decimal(row["total_price"]),
        notes=_row_value(row, "notes"),
        created_at=_row_value(row, "created_at"),
        updated_at=_row_value(row, "updated_at"),
    )


def rental_to_record(rental: Rental) -> Dict[str, Any]:
    return {
        "id": rental.id,
        "customer_id": rental.customer_id,
        "car_id": rental.car_id,
        "start_at": to_iso(rental.start_at),
        "planned_end_at": to_iso(rental.planned_end_at),
        "actual_return_at": to_optional_iso(rental.actual_return_at),
        "rate_type": rental.rate_type.value,
        "status": rental.status.value,
        "base_price": str(rental.base_price),
        "late_fee": str(rental.late_fee),
        "total_price": str(rental.total_price),
        "notes": rental.notes,
        "created_at": rental.created_at,
        "updated_at": rental.updated_at,
    }
