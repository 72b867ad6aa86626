"""Repository for car persistence."""

from __future__ import annotations

import sqlite3
from dataclasses import replace
from datetime import datetime
from typing import List, Optional

from car_rental_admin.db.connection import transaction
from car_rental_admin.domain.models import Car, CarStatus, RentalStatus
from car_rental_admin.logging_config import get_logger
from car_rental_admin.repositories.mappers import car_from_row, car_to_record
from car_rental_admin.utils.dates import to_iso


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


class CarRepo:
    """Persistence for cars.

    ``set_status`` and ``set_mileage`` do not commit on their own: they are
    meant to run inside the rental service's unit of work.
    """

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def create(self, car: Car) -> Car:
        created_at = _now_iso()
        record = car_to_record(replace(car, created_at=created_at, updated_at=created_at))
        record.pop("id")
        try:
            with transaction(self._connection):
                cursor = self._connection.execute(
                    """
                    INSERT INTO cars (
                        vin,
                        license_plate,
                        production_year,
                        color,
                        status,
                        model_id,
                        category_id,
                        hourly_rate,
                        daily_rate,
                        weekly_rate,
                        mileage_km,
                        created_at,
                        updated_at
                    )
                    VALUES (
                        :vin,
                        :license_plate,
                        :production_year,
                        :color,
                        :status,
                        :model_id,
                        :category_id,
                        :hourly_rate,
                        :daily_rate,
                        :weekly_rate,
                        :mileage_km,
                        :created_at,
                        :updated_at
                    )
                    """,
                    record,
                )
        except sqlite3.IntegrityError:
            self._logger.warning(
                "Car insert rejected by constraint vin=%s plate=%s",
                car.vin,
                car.license_plate,
            )
            raise
        except Exception:
            self._logger.exception("Failed to create car vin=%s", car.vin)
            raise
        return replace(car, id=cursor.lastrowid, created_at=created_at, updated_at=created_at)

    def get_by_id(self, car_id: int) -> Optional[Car]:
        try:
            row = self._connection.execute(
                "SELECT * FROM cars WHERE id = ?",
                (car_id,),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to get car id=%s", car_id)
            raise
        return car_from_row(row) if row else None

    def get_label(self, car_id: int) -> Optional[str]:
        """Human readable "Brand Model (PLATE)" label."""
        try:
            row = self._connection.execute(
                """
                SELECT b.name AS brand_name, m.name AS model_name, c.license_plate
                FROM cars c
                JOIN car_models m ON m.id = c.model_id
                JOIN brands b ON b.id = m.brand_id
                WHERE c.id = ?
                """,
                (car_id,),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to build label for car id=%s", car_id)
            raise
        if not row:
            return None
        return f"{row['brand_name']} {row['model_name']} ({row['license_plate']})"

    def exists_by_vin(self, vin: str) -> bool:
        row = self._connection.execute(
            "SELECT 1 FROM cars WHERE vin = ?", (vin,)
        ).fetchone()
        return row is not None

    def exists_by_license_plate(self, license_plate: str) -> bool:
        row = self._connection.execute(
            "SELECT 1 FROM cars WHERE license_plate = ?", (license_plate,)
        ).fetchone()
        return row is not None

    def list_all(self) -> List[Car]:
        try:
            rows = self._connection.execute("SELECT * FROM cars ORDER BY id").fetchall()
        except Exception:
            self._logger.exception("Failed to list cars")
            raise
        return [car_from_row(row) for row in rows]

    def list_by_status(self, status: CarStatus) -> List[Car]:
        try:
            rows = self._connection.execute(
                "SELECT * FROM cars WHERE status = ? ORDER BY id",
                (CarStatus(status).value,),
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list cars status=%s", status)
            raise
        return [car_from_row(row) for row in rows]

    def list_available_between(self, start_at: datetime, end_at: datetime) -> List[Car]:
        """Cars marked AVAILABLE with no ACTIVE rental intersecting [start_at, end_at)."""
        try:
            rows = self._connection.execute(
                """
                SELECT c.*
                FROM cars c
                WHERE c.status = ?
                  AND c.id NOT IN (
                      SELECT r.car_id
                      FROM rentals r
                      WHERE r.status = ?
                        AND r.start_at < ?
                        AND r.planned_end_at > ?
                  )
                ORDER BY c.id
                """,
                (
                    CarStatus.AVAILABLE.value,
                    RentalStatus.ACTIVE.value,
                    to_iso(end_at),
                    to_iso(start_at),
                ),
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list available cars")
            raise
        return [car_from_row(row) for row in rows]

    def list_status_drift(self) -> List[int]:
        """Ids of cars whose RENTED flag disagrees with their ACTIVE rentals."""
        rows = self._connection.execute(
            """
            SELECT c.id
            FROM cars c
            LEFT JOIN (
                SELECT DISTINCT car_id FROM rentals WHERE status = ?
            ) a ON a.car_id = c.id
            WHERE (c.status = ?) <> (a.car_id IS NOT NULL)
            ORDER BY c.id
            """,
            (RentalStatus.ACTIVE.value, CarStatus.RENTED.value),
        ).fetchall()
        return [int(row["id"]) for row in rows]

    def set_status(self, car_id: int, status: CarStatus) -> bool:
        try:
            cursor = self._connection.execute(
                "UPDATE cars SET status = ?, updated_at = ? WHERE id = ?",
                (CarStatus(status).value, _now_iso(), car_id),
            )
        except Exception:
            self._logger.exception("Failed to set status car id=%s", car_id)
            raise
        return cursor.rowcount > 0

    def set_mileage(self, car_id: int, mileage_km: int) -> bool:
        try:
            cursor = self._connection.execute(
                "UPDATE cars SET mileage_km = ?, updated_at = ? WHERE id = ?",
                (mileage_km, _now_iso(), car_id),
            )
        except Exception:
            self._logger.exception("Failed to set mileage car id=%s", car_id)
            raise
        return cursor.rowcount > 0
