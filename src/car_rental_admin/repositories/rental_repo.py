"""Repository helpers for rental persistence.

Write helpers here never commit: the rental service wraps every call in its
own transaction so that the rental row and the car row change together.
"""

from __future__ import annotations

import sqlite3
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Optional

from car_rental_admin.domain.models import Rental, RentalStatus
from car_rental_admin.logging_config import get_logger
from car_rental_admin.repositories.mappers import rental_from_row, rental_to_record
from car_rental_admin.utils.dates import to_iso
from car_rental_admin.utils.money import ZERO, round2


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


def _coerce_status(status: str | RentalStatus) -> RentalStatus:
    if isinstance(status, RentalStatus):
        return status
    return RentalStatus(status)


def create_rental(
    rental: Rental,
    *,
    connection: sqlite3.Connection,
) -> Rental:
    """Insert a rental and return it with its id and timestamps."""
    logger = get_logger("rental_repo")
    created_at = _now_iso()
    record = rental_to_record(replace(rental, created_at=created_at, updated_at=created_at))
    record.pop("id")
    try:
        cursor = connection.execute(
            """
            INSERT INTO rentals (
                customer_id,
                car_id,
                start_at,
                planned_end_at,
                actual_return_at,
                rate_type,
                status,
                base_price,
                late_fee,
                total_price,
                notes,
                created_at,
                updated_at
            )
            VALUES (
                :customer_id,
                :car_id,
                :start_at,
                :planned_end_at,
                :actual_return_at,
                :rate_type,
                :status,
                :base_price,
                :late_fee,
                :total_price,
                :notes,
                :created_at,
                :updated_at
            )
            """,
            record,
        )
    except sqlite3.IntegrityError:
        logger.warning(
            "Rental insert rejected by constraint car_id=%s start_at=%s",
            rental.car_id,
            record["start_at"],
        )
        raise
    except Exception:
        logger.exception("Failed to create rental")
        raise
    return replace(rental, id=cursor.lastrowid, created_at=created_at, updated_at=created_at)


def save_rental(
    rental: Rental,
    *,
    connection: sqlite3.Connection,
) -> Rental:
    """Persist the mutable fields of an existing rental."""
    logger = get_logger("rental_repo")
    updated_at = _now_iso()
    record = rental_to_record(replace(rental, updated_at=updated_at))
    try:
        cursor = connection.execute(
            """
            UPDATE rentals
            SET
                planned_end_at = :planned_end_at,
                actual_return_at = :actual_return_at,
                rate_type = :rate_type,
                status = :status,
                base_price = :base_price,
                late_fee = :late_fee,
                total_price = :total_price,
                notes = :notes,
                updated_at = :updated_at
            WHERE id = :id
            """,
            record,
        )
    except Exception:
        logger.exception("Failed to update rental id=%s", rental.id)
        raise
    if cursor.rowcount == 0:
        raise LookupError(f"Rental {rental.id} vanished during update")
    return replace(rental, updated_at=updated_at)


def delete_rental(
    rental_id: int,
    *,
    connection: sqlite3.Connection,
) -> bool:
    logger = get_logger("rental_repo")
    try:
        cursor = connection.execute("DELETE FROM rentals WHERE id = ?", (rental_id,))
    except Exception:
        logger.exception("Failed to delete rental id=%s", rental_id)
        raise
    return cursor.rowcount > 0


def get_rental(
    rental_id: int,
    *,
    connection: sqlite3.Connection,
) -> Optional[Rental]:
    logger = get_logger("rental_repo")
    try:
        row = connection.execute(
            "SELECT * FROM rentals WHERE id = ?",
            (rental_id,),
        ).fetchone()
    except Exception:
        logger.exception("Failed to fetch rental id=%s", rental_id)
        raise
    return rental_from_row(row) if row else None


def has_active_overlap(
    car_id: int,
    start_at: datetime,
    end_at: datetime,
    *,
    connection: sqlite3.Connection,
) -> bool:
    """True if an ACTIVE rental of the car intersects ``[start_at, end_at)``."""
    logger = get_logger("rental_repo")
    try:
        row = connection.execute(
            """
            SELECT 1
            FROM rentals
            WHERE car_id = ?
              AND status = ?
              AND start_at < ?
              AND planned_end_at > ?
            LIMIT 1
            """,
            (car_id, RentalStatus.ACTIVE.value, to_iso(end_at), to_iso(start_at)),
        ).fetchone()
    except Exception:
        logger.exception("Failed to check overlap for car_id=%s", car_id)
        raise
    return row is not None


def list_by_status(
    status: str | RentalStatus,
    *,
    connection: sqlite3.Connection,
) -> list[Rental]:
    """Rentals in the given status, most recent start first."""
    logger = get_logger("rental_repo")
    try:
        rows = connection.execute(
            "SELECT * FROM rentals WHERE status = ? ORDER BY start_at DESC, id DESC",
            (_coerce_status(status).value,),
        ).fetchall()
    except Exception:
        logger.exception("Failed to list rentals status=%s", status)
        raise
    return [rental_from_row(row) for row in rows]


def list_overdue(
    reference: datetime,
    *,
    connection: sqlite3.Connection,
) -> list[Rental]:
    """ACTIVE rentals whose planned end is before ``reference``."""
    logger = get_logger("rental_repo")
    try:
        rows = connection.execute(
            """
            SELECT *
            FROM rentals
            WHERE status = ?
              AND planned_end_at < ?
            ORDER BY planned_end_at ASC, id ASC
            """,
            (RentalStatus.ACTIVE.value, to_iso(reference)),
        ).fetchall()
    except Exception:
        logger.exception("Failed to list overdue rentals")
        raise
    return [rental_from_row(row) for row in rows]


def list_by_car(
    car_id: int,
    *,
    connection: sqlite3.Connection,
) -> list[Rental]:
    logger = get_logger("rental_repo")
    try:
        rows = connection.execute(
            "SELECT * FROM rentals WHERE car_id = ? ORDER BY start_at DESC, id DESC",
            (car_id,),
        ).fetchall()
    except Exception:
        logger.exception("Failed to list rentals for car_id=%s", car_id)
        raise
    return [rental_from_row(row) for row in rows]


def count_by_status(
    status: str | RentalStatus,
    *,
    connection: sqlite3.Connection,
) -> int:
    row = connection.execute(
        "SELECT COUNT(*) AS total FROM rentals WHERE status = ?",
        (_coerce_status(status).value,),
    ).fetchone()
    return int(row["total"]) if row else 0


def count_overdue(
    reference: datetime,
    *,
    connection: sqlite3.Connection,
) -> int:
    row = connection.execute(
        """
        SELECT COUNT(*) AS total
        FROM rentals
        WHERE status = ?
          AND planned_end_at < ?
        """,
        (RentalStatus.ACTIVE.value, to_iso(reference)),
    ).fetchone()
    return int(row["total"]) if row else 0


def count_started_between(
    start: datetime,
    end: datetime,
    *,
    connection: sqlite3.Connection,
) -> int:
    row = connection.execute(
        """
        SELECT COUNT(*) AS total
        FROM rentals
        WHERE start_at >= ?
          AND start_at < ?
        """,
        (to_iso(start), to_iso(end)),
    ).fetchone()
    return int(row["total"]) if row else 0


def sum_revenue_between(
    start: datetime,
    end: datetime,
    *,
    connection: sqlite3.Connection,
) -> Decimal:
    """Sum of total_price of rentals returned in ``[start, end)``."""
    logger = get_logger("rental_repo")
    try:
        rows = connection.execute(
            """
            SELECT total_price
            FROM rentals
            WHERE status = ?
              AND actual_return_at >= ?
              AND actual_return_at < ?
            """,
            (RentalStatus.RETURNED.value, to_iso(start), to_iso(end)),
        ).fetchall()
    except Exception:
        logger.exception("Failed to sum revenue")
        raise
    # Amounts are stored as decimal text; summing in SQL would go through REAL.
    return round2(sum((Decimal(row["total_price"]) for row in rows), ZERO))
