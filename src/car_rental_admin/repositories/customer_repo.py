"""Repository for customer persistence."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import List, Optional

from car_rental_admin.db.connection import transaction
from car_rental_admin.domain.models import Customer
from car_rental_admin.logging_config import get_logger
from car_rental_admin.repositories.mappers import customer_from_row


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


class CustomerRepo:
    """Persistence for customers."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def create(
        self,
        first_name: str,
        last_name: str,
        email: str,
        phone: Optional[str] = None,
        address: Optional[str] = None,
    ) -> Customer:
        created_at = _now_iso()
        try:
            with transaction(self._connection):
                cursor = self._connection.execute(
                    """
                    INSERT INTO customers (
                        first_name,
                        last_name,
                        email,
                        phone,
                        address,
                        created_at,
                        updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (first_name, last_name, email, phone, address, created_at, created_at),
                )
        except Exception:
            self._logger.exception("Failed to create customer")
            raise

        return Customer(
            id=cursor.lastrowid,
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=phone,
            address=address,
            created_at=created_at,
            updated_at=created_at,
        )

    def list_all(self) -> List[Customer]:
        try:
            rows = self._connection.execute(
                "SELECT * FROM customers ORDER BY last_name, first_name"
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list customers")
            raise
        return [customer_from_row(row) for row in rows]

    def get_by_id(self, customer_id: int) -> Optional[Customer]:
        try:
            row = self._connection.execute(
                "SELECT * FROM customers WHERE id = ?",
                (customer_id,),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to get customer id=%s", customer_id)
            raise
        return customer_from_row(row) if row else None
