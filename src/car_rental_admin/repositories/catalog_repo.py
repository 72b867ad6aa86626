"""Repository for brands, car models and categories."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from car_rental_admin.db.connection import transaction
from car_rental_admin.domain.models import Brand, CarModel, Category
from car_rental_admin.logging_config import get_logger
from car_rental_admin.repositories.mappers import (
    brand_from_row,
    car_model_from_row,
    category_from_row,
)


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


class CatalogRepo:
    """Create and look up the reference data cars point to."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def create_brand(self, name: str) -> Brand:
        created_at = _now_iso()
        try:
            with transaction(self._connection):
                cursor = self._connection.execute(
                    "INSERT INTO brands (name, created_at, updated_at) VALUES (?, ?, ?)",
                    (name, created_at, created_at),
                )
        except Exception:
            self._logger.exception("Failed to create brand name=%s", name)
            raise
        return Brand(id=cursor.lastrowid, name=name, created_at=created_at, updated_at=created_at)

    def create_model(self, name: str, brand_id: int) -> CarModel:
        created_at = _now_iso()
        try:
            with transaction(self._connection):
                cursor = self._connection.execute(
                    """
                    INSERT INTO car_models (name, brand_id, created_at, updated_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (name, brand_id, created_at, created_at),
                )
        except Exception:
            self._logger.exception("Failed to create car model name=%s", name)
            raise
        return CarModel(
            id=cursor.lastrowid,
            name=name,
            brand_id=brand_id,
            created_at=created_at,
            updated_at=created_at,
        )

    def create_category(
        self,
        name: str,
        description: Optional[str] = None,
        daily_discount_percent: Optional[Decimal] = None,
        weekly_discount_percent: Optional[Decimal] = None,
    ) -> Category:
        created_at = _now_iso()
        category = Category(
            id=None,
            name=name,
            description=description,
            daily_discount_percent=daily_discount_percent or Decimal("0"),
            weekly_discount_percent=weekly_discount_percent or Decimal("0"),
            created_at=created_at,
            updated_at=created_at,
        )
        try:
            with transaction(self._connection):
                cursor = self._connection.execute(
                    """
                    INSERT INTO categories (
                        name,
                        description,
                        daily_discount_percent,
                        weekly_discount_percent,
                        created_at,
                        updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        category.name,
                        category.description,
                        str(category.daily_discount_percent),
                        str(category.weekly_discount_percent),
                        created_at,
                        created_at,
                    ),
                )
        except Exception:
            self._logger.exception("Failed to create category name=%s", name)
            raise
        return Category(
            id=cursor.lastrowid,
            name=category.name,
            description=category.description,
            daily_discount_percent=category.daily_discount_percent,
            weekly_discount_percent=category.weekly_discount_percent,
            created_at=created_at,
            updated_at=created_at,
        )

    def get_brand(self, brand_id: int) -> Optional[Brand]:
        row = self._fetch_one("SELECT * FROM brands WHERE id = ?", brand_id)
        return brand_from_row(row) if row else None

    def get_model(self, model_id: int) -> Optional[CarModel]:
        row = self._fetch_one("SELECT * FROM car_models WHERE id = ?", model_id)
        return car_model_from_row(row) if row else None

    def get_category(self, category_id: int) -> Optional[Category]:
        row = self._fetch_one("SELECT * FROM categories WHERE id = ?", category_id)
        return category_from_row(row) if row else None

    def list_categories(self) -> List[Category]:
        try:
            rows = self._connection.execute(
                "SELECT * FROM categories ORDER BY name"
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list categories")
            raise
        return [category_from_row(row) for row in rows]

    def _fetch_one(self, query: str, entity_id: int) -> Optional[sqlite3.Row]:
        try:
            return self._connection.execute(query, (entity_id,)).fetchone()
        except Exception:
            self._logger.exception("Failed to fetch id=%s", entity_id)
            raise
