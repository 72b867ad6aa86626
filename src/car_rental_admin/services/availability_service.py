"""Car availability checks."""

from __future__ import annotations

import sqlite3
from datetime import datetime

from car_rental_admin.domain.models import Car, CarStatus
from car_rental_admin.logging_config import get_logger
from car_rental_admin.repositories import rental_repo
from car_rental_admin.repositories.car_repo import CarRepo
from car_rental_admin.services.errors import ValidationError


class AvailabilityService:
    """Decides whether cars are free for a half-open interval.

    Only ACTIVE rentals block a car; returned and canceled ones never do,
    whatever dates they carry. Intervals that merely touch do not conflict.
    """

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._car_repo = CarRepo(connection)
        self._logger = get_logger(self.__class__.__name__)

    def is_available(self, car: Car, start_at: datetime, end_at: datetime) -> bool:
        if car.status != CarStatus.AVAILABLE:
            return False
        return not rental_repo.has_active_overlap(
            car.id, start_at, end_at, connection=self._connection
        )

    def available_cars(self, start_at: datetime, end_at: datetime) -> list[Car]:
        if start_at is None or end_at is None or end_at <= start_at:
            raise ValidationError("'to' must be after 'from'")
        cars = self._car_repo.list_available_between(start_at, end_at)
        self._logger.debug(
            "%s cars available between %s and %s", len(cars), start_at, end_at
        )
        return cars
