"""Car catalog rules."""

from __future__ import annotations

import sqlite3
from decimal import Decimal, InvalidOperation
from typing import Optional

from car_rental_admin.db.connection import transaction
from car_rental_admin.domain.models import Car, CarStatus, Rental
from car_rental_admin.logging_config import get_logger
from car_rental_admin.repositories import rental_repo
from car_rental_admin.repositories.car_repo import CarRepo
from car_rental_admin.repositories.catalog_repo import CatalogRepo
from car_rental_admin.services.errors import NotFoundError, ValidationError


class CarService:
    """Service for registering cars and reading their rental history."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._car_repo = CarRepo(connection)
        self._catalog_repo = CatalogRepo(connection)
        self._logger = get_logger(self.__class__.__name__)

    def register_car(
        self,
        *,
        vin: str,
        license_plate: str,
        production_year: int,
        model_id: int,
        category_id: int,
        hourly_rate: Decimal | str,
        daily_rate: Decimal | str,
        weekly_rate: Decimal | str,
        color: Optional[str] = None,
        mileage_km: int = 0,
    ) -> Car:
        vin = vin.strip().upper()
        license_plate = license_plate.strip().upper()
        if not vin or not license_plate:
            raise ValidationError("VIN and license plate are required.")
        try:
            car = Car(
                id=None,
                vin=vin,
                license_plate=license_plate,
                production_year=production_year,
                color=color,
                model_id=model_id,
                category_id=category_id,
                hourly_rate=hourly_rate,
                daily_rate=daily_rate,
                weekly_rate=weekly_rate,
                mileage_km=mileage_km,
                status=CarStatus.AVAILABLE,
            )
        except InvalidOperation as exc:
            raise ValidationError("Rates must be decimal amounts") from exc
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        with transaction(self._connection, immediate=True):
            if self._car_repo.exists_by_vin(vin):
                raise ValidationError(f"Car with VIN {vin} already exists")
            if self._car_repo.exists_by_license_plate(license_plate):
                raise ValidationError(f"Car with license plate {license_plate} already exists")
            if not self._catalog_repo.get_model(model_id):
                raise NotFoundError(f"Model not found: {model_id}")
            if not self._catalog_repo.get_category(category_id):
                raise NotFoundError(f"Category not found: {category_id}")
            try:
                car = self._car_repo.create(car)
            except sqlite3.IntegrityError as exc:
                raise ValidationError(
                    f"Car with VIN {vin} or license plate {license_plate} already exists"
                ) from exc
        self._logger.info("Registered car id=%s plate=%s", car.id, car.license_plate)
        return car

    def get_car(self, car_id: int) -> Car:
        car = self._car_repo.get_by_id(car_id)
        if not car:
            raise NotFoundError(f"Car not found: {car_id}")
        return car

    def list_by_status(self, status: CarStatus) -> list[Car]:
        return self._car_repo.list_by_status(status)

    def rental_history(self, car_id: int) -> list[Rental]:
        """Rentals of one car, most recent start first."""
        self.get_car(car_id)
        return rental_repo.list_by_car(car_id, connection=self._connection)

    def find_status_drift(self) -> list[int]:
        """Ids of cars whose stored status disagrees with their ACTIVE rentals."""
        drift = self._car_repo.list_status_drift()
        if drift:
            self._logger.warning("Car status out of sync for car ids %s", drift)
        return drift
