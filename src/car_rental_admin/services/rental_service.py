"""Rental service for business rules.

Owns the rental state machine (ACTIVE -> RETURNED | CANCELED) together with
the car status that mirrors it. Every mutating operation checks all of its
preconditions and writes the rental row and the car row inside a single
`BEGIN IMMEDIATE` transaction, so the ACTIVE check cannot go stale before the
write.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from car_rental_admin.db.connection import transaction
from car_rental_admin.domain.models import (
    Car,
    CarStatus,
    Category,
    Customer,
    RateType,
    Rental,
    RentalStatus,
)
from car_rental_admin.logging_config import get_logger
from car_rental_admin.repositories import rental_repo
from car_rental_admin.repositories.car_repo import CarRepo
from car_rental_admin.repositories.catalog_repo import CatalogRepo
from car_rental_admin.repositories.customer_repo import CustomerRepo
from car_rental_admin.services import pricing
from car_rental_admin.services.availability_service import AvailabilityService
from car_rental_admin.services.errors import NotFoundError, ValidationError
from car_rental_admin.services.late_fee import calculate_late_fee
from car_rental_admin.utils.dates import now as default_clock
from car_rental_admin.utils.dates import truncate_to_minute


@dataclass(frozen=True)
class PricePreview:
    base_price: Decimal
    discount_percent: Decimal
    rate_type: RateType


class RentalService:
    """Service for rental business rules."""

    def __init__(
        self,
        connection: sqlite3.Connection,
        *,
        clock: Callable[[], datetime] = default_clock,
    ) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._clock = clock
        self._car_repo = CarRepo(connection)
        self._customer_repo = CustomerRepo(connection)
        self._catalog_repo = CatalogRepo(connection)
        self._availability = AvailabilityService(connection)
        self._logger = get_logger(self.__class__.__name__)

    # ---------- lookups ----------
    def get_rental(self, rental_id: int) -> Rental:
        rental = rental_repo.get_rental(rental_id, connection=self._connection)
        if not rental:
            raise NotFoundError(f"Rental not found: {rental_id}")
        return rental

    def list_active(self) -> list[Rental]:
        return rental_repo.list_by_status(RentalStatus.ACTIVE, connection=self._connection)

    def list_overdue(self) -> list[Rental]:
        return rental_repo.list_overdue(self._clock(), connection=self._connection)

    def list_car_rentals(self, car_id: int) -> list[Rental]:
        self._get_car(car_id)
        return rental_repo.list_by_car(car_id, connection=self._connection)

    def _get_car(self, car_id: int) -> Car:
        car = self._car_repo.get_by_id(car_id)
        if not car:
            raise NotFoundError(f"Car not found: {car_id}")
        return car

    def _get_customer(self, customer_id: int) -> Customer:
        customer = self._customer_repo.get_by_id(customer_id)
        if not customer:
            raise NotFoundError(f"Customer not found: {customer_id}")
        return customer

    def _get_category(self, car: Car) -> Category:
        category = self._catalog_repo.get_category(car.category_id)
        if not category:
            raise NotFoundError(f"Category not found: {car.category_id}")
        return category

    def _price(
        self,
        rate_type: RateType,
        car: Car,
        start_at: datetime,
        end_at: datetime,
    ) -> pricing.PricingResult:
        return pricing.calculate(rate_type, car, self._get_category(car), start_at, end_at)

    @staticmethod
    def _require_active(rental: Rental, action: str) -> None:
        if rental.status != RentalStatus.ACTIVE:
            raise ValidationError(
                f"Only ACTIVE rentals can be {action} (rental {rental.id} is {rental.status.value})"
            )

    # ---------- commands ----------
    def preview_price(
        self,
        car_id: int,
        rate_type: RateType,
        start_at: datetime,
        planned_end_at: datetime,
    ) -> PricePreview:
        """Quote a rental without changing anything."""
        if start_at is None or planned_end_at is None or planned_end_at <= start_at:
            raise ValidationError("plannedEndAt must be after startAt")
        car = self._get_car(car_id)
        result = self._price(RateType(rate_type), car, start_at, planned_end_at)
        return PricePreview(
            base_price=result.price,
            discount_percent=result.discount_percent,
            rate_type=RateType(rate_type),
        )

    def create_rental(
        self,
        customer_id: int,
        car_id: int,
        start_at: datetime,
        planned_end_at: datetime,
        rate_type: RateType,
        notes: Optional[str] = None,
    ) -> Rental:
        current_minute = truncate_to_minute(self._clock())
        if truncate_to_minute(start_at) < current_minute:
            raise ValidationError("startAt must be now or in the future")
        if planned_end_at <= start_at:
            raise ValidationError("plannedEndAt must be after startAt")
        rate_type = RateType(rate_type)

        # The write lock is taken before the availability read so that no other
        # connection can reserve the car between the check and the insert.
        with transaction(self._connection, immediate=True):
            self._get_customer(customer_id)
            car = self._get_car(car_id)
            if car.status != CarStatus.AVAILABLE:
                raise ValidationError(
                    f"Car is not available (status={car.status.value})"
                )
            if not self._availability.is_available(car, start_at, planned_end_at):
                raise ValidationError(
                    f"Car {car_id} already has an active rental overlapping "
                    f"{start_at.isoformat()} - {planned_end_at.isoformat()}"
                )
            result = self._price(rate_type, car, start_at, planned_end_at)
            rental = Rental.open(
                customer_id=customer_id,
                car_id=car.id,
                start_at=start_at,
                planned_end_at=planned_end_at,
                rate_type=rate_type,
                base_price=result.price,
                notes=notes,
            )
            try:
                rental = rental_repo.create_rental(rental, connection=self._connection)
            except sqlite3.IntegrityError as exc:
                raise ValidationError(
                    f"Car {car_id} already has an active rental in that period"
                ) from exc
            self._car_repo.set_status(car.id, CarStatus.RENTED)

        self._logger.info(
            "Created rental id=%s car_id=%s customer_id=%s rate_type=%s base_price=%s",
            rental.id,
            car_id,
            customer_id,
            rate_type.value,
            rental.base_price,
        )
        return rental

    def update_rental(
        self,
        rental_id: int,
        planned_end_at: datetime,
        rate_type: RateType,
        notes: Optional[str] = None,
    ) -> Rental:
        """Change the planned end, the rate plan and the notes of an ACTIVE rental."""
        rate_type = RateType(rate_type)
        with transaction(self._connection, immediate=True):
            rental = self.get_rental(rental_id)
            self._require_active(rental, "updated")
            if planned_end_at <= rental.start_at:
                raise ValidationError("plannedEndAt must be after startAt")
            car = self._get_car(rental.car_id)
            result = self._price(rate_type, car, rental.start_at, planned_end_at)
            updated = rental.reprice(
                result.price,
                planned_end_at=planned_end_at,
                rate_type=rate_type,
                notes=notes,
                replace_notes=True,
            )
            updated = rental_repo.save_rental(updated, connection=self._connection)
        self._logger.info(
            "Updated rental id=%s planned_end_at=%s rate_type=%s base_price=%s",
            rental_id,
            planned_end_at.isoformat(),
            rate_type.value,
            updated.base_price,
        )
        return updated

    def extend_rental(self, rental_id: int, new_planned_end_at: datetime) -> Rental:
        with transaction(self._connection, immediate=True):
            rental = self.get_rental(rental_id)
            self._require_active(rental, "extended")
            if new_planned_end_at <= rental.planned_end_at:
                raise ValidationError("newPlannedEndAt must be after current plannedEndAt")
            car = self._get_car(rental.car_id)
            result = self._price(rental.rate_type, car, rental.start_at, new_planned_end_at)
            extended = rental.reprice(result.price, planned_end_at=new_planned_end_at)
            extended = rental_repo.save_rental(extended, connection=self._connection)
        self._logger.info(
            "Extended rental id=%s to %s base_price=%s",
            rental_id,
            new_planned_end_at.isoformat(),
            extended.base_price,
        )
        return extended

    def cancel_rental(self, rental_id: int) -> Rental:
        with transaction(self._connection, immediate=True):
            rental = self.get_rental(rental_id)
            self._require_active(rental, "canceled")
            canceled = rental.cancel(self._clock())
            canceled = rental_repo.save_rental(canceled, connection=self._connection)
            self._car_repo.set_status(rental.car_id, CarStatus.AVAILABLE)
        self._logger.info("Canceled rental id=%s", rental_id)
        return canceled

    def return_rental(
        self,
        rental_id: int,
        actual_return_at: Optional[datetime] = None,
        new_mileage_km: Optional[int] = None,
    ) -> Rental:
        # The status read and the write share one locked transaction, so a
        # rental closed by another connection cannot be closed a second time.
        with transaction(self._connection, immediate=True):
            rental = self.get_rental(rental_id)
            self._require_active(rental, "returned")
            returned_at = actual_return_at or self._clock()
            if returned_at < rental.start_at:
                raise ValidationError("actualReturnAt must be after startAt")
            car = self._get_car(rental.car_id)
            late_fee = calculate_late_fee(car, rental.planned_end_at, returned_at)
            returned = rental.mark_returned(returned_at, late_fee)
            odometer = car.with_mileage(new_mileage_km)
            returned = rental_repo.save_rental(returned, connection=self._connection)
            self._car_repo.set_status(car.id, CarStatus.AVAILABLE)
            if odometer.mileage_km != car.mileage_km:
                self._car_repo.set_mileage(car.id, odometer.mileage_km)
        if new_mileage_km is not None and odometer is car:
            self._logger.warning(
                "Ignored mileage %s for car id=%s below current %s",
                new_mileage_km,
                car.id,
                car.mileage_km,
            )
        self._logger.info(
            "Returned rental id=%s late_fee=%s total_price=%s",
            rental_id,
            returned.late_fee,
            returned.total_price,
        )
        return returned

    def delete_rental(self, rental_id: int) -> None:
        with transaction(self._connection, immediate=True):
            rental = self.get_rental(rental_id)
            if rental.status == RentalStatus.ACTIVE:
                # A missing car row leaves nothing to release.
                self._car_repo.set_status(rental.car_id, CarStatus.AVAILABLE)
            rental_repo.delete_rental(rental_id, connection=self._connection)
        self._logger.info("Deleted rental id=%s status=%s", rental_id, rental.status.value)
