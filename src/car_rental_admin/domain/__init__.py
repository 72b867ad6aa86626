"""Domain models for CarRentalAdmin."""

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

__all__ = [
    "Brand",
    "Car",
    "CarModel",
    "CarStatus",
    "Category",
    "Customer",
    "RateType",
    "Rental",
    "RentalStatus",
]
