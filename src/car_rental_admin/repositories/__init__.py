"""Repositories for data access."""

from car_rental_admin.repositories.car_repo import CarRepo
from car_rental_admin.repositories.catalog_repo import CatalogRepo
from car_rental_admin.repositories.customer_repo import CustomerRepo
from car_rental_admin.repositories.mappers import (
    brand_from_row,
    car_from_row,
    car_model_from_row,
    car_to_record,
    category_from_row,
    customer_from_row,
    rental_from_row,
    rental_to_record,
)

__all__ = [
    "brand_from_row",
    "car_from_row",
    "car_model_from_row",
    "car_to_record",
    "CarRepo",
    "CatalogRepo",
    "category_from_row",
    "customer_from_row",
    "CustomerRepo",
    "rental_from_row",
    "rental_to_record",
]
