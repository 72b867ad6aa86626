from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from car_rental_admin.db.connection import get_connection, transaction
from car_rental_admin.domain.models import CarStatus, RateType, Rental
from car_rental_admin.repositories import rental_repo
from car_rental_admin.repositories.car_repo import CarRepo
from car_rental_admin.services.availability_service import AvailabilityService
from car_rental_admin.services.errors import ValidationError
from car_rental_admin.services.rental_service import RentalService

START = datetime(2026, 1, 10, 10, 0)
END = datetime(2026, 1, 10, 12, 0)


def _insert_active(connection, car, customer, start=START, end=END) -> Rental:
    rental = Rental.open(
        customer_id=customer.id,
        car_id=car.id,
        start_at=start,
        planned_end_at=end,
        rate_type=RateType.HOURLY,
        base_price=Decimal("20.00"),
    )
    with transaction(connection):
        return rental_repo.create_rental(rental, connection=connection)


def test_free_car_is_available(connection, car):
    service = AvailabilityService(connection)

    assert service.is_available(car, START, END)
    assert [c.id for c in service.available_cars(START, END)] == [car.id]


def test_car_in_maintenance_is_never_available(connection, make_car):
    car = make_car(status=CarStatus.MAINTENANCE)
    service = AvailabilityService(connection)

    assert not service.is_available(car, START, END)
    assert service.available_cars(START, END) == []


@pytest.mark.parametrize(
    ("start", "end", "expected"),
    [
        (END, END + timedelta(hours=2), True),
        (START - timedelta(hours=2), START, True),
        (END - timedelta(minutes=1), END + timedelta(hours=1), False),
        (START - timedelta(hours=1), START + timedelta(minutes=1), False),
        (START + timedelta(minutes=30), END - timedelta(minutes=30), False),
    ],
)
def test_half_open_intervals(connection, car, customer, start, end, expected):
    _insert_active(connection, car, customer)

    assert AvailabilityService(connection).is_available(car, start, end) is expected


def test_overlapping_active_rental_excludes_car_until_returned(
    connection, rental_service, car, customer
):
    start = datetime(2026, 1, 12, 9, 0)
    end = start + timedelta(days=2)
    rental = rental_service.create_rental(customer.id, car.id, start, end, RateType.DAILY)
    service = AvailabilityService(connection)

    assert service.available_cars(start, end) == []

    rental_service.return_rental(rental.id, actual_return_at=end)

    assert [c.id for c in service.available_cars(start, end)] == [car.id]


def test_returned_and_canceled_rentals_do_not_block(
    connection, rental_service, car, customer
):
    start = datetime(2026, 1, 12, 9, 0)
    end = start + timedelta(hours=4)
    first = rental_service.create_rental(customer.id, car.id, start, end, RateType.HOURLY)
    rental_service.cancel_rental(first.id)

    assert AvailabilityService(connection).is_available(
        CarRepo(connection).get_by_id(car.id), start, end
    )


@pytest.mark.parametrize("end", [START, START - timedelta(minutes=1)])
def test_available_cars_rejects_empty_period(connection, end):
    with pytest.raises(ValidationError):
        AvailabilityService(connection).available_cars(START, end)


def test_overlap_trigger_rejects_second_active_rental(connection, car, customer):
    _insert_active(connection, car, customer)

    with pytest.raises(sqlite3.IntegrityError):
        _insert_active(
            connection,
            car,
            customer,
            start=START + timedelta(hours=1),
            end=END + timedelta(hours=1),
        )

    assert len(rental_repo.list_by_car(car.id, connection=connection)) == 1


def test_create_cannot_reserve_while_another_connection_holds_the_car(
    connection, db_path, clock, car, customer
):
    other = get_connection(db_path, timeout=0)
    try:
        contender = RentalService(other, clock=clock)
        with transaction(connection, immediate=True):
            first = _insert_active(connection, car, customer)
            CarRepo(connection).set_status(car.id, CarStatus.RENTED)

            with pytest.raises(sqlite3.OperationalError):
                contender.create_rental(customer.id, car.id, START, END, RateType.HOURLY)

        with pytest.raises(ValidationError):
            contender.create_rental(customer.id, car.id, START, END, RateType.HOURLY)
    finally:
        other.close()

    assert [r.id for r in rental_repo.list_by_car(car.id, connection=connection)] == [first.id]
