from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from car_rental_admin.domain.models import (
    Car,
    CarStatus,
    Category,
    RateType,
    Rental,
    RentalStatus,
)

START = datetime(2026, 3, 2, 9, 0)


def _car(**overrides) -> Car:
    values = dict(
        id=1,
        vin="VIN00000000000001",
        license_plate="WA00001",
        production_year=2022,
        color="Red",
        model_id=1,
        category_id=1,
        hourly_rate="10",
        daily_rate="50",
        weekly_rate="300",
        mileage_km=500,
    )
    values.update(overrides)
    return Car(**values)


def _rental(**overrides) -> Rental:
    return Rental.open(
        customer_id=1,
        car_id=1,
        start_at=START,
        planned_end_at=START + timedelta(days=2),
        rate_type=RateType.DAILY,
        base_price=Decimal("100"),
        **overrides,
    )


def test_car_normalizes_rates_and_status():
    car = _car(status="MAINTENANCE")

    assert car.hourly_rate == Decimal("10.00")
    assert car.status is CarStatus.MAINTENANCE


@pytest.mark.parametrize(
    "overrides",
    [
        {"hourly_rate": "0"},
        {"daily_rate": "-5"},
        {"mileage_km": -1},
    ],
)
def test_car_rejects_invalid_values(overrides):
    with pytest.raises(ValueError):
        _car(**overrides)


def test_mileage_never_goes_back():
    car = _car()

    assert car.with_mileage(400) is car
    assert car.with_mileage(None) is car
    assert car.with_mileage(750).mileage_km == 750


def test_category_discount_must_be_a_percentage():
    with pytest.raises(ValueError):
        Category(id=None, name="Luxury", daily_discount_percent=Decimal("101"))


def test_open_rental_is_active_with_total_equal_to_base():
    rental = _rental(notes="child seat")

    assert rental.status is RentalStatus.ACTIVE
    assert rental.base_price == rental.total_price == Decimal("100.00")
    assert rental.late_fee == Decimal("0.00")
    assert rental.actual_return_at is None


def test_rental_rejects_end_before_start():
    with pytest.raises(ValueError):
        Rental.open(
            customer_id=1,
            car_id=1,
            start_at=START,
            planned_end_at=START,
            rate_type=RateType.HOURLY,
            base_price=Decimal("10"),
        )


def test_rental_rejects_inconsistent_total():
    with pytest.raises(ValueError):
        Rental(
            id=None,
            customer_id=1,
            car_id=1,
            start_at=START,
            planned_end_at=START + timedelta(hours=1),
            rate_type=RateType.HOURLY,
            base_price=Decimal("10.00"),
            late_fee=Decimal("5.00"),
            total_price=Decimal("10.00"),
        )


def test_returned_rental_needs_return_time():
    with pytest.raises(ValueError):
        Rental(
            id=None,
            customer_id=1,
            car_id=1,
            start_at=START,
            planned_end_at=START + timedelta(hours=1),
            rate_type=RateType.HOURLY,
            status=RentalStatus.RETURNED,
        )


def test_mark_returned_adds_late_fee():
    returned = _rental().mark_returned(START + timedelta(days=3), Decimal("12.5"))

    assert returned.status is RentalStatus.RETURNED
    assert returned.late_fee == Decimal("12.50")
    assert returned.total_price == Decimal("112.50")


def test_cancel_keeps_base_price_only():
    canceled = _rental().cancel(START)

    assert canceled.status is RentalStatus.CANCELED
    assert canceled.total_price == canceled.base_price
    assert canceled.late_fee == Decimal("0.00")


def test_terminal_rentals_cannot_transition_again():
    canceled = _rental().cancel(START)

    with pytest.raises(ValueError):
        canceled.cancel(START)
    with pytest.raises(ValueError):
        canceled.mark_returned(START, Decimal("0"))
    with pytest.raises(ValueError):
        canceled.reprice(Decimal("1"))


def test_reprice_keeps_notes_unless_replaced():
    rental = _rental(notes="airport pickup")

    kept = rental.reprice(Decimal("150"), planned_end_at=START + timedelta(days=3))
    replaced = rental.reprice(Decimal("150"), notes=None, replace_notes=True)

    assert kept.notes == "airport pickup"
    assert kept.total_price == Decimal("150.00")
    assert replaced.notes is None


def test_is_overdue_only_for_active_rentals():
    rental = _rental()
    after_end = rental.planned_end_at + timedelta(minutes=1)

    assert rental.is_overdue(after_end)
    assert not rental.is_overdue(rental.planned_end_at)
    assert not rental.cancel(START).is_overdue(after_end)
