from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from car_rental_admin.db.connection import get_connection, transaction
from car_rental_admin.domain.models import CarStatus, RateType, RentalStatus
from car_rental_admin.repositories import rental_repo
from car_rental_admin.repositories.car_repo import CarRepo
from car_rental_admin.services.car_service import CarService
from car_rental_admin.services.errors import NotFoundError, ValidationError
from car_rental_admin.services.rental_service import RentalService
from car_rental_admin.utils.money import round2

START = datetime(2026, 1, 12, 9, 0)
FOUR_DAYS_LATER = START + timedelta(days=4)


def _car_status(connection, car_id: int) -> CarStatus:
    return CarRepo(connection).get_by_id(car_id).status


@pytest.fixture
def active_rental(rental_service, car, customer):
    return rental_service.create_rental(
        customer.id, car.id, START, FOUR_DAYS_LATER, RateType.DAILY, notes="airport"
    )


# ---------- create ----------
def test_create_prices_and_reserves_the_car(connection, active_rental, car):
    assert active_rental.id is not None
    assert active_rental.status is RentalStatus.ACTIVE
    assert active_rental.base_price == Decimal("180.00")
    assert active_rental.total_price == Decimal("180.00")
    assert active_rental.late_fee == Decimal("0.00")
    assert _car_status(connection, car.id) is CarStatus.RENTED

    stored = rental_repo.get_rental(active_rental.id, connection=connection)
    assert stored == active_rental


def test_create_allows_start_within_the_current_minute(rental_service, clock, car, customer):
    clock.current = datetime(2026, 1, 5, 8, 0, 45)

    rental = rental_service.create_rental(
        customer.id, car.id, datetime(2026, 1, 5, 8, 0), START, RateType.HOURLY
    )

    assert rental.status is RentalStatus.ACTIVE


def test_create_rejects_start_in_the_past(rental_service, clock, car, customer):
    with pytest.raises(ValidationError):
        rental_service.create_rental(
            customer.id,
            car.id,
            clock() - timedelta(minutes=1),
            START,
            RateType.HOURLY,
        )


@pytest.mark.parametrize("end", [START, START - timedelta(hours=1)])
def test_create_rejects_end_not_after_start(rental_service, car, customer, end):
    with pytest.raises(ValidationError):
        rental_service.create_rental(customer.id, car.id, START, end, RateType.HOURLY)


def test_create_with_unknown_customer_or_car(connection, rental_service, car, customer):
    with pytest.raises(NotFoundError):
        rental_service.create_rental(999, car.id, START, FOUR_DAYS_LATER, RateType.DAILY)
    with pytest.raises(NotFoundError):
        rental_service.create_rental(customer.id, 999, START, FOUR_DAYS_LATER, RateType.DAILY)

    assert rental_repo.list_by_car(car.id, connection=connection) == []
    assert _car_status(connection, car.id) is CarStatus.AVAILABLE


def test_no_double_booking(connection, rental_service, active_rental, car, customer):
    with pytest.raises(ValidationError):
        rental_service.create_rental(
            customer.id,
            car.id,
            START + timedelta(days=1),
            FOUR_DAYS_LATER + timedelta(days=1),
            RateType.DAILY,
        )

    assert len(rental_repo.list_by_car(car.id, connection=connection)) == 1


def test_overlap_is_rejected_even_if_car_status_drifted(
    connection, rental_service, active_rental, car, customer
):
    with transaction(connection):
        CarRepo(connection).set_status(car.id, CarStatus.AVAILABLE)

    with pytest.raises(ValidationError, match="overlapping"):
        rental_service.create_rental(
            customer.id, car.id, START + timedelta(hours=1), START + timedelta(hours=3), RateType.HOURLY
        )

    assert len(rental_repo.list_by_car(car.id, connection=connection)) == 1


def test_car_in_maintenance_cannot_be_rented(connection, rental_service, make_car, customer):
    car = make_car(status=CarStatus.MAINTENANCE)

    with pytest.raises(ValidationError, match="MAINTENANCE"):
        rental_service.create_rental(customer.id, car.id, START, FOUR_DAYS_LATER, RateType.DAILY)


# ---------- update / extend ----------
def test_update_changes_plan_end_and_notes(connection, rental_service, active_rental):
    updated = rental_service.update_rental(
        active_rental.id, START + timedelta(hours=5), RateType.HOURLY
    )

    assert updated.rate_type is RateType.HOURLY
    assert updated.planned_end_at == START + timedelta(hours=5)
    assert updated.base_price == Decimal("50.00")
    assert updated.total_price == Decimal("50.00")
    assert updated.notes is None
    assert updated.status is RentalStatus.ACTIVE
    assert rental_repo.get_rental(active_rental.id, connection=connection) == updated


def test_update_rejects_end_before_start(rental_service, active_rental):
    with pytest.raises(ValidationError):
        rental_service.update_rental(active_rental.id, START, RateType.DAILY)


def test_extend_reprices_with_current_rate_type(rental_service, active_rental):
    extended = rental_service.extend_rental(active_rental.id, START + timedelta(days=6))

    assert extended.rate_type is RateType.DAILY
    assert extended.base_price == Decimal("270.00")
    assert extended.total_price == Decimal("270.00")
    assert extended.notes == "airport"


@pytest.mark.parametrize("new_end", [FOUR_DAYS_LATER, FOUR_DAYS_LATER - timedelta(hours=1)])
def test_extend_requires_a_later_end(rental_service, active_rental, new_end):
    with pytest.raises(ValidationError):
        rental_service.extend_rental(active_rental.id, new_end)


def test_unknown_rental_is_not_found(rental_service):
    with pytest.raises(NotFoundError):
        rental_service.extend_rental(404, FOUR_DAYS_LATER)
    with pytest.raises(NotFoundError):
        rental_service.get_rental(404)


# ---------- cancel ----------
def test_cancel_releases_the_car(connection, rental_service, clock, active_rental, car):
    canceled = rental_service.cancel_rental(active_rental.id)

    assert canceled.status is RentalStatus.CANCELED
    assert canceled.actual_return_at == clock()
    assert canceled.late_fee == Decimal("0.00")
    assert canceled.total_price == canceled.base_price
    assert _car_status(connection, car.id) is CarStatus.AVAILABLE


def test_closed_rentals_reject_further_changes(rental_service, active_rental):
    rental_service.cancel_rental(active_rental.id)

    with pytest.raises(ValidationError):
        rental_service.cancel_rental(active_rental.id)
    with pytest.raises(ValidationError):
        rental_service.return_rental(active_rental.id)
    with pytest.raises(ValidationError):
        rental_service.extend_rental(active_rental.id, FOUR_DAYS_LATER + timedelta(days=1))
    with pytest.raises(ValidationError):
        rental_service.update_rental(active_rental.id, FOUR_DAYS_LATER, RateType.DAILY)


# ---------- return ----------
def test_on_time_return_has_no_late_fee(connection, rental_service, active_rental, car):
    returned = rental_service.return_rental(active_rental.id, actual_return_at=FOUR_DAYS_LATER)

    assert returned.status is RentalStatus.RETURNED
    assert returned.late_fee == Decimal("0.00")
    assert returned.total_price == returned.base_price
    assert _car_status(connection, car.id) is CarStatus.AVAILABLE


def test_late_return_charges_half_the_hourly_rate(rental_service, active_rental):
    returned = rental_service.return_rental(
        active_rental.id, actual_return_at=FOUR_DAYS_LATER + timedelta(hours=3)
    )

    assert returned.late_fee == Decimal("15.00")
    assert returned.total_price == Decimal("195.00")


def test_return_defaults_to_now(rental_service, clock, active_rental):
    clock.current = FOUR_DAYS_LATER + timedelta(minutes=10)

    returned = rental_service.return_rental(active_rental.id)

    assert returned.actual_return_at == clock.current
    assert returned.late_fee == Decimal("5.00")


def test_return_before_start_is_rejected(rental_service, active_rental):
    with pytest.raises(ValidationError):
        rental_service.return_rental(active_rental.id, actual_return_at=START - timedelta(minutes=1))


def test_return_updates_mileage_only_forward(connection, rental_service, make_car, customer):
    car = make_car(mileage_km=1000)
    first = rental_service.create_rental(customer.id, car.id, START, START + timedelta(hours=2), RateType.HOURLY)
    rental_service.return_rental(first.id, actual_return_at=START + timedelta(hours=2), new_mileage_km=1250)
    assert CarRepo(connection).get_by_id(car.id).mileage_km == 1250

    second_start = START + timedelta(days=1)
    second = rental_service.create_rental(
        customer.id, car.id, second_start, second_start + timedelta(hours=2), RateType.HOURLY
    )
    rental_service.return_rental(second.id, actual_return_at=second_start + timedelta(hours=1), new_mileage_km=900)
    assert CarRepo(connection).get_by_id(car.id).mileage_km == 1250


def test_return_keeps_the_lock_against_a_cancel_from_another_connection(
    connection, db_path, clock, active_rental
):
    other = get_connection(db_path, timeout=0)
    blocked = []

    def clock_during_return():
        try:
            RentalService(other, clock=clock).cancel_rental(active_rental.id)
        except sqlite3.OperationalError as exc:
            blocked.append(str(exc))
        return FOUR_DAYS_LATER + timedelta(hours=3)

    try:
        returned = RentalService(connection, clock=clock_during_return).return_rental(
            active_rental.id
        )
    finally:
        other.close()

    assert len(blocked) == 1
    assert "locked" in blocked[0]
    assert returned.status is RentalStatus.RETURNED
    assert returned.late_fee == Decimal("15.00")
    stored = rental_repo.get_rental(active_rental.id, connection=connection)
    assert stored.status is RentalStatus.RETURNED
    assert stored.total_price == Decimal("195.00")


def test_rental_closed_on_another_connection_stays_closed(
    connection, db_path, rental_service, clock, active_rental
):
    other = get_connection(db_path)
    try:
        RentalService(other, clock=clock).cancel_rental(active_rental.id)
    finally:
        other.close()

    with pytest.raises(ValidationError):
        rental_service.return_rental(active_rental.id, actual_return_at=FOUR_DAYS_LATER)

    stored = rental_repo.get_rental(active_rental.id, connection=connection)
    assert stored.status is RentalStatus.CANCELED
    assert stored.late_fee == Decimal("0.00")


# ---------- delete ----------
def test_delete_active_rental_frees_the_car(connection, rental_service, active_rental, car):
    rental_service.delete_rental(active_rental.id)

    assert rental_repo.get_rental(active_rental.id, connection=connection) is None
    assert _car_status(connection, car.id) is CarStatus.AVAILABLE


def test_delete_returned_rental_keeps_car_status(
    connection, rental_service, active_rental, car, customer
):
    rental_service.return_rental(active_rental.id, actual_return_at=FOUR_DAYS_LATER)
    next_rental = rental_service.create_rental(
        customer.id, car.id, FOUR_DAYS_LATER, FOUR_DAYS_LATER + timedelta(days=1), RateType.DAILY
    )

    rental_service.delete_rental(active_rental.id)

    assert _car_status(connection, car.id) is CarStatus.RENTED
    assert rental_service.get_rental(next_rental.id).status is RentalStatus.ACTIVE


def test_delete_missing_rental_is_not_found(rental_service):
    with pytest.raises(NotFoundError):
        rental_service.delete_rental(12345)


# ---------- queries ----------
def test_preview_price_does_not_persist(connection, rental_service, car):
    quote = rental_service.preview_price(car.id, RateType.DAILY, START, FOUR_DAYS_LATER)

    assert quote.base_price == Decimal("180.00")
    assert quote.discount_percent == Decimal("10")
    assert quote.rate_type is RateType.DAILY
    assert rental_repo.list_by_car(car.id, connection=connection) == []


def test_preview_price_validation(rental_service, car):
    with pytest.raises(ValidationError):
        rental_service.preview_price(car.id, RateType.DAILY, START, START)
    with pytest.raises(NotFoundError):
        rental_service.preview_price(999, RateType.DAILY, START, FOUR_DAYS_LATER)


def test_list_active_and_overdue(rental_service, clock, make_car, customer):
    early = rental_service.create_rental(
        customer.id, make_car().id, START, START + timedelta(hours=2), RateType.HOURLY
    )
    late = rental_service.create_rental(
        customer.id, make_car().id, START + timedelta(hours=1), START + timedelta(days=3), RateType.DAILY
    )
    done = rental_service.create_rental(
        customer.id, make_car().id, START, START + timedelta(hours=1), RateType.HOURLY
    )
    rental_service.return_rental(done.id, actual_return_at=START + timedelta(hours=1))

    assert [r.id for r in rental_service.list_active()] == [late.id, early.id]
    assert rental_service.list_overdue() == []

    clock.current = START + timedelta(days=4)
    assert [r.id for r in rental_service.list_overdue()] == [early.id, late.id]


def test_list_car_rentals(rental_service, active_rental, car):
    assert [r.id for r in rental_service.list_car_rentals(car.id)] == [active_rental.id]
    with pytest.raises(NotFoundError):
        rental_service.list_car_rentals(999)


def test_totals_and_car_status_stay_consistent(connection, rental_service, clock, make_car, customer):
    cars = [make_car() for _ in range(3)]
    rentals = [
        rental_service.create_rental(
            customer.id, c.id, START, START + timedelta(days=1), RateType.DAILY
        )
        for c in cars
    ]
    rental_service.return_rental(rentals[0].id, actual_return_at=START + timedelta(days=1, hours=2))
    rental_service.cancel_rental(rentals[1].id)
    rental_service.extend_rental(rentals[2].id, START + timedelta(days=2))

    for c in cars:
        for rental in rental_service.list_car_rentals(c.id):
            assert rental.total_price == round2(rental.base_price + rental.late_fee)
    assert CarService(connection).find_status_drift() == []
