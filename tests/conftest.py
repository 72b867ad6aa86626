from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from itertools import count
from types import SimpleNamespace

import pytest

from car_rental_admin.db.connection import get_connection
from car_rental_admin.db.migrations import apply_migrations
from car_rental_admin.domain.models import Car
from car_rental_admin.repositories.car_repo import CarRepo
from car_rental_admin.repositories.catalog_repo import CatalogRepo
from car_rental_admin.repositories.customer_repo import CustomerRepo
from car_rental_admin.services.rental_service import RentalService

# Monday morning; every scenario below starts after this instant.
FIXED_NOW = datetime(2026, 1, 5, 8, 0)


class FakeClock:
    def __init__(self, current: datetime) -> None:
        self.current = current

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def app_home(tmp_path, monkeypatch):
    home = tmp_path / "home"
    monkeypatch.setenv("CAR_RENTAL_HOME", str(home))
    return home


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "car_rental_test.db"


@pytest.fixture
def connection(db_path):
    conn = get_connection(db_path)
    apply_migrations(conn)
    yield conn
    conn.close()


@pytest.fixture
def catalog(connection):
    repo = CatalogRepo(connection)
    brand = repo.create_brand("Toyota")
    model = repo.create_model("Corolla", brand.id)
    category = repo.create_category(
        "Compact",
        description="Small cars",
        daily_discount_percent=Decimal("10"),
        weekly_discount_percent=Decimal("20"),
    )
    plain = repo.create_category("Economy")
    return SimpleNamespace(brand=brand, model=model, category=category, plain=plain)


@pytest.fixture
def make_car(connection, catalog):
    numbers = count(1)

    def _make_car(**overrides) -> Car:
        number = next(numbers)
        values = dict(
            id=None,
            vin=f"VIN{number:014d}",
            license_plate=f"WA{number:05d}",
            production_year=2022,
            color="Blue",
            model_id=catalog.model.id,
            category_id=catalog.category.id,
            hourly_rate=Decimal("10.00"),
            daily_rate=Decimal("50.00"),
            weekly_rate=Decimal("300.00"),
            mileage_km=1000,
        )
        values.update(overrides)
        return CarRepo(connection).create(Car(**values))

    return _make_car


@pytest.fixture
def car(make_car):
    return make_car()


@pytest.fixture
def customer(connection):
    return CustomerRepo(connection).create(
        "Jan",
        "Kowalski",
        "jan.kowalski@example.com",
        phone="+48 600 100 200",
        address="Polna 3, Warszawa",
    )


@pytest.fixture
def clock():
    return FakeClock(FIXED_NOW)


@pytest.fixture
def rental_service(connection, clock):
    return RentalService(connection, clock=clock)
