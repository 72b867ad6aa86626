"""Domain dataclasses and enums."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from car_rental_admin.utils.money import ZERO, round2, to_decimal


class CarStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    RENTED = "RENTED"
    MAINTENANCE = "MAINTENANCE"


class RentalStatus(str, Enum):
    ACTIVE = "ACTIVE"
    RETURNED = "RETURNED"
    CANCELED = "CANCELED"


class RateType(str, Enum):
    HOURLY = "HOURLY"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"


TERMINAL_RENTAL_STATUSES = frozenset({RentalStatus.RETURNED, RentalStatus.CANCELED})


@dataclass(frozen=True, slots=True)
class Brand:
    id: Optional[int]
    name: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(frozen=True, slots=True)
class CarModel:
    id: Optional[int]
    name: str
    brand_id: int
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Category:
    """Car category; discounts are percentages in [0, 100]."""

    id: Optional[int]
    name: str
    description: Optional[str] = None
    daily_discount_percent: Decimal = Decimal("0")
    weekly_discount_percent: Decimal = Decimal("0")
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def __post_init__(self) -> None:
        for field_name in ("daily_discount_percent", "weekly_discount_percent"):
            value = to_decimal(getattr(self, field_name))
            if not Decimal("0") <= value <= Decimal("100"):
                raise ValueError(f"{field_name} must be between 0 and 100, got {value}")
            object.__setattr__(self, field_name, value)


@dataclass(frozen=True, slots=True)
class Customer:
    id: Optional[int]
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True, slots=True)
class Car:
    """A rentable car. Rates are positive amounts, mileage never negative."""

    id: Optional[int]
    vin: str
    license_plate: str
    production_year: int
    color: Optional[str]
    model_id: int
    category_id: int
    hourly_rate: Decimal
    daily_rate: Decimal
    weekly_rate: Decimal
    mileage_km: int = 0
    status: CarStatus = CarStatus.AVAILABLE
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def __post_init__(self) -> None:
        for field_name in ("hourly_rate", "daily_rate", "weekly_rate"):
            value = round2(getattr(self, field_name))
            if value <= 0:
                raise ValueError(f"{field_name} must be positive, got {value}")
            object.__setattr__(self, field_name, value)
        if self.mileage_km is None or int(self.mileage_km) < 0:
            raise ValueError(f"mileage_km must be non-negative, got {self.mileage_km}")
        object.__setattr__(self, "mileage_km", int(self.mileage_km))
        object.__setattr__(self, "status", CarStatus(self.status))

    def with_mileage(self, mileage_km: Optional[int]) -> Car:
        """Return the car with the new odometer reading if it does not go back."""
        if mileage_km is None or mileage_km < self.mileage_km:
            return self
        return replace(self, mileage_km=mileage_km)


@dataclass(frozen=True, slots=True)
class Rental:
    """A rental of one car by one customer.

    State changes go through the transition methods, each returning a new
    value; ``__post_init__`` rejects combinations that cannot occur, such as a
    returned rental without a return time.
    """

    id: Optional[int]
    customer_id: int
    car_id: int
    start_at: datetime
    planned_end_at: datetime
    rate_type: RateType
    status: RentalStatus = RentalStatus.ACTIVE
    base_price: Decimal = ZERO
    late_fee: Decimal = ZERO
    total_price: Decimal = ZERO
    actual_return_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "rate_type", RateType(self.rate_type))
        object.__setattr__(self, "status", RentalStatus(self.status))
        if self.planned_end_at <= self.start_at:
            raise ValueError("planned_end_at must be after start_at")
        if self.status == RentalStatus.ACTIVE and self.actual_return_at is not None:
            raise ValueError("an active rental cannot have actual_return_at")
        if self.status in TERMINAL_RENTAL_STATUSES and self.actual_return_at is None:
            raise ValueError(f"a {self.status.value} rental needs actual_return_at")
        for field_name in ("base_price", "late_fee", "total_price"):
            value = round2(getattr(self, field_name))
            if value < 0:
                raise ValueError(f"{field_name} cannot be negative, got {value}")
            object.__setattr__(self, field_name, value)
        if self.total_price != round2(self.base_price + self.late_fee):
            raise ValueError(
                f"total_price {self.total_price} != base_price {self.base_price}"
                f" + late_fee {self.late_fee}"
            )

    @classmethod
    def open(
        cls,
        customer_id: int,
        car_id: int,
        start_at: datetime,
        planned_end_at: datetime,
        rate_type: RateType,
        base_price: Decimal,
        notes: Optional[str] = None,
    ) -> Rental:
        base_price = round2(base_price)
        return cls(
            id=None,
            customer_id=customer_id,
            car_id=car_id,
            start_at=start_at,
            planned_end_at=planned_end_at,
            rate_type=rate_type,
            status=RentalStatus.ACTIVE,
            base_price=base_price,
            late_fee=ZERO,
            total_price=base_price,
            notes=notes,
        )

    @property
    def is_active(self) -> bool:
        return self.status == RentalStatus.ACTIVE

    def is_overdue(self, reference: datetime) -> bool:
        return self.is_active and self.planned_end_at < reference

    def _require_active(self, action: str) -> None:
        if not self.is_active:
            raise ValueError(f"cannot {action} a {self.status.value} rental")

    def reprice(
        self,
        base_price: Decimal,
        *,
        planned_end_at: Optional[datetime] = None,
        rate_type: Optional[RateType] = None,
        notes: Optional[str] = None,
        replace_notes: bool = False,
    ) -> Rental:
        self._require_active("reprice")
        base_price = round2(base_price)
        return replace(
            self,
            planned_end_at=planned_end_at or self.planned_end_at,
            rate_type=rate_type or self.rate_type,
            notes=notes if replace_notes else self.notes,
            base_price=base_price,
            total_price=round2(base_price + self.late_fee),
        )

    def cancel(self, at: datetime) -> Rental:
        self._require_active("cancel")
        return replace(
            self,
            status=RentalStatus.CANCELED,
            actual_return_at=at,
            late_fee=ZERO,
            total_price=self.base_price,
        )

    def mark_returned(self, at: datetime, late_fee: Decimal) -> Rental:
        self._require_active("return")
        late_fee = round2(late_fee)
        return replace(
            self,
            status=RentalStatus.RETURNED,
            actual_return_at=at,
            late_fee=late_fee,
            total_price=round2(self.base_price + late_fee),
        )
