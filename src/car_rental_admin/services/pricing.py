"""Base price calculation per rate plan.

Each plan is a plain function with the same signature, picked from
``PRICING_FUNCTIONS`` by rate type. A plan bills every started unit of its own
length (hour, day, week) at the car's matching rate; DAILY and WEEKLY apply the
category discount for that plan, HOURLY is never discounted.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from car_rental_admin.domain.models import Car, Category, RateType
from car_rental_admin.utils.dates import (
    MINUTES_PER_DAY,
    MINUTES_PER_HOUR,
    MINUTES_PER_WEEK,
    billing_units,
)
from car_rental_admin.utils.money import percent_multiplier, round2, to_decimal

NO_DISCOUNT = Decimal("0")


@dataclass(frozen=True)
class PricingResult:
    price: Decimal
    discount_percent: Decimal


PricingFunction = Callable[[Car, Optional[Category], datetime, datetime], PricingResult]


def _discounted_price(
    unit_rate: Decimal, units: int, discount_percent: Decimal
) -> PricingResult:
    price = unit_rate * units * percent_multiplier(discount_percent)
    return PricingResult(price=round2(price), discount_percent=discount_percent)


def price_hourly(
    car: Car, category: Optional[Category], start_at: datetime, end_at: datetime
) -> PricingResult:
    hours = billing_units(start_at, end_at, MINUTES_PER_HOUR)
    return _discounted_price(car.hourly_rate, hours, NO_DISCOUNT)


def price_daily(
    car: Car, category: Optional[Category], start_at: datetime, end_at: datetime
) -> PricingResult:
    days = billing_units(start_at, end_at, MINUTES_PER_DAY)
    discount = to_decimal(category.daily_discount_percent) if category else NO_DISCOUNT
    return _discounted_price(car.daily_rate, days, discount)


def price_weekly(
    car: Car, category: Optional[Category], start_at: datetime, end_at: datetime
) -> PricingResult:
    weeks = billing_units(start_at, end_at, MINUTES_PER_WEEK)
    discount = to_decimal(category.weekly_discount_percent) if category else NO_DISCOUNT
    return _discounted_price(car.weekly_rate, weeks, discount)


PRICING_FUNCTIONS: dict[RateType, PricingFunction] = {
    RateType.HOURLY: price_hourly,
    RateType.DAILY: price_daily,
    RateType.WEEKLY: price_weekly,
}


def calculate(
    rate_type: RateType,
    car: Car,
    category: Optional[Category],
    start_at: datetime,
    end_at: datetime,
) -> PricingResult:
    """Price ``[start_at, end_at)`` for ``car`` under ``rate_type``.

    The caller guarantees ``end_at > start_at``. An unknown rate type is a
    programming error and raises ``LookupError``.
    """
    pricing_function = PRICING_FUNCTIONS.get(rate_type)
    if pricing_function is None:
        raise LookupError(f"No pricing function for rate type {rate_type!r}")
    return pricing_function(car, category, start_at, end_at)
