"""Late return fee."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from car_rental_admin.config import LATE_FEE_PERCENT
from car_rental_admin.domain.models import Car
from car_rental_admin.utils.dates import MINUTES_PER_HOUR, billing_units
from car_rental_admin.utils.money import HUNDRED, ZERO, round2, to_decimal


def calculate_late_fee(
    car: Car,
    planned_end_at: datetime,
    actual_return_at: datetime,
    *,
    late_fee_percent: Decimal = LATE_FEE_PERCENT,
) -> Decimal:
    """Charge ``late_fee_percent`` of the hourly rate per started late hour.

    Returning at or before the planned end costs nothing; any lateness bills
    at least one hour.
    """
    if actual_return_at <= planned_end_at:
        return ZERO
    hours_late = billing_units(planned_end_at, actual_return_at, MINUTES_PER_HOUR)
    fee = car.hourly_rate * hours_late * to_decimal(late_fee_percent) / HUNDRED
    return round2(fee)
