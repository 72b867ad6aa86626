"""Rental counts and revenue for the back-office summary."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional

from car_rental_admin.domain.models import RentalStatus
from car_rental_admin.logging_config import get_logger
from car_rental_admin.repositories import rental_repo
from car_rental_admin.utils.dates import now as default_clock


@dataclass(frozen=True)
class RentalSummary:
    rentals_today: int
    rentals_this_week: int
    active: int
    overdue: int
    revenue_today: Decimal
    revenue_this_week: Decimal


def day_bounds(reference: datetime) -> tuple[datetime, datetime]:
    start = reference.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


def week_bounds(reference: datetime) -> tuple[datetime, datetime]:
    """Monday 00:00 of the reference week and the Monday after it."""
    day_start, _ = day_bounds(reference)
    start = day_start - timedelta(days=day_start.weekday())
    return start, start + timedelta(days=7)


class DashboardService:
    """Read-only summary over the rentals table."""

    def __init__(
        self,
        connection: sqlite3.Connection,
        *,
        clock: Callable[[], datetime] = default_clock,
    ) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._clock = clock
        self._logger = get_logger(self.__class__.__name__)

    def get_summary(self, reference: Optional[datetime] = None) -> RentalSummary:
        reference = reference or self._clock()
        today_start, today_end = day_bounds(reference)
        week_start, week_end = week_bounds(reference)
        conn = self._connection
        summary = RentalSummary(
            rentals_today=rental_repo.count_started_between(
                today_start, today_end, connection=conn
            ),
            rentals_this_week=rental_repo.count_started_between(
                week_start, week_end, connection=conn
            ),
            active=rental_repo.count_by_status(RentalStatus.ACTIVE, connection=conn),
            overdue=rental_repo.count_overdue(reference, connection=conn),
            revenue_today=rental_repo.sum_revenue_between(
                today_start, today_end, connection=conn
            ),
            revenue_this_week=rental_repo.sum_revenue_between(
                week_start, week_end, connection=conn
            ),
        )
        self._logger.debug("Summary at %s: %s", reference, summary)
        return summary
