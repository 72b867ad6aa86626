"""Receipt export for rentals."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Optional

from car_rental_admin.logging_config import get_logger
from car_rental_admin.paths import get_config_path
from car_rental_admin.repositories import rental_repo
from car_rental_admin.repositories.car_repo import CarRepo
from car_rental_admin.repositories.customer_repo import CustomerRepo
from car_rental_admin.services.errors import NotFoundError
from car_rental_admin.utils.documents import build_receipt_filename, resolve_receipts_dir
from car_rental_admin.utils.pdf_generator import generate_rental_receipt


class ReceiptService:
    """Builds receipt PDFs from stored rentals."""

    def __init__(
        self,
        connection: sqlite3.Connection,
        *,
        config_path: Optional[Path] = None,
    ) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._config_path = config_path
        self._car_repo = CarRepo(connection)
        self._customer_repo = CustomerRepo(connection)
        self._logger = get_logger(self.__class__.__name__)

    def export_receipt(self, rental_id: int, output_dir: Optional[Path] = None) -> Path:
        rental = rental_repo.get_rental(rental_id, connection=self._connection)
        if not rental:
            raise NotFoundError(f"Rental not found: {rental_id}")
        car = self._car_repo.get_by_id(rental.car_id)
        if not car:
            raise NotFoundError(f"Car not found: {rental.car_id}")
        customer = self._customer_repo.get_by_id(rental.customer_id)
        if not customer:
            raise NotFoundError(f"Customer not found: {rental.customer_id}")

        if output_dir is None:
            output_dir = resolve_receipts_dir(self._config_path or get_config_path())
        filename = build_receipt_filename(customer.full_name, rental.id, rental.start_at)
        try:
            path = generate_rental_receipt(
                rental,
                car,
                customer,
                Path(output_dir) / filename,
                car_label=self._car_repo.get_label(car.id),
            )
        except Exception:
            self._logger.exception("Failed to write receipt for rental id=%s", rental_id)
            raise
        self._logger.info("Receipt for rental id=%s written to %s", rental_id, path)
        return path
