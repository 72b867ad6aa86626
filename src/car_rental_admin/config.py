"""Application configuration."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from car_rental_admin.version import __app_name__, __company__, __version__

APP_NAME = __app_name__
APP_DATA_DIRNAME = "CarRentalAdmin"
APP_HOME_ENV = "CAR_RENTAL_HOME"
DB_FILENAME = "car_rental.db"
LOGS_DIRNAME = "logs"
LOG_FILENAME = "app.log"
LOG_MAX_BYTES = 1_000_000
LOG_BACKUP_COUNT = 3
RECEIPTS_DIRNAME = "receipts"
CONFIG_FILENAME = "config.json"

# Share of the hourly rate charged per started hour of late return.
LATE_FEE_PERCENT = Decimal("50")


@dataclass(frozen=True)
class ReceiptIssuerInfo:
    """Issuer information printed on rental receipts."""

    name: str
    phone: str
    email: str
    address: str


RECEIPT_ISSUER = ReceiptIssuerInfo(
    name=__company__,
    phone="+48 000 000 000",
    email="office@car-rental.local",
    address="Main Street 1",
)


@dataclass(frozen=True)
class AppConfig:
    """Static configuration values for CarRentalAdmin."""

    app_name: str = APP_NAME
    organization_name: str = __company__
    version: str = __version__
