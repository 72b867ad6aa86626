"""Receipt file naming and settings."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from car_rental_admin.paths import get_receipts_dir
from car_rental_admin.utils.config_store import load_config_data, save_config_data

RECEIPTS_DIR_KEY = "receipts_dir"


@dataclass(frozen=True)
class ReceiptSettings:
    """Where exported receipts are written; ``None`` means the app-data folder."""

    receipts_dir: str | None = None


def sanitize_filename(value: str) -> str:
    """Normalize text to be safe for filenames."""
    cleaned = "_".join(value.strip().split())
    cleaned = re.sub(r"[^A-Za-z0-9_-]", "", cleaned)
    return cleaned or "Customer"


def build_receipt_filename(
    customer_name: str,
    rental_id: Optional[int],
    start_at: Optional[datetime] = None,
) -> str:
    """Build the default receipt filename, e.g. ``Jan_Kowalski_2026-01-05_Rental_7.pdf``."""
    parts = [sanitize_filename(customer_name)]
    if start_at is not None:
        parts.append(start_at.date().isoformat())
    parts.append(f"Rental_{rental_id}" if rental_id is not None else "Rental")
    return "_".join(parts) + ".pdf"


def load_receipt_settings(config_path: Path) -> ReceiptSettings:
    data = load_config_data(config_path)
    value = data.get(RECEIPTS_DIR_KEY)
    if isinstance(value, str) and value.strip():
        return ReceiptSettings(receipts_dir=value.strip())
    return ReceiptSettings()


def save_receipt_settings(config_path: Path, settings: ReceiptSettings) -> None:
    payload = load_config_data(config_path)
    payload[RECEIPTS_DIR_KEY] = settings.receipts_dir
    save_config_data(config_path, payload)


def resolve_receipts_dir(config_path: Path) -> Path:
    """Configured receipts directory, created if needed."""
    settings = load_receipt_settings(config_path)
    if settings.receipts_dir:
        target = Path(settings.receipts_dir).expanduser()
        target.mkdir(parents=True, exist_ok=True)
        return target
    return get_receipts_dir()
